"""
Fingerprinter

Computes content fingerprints of files by streaming them through an
incremental hash. Used by the skip decider when sizes alone cannot tell two
files apart.

Author: incremental-copy Project
License: MIT
"""

import hashlib
from typing import Optional

import aiofiles

from ..utils.file_ops import PathLike
from ..utils.logger import get_logger

logger = get_logger(__name__)

MIN_DIGEST_BITS = 128


def validate_hash_algorithm(algorithm: str) -> str:
    """
    Check that ``algorithm`` is a hashlib algorithm with a fixed digest of at
    least 128 bits.

    Args:
        algorithm: hashlib algorithm name

    Returns:
        The normalized algorithm name

    Raises:
        ValueError: If the algorithm is unknown or its digest is too short
    """
    name = algorithm.lower()
    try:
        hasher = hashlib.new(name)
    except ValueError:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")

    # Variable-length digests (shake_*) report digest_size 0
    if hasher.digest_size * 8 < MIN_DIGEST_BITS:
        raise ValueError(
            f"Hash algorithm {algorithm} must produce a fixed digest of at least "
            f"{MIN_DIGEST_BITS} bits"
        )
    return name


class Fingerprinter:
    """
    Streaming content fingerprinter.

    Features:
    - Bounded memory: files are read in CHUNK_SIZE pieces
    - Any hashlib algorithm with a digest of at least 128 bits
    - Read failures yield None instead of raising
    """

    HASH_ALGORITHM = 'sha256'
    CHUNK_SIZE = 65536  # 64KB chunks for hashing

    def __init__(self, algorithm: Optional[str] = None, chunk_size: Optional[int] = None):
        """
        Initialize fingerprinter.

        Args:
            algorithm: hashlib algorithm name (defaults to HASH_ALGORITHM)
            chunk_size: Read size in bytes (defaults to CHUNK_SIZE)
        """
        self.algorithm = validate_hash_algorithm(algorithm or self.HASH_ALGORITHM)
        self.chunk_size = chunk_size if chunk_size is not None else self.CHUNK_SIZE

        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive: {self.chunk_size}")

    async def fingerprint(self, file_path: PathLike) -> Optional[str]:
        """
        Calculate the content digest of a file.

        Args:
            file_path: Path to file

        Returns:
            Hex string of the digest, or None if the file could not be read
        """
        hasher = hashlib.new(self.algorithm)

        try:
            async with aiofiles.open(file_path, 'rb') as f:
                while chunk := await f.read(self.chunk_size):
                    hasher.update(chunk)
        except OSError as e:
            logger.debug(f"Cannot fingerprint {file_path}: {e}")
            return None

        return hasher.hexdigest()
