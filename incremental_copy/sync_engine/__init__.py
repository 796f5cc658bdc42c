"""
Sync Engine Module

Content fingerprinting used to detect destinations that are already
up to date.

Author: incremental-copy Project
License: MIT
"""

from .fingerprinter import Fingerprinter, validate_hash_algorithm

__all__ = ['Fingerprinter', 'validate_hash_algorithm']
