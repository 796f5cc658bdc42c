"""
Command Line Interface

Runs a copy batch described by a YAML config file. Flags override the
file's copy settings; the batch result is printed as JSON on stdout.

Author: incremental-copy Project
License: MIT
"""

import json
from typing import Optional

import typer

from .config.config_loader import ConfigLoader
from .core.errors import ConfigError, CopyTargetError
from .core.orchestrator import BatchCopyOrchestrator
from .utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

app = typer.Typer(add_completion=False, help="Copy files only when their content changed.")


@app.command()
def run(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to the YAML config file"
    ),
    source_root: Optional[str] = typer.Option(
        None, "--source-root", help="Override copy.source_root"
    ),
    destination_root: Optional[str] = typer.Option(
        None, "--destination-root", help="Override copy.destination_root"
    ),
    no_hash: bool = typer.Option(
        False, "--no-hash", help="Copy every target without comparing content"
    ),
    continue_on_error: bool = typer.Option(
        False, "--continue-on-error", help="Record failed targets and keep going"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress the batch summary log"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Override logging.log_level"
    ),
) -> None:
    """Copy the configured targets whose destinations are out of date."""
    try:
        loaded = ConfigLoader(config).load()

        copy_config = loaded.copy_settings
        if source_root is not None:
            copy_config.source_root = source_root
        if destination_root is not None:
            copy_config.destination_root = destination_root
        if no_hash:
            copy_config.hash_optimization = False
        if continue_on_error:
            copy_config.continue_on_error = True
        if quiet:
            copy_config.quiet = True
        if log_level is not None:
            loaded.logging.log_level = log_level
    except (ConfigError, ValueError) as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=1)

    log_config = loaded.logging
    setup_logging(
        log_level=log_config.log_level,
        log_to_file=log_config.log_to_file,
        log_file_path=log_config.log_file_path,
        log_rotation_size=log_config.log_rotation_size,
        log_retention_count=log_config.log_retention_count,
        json_format=log_config.json_format
    )

    orchestrator = BatchCopyOrchestrator(copy_config)
    try:
        result = orchestrator.run_sync(loaded.copy_targets())
    except CopyTargetError as e:
        logger.error(str(e))
        payload = e.result.to_dict() if e.result is not None else {}
        payload["error"] = str(e)
        typer.echo(json.dumps(payload, indent=2))
        raise typer.Exit(code=1)

    typer.echo(json.dumps(result.to_dict(), indent=2))
    if result.targets_failed:
        raise typer.Exit(code=1)


def main() -> None:
    app()
