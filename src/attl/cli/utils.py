"""Shared utilities for the CLI"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from attl.config import Settings, find_settings_file, load_settings

# stdout carries the rendered template; diagnostics go to stderr.
console = Console(stderr=True)

DEBUG_ENV = "ATTL_DEBUG"


def setup_logging(verbose: bool = False) -> None:
    """Route `attl.*` records to stderr.

    Redefinition warnings always show; `-v` adds the compile summary and
    setting ATTL_DEBUG traces every parser rule and VM instruction.
    """
    trace = bool(os.environ.get(DEBUG_ENV))
    level = logging.DEBUG if trace else logging.INFO if verbose else logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=False,
        show_path=trace,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("attl")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def resolve_settings(
    config_path: Optional[Path], max_depth: Optional[int] = None
) -> Settings:
    """Load settings from `config_path`, or `attl.yaml` in cwd, then apply overrides."""
    if config_path is None:
        config_path = find_settings_file()
    settings = load_settings(config_path) if config_path is not None else Settings()
    if max_depth is not None:
        settings = settings.model_copy(update={"max_depth": max_depth})
    return settings


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Exit the program with an error message."""
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=exit_code)
