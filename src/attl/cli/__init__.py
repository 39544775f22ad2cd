"""ATTL command line interface"""

from attl.cli.main import app, typer_app

__all__ = ["app", "typer_app"]
