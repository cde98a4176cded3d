"""Shared CLI utilities."""

import dataclasses
import logging
from contextlib import contextmanager
from typing import Iterator

import typer
from rich.logging import RichHandler

from tenant_extract.config.resolver import ConfigResolver
from tenant_extract.errors import TenantConfigError
from tenant_extract.settings import get_settings

logger = logging.getLogger(__name__)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with a Rich handler on stderr."""
    from tenant_extract.cli._console import console

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def get_resolver(ctx: typer.Context) -> ConfigResolver:
    """Build a resolver for the config home chosen on the command line."""
    settings = get_settings()
    home = ctx.obj.get("home")
    if home is not None:
        settings = dataclasses.replace(settings, config_home=home)
    logger.debug(f"Using config home {settings.config_home}")
    return ConfigResolver.from_settings(settings)


@contextmanager
def handle_config_errors() -> Iterator[None]:
    """Report configuration errors and exit with status 1."""
    from tenant_extract.cli._console import print_status

    try:
        yield
    except (TenantConfigError, ValueError) as e:
        print_status("error", str(e))
        raise typer.Exit(1) from e
