"""CLI package: Typer-based command-line interface.

Usage:
    tenant-extract --help
    python -m tenant_extract.cli clients --help
"""

from tenant_extract.cli._app import app

# Register command modules (side-effect imports)
import tenant_extract.cli.cmd_clients  # noqa: F401
import tenant_extract.cli.cmd_prompt  # noqa: F401
import tenant_extract.cli.cmd_formats  # noqa: F401

__all__ = ["app"]
