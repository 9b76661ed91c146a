"""
Main entry point for the corekeeper application.
This module handles top-level setup, exception handling, and CLI invocation.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from corekeeper.cli.app import app
from corekeeper.cli.formatters import format_error
from corekeeper.exceptions import CorekeeperError


def main() -> None:
    """Main entry point function."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("corekeeper")
    console = Console()

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Maintenance stopped by user.[/yellow]")
        sys.exit(0)
    except CorekeeperError as e:
        console.print(f"\n{format_error(e)}")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n{format_error(e)}")
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
