"""Logging utilities with rich console output.

Bootstrap output is read by operators watching a container start, so every
module logs through a RichHandler on one shared console.

Usage:
    from common.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Applying migration 3")
    logger.error("Migration 3 failed", exc_info=True)
"""

import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

# Global console instance for consistent output
console = Console()


def _rich_handler(show_time: bool = False, show_path: bool = False) -> RichHandler:
    # Locals are not rendered in tracebacks: connection frames hold passwords
    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    return handler


def get_logger(
    name: str,
    level: str | None = None,
    show_time: bool = False,
    show_path: bool = False,
) -> logging.Logger:
    """Get a configured logger with rich output.

    Args:
        name: Logger name (typically __name__ of the module)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If None, uses environment variable LOG_LEVEL or defaults to INFO.
        show_time: Show timestamp in log output
        show_path: Show file path in log output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding multiple handlers if logger already configured
    if logger.handlers:
        return logger

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    logger.setLevel(level.upper())

    logger.addHandler(_rich_handler(show_time=show_time, show_path=show_path))

    # Keep propagating so pytest's caplog sees records
    logger.propagate = True

    return logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure the root logger once, from the CLI entry point.

    Args:
        level: Default logging level; LOG_LEVEL overrides it
        log_file: Optional path that also receives timestamped plain-text logs
    """
    level = os.getenv("LOG_LEVEL", level).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)


def progress(message: str) -> None:
    """Print a plain progress line."""
    console.print(message, markup=False, highlight=False)


def success(message: str) -> None:
    """Print a success line with a green checkmark.

    Example:
        >>> success("Connected to postgresql://postgres@db:5432/app")
        ✓ Connected to postgresql://postgres@db:5432/app
    """
    console.print(f"[green]✓[/green] {_escape(message)}")


def warning(message: str) -> None:
    """Print a warning line with a yellow warning icon."""
    console.print(f"[yellow]⚠[/yellow] {_escape(message)}")


def error(message: str) -> None:
    """Print an error line with a red X icon on stderr."""
    Console(file=sys.stderr).print(f"[red]✗[/red] {_escape(message)}")


def _escape(message: str) -> str:
    # Error text often contains SQL with square brackets
    return escape(message)
