"""
smartfit console utilities

This module provides application-wide access to a Rich Console object for
writing to stdout and stderr, and routes the library's logging records through
Rich so debug output from the engine matches the rest of the CLI.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

smartfit_theme = Theme(
    {"warning": "orange_red1", "fail": "bold red", "confirm": "bold", "describe": ""}
)

console = Console(theme=smartfit_theme)
error_console = Console(theme=smartfit_theme, stderr=True)


"""
Formatting helpers
"""


def warn(msg: str):
    """
    Format msg and print to stderr.
    """

    error_console.print(
        f":exclamation_mark-emoji: [bold]warning: [/] {msg}", style="warning"
    )


def describe(msg: str, **kwargs):
    """
    Format descriptive msg and print to stdout.
    """

    console.print(f"{msg}", style="describe", **kwargs)


def confirm_success(msg: str, **kwargs):
    """
    Format confirmation msg and print to stdout. Accept any additional kwargs that console.print from
    rich module exposes.
    """

    console.print(f"{msg}", style="confirm", **kwargs)


def fail(msg: str):
    """
    Format failure msg and print to stderr.
    """

    error_console.print(f":x-emoji: failed. {msg}", style="fail")


def configure_logging(verbosity: str = "normal"):
    """
    Attach a RichHandler to the smartfit logger. 'verbose' shows the engine's debug trail,
    'quiet' only errors, anything else info and above.
    """

    levels = {"verbose": logging.DEBUG, "quiet": logging.ERROR}

    logger = logging.getLogger("smartfit")
    logger.setLevel(levels.get(verbosity, logging.INFO))
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=error_console, show_path=False))
