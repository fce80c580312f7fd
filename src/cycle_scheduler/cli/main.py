"""
CLI entry point using Typer.

Command groups:
- template: add and list workout templates
- plan: create, preview, apply, resolve, pause, resume, end, delete, repeat
- calendar: show the calendar, schedule one-offs, record execution
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from . import views
from .app import app
from .commands import calendar, plans, templates  # noqa: F401  (registers commands)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log scheduling decisions to stderr")
    ] = False,
) -> None:
    """
    Schedule weekday-recurring training plans on a one-workout-per-day calendar.
    """
    if verbose:
        logger = logging.getLogger("cycle_scheduler")
        logger.setLevel(logging.DEBUG)
        if not any(isinstance(h, RichHandler) for h in logger.handlers):
            logger.addHandler(RichHandler(console=views.err_console, show_path=False))


if __name__ == "__main__":
    app()
