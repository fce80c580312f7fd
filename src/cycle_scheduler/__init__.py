"""
cycle-scheduler: weekday-recurring training plans on a one-workout-per-day calendar.

The package logs through the standard ``logging`` module and stays silent
unless the application configures a handler (the CLI does so with --verbose).
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
