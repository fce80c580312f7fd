"""
Scheduling engine: projection, conflict detection, resolution and plan timeline.

All modules here are pure or near-pure functions over in-memory values; the
storage layer lives in ``cycle_scheduler.io``.
"""

from .errors import ImmutableWorkoutError, PlanStateError, ValidationError
from .scheduler import CycleScheduler, OperationResult

__all__ = [
    "CycleScheduler",
    "ImmutableWorkoutError",
    "OperationResult",
    "PlanStateError",
    "ValidationError",
]
