"""Exception types shared by the core engine and the storage layer."""


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


class PlanStateError(ValidationError):
    """Raised when a lifecycle transition is not allowed in the plan's current state."""

    pass


class ImmutableWorkoutError(Exception):
    """Raised when something tries to overwrite or delete a locked/completed workout."""

    def __init__(self, date: str):
        super().__init__(f"Workout on {date} is locked or completed and cannot be changed")
        self.date = date
