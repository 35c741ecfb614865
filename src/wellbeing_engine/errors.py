"""Exceptions raised by the wellbeing engine."""


class InsufficientDataError(ValueError):
    """Raised when an analysis is asked to run on too little history.

    Orchestration methods that own the precondition catch this and fall
    back to producing no findings.
    """

    def __init__(self, analysis: str, required: int, available: int):
        self.analysis = analysis
        self.required = required
        self.available = available
        super().__init__(
            f"{analysis} requires at least {required} records, got {available}"
        )


class ScheduleNotFoundError(KeyError):
    """Raised when a schedule update targets an id the store does not hold."""

    def __init__(self, schedule_id: str):
        self.schedule_id = schedule_id
        super().__init__(f"Schedule not found: {schedule_id}")
