"""Domain exceptions for goal pacing."""


class GoalPacingError(Exception):
    """Base exception for all goal pacing errors."""
    pass


class StoreNotFoundError(GoalPacingError):
    """Store does not exist or has no vendor store code."""
    pass


class CategoryConfigError(GoalPacingError):
    """Category alias table is malformed or ambiguous."""
    pass
