"""Domain exceptions shared across the tutor core."""


class TutorError(Exception):
    """Base class for errors raised by the tutor core."""


class LevelUpUnavailableError(TutorError):
    """Raised when a level-up test cannot be taken or applied."""


class GradingError(TutorError):
    """Raised when a task cannot be graded locally."""


class GenerationError(TutorError):
    """Raised when the backend fails to produce a usable task."""
