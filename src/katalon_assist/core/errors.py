"""Error taxonomy for healing and test execution."""

from typing import Optional


class KatalonAssistError(Exception):
    """Base class for all errors raised by the assistant."""
    pass


class ValidationError(KatalonAssistError):
    """Raised when a request references a missing path or an unsupported value."""
    pass


class ConfigurationError(KatalonAssistError):
    """Raised when a healing configuration is invalid or cannot be saved."""
    pass


class HealingDisabled(KatalonAssistError):
    """Raised when healing is requested for a project that has it turned off."""
    pass


class ObjectNotFound(KatalonAssistError):
    """Raised when an object repository entry does not exist."""

    def __init__(self, object_name: str):
        super().__init__(f'Object "{object_name}" not found')
        self.object_name = object_name


class SpawnError(KatalonAssistError):
    """Raised when the test runner process could not be started."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ExecutionTimeout(KatalonAssistError):
    """Raised when a run exceeds its wall-clock bound and is killed."""

    def __init__(self, run_id: str, timeout_seconds: float):
        super().__init__(f"Test execution {run_id} timed out after {timeout_seconds:g} seconds")
        self.run_id = run_id
        self.timeout_seconds = timeout_seconds


class ParseError(KatalonAssistError):
    """Raised when a runner report cannot be parsed.

    Only used inside the result collector; callers see an empty result list.
    """
    pass
