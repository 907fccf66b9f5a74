"""Custom exception hierarchy for the stepwire pipeline engine."""

from enum import Enum
from typing import Optional


class StepwireError(Exception):
    """Base exception for all stepwire errors."""

    pass


class ErrorKind(Enum):
    """Failure kinds raised while binding parameters to published outputs."""

    NIL_PARAMETER = "NIL_PARAMETER"
    REFERENCE_NOT_FOUND = "REFERENCE_NOT_FOUND"
    OUTPUT_NOT_ADDRESSABLE = "OUTPUT_NOT_ADDRESSABLE"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    INVALID_ENTITY_TYPE = "INVALID_ENTITY_TYPE"


class ResolutionError(StepwireError):
    """Base class for parameter resolution failures.

    Args:
        detail: Proximate cause (missing id, missing key, wrong type)
        role: Semantic role of the parameter, e.g. "working directory".
            Resolver helpers fill this in when the error passes through them.
    """

    kind: ErrorKind = None

    def __init__(self, detail: str, role: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.role = role

    def __str__(self) -> str:
        if self.role:
            return f"failed to resolve {self.role} parameter: {self.detail}"
        return self.detail


class NilParameterError(ResolutionError):
    """Raised when a required parameter was not supplied."""

    kind = ErrorKind.NIL_PARAMETER

    def __init__(self, role: Optional[str] = None) -> None:
        super().__init__("parameter cannot be None", role=role)

    def __str__(self) -> str:
        if self.role:
            return f"{self.role} parameter cannot be None"
        return self.detail


class ReferenceNotFoundError(ResolutionError):
    """Raised when a referenced action or task has not published an output."""

    kind = ErrorKind.REFERENCE_NOT_FOUND


class OutputNotAddressableError(ResolutionError):
    """Raised when a published output is not a string-keyed mapping."""

    kind = ErrorKind.OUTPUT_NOT_ADDRESSABLE


class KeyNotFoundError(ResolutionError):
    """Raised when a published output lacks the requested key."""

    kind = ErrorKind.KEY_NOT_FOUND


class InvalidEntityTypeError(ResolutionError):
    """Raised when an entity reference names neither an action nor a task."""

    kind = ErrorKind.INVALID_ENTITY_TYPE


class TypeMismatchError(ResolutionError):
    """Raised when a resolved value does not have the expected kind."""

    kind = ErrorKind.TYPE_MISMATCH

    def __init__(self, expected_kind: str, actual_kind: str, role: str) -> None:
        super().__init__(
            f"expected {expected_kind}, got {actual_kind}",
            role=role,
        )
        self.expected_kind = expected_kind
        self.actual_kind = actual_kind


class ActionExecutionError(StepwireError):
    """Raised by actions when their work fails."""

    pass


class PrerequisiteNotMetError(ActionExecutionError):
    """Raised by an action to signal that its task should be aborted."""

    pass


class TaskExecutionError(StepwireError):
    """Raised when an action inside a task fails."""

    def __init__(self, message: str, task_id: str = "", action_id: str = "") -> None:
        super().__init__(message)
        self.task_id = task_id
        self.action_id = action_id


class TaskAbortedError(TaskExecutionError):
    """Raised when a task stops because a prerequisite was not met."""

    pass


class TaskCancelledError(TaskExecutionError):
    """Raised when a task observes cancellation between actions."""

    pass


class TaskNotFoundError(StepwireError):
    """Raised when a task id is not known to the manager."""

    pass


class TaskTimeoutError(StepwireError):
    """Raised when waiting for running tasks exceeds the timeout."""

    pass


class TaskRegistrationError(StepwireError):
    """Raised when task registration fails (e.g., duplicate names)."""

    pass


class CommandError(StepwireError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, message: str, returncode: int = -1, output: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class ConfigurationError(StepwireError):
    """Raised when configuration is invalid or missing."""

    pass
