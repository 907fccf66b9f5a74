"""Parameters: declarative references to values resolved at execution time.

A parameter is either a literal (``StaticParameter``) or a reference to an
output published earlier in the run by an action or a task. References fail
in a fixed order so callers need a single error path:

1. ``ReferenceNotFoundError`` - the id is empty or nothing was published
   under it (including when no RunContext exists at all)
2. ``OutputNotAddressableError`` - the output is not a string-keyed mapping
3. ``KeyNotFoundError`` - the mapping lacks the requested key

Resolution only reads from the RunContext.
"""

from dataclasses import dataclass
from typing import Any, Optional

from stepwire.context import ExecutionContext, ResultProvider, RunContext
from stepwire.exceptions import (
    ErrorKind,
    InvalidEntityTypeError,
    KeyNotFoundError,
    OutputNotAddressableError,
    ReferenceNotFoundError,
    ResolutionError,
)
from stepwire.output import Output, is_addressable

ENTITY_TYPE_ACTION = "action"
ENTITY_TYPE_TASK = "task"
ENTITY_TYPES = (ENTITY_TYPE_ACTION, ENTITY_TYPE_TASK)
_OUTPUT_GETTERS = {
    ENTITY_TYPE_ACTION: "get_action_output",
    ENTITY_TYPE_TASK: "get_task_output",
}


class Parameter:
    """Base class for all parameter variants."""

    def resolve(
        self, ctx: Optional[ExecutionContext], run_context: Optional[RunContext]
    ) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class StaticParameter(Parameter):
    """A literal value known when the pipeline is defined."""

    value: Any = None

    def resolve(self, ctx, run_context):
        return self.value


def _lookup(
    label: str,
    noun: str,
    producer_id: str,
    run_context: Optional[RunContext],
    getter: str,
) -> Any:
    if not producer_id:
        raise ReferenceNotFoundError(f"{label}: {noun} id cannot be empty")
    if run_context is None:
        raise ReferenceNotFoundError(
            f"{label}: {noun} '{producer_id}' not found (no run context available)"
        )
    output, found = getattr(run_context, getter)(producer_id)
    if not found:
        raise ReferenceNotFoundError(f"{label}: {noun} '{producer_id}' not found in context")
    return output


def _project(label: str, noun: str, producer_id: str, output: Any, key: str) -> Any:
    if not key:
        return output
    if not is_addressable(output):
        raise OutputNotAddressableError(
            f"{label}: {noun} '{producer_id}' output is not a string-keyed mapping "
            f"(got {type(output).__name__}), cannot extract key '{key}'"
        )
    try:
        if isinstance(output, Output):
            return output.project(key)
        return output[key]
    except KeyError:
        raise KeyNotFoundError(
            f"{label}: output key '{key}' not found in {noun} '{producer_id}'"
        ) from None


@dataclass(frozen=True)
class ActionOutputParameter(Parameter):
    """Reference to a value published by an action.

    An empty ``output_key`` selects the entire output.
    """

    action_id: str
    output_key: str = ""

    def resolve(self, ctx, run_context):
        label = type(self).__name__
        output = _lookup(label, ENTITY_TYPE_ACTION, self.action_id, run_context, "get_action_output")
        return _project(label, ENTITY_TYPE_ACTION, self.action_id, output, self.output_key)


@dataclass(frozen=True)
class TaskOutputParameter(Parameter):
    """Reference to a value published by a task."""

    task_id: str
    output_key: str = ""

    def resolve(self, ctx, run_context):
        label = type(self).__name__
        output = _lookup(label, ENTITY_TYPE_TASK, self.task_id, run_context, "get_task_output")
        return _project(label, ENTITY_TYPE_TASK, self.task_id, output, self.output_key)


@dataclass(frozen=True)
class EntityOutputParameter(Parameter):
    """Reference to an action or task output, selected by ``entity_type``."""

    entity_type: str
    entity_id: str
    output_key: str = ""

    def resolve(self, ctx, run_context):
        label = type(self).__name__
        if self.entity_type not in ENTITY_TYPES:
            raise InvalidEntityTypeError(
                f"{label}: invalid entity type '{self.entity_type}', "
                f"must be one of {', '.join(ENTITY_TYPES)}"
            )
        output = _lookup(
            label, self.entity_type, self.entity_id, run_context, _OUTPUT_GETTERS[self.entity_type]
        )
        return _project(label, self.entity_type, self.entity_id, output, self.output_key)


def _provider_result(provider: ResultProvider) -> Any:
    return provider.get_result()


@dataclass(frozen=True)
class ActionResultParameter(Parameter):
    """Reference to the rich result of an action that is a ResultProvider."""

    action_id: str
    result_key: str = ""

    def resolve(self, ctx, run_context):
        label = type(self).__name__
        provider = _lookup(label, ENTITY_TYPE_ACTION, self.action_id, run_context, "get_action_result")
        return _project(
            label, ENTITY_TYPE_ACTION, self.action_id, _provider_result(provider), self.result_key
        )


@dataclass(frozen=True)
class TaskResultParameter(Parameter):
    """Reference to the rich result of a task."""

    task_id: str
    result_key: str = ""

    def resolve(self, ctx, run_context):
        label = type(self).__name__
        provider = _lookup(label, ENTITY_TYPE_TASK, self.task_id, run_context, "get_task_result")
        return _project(
            label, ENTITY_TYPE_TASK, self.task_id, _provider_result(provider), self.result_key
        )


@dataclass(frozen=True)
class ResolutionResult:
    """Tagged outcome of a resolution: either a value or a ResolutionError."""

    value: Any = None
    error: Optional[ResolutionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.value


def try_resolve(
    param: Parameter,
    ctx: Optional[ExecutionContext],
    run_context: Optional[RunContext],
) -> ResolutionResult:
    """Resolve ``param`` without raising; failures are returned as the error."""
    try:
        return ResolutionResult(value=param.resolve(ctx, run_context))
    except ResolutionError as e:
        return ResolutionResult(error=e)


# Helper constructors for common references


def action_output(action_id: str) -> ActionOutputParameter:
    return ActionOutputParameter(action_id=action_id)


def action_output_field(action_id: str, field: str) -> ActionOutputParameter:
    return ActionOutputParameter(action_id=action_id, output_key=field)


def task_output(task_id: str) -> TaskOutputParameter:
    return TaskOutputParameter(task_id=task_id)


def task_output_field(task_id: str, field: str) -> TaskOutputParameter:
    return TaskOutputParameter(task_id=task_id, output_key=field)


def entity_output(entity_type: str, entity_id: str) -> EntityOutputParameter:
    return EntityOutputParameter(entity_type=entity_type, entity_id=entity_id)


def entity_output_field(entity_type: str, entity_id: str, field: str) -> EntityOutputParameter:
    return EntityOutputParameter(entity_type=entity_type, entity_id=entity_id, output_key=field)


def action_result(action_id: str) -> ActionResultParameter:
    return ActionResultParameter(action_id=action_id)


def action_result_field(action_id: str, field: str) -> ActionResultParameter:
    return ActionResultParameter(action_id=action_id, result_key=field)


def task_result(task_id: str) -> TaskResultParameter:
    return TaskResultParameter(task_id=task_id)


def task_result_field(task_id: str, field: str) -> TaskResultParameter:
    return TaskResultParameter(task_id=task_id, result_key=field)
