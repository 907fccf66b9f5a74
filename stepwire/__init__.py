"""Parameter binding and output propagation for automation pipelines."""

__version__ = "0.1.0"

# Core components
from stepwire.context import ExecutionContext, ResultProvider, RunContext, RUN_CONTEXT_KEY
from stepwire.exceptions import (
    ErrorKind,
    InvalidEntityTypeError,
    KeyNotFoundError,
    NilParameterError,
    OutputNotAddressableError,
    ReferenceNotFoundError,
    ResolutionError,
    StepwireError,
    TypeMismatchError,
)
from stepwire.output import Output, OutputBuilder
from stepwire.parameters import (
    ActionOutputParameter,
    ActionResultParameter,
    EntityOutputParameter,
    Parameter,
    ResolutionResult,
    StaticParameter,
    TaskOutputParameter,
    TaskResultParameter,
    action_output,
    action_output_field,
    action_result,
    action_result_field,
    entity_output,
    entity_output_field,
    task_output,
    task_output_field,
    task_result,
    task_result_field,
    try_resolve,
)
from stepwire.resolvers import ParameterResolver
from stepwire.action import Action, ActionConstructor, BaseAction

# Execution
from stepwire.task import Task
from stepwire.manager import TaskManager

__all__ = [
    # Version
    "__version__",
    # Core
    "ExecutionContext",
    "ResultProvider",
    "RunContext",
    "RUN_CONTEXT_KEY",
    "Output",
    "OutputBuilder",
    "Parameter",
    "StaticParameter",
    "ActionOutputParameter",
    "TaskOutputParameter",
    "EntityOutputParameter",
    "ActionResultParameter",
    "TaskResultParameter",
    "ResolutionResult",
    "try_resolve",
    "action_output",
    "action_output_field",
    "task_output",
    "task_output_field",
    "entity_output",
    "entity_output_field",
    "action_result",
    "action_result_field",
    "task_result",
    "task_result_field",
    "ParameterResolver",
    "Action",
    "ActionConstructor",
    "BaseAction",
    # Execution
    "Task",
    "TaskManager",
    # Errors
    "StepwireError",
    "ResolutionError",
    "ErrorKind",
    "NilParameterError",
    "ReferenceNotFoundError",
    "OutputNotAddressableError",
    "KeyNotFoundError",
    "InvalidEntityTypeError",
    "TypeMismatchError",
]
