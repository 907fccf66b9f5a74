"""Run-scoped output store and execution context."""

import threading
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

RUN_CONTEXT_KEY = "stepwire.run_context"
"""str: Well-known ExecutionContext key under which the RunContext is attached."""


@runtime_checkable
class ResultProvider(Protocol):
    """Actions or tasks exposing a rich result in addition to their output."""

    def get_result(self) -> Any:
        ...

    def get_error(self) -> Optional[BaseException]:
        ...


class RunContext:
    """Shared store of published outputs for a single pipeline run.

    Outputs are keyed by producer id in two independent namespaces, one for
    actions and one for tasks. Publishing overwrites unconditionally; two
    producers racing on the same id are not detected, the last write wins.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._action_outputs: Dict[str, Any] = {}
        self._task_outputs: Dict[str, Any] = {}
        self._action_results: Dict[str, ResultProvider] = {}
        self._task_results: Dict[str, ResultProvider] = {}

    def store_action_output(self, action_id: str, output: Any) -> None:
        with self._lock:
            self._action_outputs[action_id] = output

    def store_task_output(self, task_id: str, output: Any) -> None:
        with self._lock:
            self._task_outputs[task_id] = output

    def get_action_output(self, action_id: str) -> Tuple[Any, bool]:
        with self._lock:
            if action_id in self._action_outputs:
                return self._action_outputs[action_id], True
            return None, False

    def get_task_output(self, task_id: str) -> Tuple[Any, bool]:
        with self._lock:
            if task_id in self._task_outputs:
                return self._task_outputs[task_id], True
            return None, False

    def store_action_result(self, action_id: str, provider: ResultProvider) -> None:
        with self._lock:
            self._action_results[action_id] = provider

    def store_task_result(self, task_id: str, provider: ResultProvider) -> None:
        with self._lock:
            self._task_results[task_id] = provider

    def store_task_result_if_absent(self, task_id: str, provider: ResultProvider) -> bool:
        """Store a task result provider unless one is already registered."""
        with self._lock:
            if task_id in self._task_results:
                return False
            self._task_results[task_id] = provider
            return True

    def get_action_result(self, action_id: str) -> Tuple[Optional[ResultProvider], bool]:
        with self._lock:
            if action_id in self._action_results:
                return self._action_results[action_id], True
            return None, False

    def get_task_result(self, task_id: str) -> Tuple[Optional[ResultProvider], bool]:
        with self._lock:
            if task_id in self._task_results:
                return self._task_results[task_id], True
            return None, False

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Shallow copy of all namespaces, for inspection and reporting."""
        with self._lock:
            return {
                "action_outputs": dict(self._action_outputs),
                "task_outputs": dict(self._task_outputs),
                "action_results": dict(self._action_results),
                "task_results": dict(self._task_results),
            }

    def clear(self) -> None:
        with self._lock:
            self._action_outputs.clear()
            self._task_outputs.clear()
            self._action_results.clear()
            self._task_results.clear()

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"RunContext(actions={sorted(self._action_outputs)}, "
                f"tasks={sorted(self._task_outputs)})"
            )


class ExecutionContext:
    """Immutable chain of values plus a shared cancellation signal.

    Derived contexts created with ``with_value`` share the parent's
    cancellation event, so cancelling a task's context is observed by every
    action running under it.
    """

    def __init__(
        self,
        values: Optional[Dict[str, Any]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._values: Dict[str, Any] = dict(values or {})
        self._cancel_event = cancel_event or threading.Event()

    @classmethod
    def background(cls) -> "ExecutionContext":
        return cls()

    def value(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def with_value(self, key: str, value: Any) -> "ExecutionContext":
        values = dict(self._values)
        values[key] = value
        return ExecutionContext(values, self._cancel_event)

    def with_run_context(self, run_context: "RunContext") -> "ExecutionContext":
        return self.with_value(RUN_CONTEXT_KEY, run_context)

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; returns True if cancelled meanwhile."""
        return self._cancel_event.wait(timeout)


def run_context_from(ctx: Optional[ExecutionContext]) -> Optional[RunContext]:
    """Return the RunContext attached to ``ctx``, or None when absent."""
    if ctx is None:
        return None
    run_context = ctx.value(RUN_CONTEXT_KEY)
    if isinstance(run_context, RunContext):
        return run_context
    return None
