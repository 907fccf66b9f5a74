"""Tasks: ordered groups of actions sharing one RunContext."""

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from stepwire.action import Action
from stepwire.context import ExecutionContext, ResultProvider, RunContext
from stepwire.exceptions import (
    PrerequisiteNotMetError,
    TaskAbortedError,
    TaskCancelledError,
    TaskExecutionError,
)
from stepwire.logging_config import get_logger
from stepwire.output import Output


@dataclass
class TaskContext:
    """What a task's result builder can see after its actions ran."""

    task_id: str
    run_context: RunContext
    logger: logging.Logger


class Task:
    """Runs its actions in order, publishing each output before the next starts.

    Args:
        task_id: Id the task output is published under
        name: Human-readable name
        actions: Wrapped actions, executed sequentially
        logger: Logger for task lifecycle messages
        result_builder: Optional callable building a custom task result from
            the TaskContext once all actions succeeded
    """

    def __init__(
        self,
        task_id: str,
        name: str = "",
        actions: Optional[List[Action]] = None,
        logger: Optional[logging.Logger] = None,
        result_builder: Optional[Callable[[TaskContext], Any]] = None,
    ) -> None:
        self.id = task_id
        self.name = name
        self.actions: List[Action] = list(actions or [])
        self.logger = logger or get_logger("task")
        self.result_builder = result_builder
        self.run_id: Optional[str] = None
        self.total_time = 0.0
        self.completed_actions = 0
        self._error: Optional[BaseException] = None
        self._custom_result: Any = None
        self._lock = threading.Lock()

    def run(self, ctx: Optional[ExecutionContext] = None) -> None:
        self.run_with_context(ctx, None)

    def run_with_context(
        self, ctx: Optional[ExecutionContext], run_context: Optional[RunContext]
    ) -> None:
        """Execute all actions against ``run_context`` (a fresh one if None).

        Raises:
            TaskCancelledError: If ``ctx`` was cancelled between actions or an
                action stopped on cancellation
            TaskAbortedError: If an action raised PrerequisiteNotMetError
            TaskExecutionError: If any other action failed
        """
        with self._lock:
            self.run_id = str(uuid.uuid4())
            self.total_time = 0.0
            self.completed_actions = 0
            self._error = None
            self._custom_result = None
            run_id = self.run_id
        log_extra = {"task_id": self.id, "run_id": run_id}
        self.logger.info(f"Starting task {self.id}", extra=log_extra)

        if run_context is None:
            run_context = RunContext()
        ctx = ctx or ExecutionContext.background()
        action_ctx = ctx.with_run_context(run_context)

        for action in self.actions:
            if ctx.cancelled:
                self.logger.info(f"Task {self.id} cancelled", extra=log_extra)
                error = TaskCancelledError(
                    f"task {self.id} (run {run_id}) cancelled before action {action.id}",
                    task_id=self.id,
                    action_id=action.id,
                )
                self._finish(run_context, error)
                raise error

            self.logger.info(
                f"Executing action {action.id}", extra={**log_extra, "action_id": action.id}
            )
            try:
                action.execute(action_ctx)
            except PrerequisiteNotMetError as e:
                self.logger.warning(
                    f"Task {self.id} aborted: prerequisite not met in action {action.id}",
                    extra={**log_extra, "action_id": action.id, "error": str(e)},
                )
                error = TaskAbortedError(
                    f"task {self.id} (run {run_id}) aborted: prerequisite not met "
                    f"in action {action.id}: {e}",
                    task_id=self.id,
                    action_id=action.id,
                )
                self._finish(run_context, error)
                raise error from e
            except TaskCancelledError as e:
                self.logger.info(
                    f"Task {self.id} cancelled during action {action.id}",
                    extra={**log_extra, "action_id": action.id},
                )
                error = TaskCancelledError(
                    f"task {self.id} (run {run_id}) cancelled during action {action.id}: {e}",
                    task_id=self.id,
                    action_id=action.id,
                )
                self._finish(run_context, error)
                raise error from e
            except Exception as e:
                self.logger.error(
                    f"Task {self.id} failed at action {action.id}: {e}",
                    extra={**log_extra, "action_id": action.id, "error": str(e)},
                )
                error = TaskExecutionError(
                    f"task {self.id} (run {run_id}) failed at action {action.id}: {e}",
                    task_id=self.id,
                    action_id=action.id,
                )
                self._finish(run_context, error)
                raise error from e

            self._store_action_output(action, run_context)
            with self._lock:
                self.total_time += action.get_duration()
                self.completed_actions += 1

        if self.result_builder is not None:
            try:
                result = self.result_builder(TaskContext(self.id, run_context, self.logger))
            except Exception as e:
                self.logger.warning(
                    f"Result builder for task {self.id} failed: {e}",
                    extra={**log_extra, "error": str(e)},
                )
                self.set_error(e)
            else:
                if result is not None:
                    self.set_result(result)

        self._finish(run_context, None)
        self.logger.info(
            f"Task {self.id} completed in {self.get_total_time():.2f}s",
            extra={**log_extra, "total_time": self.get_total_time()},
        )

    def _finish(self, run_context: RunContext, error: Optional[BaseException]) -> None:
        if error is not None:
            self.set_error(error)
        run_context.store_task_output(self.id, self.get_output())
        run_context.store_task_result_if_absent(self.id, self)

    def _store_action_output(self, action: Action, run_context: RunContext) -> None:
        output = action.get_output()
        if output is not None:
            run_context.store_action_output(action.id, output)
            self.logger.debug(
                f"Stored output of action {action.id}",
                extra={"task_id": self.id, "action_id": action.id},
            )
        if isinstance(action.wrapped, ResultProvider):
            run_context.store_action_result(action.id, action.wrapped)

    def get_output(self) -> Output:
        with self._lock:
            fields = {
                "task_id": self.id,
                "run_id": self.run_id,
                "name": self.name,
                "total_time": self.total_time,
                "completed_actions": self.completed_actions,
            }
            error = self._error
        if error is not None:
            fields["error"] = str(error)
        return Output(success=error is None, fields=fields)

    def get_total_time(self) -> float:
        with self._lock:
            return self.total_time

    def get_completed_actions(self) -> int:
        with self._lock:
            return self.completed_actions

    def set_result(self, result: Any) -> None:
        with self._lock:
            self._custom_result = result

    def get_result(self) -> Any:
        """Custom result when one was set, otherwise the task output summary."""
        with self._lock:
            result = self._custom_result
        if result is not None:
            return result
        return self.get_output()

    def set_error(self, error: Optional[BaseException]) -> None:
        with self._lock:
            self._error = error

    def get_error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error

    def __repr__(self) -> str:
        return f"Task(id={self.id!r}, actions={[a.id for a in self.actions]})"
