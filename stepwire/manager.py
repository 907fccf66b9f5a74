"""Task manager: runs registered tasks in background threads over one RunContext."""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List, Optional

from stepwire.config import DEFAULT_MANAGER_WORKERS, TASK_WAIT_POLL_INTERVAL
from stepwire.context import ExecutionContext, RunContext
from stepwire.exceptions import TaskNotFoundError, TaskTimeoutError
from stepwire.logging_config import get_logger
from stepwire.task import Task


class TaskManager:
    """Keeps tasks by id and runs them on request.

    All tasks share the manager's RunContext, so an action in one task can
    reference outputs of another. The manager does not order tasks; callers
    start a consumer only after its producer finished.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        max_workers: int = DEFAULT_MANAGER_WORKERS,
    ) -> None:
        self.logger = logger or get_logger("manager")
        self.tasks: Dict[str, Task] = {}
        self._running: Dict[str, ExecutionContext] = {}
        self._run_context = RunContext()
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="stepwire-task"
        )

    def add_task(self, task: Task) -> None:
        if task is None:
            raise ValueError("task is None")
        with self._lock:
            self.tasks[task.id] = task
        self.logger.info(f"Task {task.id} added", extra={"task_id": task.id})

    def run_task(self, task_id: str) -> Future:
        """Start ``task_id`` in the background and return its future.

        Raises:
            TaskNotFoundError: If no task with that id was added
        """
        with self._lock:
            task = self.tasks.get(task_id)
            if task is None:
                self.logger.error(f"Task {task_id} not found", extra={"task_id": task_id})
                raise TaskNotFoundError(f"task '{task_id}' not found")
            ctx = ExecutionContext()
            run_context = self._run_context
            self._running[task_id] = ctx
            future = self._executor.submit(self._run, task, ctx, run_context)
        return future

    def _run(self, task: Task, ctx: ExecutionContext, run_context: RunContext) -> None:
        try:
            task.run_with_context(ctx, run_context)
        except Exception as e:
            if ctx.cancelled:
                self.logger.info(
                    f"Task {task.id} cancelled: {e}", extra={"task_id": task.id}
                )
            else:
                self.logger.error(
                    f"Task {task.id} execution failed: {e}",
                    extra={"task_id": task.id, "error": str(e)},
                )
            raise
        else:
            self.logger.info(f"Task {task.id} completed", extra={"task_id": task.id})
        finally:
            with self._lock:
                if self._running.get(task.id) is ctx:
                    del self._running[task.id]

    def stop_task(self, task_id: str) -> None:
        with self._lock:
            ctx = self._running.pop(task_id, None)
        if ctx is None:
            raise TaskNotFoundError(f"task '{task_id}' is not running")
        ctx.cancel()
        self.logger.info(f"Task {task_id} stopped", extra={"task_id": task_id})

    def stop_all_tasks(self) -> None:
        with self._lock:
            running = list(self._running.items())
            self._running.clear()
        for task_id, ctx in running:
            ctx.cancel()
            self.logger.info(f"Task {task_id} stopped", extra={"task_id": task_id})

    def get_running_tasks(self) -> List[str]:
        with self._lock:
            return list(self._running)

    def is_task_running(self, task_id: str) -> bool:
        with self._lock:
            return task_id in self._running

    def wait_for_all_tasks(self, timeout: float) -> None:
        """Block until no task is running.

        Raises:
            TaskTimeoutError: If tasks are still running after ``timeout`` seconds
        """
        deadline = time.monotonic() + timeout
        while True:
            with self._lock:
                running_count = len(self._running)
            if running_count == 0:
                return
            if time.monotonic() > deadline:
                raise TaskTimeoutError(
                    f"timeout waiting for {running_count} tasks to complete"
                )
            time.sleep(TASK_WAIT_POLL_INTERVAL)

    def get_run_context(self) -> RunContext:
        with self._lock:
            return self._run_context

    def reset_run_context(self) -> None:
        """Start over with an empty RunContext, e.g. between workflow runs."""
        with self._lock:
            self._run_context = RunContext()
        self.logger.info("Run context reset")

    def shutdown(self, wait: bool = True) -> None:
        self.stop_all_tasks()
        self._executor.shutdown(wait=wait)
