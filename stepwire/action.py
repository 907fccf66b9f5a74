"""Action wrapper: identity, logging and lifecycle around a concrete step."""

import logging
import re
import threading
import time
import uuid
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from stepwire.context import ExecutionContext, RunContext, run_context_from
from stepwire.exceptions import NilParameterError
from stepwire.logging_config import get_logger

logger = get_logger("actions")

_ID_SANITIZER = re.compile(r"[^a-z0-9_:\-.]+")


def sanitize_id_part(value: str) -> str:
    """Lowercase ``value`` and reduce it to characters safe for an action id.

    Spaces and slashes become '-', anything outside [a-z0-9_:-.] is dropped.
    """
    n = value.strip().lower()
    if not n:
        return ""
    n = n.replace(" ", "-").replace("/", "-")
    return _ID_SANITIZER.sub("", n)


def build_action_id(prefix: str, *parts: str) -> str:
    """Build ``prefix-part1-part2-action``, skipping parts that sanitize to empty."""
    cleaned = [p for p in (sanitize_id_part(part) for part in parts) if p]
    base = sanitize_id_part(prefix) or "action"
    if not cleaned:
        return f"{base}-action"
    return f"{base}-{'-'.join(cleaned)}-action"


def require_parameters(**params: Any) -> None:
    """Reject missing parameters at construction time.

    Keyword names are the semantic roles, underscores read as spaces:
    ``require_parameters(working_directory=p)``.

    Raises:
        NilParameterError: For the first parameter that is None
    """
    for role, param in params.items():
        if param is None:
            raise NilParameterError(role.replace("_", " "))


class BaseAction:
    """Base class for concrete steps.

    Subclasses implement ``execute`` and usually ``get_output``; the
    before/after hooks default to no-ops.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or get_logger("actions")

    def before_execute(self, ctx: ExecutionContext) -> None:
        pass

    def execute(self, ctx: ExecutionContext) -> None:
        raise NotImplementedError

    def after_execute(self, ctx: ExecutionContext) -> None:
        pass

    def get_output(self) -> Any:
        return None


T = TypeVar("T", bound=BaseAction)


class Action(Generic[T]):
    """Envelope giving a concrete step a stable id, a name and a logger.

    Args:
        wrapped: The concrete step
        name: Human-readable name
        action_id: Stable id outputs are published under; generated from
            ``name`` when omitted
        logger: Logger for lifecycle messages
    """

    def __init__(
        self,
        wrapped: T,
        name: str = "",
        action_id: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if action_id is None or not action_id.strip():
            action_id = generate_id_from_name(name) if name.strip() else ""
        self.id = action_id
        self.name = name
        self.wrapped = wrapped
        self.logger = logger or getattr(wrapped, "logger", None) or get_logger("actions")
        self.run_id: Optional[str] = None
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.duration: float = 0.0
        self._lock = threading.Lock()

    @property
    def display_name(self) -> str:
        return self.name if self.name.strip() else self.id

    def get_duration(self) -> float:
        with self._lock:
            return self.duration

    def get_output(self) -> Any:
        return self.wrapped.get_output()

    def execute(self, ctx: Optional[ExecutionContext] = None) -> None:
        """Run the wrapped step's before/execute/after hooks.

        A context without a RunContext gets an empty one, so any reference
        parameter fails with ReferenceNotFoundError instead of crashing.
        Errors from the step propagate unchanged.
        """
        if not self.id.strip() and self.name.strip():
            self.id = generate_id_from_name(self.name)

        with self._lock:
            self.run_id = str(uuid.uuid4())
            run_id = self.run_id
            self.start_time = datetime.now()
        log_extra = {"action_id": self.id, "run_id": run_id}
        self.logger.info(f"Starting action {self.display_name}", extra=log_extra)

        exec_ctx = ctx or ExecutionContext.background()
        if run_context_from(exec_ctx) is None:
            exec_ctx = exec_ctx.with_run_context(RunContext())

        started = time.monotonic()
        for stage, hook in (
            ("before_execute", self.wrapped.before_execute),
            ("execute", self.wrapped.execute),
        ):
            try:
                hook(exec_ctx)
            except Exception as e:
                self.logger.error(
                    f"Action {self.display_name} {stage} failed: {e}",
                    extra={**log_extra, "stage": stage, "error": str(e)},
                )
                raise

        with self._lock:
            self.end_time = datetime.now()
            self.duration = time.monotonic() - started
            duration = self.duration

        try:
            self.wrapped.after_execute(exec_ctx)
        except Exception as e:
            self.logger.error(
                f"Action {self.display_name} after_execute failed: {e}",
                extra={**log_extra, "stage": "after_execute", "error": str(e)},
            )
            raise

        self.logger.info(
            f"Action {self.display_name} completed in {duration:.2f}s",
            extra={**log_extra, "duration": duration},
        )

    def __repr__(self) -> str:
        return f"Action(id={self.id!r}, name={self.name!r}, wrapped={type(self.wrapped).__name__})"


def generate_id_from_name(name: str) -> str:
    """Plain id for an Action built directly: "Pull Image" -> "pull-image".

    ActionConstructor.wrap appends "-action" instead; both return "" when
    nothing id-safe is left of ``name``.
    """
    return sanitize_id_part(name).replace("_", "-")


class ActionConstructor(Generic[T]):
    """Builds Action envelopes so step authors don't repeat the boilerplate."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger

    def wrap(self, action: T, name: str, action_id: Optional[str] = None) -> Action[T]:
        if not action_id:
            base = sanitize_id_part(name)
            if not base:
                raise ValueError(f"cannot derive an action id from name {name!r}")
            action_id = base + "-action"
        return Action(action, name=name, action_id=action_id, logger=self.logger)
