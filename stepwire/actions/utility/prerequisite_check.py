import logging
from typing import Callable

from stepwire.action import Action, BaseAction, build_action_id
from stepwire.context import ExecutionContext
from stepwire.exceptions import ActionExecutionError, PrerequisiteNotMetError
from stepwire.output import Output, OutputBuilder

PrerequisiteCheck = Callable[[ExecutionContext, logging.Logger], bool]
"""Returns True when the task should be aborted (prerequisite not met)."""


class PrerequisiteCheckAction(BaseAction, OutputBuilder):
    """Runs a callback and aborts the task when the prerequisite is not met."""

    def __init__(self, description: str, check: PrerequisiteCheck, logger=None):
        super().__init__(logger)
        self.description = description
        self.check = check
        self.passed = False

    def execute(self, ctx):
        self.logger.info(
            f"Performing prerequisite check: {self.description}",
            extra={"description": self.description},
        )
        try:
            abort_task = self.check(ctx, self.logger)
        except Exception as e:
            self.logger.error(
                f"Prerequisite check '{self.description}' failed: {e}",
                extra={"description": self.description, "error": str(e)},
            )
            raise ActionExecutionError(
                f"prerequisite check '{self.description}' encountered an error: {e}"
            ) from e

        if abort_task:
            self.logger.warning(
                f"Prerequisite not met, signaling task abort: {self.description}",
                extra={"description": self.description},
            )
            raise PrerequisiteNotMetError(f"prerequisite not met: {self.description}")

        self.passed = True
        self.logger.info(f"Prerequisite check passed: {self.description}")

    def get_output(self) -> Output:
        return self.build_simple_output(self.passed, self.description)


def new_prerequisite_check_action(
    description: str, check: PrerequisiteCheck, logger=None
) -> Action[PrerequisiteCheckAction]:
    """
    Raises:
        ValueError: If ``check`` is None
    """
    if check is None:
        raise ValueError("prerequisite check function cannot be None")
    action = PrerequisiteCheckAction(description, check, logger)
    return Action(
        action,
        name=f"Prerequisite check: {description}",
        action_id=build_action_id("prerequisite-check", description),
        logger=action.logger,
    )
