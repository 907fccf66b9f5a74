from datetime import timedelta
from typing import Optional

from stepwire.action import Action, ActionConstructor, BaseAction, require_parameters
from stepwire.exceptions import ActionExecutionError, TaskCancelledError
from stepwire.output import Output, OutputBuilder
from stepwire.parameters import Parameter
from stepwire.resolvers import ParameterResolver


class WaitAction(BaseAction, ParameterResolver, OutputBuilder):
    """Waits for a duration, returning early if the run is cancelled.

    The duration parameter accepts a timedelta, a number of seconds or a
    duration string such as "1m30s".
    """

    def __init__(self, logger=None):
        super().__init__(logger)
        self.duration_param: Optional[Parameter] = None
        self.resolved_duration: Optional[timedelta] = None
        self.completed = False

    def with_parameters(self, duration: Parameter) -> Action["WaitAction"]:
        require_parameters(duration=duration)
        self.duration_param = duration
        return ActionConstructor(self.logger).wrap(self, "Wait", "wait-action")

    def execute(self, ctx):
        self.completed = False
        duration = self.resolve_duration(ctx, self.duration_param, "duration")
        if duration <= timedelta(0):
            raise ActionExecutionError("invalid duration: must be positive")
        self.resolved_duration = duration

        if ctx.wait(duration.total_seconds()):
            raise TaskCancelledError("wait cancelled")
        self.completed = True

    def get_output(self) -> Output:
        seconds = self.resolved_duration.total_seconds() if self.resolved_duration else 0.0
        return self.build_standard_output(None, self.completed, {"duration_seconds": seconds})
