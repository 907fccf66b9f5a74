from datetime import timedelta
from typing import List, Optional

from stepwire import config
from stepwire.action import Action, ActionConstructor, BaseAction, require_parameters
from stepwire.command import CommandRunner
from stepwire.exceptions import ActionExecutionError, CommandError
from stepwire.output import Output, OutputBuilder
from stepwire.parameters import Parameter, StaticParameter
from stepwire.resolvers import ParameterResolver
from stepwire.retry import retry_call


class CheckContainerHealthAction(BaseAction, ParameterResolver, OutputBuilder):
    """Runs a check command inside a compose service until it succeeds.

    Retries ``docker compose exec <service> <command...>`` up to
    ``max_retries`` times with a fixed ``retry_delay`` between attempts,
    stopping early when the run is cancelled.
    """

    def __init__(self, logger=None, command_runner: Optional[CommandRunner] = None):
        super().__init__(logger)
        self.command_runner = command_runner or CommandRunner()
        self.working_dir_param: Optional[Parameter] = None
        self.service_name_param: Optional[Parameter] = None
        self.check_command_param: Optional[Parameter] = None
        self.max_retries_param: Optional[Parameter] = None
        self.retry_delay_param: Optional[Parameter] = None

        self.resolved_working_dir = ""
        self.resolved_service_name = ""
        self.resolved_check_command: List[str] = []
        self.resolved_max_retries = 0
        self.resolved_retry_delay = timedelta(0)
        self.healthy = False
        self.last_output = ""

    def with_parameters(
        self,
        working_dir: Parameter,
        service_name: Parameter,
        check_command: Parameter,
        max_retries: Optional[Parameter] = None,
        retry_delay: Optional[Parameter] = None,
    ) -> Action["CheckContainerHealthAction"]:
        require_parameters(
            working_directory=working_dir,
            service_name=service_name,
            check_command=check_command,
        )
        self.working_dir_param = working_dir
        self.service_name_param = service_name
        self.check_command_param = check_command
        self.max_retries_param = max_retries or StaticParameter(
            config.DEFAULT_HEALTH_CHECK_RETRIES
        )
        self.retry_delay_param = retry_delay or StaticParameter(
            config.DEFAULT_RETRY_DELAY_SECONDS
        )
        return ActionConstructor(self.logger).wrap(
            self, "Check Container Health", "check-container-health-action"
        )

    def execute(self, ctx):
        self.resolved_working_dir = self.resolve_string(
            ctx, self.working_dir_param, "working directory"
        )
        self.resolved_service_name = self.resolve_string(
            ctx, self.service_name_param, "service name"
        )
        self.resolved_check_command = self.resolve_string_list(
            ctx, self.check_command_param, "check command"
        )
        self.resolved_max_retries = self.resolve_int(ctx, self.max_retries_param, "max retries")
        self.resolved_retry_delay = self.resolve_duration(
            ctx, self.retry_delay_param, "retry delay"
        )
        if self.resolved_max_retries < 1:
            raise ActionExecutionError("max retries must be at least 1")
        if not self.resolved_check_command:
            raise ActionExecutionError("check command cannot be empty")

        cmd_args = ["compose", "exec", self.resolved_service_name, *self.resolved_check_command]
        attempt = {"n": 0}

        def check():
            attempt["n"] += 1
            self.logger.info(
                f"Checking container health of {self.resolved_service_name} "
                f"(attempt {attempt['n']})",
                extra={
                    "service": self.resolved_service_name,
                    "attempt": attempt["n"],
                    "working_dir": self.resolved_working_dir,
                },
            )
            return self.command_runner.run_command(
                config.docker_binary(),
                *cmd_args,
                working_dir=self.resolved_working_dir or None,
                ctx=ctx,
            )

        try:
            self.last_output = retry_call(
                check,
                max_attempts=self.resolved_max_retries,
                base_delay=self.resolved_retry_delay.total_seconds(),
                retry_on=CommandError,
                ctx=ctx,
                operation_name=f"health check of {self.resolved_service_name}",
            )
        except CommandError as e:
            self.last_output = e.output
            raise ActionExecutionError(
                f"container {self.resolved_service_name} failed health check "
                f"after {self.resolved_max_retries} retries"
            ) from e

        self.healthy = True
        self.logger.info(
            f"Container health check passed for {self.resolved_service_name}",
            extra={"service": self.resolved_service_name},
        )

    def get_output(self) -> Output:
        return self.build_standard_output(
            self.last_output,
            self.healthy,
            {
                "service": self.resolved_service_name,
                "command": list(self.resolved_check_command),
                "max_retries": self.resolved_max_retries,
                "retry_delay": self.resolved_retry_delay.total_seconds(),
                "working_dir": self.resolved_working_dir,
            },
        )
