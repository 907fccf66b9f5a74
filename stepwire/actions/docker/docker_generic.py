from typing import List, Optional

from stepwire import config
from stepwire.action import Action, ActionConstructor, BaseAction, require_parameters
from stepwire.command import CommandRunner
from stepwire.exceptions import ActionExecutionError, CommandError
from stepwire.output import Output, OutputBuilder
from stepwire.parameters import Parameter
from stepwire.resolvers import ParameterResolver


class DockerGenericAction(BaseAction, ParameterResolver, OutputBuilder):
    """Runs ``docker <args>`` and publishes the raw command output."""

    def __init__(self, logger=None, command_runner: Optional[CommandRunner] = None):
        super().__init__(logger)
        self.command_runner = command_runner or CommandRunner()
        self.args_param: Optional[Parameter] = None
        self.working_dir_param: Optional[Parameter] = None
        self.resolved_args: List[str] = []
        self.output: str = ""
        self.succeeded = False

    def with_parameters(
        self,
        args: Parameter,
        working_dir: Optional[Parameter] = None,
        action_id: str = "docker-generic-action",
    ) -> Action["DockerGenericAction"]:
        require_parameters(docker_arguments=args)
        self.args_param = args
        self.working_dir_param = working_dir
        return ActionConstructor(self.logger).wrap(self, "Docker Generic", action_id)

    def execute(self, ctx):
        self.resolved_args = self.resolve_string_list(ctx, self.args_param, "docker arguments")
        if not self.resolved_args:
            raise ActionExecutionError("docker arguments cannot be empty")
        working_dir = None
        if self.working_dir_param is not None:
            working_dir = self.resolve_string(ctx, self.working_dir_param, "working directory")

        self.logger.info(
            f"Running docker {' '.join(self.resolved_args)}",
            extra={"args": self.resolved_args, "working_dir": working_dir},
        )
        try:
            self.output = self.command_runner.run_command(
                config.docker_binary(), *self.resolved_args, working_dir=working_dir, ctx=ctx
            )
        except CommandError as e:
            self.output = e.output
            raise ActionExecutionError(f"docker command failed: {e}. Output: {e.output}") from e
        self.succeeded = True

    def get_output(self) -> Output:
        return self.build_standard_output(
            self.output, self.succeeded, {"args": list(self.resolved_args)}
        )
