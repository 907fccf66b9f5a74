"""Example task checking a compose service after a prerequisite check."""

import shutil

from stepwire import config
from stepwire.actions.docker import CheckContainerHealthAction
from stepwire.actions.utility import new_prerequisite_check_action
from stepwire.command import CommandRunner
from stepwire.parameters import StaticParameter
from stepwire.registry import register_task
from stepwire.task import Task


def _docker_missing(ctx, logger) -> bool:
    return shutil.which(config.docker_binary()) is None


@register_task(
    name="container-health",
    max_retries=config.DEFAULT_HEALTH_CHECK_RETRIES,
    retry_delay="2s",
)
def new_container_health_task(
    working_dir: str,
    service_name: str,
    check_command: str,
    max_retries=config.DEFAULT_HEALTH_CHECK_RETRIES,
    retry_delay="2s",
    logger=None,
    command_runner: CommandRunner = None,
) -> Task:
    """Abort when docker is unavailable, otherwise health-check a compose service."""
    prerequisite = new_prerequisite_check_action("docker available", _docker_missing, logger)
    health = CheckContainerHealthAction(logger, command_runner).with_parameters(
        StaticParameter(working_dir),
        StaticParameter(service_name),
        StaticParameter(check_command),
        StaticParameter(max_retries),
        StaticParameter(retry_delay),
    )
    return Task(
        f"container-health-{service_name}",
        f"Container health of {service_name}",
        [prerequisite, health],
        logger=logger,
    )
