from stepwire.actions.docker.check_container_health import CheckContainerHealthAction
from stepwire.actions.docker.docker_generic import DockerGenericAction

__all__ = ["CheckContainerHealthAction", "DockerGenericAction"]
