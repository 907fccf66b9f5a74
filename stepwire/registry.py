"""Task registration and discovery system."""

from typing import Any, Callable, Dict, List, Tuple

from stepwire.exceptions import TaskRegistrationError
from stepwire.task import Task

TaskFactory = Callable[..., Task]

# Internal registry: (name, description, factory, defaults)
_REGISTRY: List[Tuple[str, str, TaskFactory, Dict[str, Any]]] = []


def register_task(*, name: str, description: str = "", **default_params):
    """Decorator to register a task factory under ``name``.

    The factory is called with the default params overlaid by the params
    given to ``build_task``.
    """

    def _decorator(factory: TaskFactory) -> TaskFactory:
        if any(entry[0] == name for entry in _REGISTRY):
            raise TaskRegistrationError(f"task '{name}' is already registered")
        doc = (factory.__doc__ or "").strip().splitlines()
        _REGISTRY.append(
            (name, description or (doc[0] if doc else ""), factory, dict(default_params))
        )
        return factory

    return _decorator


def build_task(name: str, **params) -> Task:
    """Instantiate the registered task ``name``."""
    for tname, _, factory, defaults in _REGISTRY:
        if tname == name:
            merged = dict(defaults)
            merged.update(params)
            return factory(**merged)
    raise TaskRegistrationError(f"no task registered under '{name}'")


def list_registered() -> List[Dict[str, Any]]:
    """List all registered tasks."""
    return [
        {"name": tname, "description": description, "params": dict(defaults)}
        for tname, description, _, defaults in _REGISTRY
    ]
