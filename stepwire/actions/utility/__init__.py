from stepwire.actions.utility.prerequisite_check import (
    PrerequisiteCheckAction,
    new_prerequisite_check_action,
)
from stepwire.actions.utility.wait import WaitAction

__all__ = ["PrerequisiteCheckAction", "WaitAction", "new_prerequisite_check_action"]
