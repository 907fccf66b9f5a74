from datetime import timedelta
from unittest.mock import Mock

import pytest
from stepwire.actions.utility import (
    PrerequisiteCheckAction,
    WaitAction,
    new_prerequisite_check_action,
)
from stepwire.context import ExecutionContext
from stepwire.exceptions import (
    ActionExecutionError,
    NilParameterError,
    PrerequisiteNotMetError,
    TaskCancelledError,
    TypeMismatchError,
)
from stepwire.parameters import StaticParameter, action_output_field


class TestWaitAction:
    def test_with_parameters_wraps(self):
        action = WaitAction().with_parameters(StaticParameter("10ms"))

        assert action.id == "wait-action"
        assert action.name == "Wait"

    def test_requires_duration(self):
        with pytest.raises(NilParameterError, match="duration"):
            WaitAction().with_parameters(None)

    def test_waits_resolved_duration(self, run_context, exec_ctx):
        run_context.store_action_output("plan", {"pause": 0.01})
        action = WaitAction().with_parameters(action_output_field("plan", "pause"))

        action.execute(exec_ctx)

        assert action.get_output()["duration_seconds"] == pytest.approx(0.01)
        assert action.get_output()["success"] is True

    @pytest.mark.parametrize("value", [0, "-1s", timedelta(0)])
    def test_rejects_non_positive(self, value, exec_ctx):
        action = WaitAction().with_parameters(StaticParameter(value))

        with pytest.raises(ActionExecutionError, match="must be positive"):
            action.execute(exec_ctx)

    def test_rejects_wrong_type(self, exec_ctx):
        action = WaitAction().with_parameters(StaticParameter(["5s"]))

        with pytest.raises(TypeMismatchError, match="duration"):
            action.execute(exec_ctx)

    def test_cancellation_interrupts(self):
        ctx = ExecutionContext()
        ctx.cancel()
        action = WaitAction().with_parameters(StaticParameter("1h"))

        with pytest.raises(TaskCancelledError):
            action.execute(ctx)
        output = action.get_output()
        assert output["success"] is False
        assert output["duration_seconds"] == 3600

    def test_not_successful_before_running(self):
        assert WaitAction().get_output()["success"] is False


class TestPrerequisiteCheckAction:
    def test_passes(self, exec_ctx):
        check = Mock(return_value=False)
        action = new_prerequisite_check_action("disk space", check)

        action.execute(exec_ctx)

        assert action.id == "prerequisite-check-disk-space-action"
        assert dict(action.get_output()) == {"success": True, "message": "disk space"}
        check.assert_called_once()

    def test_abort_signal(self, exec_ctx):
        action = new_prerequisite_check_action("docker available", lambda ctx, log: True)

        with pytest.raises(PrerequisiteNotMetError, match="docker available"):
            action.execute(exec_ctx)

        assert action.get_output()["success"] is False

    def test_check_error(self, exec_ctx):
        def broken(ctx, log):
            raise OSError("permission denied")

        step = PrerequisiteCheckAction("config readable", broken)

        with pytest.raises(ActionExecutionError, match="permission denied") as exc:
            step.execute(exec_ctx)

        assert not isinstance(exc.value, PrerequisiteNotMetError)

    def test_none_check(self):
        with pytest.raises(ValueError):
            new_prerequisite_check_action("nothing", None)
