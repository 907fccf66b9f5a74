import threading

import pytest
from stepwire.action import Action, BaseAction
from stepwire.actions.utility import WaitAction
from stepwire.context import ExecutionContext, RunContext
from stepwire.exceptions import (
    ActionExecutionError,
    KeyNotFoundError,
    PrerequisiteNotMetError,
    TaskAbortedError,
    TaskCancelledError,
    TaskExecutionError,
)
from stepwire.output import Output
from stepwire.parameters import StaticParameter, action_output_field, task_result_field
from stepwire.resolvers import ParameterResolver
from stepwire.task import Task


class EmitAction(BaseAction, ParameterResolver):
    """Resolves ``value`` and publishes it under ``key``."""

    def __init__(self, value, key="value"):
        super().__init__()
        self.value = value
        self.key = key
        self.resolved = None

    def execute(self, ctx):
        self.resolved = self.resolve_generic(ctx, self.value, "value")

    def get_output(self):
        return Output(success=True, fields={self.key: self.resolved})


class SilentAction(BaseAction):
    def execute(self, ctx):
        pass


class FailingAction(BaseAction):
    def __init__(self, error):
        super().__init__()
        self.error = error

    def execute(self, ctx):
        raise self.error

    def get_output(self):
        return {"should": "not be stored"}


class ResultfulAction(SilentAction):
    def get_result(self):
        return {"digest": "sha256:abc"}

    def get_error(self):
        return None


def wrap(step, action_id):
    return Action(step, name=action_id, action_id=action_id)


class TestTaskRun:
    def test_chained_actions_see_prior_outputs(self):
        run_context = RunContext()
        first = wrap(EmitAction(StaticParameter("app:v1"), key="image"), "build")
        second = wrap(EmitAction(action_output_field("build", "image")), "deploy")
        task = Task("release", name="Release", actions=[first, second])

        task.run_with_context(ExecutionContext(), run_context)

        assert second.wrapped.resolved == "app:v1"
        output, found = run_context.get_action_output("deploy")
        assert found and output["value"] == "app:v1"
        assert task.get_completed_actions() == 2

    def test_publishes_task_output_and_result(self):
        run_context = RunContext()
        task = Task("t1", name="One", actions=[wrap(SilentAction(), "noop")])

        task.run_with_context(None, run_context)

        output, found = run_context.get_task_output("t1")
        assert found
        assert output["success"] is True
        assert output["task_id"] == "t1"
        assert output["completed_actions"] == 1
        provider, found = run_context.get_task_result("t1")
        assert found and provider is task

    def test_none_output_is_not_stored(self):
        run_context = RunContext()
        Task("t", actions=[wrap(SilentAction(), "noop")]).run_with_context(None, run_context)

        assert run_context.get_action_output("noop") == (None, False)

    def test_result_providers_are_registered(self):
        run_context = RunContext()
        Task("t", actions=[wrap(ResultfulAction(), "push")]).run_with_context(None, run_context)

        param = task_result_field("t", "completed_actions")
        assert param.resolve(None, run_context) == 1
        provider, found = run_context.get_action_result("push")
        assert found and provider.get_result()["digest"] == "sha256:abc"

    def test_run_uses_fresh_run_context(self):
        task = Task("t", actions=[wrap(SilentAction(), "noop")])
        task.run()

        assert task.get_error() is None
        assert task.run_id is not None


class TestTaskFailures:
    def test_action_error_wraps_and_stops(self):
        run_context = RunContext()
        after = wrap(SilentAction(), "after")
        task = Task(
            "t",
            actions=[wrap(FailingAction(ActionExecutionError("disk full")), "bad"), after],
        )

        with pytest.raises(TaskExecutionError) as exc:
            task.run_with_context(None, run_context)

        assert exc.value.action_id == "bad"
        assert isinstance(exc.value.__cause__, ActionExecutionError)
        assert "disk full" in str(exc.value)
        assert after.run_id is None
        assert run_context.get_action_output("bad") == (None, False)
        output, _ = run_context.get_task_output("t")
        assert output["success"] is False
        assert "disk full" in output["error"]

    def test_resolution_error_is_cause(self):
        step = EmitAction(action_output_field("missing-producer", "x"))
        run_context = RunContext()
        run_context.store_action_output("missing-producer", {"y": 1})
        task = Task("t", actions=[wrap(step, "consumer")])

        with pytest.raises(TaskExecutionError) as exc:
            task.run_with_context(None, run_context)

        assert isinstance(exc.value.__cause__, KeyNotFoundError)

    def test_prerequisite_aborts(self):
        task = Task("t", actions=[wrap(FailingAction(PrerequisiteNotMetError("no docker")), "pre")])

        with pytest.raises(TaskAbortedError) as exc:
            task.run_with_context(None, None)

        assert "prerequisite not met" in str(exc.value)
        assert isinstance(task.get_error(), TaskAbortedError)

    def test_cancelled_context_stops_before_next_action(self):
        ctx = ExecutionContext()
        ctx.cancel()
        first = wrap(SilentAction(), "first")
        task = Task("t", actions=[first])

        with pytest.raises(TaskCancelledError):
            task.run_with_context(ctx, RunContext())

        assert first.run_id is None


class TestResultBuilder:
    def test_custom_result(self):
        run_context = RunContext()

        def build(task_ctx):
            output, _ = task_ctx.run_context.get_action_output("emit")
            return {"value": output["value"]}

        task = Task(
            "t",
            actions=[wrap(EmitAction(StaticParameter(7)), "emit")],
            result_builder=build,
        )
        task.run_with_context(None, run_context)

        assert task.get_result() == {"value": 7}
        assert task_result_field("t", "value").resolve(None, run_context) == 7

    def test_failing_builder_sets_error(self):
        def build(task_ctx):
            raise RuntimeError("no result")

        task = Task("t", actions=[], result_builder=build)
        run_context = RunContext()
        task.run_with_context(None, run_context)

        assert str(task.get_error()) == "no result"
        output, _ = run_context.get_task_output("t")
        assert output["success"] is False

    def test_rerun_resets_state(self):
        task = Task("t", actions=[wrap(SilentAction(), "noop")])
        task.run()
        task.run()

        assert task.get_completed_actions() == 1


class TestCancellationDuringAction:
    def test_wait_interrupted_keeps_cancelled_type(self):
        ctx = ExecutionContext()
        after = wrap(SilentAction(), "after")
        wait = WaitAction().with_parameters(StaticParameter("5s"))
        task = Task("t", actions=[wait, after])
        run_context = RunContext()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()

        try:
            with pytest.raises(TaskCancelledError) as exc:
                task.run_with_context(ctx, run_context)
        finally:
            timer.cancel()

        assert exc.value.action_id == "wait-action"
        assert isinstance(exc.value.__cause__, TaskCancelledError)
        assert after.run_id is None
        output, _ = run_context.get_task_output("t")
        assert output["success"] is False
        assert "cancelled during action wait-action" in output["error"]
