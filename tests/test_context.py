import threading

from stepwire.context import (
    RUN_CONTEXT_KEY,
    ExecutionContext,
    ResultProvider,
    RunContext,
    run_context_from,
)


class Provider:
    def get_result(self):
        return {"ok": True}

    def get_error(self):
        return None


class TestRunContext:
    def test_namespaces_are_independent(self):
        rc = RunContext()
        rc.store_action_output("x", {"from": "action"})
        rc.store_task_output("x", {"from": "task"})

        assert rc.get_action_output("x") == ({"from": "action"}, True)
        assert rc.get_task_output("x") == ({"from": "task"}, True)

    def test_missing_output_reports_not_found(self):
        rc = RunContext()

        assert rc.get_action_output("nope") == (None, False)
        assert rc.get_task_output("nope") == (None, False)

    def test_stored_none_is_found(self):
        rc = RunContext()
        rc.store_action_output("a", None)

        assert rc.get_action_output("a") == (None, True)

    def test_overwrite_keeps_last_value(self):
        rc = RunContext()
        rc.store_task_output("t", 1)
        rc.store_task_output("t", 2)

        assert rc.get_task_output("t") == (2, True)

    def test_result_providers(self):
        rc = RunContext()
        first, second = Provider(), Provider()

        assert rc.store_task_result_if_absent("t", first) is True
        assert rc.store_task_result_if_absent("t", second) is False
        assert rc.get_task_result("t") == (first, True)

        rc.store_action_result("a", second)
        assert rc.get_action_result("a") == (second, True)
        assert rc.get_action_result("missing") == (None, False)

    def test_snapshot_and_clear(self):
        rc = RunContext()
        rc.store_action_output("a", 1)
        snap = rc.snapshot()
        rc.store_action_output("b", 2)

        assert snap["action_outputs"] == {"a": 1}
        rc.clear()
        assert rc.get_action_output("a") == (None, False)
        assert "actions=[]" in repr(rc)

    def test_concurrent_writers(self):
        rc = RunContext()

        def publish(n):
            for i in range(100):
                rc.store_action_output(f"a-{n}-{i}", i)

        threads = [threading.Thread(target=publish, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(rc.snapshot()["action_outputs"]) == 800


class TestExecutionContext:
    def test_with_value_does_not_mutate_parent(self):
        parent = ExecutionContext.background()
        child = parent.with_value("k", "v")

        assert parent.value("k") is None
        assert child.value("k") == "v"
        assert child.value("missing", "default") == "default"

    def test_cancellation_is_shared_with_children(self):
        parent = ExecutionContext()
        child = parent.with_run_context(RunContext())

        parent.cancel()

        assert child.cancelled is True
        assert child.wait(0) is True

    def test_wait_times_out_when_not_cancelled(self):
        assert ExecutionContext().wait(0.001) is False


class TestRunContextFrom:
    def test_returns_attached_run_context(self):
        rc = RunContext()
        assert run_context_from(ExecutionContext().with_run_context(rc)) is rc

    def test_absent_or_wrong_type(self):
        assert run_context_from(None) is None
        assert run_context_from(ExecutionContext()) is None
        assert run_context_from(ExecutionContext({RUN_CONTEXT_KEY: "not a store"})) is None


def test_result_provider_protocol():
    assert isinstance(Provider(), ResultProvider)
    assert not isinstance(object(), ResultProvider)
