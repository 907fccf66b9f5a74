from datetime import timedelta
from unittest.mock import call

import pytest
from stepwire.actions.docker import CheckContainerHealthAction, DockerGenericAction
from stepwire.exceptions import (
    ActionExecutionError,
    CommandError,
    NilParameterError,
    TypeMismatchError,
)
from stepwire.parameters import StaticParameter, action_output_field


@pytest.fixture(autouse=True)
def docker_binary(monkeypatch):
    monkeypatch.delenv("STEPWIRE_DOCKER_BIN", raising=False)


class TestDockerGenericAction:
    def test_runs_docker_with_args(self, mock_runner, exec_ctx):
        mock_runner.run_command.return_value = "abc123"
        action = DockerGenericAction(command_runner=mock_runner).with_parameters(
            StaticParameter(["ps", "-q"]), StaticParameter("/srv/app")
        )

        action.execute(exec_ctx)

        mock_runner.run_command.assert_called_once()
        args, kwargs = mock_runner.run_command.call_args
        assert args == ("docker", "ps", "-q")
        assert kwargs["working_dir"] == "/srv/app"
        assert dict(action.get_output()) == {
            "success": True,
            "output": "abc123",
            "args": ["ps", "-q"],
        }

    def test_args_from_string(self, mock_runner, exec_ctx):
        action = DockerGenericAction(command_runner=mock_runner).with_parameters(
            StaticParameter("image ls")
        )

        action.execute(exec_ctx)

        assert mock_runner.run_command.call_args.args == ("docker", "image", "ls")
        assert mock_runner.run_command.call_args.kwargs["working_dir"] is None

    def test_command_failure(self, mock_runner, exec_ctx):
        mock_runner.run_command.side_effect = CommandError("exit 1", returncode=1, output="nope")
        action = DockerGenericAction(command_runner=mock_runner).with_parameters(
            StaticParameter(["pull", "ghost"])
        )

        with pytest.raises(ActionExecutionError, match="nope"):
            action.execute(exec_ctx)
        assert action.get_output()["success"] is False

    def test_empty_args(self, mock_runner, exec_ctx):
        action = DockerGenericAction(command_runner=mock_runner).with_parameters(
            StaticParameter([])
        )

        with pytest.raises(ActionExecutionError, match="cannot be empty"):
            action.execute(exec_ctx)
        mock_runner.run_command.assert_not_called()

    def test_requires_args(self, mock_runner):
        with pytest.raises(NilParameterError, match="docker arguments"):
            DockerGenericAction(command_runner=mock_runner).with_parameters(None)


class TestCheckContainerHealthAction:
    def build(self, runner, working_dir="/srv/app", **kwargs):
        return CheckContainerHealthAction(command_runner=runner).with_parameters(
            StaticParameter(working_dir),
            StaticParameter("db"),
            StaticParameter(kwargs.pop("check_command", "pg_isready -U app")),
            **kwargs,
        )

    def test_healthy_first_try(self, mock_runner, exec_ctx):
        mock_runner.run_command.return_value = "accepting connections"
        action = self.build(mock_runner)

        action.execute(exec_ctx)

        assert action.id == "check-container-health-action"
        mock_runner.run_command.assert_called_once_with(
            "docker",
            "compose",
            "exec",
            "db",
            "pg_isready",
            "-U",
            "app",
            working_dir="/srv/app",
            ctx=exec_ctx,
        )
        output = action.get_output()
        assert output["success"] is True
        assert output["output"] == "accepting connections"
        assert output["max_retries"] == 5
        assert output["retry_delay"] == 2.0

    def test_retries_until_healthy(self, mock_runner, exec_ctx):
        mock_runner.run_command.side_effect = [CommandError("starting"), "ok"]
        action = self.build(
            mock_runner,
            max_retries=StaticParameter(3),
            retry_delay=StaticParameter("10ms"),
        )

        action.execute(exec_ctx)

        assert mock_runner.run_command.call_count == 2
        assert action.get_output()["success"] is True

    def test_gives_up_after_max_retries(self, mock_runner, exec_ctx):
        mock_runner.run_command.side_effect = CommandError("down", output="refused")
        action = self.build(
            mock_runner,
            max_retries=StaticParameter(2),
            retry_delay=StaticParameter(timedelta(0)),
        )

        with pytest.raises(ActionExecutionError, match="failed health check after 2 retries"):
            action.execute(exec_ctx)

        assert mock_runner.run_command.call_count == 2
        output = action.get_output()
        assert output["success"] is False
        assert output["output"] == "refused"

    def test_parameters_from_prior_outputs(self, mock_runner, run_context, exec_ctx):
        run_context.store_action_output("compose-up", {"project_dir": "/opt/stack"})
        action = CheckContainerHealthAction(command_runner=mock_runner).with_parameters(
            action_output_field("compose-up", "project_dir"),
            StaticParameter("cache"),
            StaticParameter(["redis-cli", "ping"]),
        )

        action.execute(exec_ctx)

        assert mock_runner.run_command.call_args == call(
            "docker",
            "compose",
            "exec",
            "cache",
            "redis-cli",
            "ping",
            working_dir="/opt/stack",
            ctx=exec_ctx,
        )

    def test_working_directory_type_mismatch(self, mock_runner, exec_ctx):
        action = self.build(mock_runner, working_dir=42)

        with pytest.raises(TypeMismatchError) as exc:
            action.execute(exec_ctx)

        assert "working directory" in str(exc.value)
        mock_runner.run_command.assert_not_called()

    def test_invalid_max_retries(self, mock_runner, exec_ctx):
        action = self.build(mock_runner, max_retries=StaticParameter(0))

        with pytest.raises(ActionExecutionError, match="at least 1"):
            action.execute(exec_ctx)

    def test_empty_check_command(self, mock_runner, exec_ctx):
        action = self.build(mock_runner, check_command="")

        with pytest.raises(ActionExecutionError, match="cannot be empty"):
            action.execute(exec_ctx)

    def test_requires_service_name(self, mock_runner):
        with pytest.raises(NilParameterError, match="service name"):
            CheckContainerHealthAction(command_runner=mock_runner).with_parameters(
                StaticParameter("/srv"), None, StaticParameter("true")
            )
