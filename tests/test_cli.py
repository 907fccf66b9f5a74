import json
from unittest.mock import patch

import pytest
from stepwire import cli


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("stepwire.cli.setup_logging"), patch("stepwire.cli.load_env_file"):
        yield


class TestParseParams:
    def test_json_and_plain_values(self):
        params = cli._parse_params(["max-retries=3", "service_name=db", "flags=[1, 2]"])

        assert params == {"max_retries": 3, "service_name": "db", "flags": [1, 2]}

    def test_invalid_pair(self):
        with pytest.raises(SystemExit):
            cli._parse_params(["no-equals"])


class TestCli:
    def test_list_tasks(self, capsys):
        assert cli.main(["list-tasks"]) == 0

        out = capsys.readouterr().out
        assert "parameter-passing" in out
        assert "container-health" in out

    def test_run_task_prints_output(self, tmp_path, capsys):
        source = tmp_path / "in.txt"
        source.write_text("abc")
        destination = tmp_path / "out.txt"

        code = cli.main(
            [
                "run-task",
                "--task",
                "parameter-passing",
                "--param",
                f"source_path={source}",
                "--param",
                f"destination_path={destination}",
            ]
        )

        assert code == 0
        assert destination.read_text() == "ABC"
        printed = json.loads(capsys.readouterr().out)
        assert printed["success"] is True
        assert printed["completed_actions"] == 3

    def test_failed_task_exit_code(self, tmp_path, capsys):
        code = cli.main(
            [
                "run-task",
                "--task",
                "parameter-passing",
                "--param",
                f"source_path={tmp_path / 'missing'}",
                "--param",
                f"destination_path={tmp_path / 'out'}",
            ]
        )

        assert code == 1
        printed = json.loads(capsys.readouterr().out)
        assert printed["success"] is False
        assert "does not exist" in printed["error"]

    def test_unknown_task(self):
        with pytest.raises(SystemExit):
            cli.main(["run-task", "--task", "nope"])

    def test_bad_parameters(self):
        with pytest.raises(SystemExit):
            cli.main(["run-task", "--task", "parameter-passing", "--param", "bogus=1"])
