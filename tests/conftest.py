import logging

import pytest
from unittest.mock import Mock

from stepwire.command import CommandRunner
from stepwire.context import ExecutionContext, RunContext


@pytest.fixture
def run_context():
    """Empty run context for a single pipeline run."""
    return RunContext()


@pytest.fixture
def exec_ctx(run_context):
    """Execution context with the run context attached."""
    return ExecutionContext().with_run_context(run_context)


@pytest.fixture
def bare_ctx():
    """Execution context without any run context."""
    return ExecutionContext()


@pytest.fixture
def mock_runner():
    """Mock command runner for actions that shell out."""
    runner = Mock(spec=CommandRunner)
    runner.run_command = Mock(return_value="")
    return runner


@pytest.fixture
def test_logger():
    return logging.getLogger("stepwire.tests")
