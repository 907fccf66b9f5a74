#!/usr/bin/env python3
"""Basic usage example for stepwire.

This example demonstrates how to:
1. Wrap actions with static and referenced parameters
2. Run them as a task over a shared RunContext
3. Read published outputs after the run
"""

import tempfile
from pathlib import Path

from stepwire.actions.file import ReadFileAction, WriteFileAction
from stepwire.context import ExecutionContext, RunContext
from stepwire.exceptions import StepwireError
from stepwire.logging_config import setup_logging
from stepwire.parameters import StaticParameter, action_output_field, task_output_field
from stepwire.task import Task


def main():
    """Copy a file through two actions, passing content by reference."""
    setup_logging(level="INFO")

    workdir = Path(tempfile.mkdtemp(prefix="stepwire-example-"))
    source = workdir / "greeting.txt"
    source.write_text("hello from stepwire\n", encoding="utf-8")
    destination = workdir / "copy" / "greeting.txt"

    # 1. Build actions; the writer reads the reader's "content" key at run time
    read = ReadFileAction().with_parameters(StaticParameter(str(source)), action_id="read")
    write = WriteFileAction().with_parameters(
        StaticParameter(str(destination)),
        action_output_field("read", "content"),
        action_id="write",
    )

    # 2. Run them as one task
    run_context = RunContext()
    task = Task("copy-greeting", "Copy greeting", [read, write])
    try:
        task.run_with_context(ExecutionContext(), run_context)
    except StepwireError as e:
        print(f"Task failed: {e}")
        return 1

    # 3. Outputs stay addressable after the run
    written = action_output_field("write", "bytes_written").resolve(None, run_context)
    completed = task_output_field("copy-greeting", "completed_actions").resolve(None, run_context)
    print(f"Wrote {written} bytes to {destination}")
    print(f"Completed actions: {completed}")
    return 0


if __name__ == "__main__":
    exit(main())
