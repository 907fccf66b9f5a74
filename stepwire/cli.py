import argparse
import json
import sys

from stepwire.config import load_env_file
from stepwire.context import ExecutionContext, RunContext
from stepwire.exceptions import StepwireError
from stepwire.logging_config import get_logger, setup_logging
from stepwire.registry import build_task, list_registered
import stepwire.tasks  # noqa: F401

logger = get_logger("cli")


def _parse_params(pairs):
    """Turn ``key=value`` pairs into kwargs; values are JSON when they parse as JSON."""
    params = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise SystemExit(f"Invalid --param '{pair}', expected key=value")
        key, raw = pair.split("=", 1)
        try:
            value = json.loads(raw)
        except ValueError:
            value = raw
        params[key.strip().replace("-", "_")] = value
    return params


def _list_tasks(args):
    for entry in list_registered():
        defaults = ", ".join(f"{k}={v!r}" for k, v in entry["params"].items())
        line = f"{entry['name']:<24} {entry['description']}"
        if defaults:
            line += f" (defaults: {defaults})"
        print(line)
    return 0


def _run_task(args):
    params = _parse_params(args.param)
    try:
        task = build_task(args.task, **params)
    except TypeError as e:
        raise SystemExit(f"Invalid parameters for task '{args.task}': {e}")
    except StepwireError as e:
        raise SystemExit(str(e))

    run_context = RunContext()
    exit_code = 0
    try:
        task.run_with_context(ExecutionContext(), run_context)
    except StepwireError as e:
        logger.error(f"Task '{args.task}' failed: {e}", extra={"task_id": task.id})
        exit_code = 1

    output, _ = run_context.get_task_output(task.id)
    print(json.dumps(dict(output), indent=2, default=str))
    return exit_code


def main(argv=None):
    load_env_file()

    p = argparse.ArgumentParser(prog="stepwire", description="stepwire task runner")
    p.add_argument("--log-level", type=str, default=None, help="Override STEPWIRE_LOG_LEVEL")
    p.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    subs = p.add_subparsers(dest="cmd", required=True)

    p1 = subs.add_parser("list-tasks", help="List registered tasks")
    p1.set_defaults(func=_list_tasks)

    p2 = subs.add_parser("run-task", help="Build and run a registered task")
    p2.add_argument("--task", required=True, type=str)
    p2.add_argument(
        "--param",
        action="append",
        metavar="KEY=VALUE",
        help="Task factory parameter; repeatable",
    )
    p2.set_defaults(func=_run_task)

    args = p.parse_args(argv)
    setup_logging(level=args.log_level, json_format=args.json_logs or None)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
