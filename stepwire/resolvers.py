"""Typed resolver helpers used by actions to read their parameters.

Every helper names the parameter by its semantic role ("working directory",
"service name"), because these messages reach operators unchanged.
"""

import re
from datetime import timedelta
from typing import Any, Dict, List, Optional

from stepwire.context import ExecutionContext, run_context_from
from stepwire.exceptions import NilParameterError, ResolutionError, TypeMismatchError
from stepwire.logging_config import get_logger
from stepwire.parameters import Parameter

logger = get_logger("resolvers")

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def _kind_of(value: Any) -> str:
    if value is None:
        return "None"
    return type(value).__name__


def parse_duration(text: str) -> timedelta:
    """Parse durations such as "5s", "1m30s", "250ms" or "1.5h".

    Raises:
        ValueError: If ``text`` is not a valid duration string
    """
    s = text.strip()
    if not s:
        raise ValueError("empty duration")
    sign = 1.0
    if s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]
    if s == "0":
        return timedelta(0)

    seconds = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(s):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(s) or pos == 0:
        raise ValueError(f"invalid duration '{text}'")
    return timedelta(seconds=sign * seconds)


def resolve_parameter(ctx: Optional[ExecutionContext], param: Optional[Parameter], role: str) -> Any:
    """Resolve ``param`` against the RunContext attached to ``ctx``.

    Raises:
        NilParameterError: If ``param`` is None
        ResolutionError: Any resolution failure, tagged with ``role``
    """
    if param is None:
        raise NilParameterError(role)

    run_context = run_context_from(ctx)
    try:
        return param.resolve(ctx, run_context)
    except ResolutionError as e:
        e.role = role
        logger.debug(
            f"Resolution of {role} parameter failed: {e.detail}",
            extra={"role": role, "error_kind": e.kind.value},
        )
        raise


def resolve_generic(ctx: Optional[ExecutionContext], param: Optional[Parameter], role: str) -> Any:
    """Return the raw resolved value; the caller validates its shape."""
    return resolve_parameter(ctx, param, role)


def resolve_string(ctx: Optional[ExecutionContext], param: Optional[Parameter], role: str) -> str:
    value = resolve_parameter(ctx, param, role)
    if not isinstance(value, str):
        raise TypeMismatchError("str", _kind_of(value), role)
    return value


def resolve_bool(ctx: Optional[ExecutionContext], param: Optional[Parameter], role: str) -> bool:
    value = resolve_parameter(ctx, param, role)
    if not isinstance(value, bool):
        raise TypeMismatchError("bool", _kind_of(value), role)
    return value


def resolve_int(ctx: Optional[ExecutionContext], param: Optional[Parameter], role: str) -> int:
    """Resolve an integer; numeric strings are accepted, booleans are not."""
    value = resolve_parameter(ctx, param, role)
    if isinstance(value, bool):
        raise TypeMismatchError("int", _kind_of(value), role)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise TypeMismatchError("int", f"str '{value}'", role) from None
    raise TypeMismatchError("int", _kind_of(value), role)


def resolve_duration(
    ctx: Optional[ExecutionContext], param: Optional[Parameter], role: str
) -> timedelta:
    """Resolve a duration given as timedelta, seconds, or a duration string."""
    value = resolve_parameter(ctx, param, role)
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise TypeMismatchError("duration", _kind_of(value), role)
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if isinstance(value, str):
        try:
            return parse_duration(value)
        except ValueError:
            raise TypeMismatchError("duration", f"str '{value}'", role) from None
    raise TypeMismatchError("duration", _kind_of(value), role)


def resolve_string_list(
    ctx: Optional[ExecutionContext], param: Optional[Parameter], role: str
) -> List[str]:
    """Resolve a list of strings.

    Lists and tuples must contain only strings. A string is split on commas
    when it contains any, otherwise on whitespace; blank items are dropped.
    """
    value = resolve_parameter(ctx, param, role)
    if isinstance(value, (list, tuple)):
        if not all(isinstance(item, str) for item in value):
            raise TypeMismatchError("list of str", _kind_of(value), role)
        return list(value)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return []
        if "," in s:
            return [part.strip() for part in s.split(",") if part.strip()]
        return s.split()
    raise TypeMismatchError("list of str or str", _kind_of(value), role)


def resolve_mapping(
    ctx: Optional[ExecutionContext], param: Optional[Parameter], role: str
) -> Dict[str, Any]:
    value = resolve_parameter(ctx, param, role)
    if hasattr(value, "keys") and hasattr(value, "__getitem__"):
        return dict(value)
    raise TypeMismatchError("mapping", _kind_of(value), role)


def resolve_list(ctx: Optional[ExecutionContext], param: Optional[Parameter], role: str) -> List[Any]:
    value = resolve_parameter(ctx, param, role)
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    raise TypeMismatchError("list", _kind_of(value), role)


class ParameterResolver:
    """Mixin exposing the resolver helpers as methods on an action."""

    def resolve_parameter(self, ctx, param, role):
        return resolve_parameter(ctx, param, role)

    def resolve_generic(self, ctx, param, role):
        return resolve_generic(ctx, param, role)

    def resolve_string(self, ctx, param, role) -> str:
        return resolve_string(ctx, param, role)

    def resolve_bool(self, ctx, param, role) -> bool:
        return resolve_bool(ctx, param, role)

    def resolve_int(self, ctx, param, role) -> int:
        return resolve_int(ctx, param, role)

    def resolve_duration(self, ctx, param, role) -> timedelta:
        return resolve_duration(ctx, param, role)

    def resolve_string_list(self, ctx, param, role) -> List[str]:
        return resolve_string_list(ctx, param, role)

    def resolve_mapping(self, ctx, param, role) -> Dict[str, Any]:
        return resolve_mapping(ctx, param, role)

    def resolve_list(self, ctx, param, role) -> List[Any]:
        return resolve_list(ctx, param, role)
