"""Output contract: how steps publish results for later parameter projection."""

import dataclasses
from collections.abc import Mapping, Sized
from typing import Any, Dict, Iterable, Iterator, Optional


class Output(Mapping):
    """Published result of a step.

    A read-only, string-keyed mapping that always carries ``success`` and,
    for enumerable results, ``count``. Any further step-specific values live
    in ``fields``. Projection by key goes through ``project``.
    """

    __slots__ = ("success", "count", "fields")

    def __init__(
        self,
        success: bool,
        count: Optional[int] = None,
        fields: Optional[Dict[str, Any]] = None,
    ) -> None:
        fields = dict(fields or {})
        for reserved in ("success", "count"):
            if reserved in fields:
                raise ValueError(f"'{reserved}' is reserved and cannot be passed in fields")
        object.__setattr__(self, "success", bool(success))
        object.__setattr__(self, "count", count)
        object.__setattr__(self, "fields", fields)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Output is immutable")

    def _as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"success": self.success}
        if self.count is not None:
            d["count"] = self.count
        d.update(self.fields)
        return d

    def project(self, key: str) -> Any:
        """Return the value published under ``key``; raises KeyError if absent."""
        if key == "success":
            return self.success
        if key == "count" and self.count is not None:
            return self.count
        return self.fields[key]

    def __getitem__(self, key: str) -> Any:
        return self.project(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._as_dict())

    def __len__(self) -> int:
        return len(self._as_dict())

    def to_dict(self) -> Dict[str, Any]:
        return self._as_dict()

    def __repr__(self) -> str:
        return f"Output({self._as_dict()!r})"


def is_addressable(output: Any) -> bool:
    """True when ``output`` supports projection by string key."""
    if isinstance(output, Output):
        return True
    if not isinstance(output, Mapping):
        return False
    return all(isinstance(key, str) for key in output.keys())


def _error_text(error: Any) -> Any:
    if isinstance(error, BaseException):
        return str(error)
    return error


class OutputBuilder:
    """Mixin with the shared helpers every step uses to build its Output."""

    def build_standard_output(
        self,
        output: Any,
        success: bool,
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> Output:
        fields: Dict[str, Any] = {"output": output}
        fields.update(additional_fields or {})
        return Output(success=success, fields=fields)

    def build_output_with_count(
        self,
        items: Optional[Iterable[Any]],
        success: bool,
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> Output:
        """Standard output plus ``count`` for sized, non-string item collections."""
        count = None
        if items is not None and isinstance(items, Sized) and not isinstance(items, (str, bytes)):
            count = len(items)
        fields: Dict[str, Any] = {"output": items}
        fields.update(additional_fields or {})
        return Output(success=success, count=count, fields=fields)

    def build_simple_output(self, success: bool, message: str = "") -> Output:
        fields = {"message": message} if message else {}
        return Output(success=success, fields=fields)

    def build_error_output(
        self,
        error: Any,
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> Output:
        fields: Dict[str, Any] = {"error": _error_text(error)}
        fields.update(additional_fields or {})
        return Output(success=False, fields=fields)

    def build_output_from_object(
        self,
        obj: Any,
        success: bool,
        exclude_fields: Optional[Iterable[str]] = None,
    ) -> Output:
        """Build an Output from the public, non-empty attributes of ``obj``.

        Dataclasses contribute their declared fields, other objects their
        instance ``__dict__``. Names starting with an underscore, names in
        ``exclude_fields`` and falsy values are skipped.
        """
        excluded = set(exclude_fields or ())
        excluded.update(("success", "count"))

        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            items = ((f.name, getattr(obj, f.name)) for f in dataclasses.fields(obj))
        elif hasattr(obj, "__dict__"):
            items = vars(obj).items()
        else:
            return Output(success=success)

        fields = {
            name: value
            for name, value in items
            if not name.startswith("_") and name not in excluded and value
        }
        return Output(success=success, fields=fields)
