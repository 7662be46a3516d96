"""Binding of call arguments to operation parameters."""

import functools
import keyword
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable

from cloudnode.schema.base import Operation

if TYPE_CHECKING:
    from cloudnode.client import Cloudnode

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class NotGiven:
    """Marks an optional parameter the caller left out (as opposed to `None`)."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_GIVEN"


NOT_GIVEN = NotGiven()


def snake_case(name: str) -> str:
    """`listSubscriptions` -> `list_subscriptions`."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def python_name(name: str) -> str:
    """snake_case name that is safe to use as a Python identifier."""
    result = snake_case(name)
    return result + "_" if keyword.iskeyword(result) else result


def encode_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def bind_parameters(operation: Operation, params: dict[str, Any]) -> tuple[dict[str, str], dict[str, str], Any]:
    """Split keyword arguments into path, query and body values.

    Parameters may be passed under their schema name or its snake_case form.
    Omitted path/query parameters take their schema default. Returns string
    encoded path and query maps, and the body (None if the operation has no
    body parameters).
    """
    lookup: dict[str, tuple[str, str]] = {}
    for group, name, _ in operation.parameters.items():
        lookup[name] = (group, name)
        lookup.setdefault(python_name(name), (group, name))

    values: dict[str, dict[str, Any]] = {"path": {}, "query": {}, "body": {}}
    for key, value in params.items():
        if key not in lookup:
            raise TypeError(f"{operation.method} {operation.path} got an unexpected parameter {key!r}")
        if value is NOT_GIVEN:
            continue
        group, name = lookup[key]
        values[group][name] = value

    for group, name, parameter in operation.parameters.items():
        if name in values[group]:
            continue
        if parameter.default is not None and group != "body":
            values[group][name] = parameter.default
        elif parameter.required:
            raise TypeError(f"{operation.method} {operation.path} missing required parameter {name!r}")

    path = {k: encode_param(v) for k, v in values["path"].items()}
    query = {k: encode_param(v) for k, v in values["query"].items() if v is not None}
    body = values["body"] if operation.parameters.body else None
    return path, query, body


class OperationGroup:
    """Attribute access to the operations of one namespace.

    `client.projects.list(limit=5)` is `client.call("projects.list", limit=5)`.
    """

    def __init__(self, client: "Cloudnode", namespace: str, operations: dict[str, Operation]):
        self._client = client
        self._namespace = namespace
        self._names = {python_name(name): name for name in operations}
        self._names.update({name: name for name in operations})

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            op_name = self._names[name]
        except KeyError:
            raise AttributeError(f"namespace {self._namespace!r} has no operation {name!r}") from None
        return functools.partial(self._client.call, f"{self._namespace}.{op_name}")

    def __dir__(self) -> list[str]:
        return sorted(self._names)

    def __repr__(self) -> str:
        return f"<OperationGroup {self._namespace}: {', '.join(sorted(set(self._names.values())))}>"
