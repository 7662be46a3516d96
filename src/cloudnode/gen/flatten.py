"""Flatten schema operations into the render context for the source generator."""

import json
import re

from pydantic import BaseModel

from cloudnode.dispatch import python_name
from cloudnode.gen.types import map_py_type
from cloudnode.schema.base import Namespace, Operation, Parameter, Schema

_ERROR_CODE = re.compile(r'code:\s*"(\w+)"')


class FlatParameter(BaseModel):
    name: str  # as declared in the schema
    py_name: str
    group: str  # path / query / body
    annotation: str
    description: str
    required: bool
    default: str | None  # Python literal

    @property
    def signature(self) -> str:
        if self.default is not None:
            return f"{self.py_name}: {self.annotation} = {self.default}"
        if not self.required:
            return f"{self.py_name}: {self.annotation} | NotGiven = NOT_GIVEN"
        return f"{self.py_name}: {self.annotation}"


class FlatOperation(BaseModel):
    name: str
    py_name: str
    qualified_name: str  # `namespace.operation` or the bare name
    description: str
    method: str
    path: str
    scope: str | None
    requires_auth: bool
    parameters: list[FlatParameter]
    return_type: str
    return_description: str
    throws: list[str]


class FlatNamespace(BaseModel):
    name: str
    class_name: str
    operations: list[FlatOperation]


def get_return_type(operation: Operation) -> str:
    """Union of the 2xx return types. A list return is a paginated listing."""
    types: list[str] = []
    for r in operation.returns:
        if not r.ok:
            continue
        if r.type.endswith("[]"):
            annotation = f"PaginatedData[{map_py_type(r.type[:-2])}]"
        else:
            annotation = map_py_type(r.type)
        if annotation not in types:
            types.append(annotation)
    return " | ".join(types) or "None"


def get_return_description(operation: Operation) -> str:
    return " ".join(r.description for r in operation.returns if r.ok and r.description)


def get_throws(operation: Operation) -> list[str]:
    """`<status> <code>` for every non-2xx return."""
    throws = []
    for r in operation.returns:
        if r.ok:
            continue
        match = _ERROR_CODE.search(r.type)
        throws.append(f"{r.status} {match.group(1) if match else map_py_type(r.type)}")
    return throws


def flatten_parameter(group: str, name: str, parameter: Parameter) -> FlatParameter:
    return FlatParameter(
        name=name,
        py_name=python_name(name),
        group=group,
        annotation=map_py_type(parameter.type),
        description=parameter.description,
        required=parameter.required,
        default=_default_literal(parameter.default),
    )


def flatten_operation(qualified_name: str, name: str, operation: Operation) -> FlatOperation:
    params = [flatten_parameter(group, n, p) for group, n, p in operation.parameters.items()]
    # Python wants parameters without a default first
    params.sort(key=lambda p: not (p.required and p.default is None))
    return FlatOperation(
        name=name,
        py_name=python_name(name),
        qualified_name=qualified_name,
        description=operation.description,
        method=operation.method,
        path=operation.path,
        scope=operation.scope,
        requires_auth=operation.requires_auth,
        parameters=params,
        return_type=get_return_type(operation),
        return_description=get_return_description(operation),
        throws=get_throws(operation),
    )


def flatten_schema(schema: Schema) -> tuple[list[FlatNamespace], list[FlatOperation]]:
    """Split the schema into namespaces and top-level operations."""
    namespaces = []
    operations = []
    for name, entry in schema.operations.items():
        if isinstance(entry, Namespace):
            namespaces.append(
                FlatNamespace(
                    name=name,
                    class_name=f"{name[:1].upper()}{name[1:]}Operations",
                    operations=[flatten_operation(f"{name}.{n}", n, op) for n, op in entry.operations.items()],
                )
            )
        else:
            operations.append(flatten_operation(name, name, entry))
    return namespaces, operations


def _default_literal(default: str | None) -> str | None:
    if default is None:
        return None
    try:
        return repr(json.loads(default))
    except ValueError:
        return repr(default)
