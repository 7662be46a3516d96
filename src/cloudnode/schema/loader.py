"""API schema loader.

Reads a JSON or YAML schema document into a `Schema` and appends the error
responses every operation can produce.
"""

from pathlib import Path
from typing import Iterator

import yaml

from .base import Namespace, Operation, ReturnType, Schema

BUNDLED_SCHEMA = Path(__file__).parent.parent / "schema.json"

AUTH_RETURNS = (
    ReturnType(status=401, type='Error & {code: "UNAUTHORIZED"}'),
    ReturnType(status=403, type='Error & {code: "NO_PERMISSION"}'),
)

COMMON_RETURNS = (
    ReturnType(status=429, type='Error & {code: "RATE_LIMITED"}'),
    ReturnType(status=500, type='Error & {code: "INTERNAL_SERVER_ERROR"}'),
    ReturnType(status=503, type='Error & {code: "MAINTENANCE"}'),
)


def load_schema(file_path: Path) -> Schema:
    """Parse a schema file (JSON or YAML) and add the implicit error returns."""
    text = file_path.read_text(encoding="utf-8")
    doc = yaml.safe_load(text)
    return add_extra_returns(Schema.model_validate(doc))


def load_bundled_schema() -> Schema:
    """Load the schema shipped with the package."""
    return load_schema(BUNDLED_SCHEMA)


def add_extra_returns(schema: Schema) -> Schema:
    """Return a copy of the schema with implicit error returns appended.

    401 and 403 are added to operations that declare a token; 429, 500 and
    503 are added to all operations.
    """
    operations = {}
    for name, entry in schema.operations.items():
        if isinstance(entry, Namespace):
            operations[name] = entry.model_copy(
                update={"operations": {n: _with_extra_returns(op) for n, op in entry.operations.items()}}
            )
        else:
            operations[name] = _with_extra_returns(entry)
    return schema.model_copy(update={"operations": operations})


def iter_operations(schema: Schema) -> Iterator[tuple[str, Operation]]:
    """Yield `(dotted_name, operation)` for every operation in the schema."""
    for name, entry in schema.operations.items():
        if isinstance(entry, Namespace):
            for op_name, operation in entry.operations.items():
                yield f"{name}.{op_name}", operation
        else:
            yield name, entry


def index_operations(schema: Schema) -> dict[str, Operation]:
    return dict(iter_operations(schema))


def _with_extra_returns(operation: Operation) -> Operation:
    extra = list(AUTH_RETURNS) if operation.requires_auth else []
    extra.extend(COMMON_RETURNS)
    declared = {r.status for r in operation.returns}
    returns = operation.returns + [r for r in extra if r.status not in declared]
    return operation.model_copy(update={"returns": returns})
