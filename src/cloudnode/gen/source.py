"""Source generator: renders a typed Python client module from the API schema."""

import keyword
import logging

from cloudnode.client import Cloudnode
from cloudnode.dispatch import snake_case
from cloudnode.gen.config import GeneratorConfig
from cloudnode.gen.flatten import FlatNamespace, FlatOperation, FlatParameter, flatten_schema
from cloudnode.gen.types import map_py_type
from cloudnode.gen.validator import GenerationError, validate_files
from cloudnode.schema.base import Model, Schema

logger = logging.getLogger(__name__)

INDENT = "    "


def _docstring(text: str, indent: str) -> list[str]:
    """Render text as a docstring at the given indent."""
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"').strip()
    if text.endswith('"'):
        text = text[:-1] + '\\"'
    lines = text.splitlines() or [""]
    if len(lines) == 1:
        return [f'{indent}"""{lines[0]}"""']
    out = [f'{indent}"""{lines[0]}']
    out.extend(f"{indent}{line}" if line.strip() else "" for line in lines[1:])
    out.append(f'{indent}"""')
    return out


def _is_identifier(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


class SourceGenerator:
    """Generates a typed client module plus the operation table it runs on.

    Output files:
      - `<name>_client.py`: one TypedDict per model, one class per operation
        namespace and the client class wiring them together.
      - `<name>_schema.json`: the schema the client dispatches with.
    """

    def __init__(self, schema: Schema, config: GeneratorConfig | None = None):
        self.schema = schema
        self.config = config or GeneratorConfig()
        self.namespaces, self.operations = flatten_schema(schema)

    @property
    def module_name(self) -> str:
        return f"{snake_case(self.config.name)}_client"

    @property
    def schema_filename(self) -> str:
        return f"{snake_case(self.config.name)}_schema.json"

    # -- orchestration --------------------------------------------------------

    def generate(self) -> dict[str, str]:
        """Render all files. Returns {filename: content}.

        Raises:
            GenerationError: the rendered module failed validation.
        """
        filename = f"{self.module_name}.py"
        self._check_client_names(filename)

        files = {
            filename: self._render_module(),
            self.schema_filename: self.schema.model_dump_json(indent=2, exclude_unset=True) + "\n",
        }
        errors = validate_files(files, {filename: self._expected_definitions()})
        if errors:
            raise GenerationError(errors)
        logger.debug("Rendered %s (%d namespaces, %d top-level operations)", filename, len(self.namespaces), len(self.operations))
        return files

    def _expected_definitions(self) -> list[str]:
        names = [m.name for m in self.schema.models]
        names.extend(ns.class_name for ns in self.namespaces)
        names.append(self.config.name)
        return names

    def _check_client_names(self, filename: str) -> None:
        reserved = set(dir(Cloudnode)) | {"options", "schema"}
        clashes = [op.py_name for op in self.operations if op.py_name in reserved]
        clashes.extend(ns.name for ns in self.namespaces if ns.name in reserved)
        if clashes:
            raise GenerationError({filename: f"names clash with client attributes: {', '.join(clashes)}"})

    # -- rendering ------------------------------------------------------------

    def _render_module(self) -> str:
        parts = [self._render_header()]
        parts.extend(self._render_model(model) for model in self.schema.models)
        parts.extend(self._render_namespace(ns) for ns in self.namespaces)
        parts.append(self._render_client())
        return "\n\n\n".join(parts) + "\n"

    def _render_header(self) -> str:
        name = self.config.name
        exported = self._expected_definitions()
        lines = [
            f'"""Typed client for the {name} API.',
            "",
            "Generated by cloudnode-gen from the API schema. Do not edit by hand.",
            "",
            f'    {self.config.instance_name} = {name}("<token>")',
            '"""',
            "",
            "from __future__ import annotations",
            "",
            "import functools",
            "from datetime import datetime",
            "from pathlib import Path",
            "from typing import Any, Literal, TypedDict",
            "",
            "from cloudnode.client import Cloudnode as BaseClient",
            "from cloudnode.dispatch import NOT_GIVEN, NotGiven",
            "from cloudnode.options import ClientOptions",
            "from cloudnode.response import ApiResponse, PaginatedData",
            "from cloudnode.schema.base import Schema",
            "from cloudnode.schema.loader import load_schema",
            "",
            f"SCHEMA_PATH = Path(__file__).with_name({self.schema_filename!r})",
            f"DEFAULT_BASE_URL = {self.config.base_url!r}",
            "",
            "__all__ = [",
            *(f"{INDENT}{n!r}," for n in exported),
            "]",
            "",
            "",
            "@functools.cache",
            "def load_operations() -> Schema:",
            f"{INDENT}return load_schema(SCHEMA_PATH)",
        ]
        return "\n".join(lines)

    def _render_model(self, model: Model) -> str:
        if not all(_is_identifier(f.name) for f in model.fields):
            # class syntax cannot declare these keys
            fields = ", ".join(f"{f.name!r}: {map_py_type(f.type)!r}" for f in model.fields)
            return f"{model.name} = TypedDict({model.name!r}, {{{fields}}})"

        lines = [f"class {model.name}(TypedDict):"]
        lines.extend(_docstring(model.description or model.name, INDENT))
        for field in model.fields:
            lines.append("")
            if field.description:
                lines.append(f"{INDENT}#: {' '.join(field.description.split())}")
            lines.append(f"{INDENT}{field.name}: {map_py_type(field.type)}")
        return "\n".join(lines)

    def _render_namespace(self, namespace: FlatNamespace) -> str:
        lines = [f"class {namespace.class_name}:"]
        lines.extend(_docstring(f"Operations in the `{namespace.name}` namespace.", INDENT))
        lines.append("")
        lines.append(f"{INDENT}def __init__(self, client: BaseClient):")
        lines.append(f"{INDENT * 2}self._client = client")
        for operation in namespace.operations:
            lines.append("")
            lines.extend(self._render_method(operation, "self._client"))
        return "\n".join(lines)

    def _render_client(self) -> str:
        name = self.config.name
        lines = [f"class {name}(BaseClient):"]
        lines.extend(_docstring(f"Client for the {name} API.", INDENT))
        lines.append("")
        lines.append(
            f"{INDENT}def __init__(self, token: str | None = None, options: ClientOptions | dict[str, Any] | str | None = None, **kwargs: Any):"
        )
        lines.append(f"{INDENT * 2}if options is None:")
        lines.append(f"{INDENT * 3}options = ClientOptions(base_url=DEFAULT_BASE_URL)")
        lines.append(f'{INDENT * 2}kwargs.setdefault("schema", load_operations())')
        lines.append(f"{INDENT * 2}super().__init__(token, options, **kwargs)")
        for ns in self.namespaces:
            lines.append(f"{INDENT * 2}self.{ns.name} = {ns.class_name}(self)")
        for operation in self.operations:
            lines.append("")
            lines.extend(self._render_method(operation, "self"))
        return "\n".join(lines)

    def _render_method(self, operation: FlatOperation, target: str) -> list[str]:
        args = ", ".join(["self"] + [p.signature for p in operation.parameters])
        lines = [f"{INDENT}def {operation.py_name}({args}) -> ApiResponse[{operation.return_type}]:"]
        lines.extend(_docstring(self._method_doc(operation), INDENT * 2))
        call_args = ", ".join([repr(operation.qualified_name)] + self._call_args(operation.parameters))
        lines.append(f"{INDENT * 2}return {target}.call({call_args})")
        return lines

    def _call_args(self, parameters: list[FlatParameter]) -> list[str]:
        args = [f"{p.name}={p.py_name}" for p in parameters if _is_identifier(p.name)]
        extra = [f"{p.name!r}: {p.py_name}" for p in parameters if not _is_identifier(p.name)]
        if extra:
            args.append("**{" + ", ".join(extra) + "}")
        return args

    def _method_doc(self, operation: FlatOperation) -> str:
        sections = [operation.description or operation.qualified_name, f"{operation.method} {operation.path}"]
        if operation.scope:
            sections[-1] += f"\nRequires token scope `{operation.scope}`."
        elif operation.requires_auth:
            sections[-1] += "\nRequires an authenticated token."
        if operation.parameters:
            args = [f"{INDENT}{p.py_name}: {' '.join(p.description.split())}" for p in operation.parameters]
            sections.append("Args:\n" + "\n".join(args))
        if operation.return_description:
            sections.append(f"Returns:\n{INDENT}{operation.return_description}")
        if operation.throws:
            sections.append(f"Raises:\n{INDENT}ApiError: {', '.join(operation.throws)}")
        return "\n\n".join(sections)
