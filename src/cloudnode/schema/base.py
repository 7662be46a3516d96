"""Declarative data models for the API schema.

The schema describes the API's models and operations. Operations are either
declared at the top level or grouped into namespaces. Both the runtime client
and the code generator work from these models.
"""

from typing import Annotated, Iterator, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

HttpMethod = Literal["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]

PARAMETER_GROUPS = ("path", "query", "body")


class Parameter(BaseModel):
    """A single operation parameter."""

    model_config = ConfigDict(frozen=True)

    description: str = ""
    type: str  # schema type expression, e.g. `string | null`
    required: bool = False
    default: str | None = None


class Parameters(BaseModel):
    """Operation parameters partitioned by where they are sent."""

    model_config = ConfigDict(frozen=True)

    path: dict[str, Parameter] = {}
    query: dict[str, Parameter] = {}
    body: dict[str, Parameter] = {}

    def items(self) -> Iterator[tuple[str, str, Parameter]]:
        """Yield `(group, name, parameter)` in path, query, body order."""
        for group in PARAMETER_GROUPS:
            for name, parameter in getattr(self, group).items():
                yield group, name, parameter


class ReturnType(BaseModel):
    """A declared response shape for one HTTP status."""

    model_config = ConfigDict(frozen=True)

    status: int
    type: str
    description: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Operation(BaseModel):
    """Immutable definition of one API call.

    `token` has three states: left out entirely (no authorization), `null`
    (any authenticated caller) or a scope string.
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["operation"] = "operation"
    description: str = ""
    method: HttpMethod
    path: str  # /projects/:id
    parameters: Parameters = Parameters()
    returns: list[ReturnType] = []
    token: str | None = None

    @property
    def requires_auth(self) -> bool:
        return "token" in self.model_fields_set

    @property
    def scope(self) -> str | None:
        return self.token


class Namespace(BaseModel):
    """A named group of operations."""

    model_config = ConfigDict(frozen=True)

    type: Literal["namespace"]
    operations: dict[str, Operation]


class ModelField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    description: str = ""


class Model(BaseModel):
    """An API data model (response or request shape)."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    fields: list[ModelField] = []


class Schema(BaseModel):
    """The whole API: models plus operations."""

    model_config = ConfigDict(frozen=True)

    models: list[Model] = []
    operations: dict[str, Annotated[Union[Operation, Namespace], Field(discriminator="type")]] = {}

    @property
    def model_names(self) -> set[str]:
        return {m.name for m in self.models}
