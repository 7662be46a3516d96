"""Response envelope and body parsing."""

import json
import re
from datetime import datetime
from typing import Any, Generic, Iterator, TypedDict, TypeVar

import requests
from pydantic import BaseModel, ConfigDict

from cloudnode.schema.base import Operation

T = TypeVar("T")

DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}T(?:\d{2}:){2}\d{2}(?:\.\d+)?(?:[a-zA-Z]+|\+\d{2}:\d{2})?")


class PaginatedData(TypedDict, Generic[T]):
    """One page of a paginated listing."""

    items: list[T]
    total: int
    limit: int
    page: int


class RequestContext(BaseModel):
    """The concrete values one call was made with."""

    model_config = ConfigDict(frozen=True)

    operation: Operation
    path_params: dict[str, str] = {}
    query_params: dict[str, str] = {}
    body: Any = None


class RawResponse(BaseModel):
    """Transport-level facts about a response."""

    model_config = ConfigDict(frozen=True)

    headers: dict[str, str]  # keys are lower-cased
    ok: bool
    redirected: bool
    status: int
    status_text: str
    url: str
    request: RequestContext

    @classmethod
    def from_response(cls, response: requests.Response, request: RequestContext) -> "RawResponse":
        return cls(
            headers={k.lower(): v for k, v in response.headers.items()},
            ok=200 <= response.status_code < 300,
            redirected=bool(response.history),
            status=response.status_code,
            status_text=response.reason or "",
            url=response.url,
            request=request,
        )


class ApiResponse(Generic[T]):
    """Parsed response data plus the raw response it came from.

    The envelope reads like its data: item access, membership, iteration and
    length all go to `data`. The transport metadata is on `raw`.
    """

    __slots__ = ("data", "raw")

    def __init__(self, data: T, raw: RawResponse):
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "raw", raw)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self):
        # copy and pickle rebuild through __init__
        return type(self), (self.data, self.raw)

    @property
    def _response(self) -> RawResponse:
        return self.raw

    def get(self, key: Any, default: Any = None) -> Any:
        if isinstance(self.data, dict):
            return self.data.get(key, default)
        return default

    def __getitem__(self, key: Any) -> Any:
        return self.data[key]

    def __contains__(self, key: Any) -> bool:
        return self.data is not None and key in self.data

    def __iter__(self) -> Iterator[Any]:
        return iter(self.data if self.data is not None else ())

    def __len__(self) -> int:
        return len(self.data) if self.data is not None else 0

    def __bool__(self) -> bool:
        return bool(self.data)

    def __repr__(self) -> str:
        return f"ApiResponse(status={self.raw.status}, data={self.data!r})"


def revive_dates(value: Any) -> Any:
    """Turn ISO-8601 date-time strings anywhere in a decoded JSON value into datetimes."""
    if isinstance(value, str):
        if DATE_PATTERN.fullmatch(value):
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                return value
        return value
    if isinstance(value, dict):
        return {k: revive_dates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [revive_dates(v) for v in value]
    return value


def parse_json(text: str) -> Any:
    return revive_dates(json.loads(text))


def parse_body(response: requests.Response) -> Any:
    """Decode a response body: None for 204, JSON for JSON content, text otherwise."""
    if response.status_code == 204:
        return None
    content_type = response.headers.get("Content-Type", "")
    if content_type.startswith("application/json"):
        text = response.text
        return parse_json(text) if text else None
    return response.text
