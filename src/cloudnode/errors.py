"""Errors raised by the client."""

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cloudnode.response import ApiResponse


class ErrorCode(str, Enum):
    """Error codes the API returns in the `code` field of an error body."""

    INVALID_DATA = "INVALID_DATA"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT"
    MODIFICATION_NOT_ALLOWED = "MODIFICATION_NOT_ALLOWED"
    UNAUTHORIZED = "UNAUTHORIZED"
    NO_PERMISSION = "NO_PERMISSION"
    IP_REJECTED = "IP_REJECTED"
    RATE_LIMITED = "RATE_LIMITED"
    MAINTENANCE = "MAINTENANCE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ApiError(Exception):
    """A non-2xx API response.

    Carries the same `ApiResponse` envelope a successful call returns, so the
    parsed error body and the raw response metadata stay available.
    """

    def __init__(self, response: "ApiResponse[Any]"):
        self.response = response
        super().__init__(f"{self.status} {self.code or self.response.raw.status_text}: {self.message}")

    def __reduce__(self):
        return type(self), (self.response,)

    @property
    def status(self) -> int:
        return self.response.raw.status

    @property
    def headers(self) -> dict[str, str]:
        return self.response.raw.headers

    @property
    def code(self) -> str | None:
        return self._body_field("code")

    @property
    def message(self) -> str:
        return self._body_field("message") or ""

    @property
    def fields(self) -> dict[str, Any]:
        """Per-field validation messages, keyed by request parameter name."""
        return self._body_field("fields") or {}

    def _body_field(self, key: str) -> Any:
        data = self.response.data
        if isinstance(data, dict):
            return data.get(key)
        return None


class UnknownOperationError(LookupError):
    """No operation with the given name exists in the schema."""
