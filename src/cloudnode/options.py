"""Client configuration and per-request overrides."""

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BASE_URL = "https://api.cloudnode.pro/v5/"


class RequestOptions(BaseModel):
    """Per-call override of the retry settings. Unset fields use the client's."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    auto_retry: bool | None = Field(None, alias="autoRetry")
    max_retry_delay: float | None = Field(None, alias="maxRetryDelay", ge=0)
    max_retries: int | None = Field(None, alias="maxRetries", ge=0)


class ClientOptions(BaseModel):
    """API client options, fixed for the lifetime of a client."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    base_url: str = Field(DEFAULT_BASE_URL, alias="baseUrl")
    auto_retry: bool = Field(True, alias="autoRetry")
    max_retry_delay: float = Field(5, alias="maxRetryDelay", ge=0)  # seconds
    max_retries: int = Field(3, alias="maxRetries", ge=0)

    @field_validator("base_url")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else value + "/"

    def merge(self, overrides: "RequestOptions | Mapping[str, Any] | None") -> "ClientOptions":
        """Return the effective options for one call. Never mutates `self`."""
        if overrides is None:
            return self
        if not isinstance(overrides, RequestOptions):
            overrides = RequestOptions.model_validate(overrides)
        return self.model_copy(update=overrides.model_dump(exclude_none=True))


def resolve_options(options: "ClientOptions | Mapping[str, Any] | str | None") -> ClientOptions:
    """Accept a base URL string, a mapping, or `ClientOptions`; fill defaults."""
    if options is None:
        return ClientOptions()
    if isinstance(options, ClientOptions):
        return options
    if isinstance(options, str):
        return ClientOptions(base_url=options)
    return ClientOptions.model_validate(dict(options))
