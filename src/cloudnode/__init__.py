"""Client SDK for the Cloudnode API."""

__version__ = "2.0.0"

from cloudnode.client import API_VERSION, Cloudnode, compare_versions
from cloudnode.dispatch import NOT_GIVEN, NotGiven
from cloudnode.errors import ApiError, ErrorCode, UnknownOperationError
from cloudnode.options import ClientOptions, RequestOptions
from cloudnode.response import ApiResponse, PaginatedData, RawResponse, RequestContext

__all__ = [
    "API_VERSION",
    "ApiError",
    "ApiResponse",
    "ClientOptions",
    "Cloudnode",
    "ErrorCode",
    "NOT_GIVEN",
    "NotGiven",
    "PaginatedData",
    "RawResponse",
    "RequestContext",
    "RequestOptions",
    "UnknownOperationError",
    "compare_versions",
]
