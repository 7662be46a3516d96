"""Cloudnode API client.

Operations are described by the bundled schema. Each call goes through
`_send_request` (retry policy) and `_send_raw_request` (one HTTP call).
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Literal, Mapping
from urllib.parse import quote, urljoin

import requests

from cloudnode import __version__
from cloudnode.dispatch import OperationGroup, bind_parameters
from cloudnode.errors import ApiError, UnknownOperationError
from cloudnode.options import ClientOptions, RequestOptions, resolve_options
from cloudnode.pagination import MAX_PAGE_WORKERS, merge_pages, page_count, page_in_bounds
from cloudnode.response import ApiResponse, PaginatedData, RawResponse, RequestContext, parse_body
from cloudnode.retry import send_with_retry
from cloudnode.schema.base import Namespace, Operation, Schema
from cloudnode.schema.loader import index_operations, load_bundled_schema

logger = logging.getLogger(__name__)

API_VERSION = "5.12.0"
USER_AGENT = f"cloudnode-python/{__version__}"

Compatibility = Literal["compatible", "outdated", "incompatible"]


def compare_versions(a: str, b: str) -> Compatibility:
    """Compare two semantic versions by major and minor part."""
    parts_a = a.split(".")
    parts_b = b.split(".")
    ver_a = [parts_a[0] or "0", parts_a[1] if len(parts_a) > 1 else "0"]
    ver_b = [parts_b[0] or "0", parts_b[1] if len(parts_b) > 1 else "0"]
    if ver_a[0] != ver_b[0]:
        return "incompatible"
    if ver_a[1] != ver_b[1]:
        return "outdated"
    return "compatible"


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class Cloudnode:
    """Client for the Cloudnode API.

    Args:
        token: API token. Sent only to operations that require one.
        options: `ClientOptions`, a mapping of option values, or a base URL.
        schema: Operation table to use instead of the bundled schema.
        session: `requests.Session` to send requests with. `get_all_pages`
            sends page requests from several threads through it, so a custom
            session must be safe to share between threads.
    """

    def __init__(
        self,
        token: str | None = None,
        options: ClientOptions | Mapping[str, Any] | str | None = None,
        *,
        schema: Schema | None = None,
        session: requests.Session | None = None,
    ):
        self._token = token
        self.options = resolve_options(options)
        self.schema = schema or load_bundled_schema()
        self._operations = index_operations(self.schema)
        self._session = session or requests.Session()

        reserved = set(dir(type(self))) | {"options", "schema"}
        for name, entry in self.schema.operations.items():
            if not isinstance(entry, Namespace):
                continue
            if name in reserved:
                logger.warning("Namespace %r clashes with a client attribute; use call()", name)
                continue
            setattr(self, name, OperationGroup(self, name, entry.operations))

    def operation(self, name: str) -> Operation:
        try:
            return self._operations[name]
        except KeyError:
            raise UnknownOperationError(name) from None

    def call(self, name: str, /, *, request_options: RequestOptions | Mapping[str, Any] | None = None, **params: Any) -> ApiResponse[Any]:
        """Call an operation by its dotted name, e.g. `call("projects.get", id="abc")`.

        Raises:
            ApiError: the API answered with a non-2xx status.
            TypeError: unknown or missing required parameters.
        """
        operation = self.operation(name)
        path_params, query_params, body = bind_parameters(operation, params)
        return self._send_request(operation, path_params, query_params, body, request_options)

    # -- transport ------------------------------------------------------------

    def _build_url(self, operation: Operation, path_params: Mapping[str, str]) -> str:
        segments = []
        for segment in operation.path.lstrip("/").split("/"):
            if segment.startswith(":") and segment[1:] in path_params:
                segment = quote(path_params[segment[1:]], safe="")
            segments.append(segment)
        return urljoin(self.options.base_url, "/".join(segments))

    def _send_raw_request(
        self,
        operation: Operation,
        path_params: Mapping[str, str],
        query_params: Mapping[str, str],
        body: Any = None,
    ) -> ApiResponse[Any]:
        url = self._build_url(operation, path_params)
        headers = {"User-Agent": USER_AGENT}
        data = None
        if body is not None and operation.method not in ("GET", "HEAD"):
            if isinstance(body, str):
                data = body.encode("utf-8")
                headers["Content-Type"] = "text/plain"
            else:
                data = json.dumps(body, default=_json_default).encode("utf-8")
                headers["Content-Type"] = "application/json"
        if self._token and operation.requires_auth:
            headers["Authorization"] = f"Bearer {self._token}"

        request = RequestContext(
            operation=operation,
            path_params=dict(path_params),
            query_params=dict(query_params),
            body=body,
        )
        logger.debug("%s %s %s", operation.method, url, dict(query_params))
        response = self._session.request(operation.method, url, params=dict(query_params), data=data, headers=headers)
        logger.debug("%s %s -> %s", operation.method, url, response.status_code)

        result = ApiResponse(parse_body(response), RawResponse.from_response(response, request))
        if not result.raw.ok:
            raise ApiError(result)
        return result

    def _send_request(
        self,
        operation: Operation,
        path_params: Mapping[str, str],
        query_params: Mapping[str, str],
        body: Any = None,
        request_options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> ApiResponse[Any]:
        options = self.options.merge(request_options)
        return send_with_retry(
            lambda: self._send_raw_request(operation, path_params, query_params, body),
            options,
        )

    # -- compatibility --------------------------------------------------------

    def check_compatibility(self) -> Compatibility:
        """Check compatibility with the API server.

        Returns `compatible` (only the patch version may differ), `outdated`
        (minor version differs, new features unavailable) or `incompatible`
        (major version differs).
        """
        response = self._session.request("GET", urljoin(self.options.base_url, "../"), headers={"User-Agent": USER_AGENT})
        return compare_versions(str(response.json()["version"]), API_VERSION)

    # -- pagination -----------------------------------------------------------

    def get_page(
        self,
        response: ApiResponse[PaginatedData[Any]],
        page: int,
        request_options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> ApiResponse[PaginatedData[Any]] | None:
        """Get another page of paginated results.

        Returns None if the page is out of bounds.
        """
        if not page_in_bounds(page, response["limit"], response["total"]):
            return None
        return self._fetch_page(response, page, request_options)

    def get_next_page(
        self,
        response: ApiResponse[PaginatedData[Any]],
        request_options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> ApiResponse[PaginatedData[Any]] | None:
        """Get the next page, or None if this is the last page."""
        return self.get_page(response, response["page"] + 1, request_options)

    def get_previous_page(
        self,
        response: ApiResponse[PaginatedData[Any]],
        request_options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> ApiResponse[PaginatedData[Any]] | None:
        """Get the previous page, or None if this is the first page."""
        return self.get_page(response, response["page"] - 1, request_options)

    def get_all_pages(
        self,
        response: ApiResponse[PaginatedData[Any]],
        request_options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> ApiResponse[PaginatedData[Any]]:
        """Fetch every other page concurrently and return all items as one page.

        Depending on the amount of data this can take long and use a lot of
        memory. If any page fails, the error propagates and nothing is returned.
        """
        limit, total, current = response["limit"], response["total"], response["page"]
        others = [page for page in range(1, page_count(limit, total) + 1) if page != current]

        pages = {current: response}
        if others:
            with ThreadPoolExecutor(max_workers=min(len(others), MAX_PAGE_WORKERS)) as executor:
                futures = {page: executor.submit(self._fetch_page, response, page, request_options) for page in others}
                pages.update({page: future.result() for page, future in futures.items()})

        merged = merge_pages((pages[page] for page in sorted(pages)), total, limit)
        return ApiResponse(merged, response.raw)

    def _fetch_page(
        self,
        response: ApiResponse[PaginatedData[Any]],
        page: int,
        request_options: RequestOptions | Mapping[str, Any] | None,
    ) -> ApiResponse[PaginatedData[Any]]:
        request = response.raw.request
        query = dict(request.query_params)
        query["page"] = str(page)
        return self._send_request(request.operation, request.path_params, query, request.body, request_options)
