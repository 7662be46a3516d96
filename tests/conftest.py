import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from cloudnode.client import Cloudnode
from cloudnode.schema.loader import load_schema

FIXTURES = Path(__file__).parent / "fixtures"


def make_response(status: int = 200, body=None, headers: dict | None = None, reason: str = "OK", url: str = "https://api.example.com/v1/items") -> requests.Response:
    """Build a requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.url = url
    response.encoding = "utf-8"
    response.headers.update(headers or {})
    if body is None:
        response._content = b""
    elif isinstance(body, str):
        response._content = body.encode("utf-8")
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers.setdefault("Content-Type", "application/json; charset=utf-8")
    return response


@pytest.fixture
def schema():
    return load_schema(FIXTURES / "schema.yaml")


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(schema, session):
    return Cloudnode("secret", "https://api.example.com/v1", schema=schema, session=session)
