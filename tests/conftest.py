"""Shared fixtures for fastapi-refine tests."""

from typing import Dict, Optional
from urllib.parse import urlencode

import pytest
from starlette.requests import Request


def build_request(query: str = "", headers: Optional[Dict[str, str]] = None) -> Request:
    """Build a GET request from a raw query string and headers."""
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "query_string": query.encode(),
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
    }
    return Request(scope)


@pytest.fixture
def make_request():
    """Factory for requests: make_request({"foo": 1}) or make_request("foo=1&foo=2")."""

    def factory(query=None, headers: Optional[Dict[str, str]] = None) -> Request:
        if isinstance(query, dict):
            query = urlencode(query, doseq=True)
        return build_request(query or "", headers)

    return factory
