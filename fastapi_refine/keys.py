"""Query key normalization and query parameter extraction."""

import re
from typing import Dict, List, Union

from fastapi import Request

from fastapi_refine.models import KeyCase

QueryValue = Union[str, List[str]]

_SEPARATORS = re.compile(r"[-_\s]+")
_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def camel(key: str) -> str:
    """
    Convert a query key to a camelCase method name.

    Dashes, underscores and whitespace separate words. Each word gets its first
    character upper-cased and the result gets its first character lower-cased,
    the rest of the casing is kept as written.

    Examples:
        camel("foo-bar") == "fooBar"
        camel("bar_Quz") == "barQuz"
        camel("QUZ-FOX") == "qUZFOX"

    Args:
        key: Raw query key

    Returns:
        str: Method name
    """
    words = [word for word in _SEPARATORS.split(key) if word]
    studly = "".join(word[:1].upper() + word[1:] for word in words)
    return studly[:1].lower() + studly[1:]


def snake(key: str) -> str:
    """
    Convert a query key to a snake_case method name.

    Examples:
        snake("foo-bar") == "foo_bar"
        snake("fooBar") == "foo_bar"

    Args:
        key: Raw query key

    Returns:
        str: Method name
    """
    key = _WORD_BOUNDARY.sub("_", key)
    words = [word for word in _SEPARATORS.split(key) if word]
    return "_".join(words).lower()


def normalize_key(key: str, case: KeyCase = KeyCase.CAMEL) -> str:
    """Map a raw query key to the refiner method name it dispatches to."""
    if case == KeyCase.SNAKE:
        return snake(key)
    return camel(key)


def query_parameters(request: Request) -> Dict[str, QueryValue]:
    """
    Read the query parameters of a request into a plain dict.

    Keys that appear once map to their string value, repeated keys map to the
    list of their values. PHP-style array keys (``tags[]=a&tags[]=b``) are
    folded into the bare key and always map to a list.

    Args:
        request: Incoming request

    Returns:
        Dict[str, QueryValue]: Query parameters in request order
    """
    params: Dict[str, QueryValue] = {}
    query_params = request.query_params
    for key in query_params.keys():
        values = query_params.getlist(key)
        name = key[:-2] if key.endswith("[]") and len(key) > 2 else key
        existing = params.get(name)
        if existing is None:
            if name != key:
                params[name] = list(values)
            else:
                params[name] = values[0] if len(values) == 1 else list(values)
        elif isinstance(existing, list):
            # Only reached when "name" and "name[]" are both sent
            existing.extend(values)
        else:
            params[name] = [existing, *values]
    return params


def query_keys(request: Request) -> List[str]:
    """Return the query parameter keys of a request in request order."""
    return list(query_parameters(request))
