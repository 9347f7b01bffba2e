"""Validation of query parameters against refiner rules, backed by pydantic."""

import re
from typing import Annotated, Any, Dict, List, Mapping, Optional, Tuple

from fastapi import HTTPException, Request, status
from pydantic import ConfigDict, Field, ValidationError, create_model

from fastapi_refine.config import RefineConfig
from fastapi_refine.exceptions import RefineValidationError

_NON_IDENTIFIER = re.compile(r"\W")
_PLACEHOLDER = re.compile(r"\{(attribute|input|msg)\}")


def _field_name(index: int, key: str) -> str:
    """Build a model field name for a query key, which may not be an identifier."""
    return f"f{index}_{_NON_IDENTIFIER.sub('_', key)}"


def _field_definition(key: str, rule: Any) -> Tuple[Any, Any]:
    """
    Turn a rule into a ``create_model`` field definition aliased to its key.

    Args:
        key: Query key the rule applies to
        rule: Annotation, ``(annotation, default)`` or ``(annotation, FieldInfo)``

    Returns:
        Tuple[Any, Any]: Annotated type and default
    """
    if isinstance(rule, tuple):
        if len(rule) != 2:
            raise ValueError(
                f"Rule for '{key}' must be an annotation or an (annotation, default) pair."
            )
        annotation, default = rule
    else:
        annotation, default = rule, ...
    return Annotated[annotation, Field(alias=key)], default


def _build_model(rules: Mapping[str, Any]) -> Tuple[Any, Dict[str, str]]:
    """
    Build a pydantic model validating the given rules.

    Returns:
        Tuple[Any, Dict[str, str]]: Model class and field name to key mapping
    """
    fields = {}
    keys = {}
    for index, (key, rule) in enumerate(rules.items()):
        name = _field_name(index, key)
        fields[name] = _field_definition(key, rule)
        keys[name] = key
    model = create_model(
        "RefinerQuery",
        __config__=ConfigDict(extra="ignore"),
        **fields,
    )
    return model, keys


def _message_for(
    error: Mapping[str, Any],
    key: str,
    messages: Mapping[str, str],
    attributes: Mapping[str, str],
) -> str:
    """
    Pick and format the message of a validation error.

    Custom messages are looked up as "key.type", then "key", then "type", and
    may reference ``{attribute}``, ``{input}`` and ``{msg}``.
    """
    error_type = error.get("type", "")
    msg = error.get("msg", "")
    attribute = attributes.get(key)
    template = messages.get(f"{key}.{error_type}") or messages.get(key) or messages.get(error_type)
    if template is None:
        return f"{attribute}: {msg}" if attribute else msg
    values = {"attribute": attribute or key, "input": str(error.get("input")), "msg": msg}
    # Other braces are literal text
    return _PLACEHOLDER.sub(lambda match: values[match.group(1)], template)


def validate(
    data: Mapping[str, Any],
    rules: Mapping[str, Any],
    messages: Optional[Mapping[str, str]] = None,
    attributes: Optional[Mapping[str, str]] = None,
    *,
    location: str = "query",
) -> Dict[str, Any]:
    """
    Validate data against a set of rules.

    Args:
        data: Raw data, usually all query parameters of the request
        rules: Query key to rule mapping
        messages: Custom messages
        attributes: Display names of the keys
        location: First element of the ``loc`` of each error

    Returns:
        Dict[str, Any]: Validated values keyed by query key

    Raises:
        RefineValidationError: If the data fails the rules
    """
    if not rules:
        return {}

    messages = messages or {}
    attributes = attributes or {}
    model, keys = _build_model(rules)

    try:
        validated = model.model_validate(dict(data))
    except ValidationError as e:
        errors: List[Dict[str, Any]] = []
        for error in e.errors(include_url=False, include_context=False):
            loc = tuple(error.get("loc", ()))
            key = str(loc[0]) if loc else ""
            errors.append(
                {
                    "type": error["type"],
                    "loc": (location, *loc),
                    "msg": _message_for(error, key, messages, attributes),
                    "input": error.get("input"),
                }
            )
        raise RefineValidationError(errors) from e

    return {keys[name]: value for name, value in validated.model_dump().items()}


def is_precognitive(request: Request, config: RefineConfig) -> bool:
    """Check whether the request is a precognitive (validation-only) request."""
    return request.headers.get(config.precognition_header, "").lower() == "true"


def validate_only_keys(request: Request, config: RefineConfig) -> Optional[List[str]]:
    """
    Return the keys a precognitive request asks to validate.

    Returns:
        Optional[List[str]]: Keys, or None if the header is absent
    """
    header = request.headers.get(config.validate_only_header)
    if header is None:
        return None
    return [key.strip() for key in header.split(",") if key.strip()]


def filter_precognitive_rules(
    request: Request, rules: Mapping[str, Any], config: RefineConfig
) -> Dict[str, Any]:
    """
    Keep only the rules a precognitive request asks to validate.

    Args:
        request: Incoming request
        rules: Full rule set
        config: Refine configuration holding the header names

    Returns:
        Dict[str, Any]: Filtered rules, or all rules if no keys were requested
    """
    keys = validate_only_keys(request, config)
    if keys is None:
        return dict(rules)
    return {key: rule for key, rule in rules.items() if key in keys}


def precognition_success(config: RefineConfig) -> HTTPException:
    """Build the empty response ending a successful precognitive validation."""
    return HTTPException(
        status_code=status.HTTP_204_NO_CONTENT,
        headers={config.success_header: "true"},
    )
