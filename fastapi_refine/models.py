"""fastapi-refine models"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class KeyCase(StrEnum):
    """Naming conventions for mapping query keys to refiner methods"""

    CAMEL = "camel"  # foo-bar -> fooBar
    SNAKE = "snake"  # foo-bar -> foo_bar


class PlannedOperation(BaseModel):
    """A refiner operation resolved from the request, in dispatch order.

    Example:
        # ?foo-bar=1 against a refiner exposing fooBar()
        PlannedOperation(method="fooBar", key="foo-bar", value="1")
    """

    method: str
    key: str
    value: Any = None
