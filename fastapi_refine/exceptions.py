"""Errors raised by fastapi-refine."""

from typing import Any, Sequence

from fastapi.exceptions import RequestValidationError


class RefineError(Exception):
    """Base class for fastapi-refine errors."""


class RefinerResolutionError(RefineError, LookupError):
    """A refiner identifier could not be resolved to a refiner instance."""


class RefineValidationError(RequestValidationError):
    """
    The query parameters failed the rules of a validating refiner.

    Subclasses FastAPI's RequestValidationError so the default exception
    handler answers 422 with the error list as ``detail``.
    """

    def __init__(self, errors: Sequence[Any]):
        super().__init__(errors)
