"""fastapi-refine: request-driven query refiners for FastAPI + SQLModel."""

from . import models as models  # noqa: F401
from .config import RefineConfig, RefinePresets  # noqa: F401
from .engine import RefineQuery, refine  # noqa: F401
from .exceptions import (  # noqa: F401
    RefineError,
    RefinerResolutionError,
    RefineValidationError,
)
from .keys import camel, normalize_key, query_parameters, snake  # noqa: F401
from .manager import RefineManager, refine_by  # noqa: F401
from .models import KeyCase, PlannedOperation  # noqa: F401
from .refiner import Refiner, ValidatesRefiner, invocable_operations  # noqa: F401
from .registry import RefinerRegistry, resolve_refiner  # noqa: F401
from .validation import validate  # noqa: F401

__all__ = [
    # Main entry points
    "refine",
    "RefineQuery",
    "RefineManager",
    "refine_by",
    # Refiners
    "Refiner",
    "ValidatesRefiner",
    "invocable_operations",
    # Registry
    "RefinerRegistry",
    "resolve_refiner",
    # Configuration
    "RefineConfig",
    "RefinePresets",
    # Keys
    "camel",
    "snake",
    "normalize_key",
    "query_parameters",
    # Validation
    "validate",
    # Errors
    "RefineError",
    "RefinerResolutionError",
    "RefineValidationError",
    # Models
    "KeyCase",
    "PlannedOperation",
    # Module
    "models",
]
