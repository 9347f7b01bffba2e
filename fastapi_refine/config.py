"""Configuration classes for fastapi-refine."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Type

from fastapi_refine.keys import normalize_key
from fastapi_refine.models import KeyCase

if TYPE_CHECKING:
    from fastapi_refine.refiner import Refiner


@dataclass
class RefineConfig:
    """
    Configuration for refine behavior.

    Attributes:
        key_case: How query keys map to method names (default: camel)
        resolver: Callable building a refiner instance from its class,
            None to call the class without arguments (default: None)
        precognition_header: Header flagging a precognitive request
            (default: "Precognition")
        validate_only_header: Header listing the keys a precognitive request
            validates (default: "Precognition-Validate-Only")
        success_header: Header set on the 204 answering a passing precognitive
            request (default: "Precognition-Success")
        error_location: First element of the ``loc`` of validation errors
            (default: "query")

    Example:
        # Dispatch ?sort-by=name to sort_by()
        config = RefineConfig(key_case=KeyCase.SNAKE)

        @app.get("/heroes/")
        def read_heroes(refine: RefineManager = Depends(RefineManager)):
            refine.apply_config(config)
            ...
    """

    key_case: KeyCase = KeyCase.CAMEL
    resolver: Optional[Callable[[Type["Refiner"]], "Refiner"]] = None

    # Precognition settings
    precognition_header: str = "Precognition"
    validate_only_header: str = "Precognition-Validate-Only"
    success_header: str = "Precognition-Success"

    # Validation settings
    error_location: str = "query"

    def __post_init__(self):
        """Validate configuration values."""
        try:
            self.key_case = KeyCase(self.key_case)
        except ValueError as e:
            raise ValueError(f"key_case must be one of: {', '.join(KeyCase)}") from e
        if self.resolver is not None and not callable(self.resolver):
            raise ValueError("resolver must be callable or None")
        if not self.precognition_header:
            raise ValueError("precognition_header must not be empty")
        if not self.validate_only_header:
            raise ValueError("validate_only_header must not be empty")
        if not self.success_header:
            raise ValueError("success_header must not be empty")
        if not self.error_location:
            raise ValueError("error_location must not be empty")

    def normalize_key(self, key: str) -> str:
        """
        Map a raw query key to a method name using the configured case.

        Args:
            key: Raw query key

        Returns:
            str: Method name
        """
        return normalize_key(key, self.key_case)

    def resolve(self, refiner_cls: Type["Refiner"]) -> "Refiner":
        """
        Build a refiner instance from its class.

        Args:
            refiner_cls: Refiner class to instantiate

        Returns:
            Refiner: Whatever the resolver returns, unchecked
        """
        if self.resolver is None:
            return refiner_cls()
        return self.resolver(refiner_cls)


class RefinePresets:
    """Pre-defined RefineConfig presets for common use cases."""

    @staticmethod
    def default() -> RefineConfig:
        """Default configuration, camelCase method names."""
        return RefineConfig()

    @staticmethod
    def snake_case() -> RefineConfig:
        """Configuration dispatching query keys to snake_case methods."""
        return RefineConfig(key_case=KeyCase.SNAKE)
