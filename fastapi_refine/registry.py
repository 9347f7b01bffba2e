"""Refiner registry - lookup of refiner classes by name."""

import logging
from typing import Callable, Dict, List, Optional, Type, Union

from fastapi_refine.config import RefineConfig
from fastapi_refine.exceptions import RefinerResolutionError
from fastapi_refine.refiner import Refiner, invocable_operations

logger = logging.getLogger(__name__)

RefinerLike = Union[Refiner, Type[Refiner], str]


class RefinerRegistry:
    """
    Registry of refiner classes by name.

    Registered refiners can be passed to refine() by name, and have their
    operation table built at registration time.
    """

    _refiners: Dict[str, Type[Refiner]] = {}

    @classmethod
    def register(
        cls, name: Union[str, Type[Refiner], None] = None
    ) -> Union[Type[Refiner], Callable[[Type[Refiner]], Type[Refiner]]]:
        """
        Decorator to register a refiner class.

        Usage:
            @RefinerRegistry.register
            class HeroRefiner(Refiner):
                ...

            @RefinerRegistry.register("heroes")
            class HeroRefiner(Refiner):
                ...
        """
        if isinstance(name, type):
            return cls.register_refiner(name)

        def decorator(refiner_class: Type[Refiner]) -> Type[Refiner]:
            return cls.register_refiner(refiner_class, name)

        return decorator

    @classmethod
    def register_refiner(
        cls, refiner_class: Type[Refiner], name: Optional[str] = None
    ) -> Type[Refiner]:
        """Register a refiner class (non-decorator version)."""
        if not (isinstance(refiner_class, type) and issubclass(refiner_class, Refiner)):
            raise TypeError(f"{refiner_class!r} is not a Refiner subclass")

        name = name or refiner_class.__name__
        if name in cls._refiners and cls._refiners[name] is not refiner_class:
            logger.warning(
                "Refiner %r overwritten: %s replaced by %s",
                name,
                cls._refiners[name].__qualname__,
                refiner_class.__qualname__,
            )

        cls._refiners[name] = refiner_class
        operations = invocable_operations(refiner_class)
        logger.debug(
            "Refiner %r registered as %s with operations %s",
            name,
            refiner_class.__qualname__,
            sorted(operations),
        )
        return refiner_class

    @classmethod
    def get(cls, name: str) -> Optional[Type[Refiner]]:
        """Get a refiner class by name."""
        return cls._refiners.get(name)

    @classmethod
    def get_or_raise(cls, name: str) -> Type[Refiner]:
        """Get a refiner class by name, raising if not found."""
        refiner_class = cls._refiners.get(name)
        if refiner_class is None:
            available = ", ".join(sorted(cls._refiners)) or "none"
            raise RefinerResolutionError(
                f"Unknown refiner '{name}'. Available refiners: {available}"
            )
        return refiner_class

    @classmethod
    def list_refiners(cls) -> List[str]:
        """List all registered refiner names."""
        return list(cls._refiners)

    @classmethod
    def unregister(cls, name: str) -> None:
        """Remove a refiner from the registry."""
        cls._refiners.pop(name, None)

    @classmethod
    def clear(cls) -> None:
        """Clear all registered refiners (for testing)."""
        cls._refiners.clear()


def resolve_refiner(refiner: RefinerLike, config: Optional[RefineConfig] = None) -> Refiner:
    """
    Resolve a refiner instance from an instance, a class or a registered name.

    Classes are instantiated through ``config.resolver`` when set. Errors
    raised by the resolver propagate unchanged.

    Args:
        refiner: Refiner instance, Refiner subclass or registered name
        config: Refine configuration

    Returns:
        Refiner: Refiner instance

    Raises:
        RefinerResolutionError: If the identifier is unknown or does not
            resolve to a Refiner instance
    """
    if isinstance(refiner, Refiner):
        return refiner

    if isinstance(refiner, str):
        refiner = RefinerRegistry.get_or_raise(refiner)

    if not (isinstance(refiner, type) and issubclass(refiner, Refiner)):
        raise RefinerResolutionError(f"Cannot resolve a refiner from {refiner!r}")

    instance = (config or RefineConfig()).resolve(refiner)
    if not isinstance(instance, Refiner):
        raise RefinerResolutionError(
            f"Resolver returned {instance!r} instead of a {refiner.__qualname__} instance"
        )
    return instance
