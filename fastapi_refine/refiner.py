"""Refiner base class and per-class operation tables."""

import inspect
import threading
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Type

from fastapi import Request

from fastapi_refine.keys import query_keys

# Type alias for refiner operations, stored unbound: (self, builder, value, request)
OperationFn = Callable[[Any, Any, Any, Request], Any]


class Refiner:
    """
    Base class for request-driven query refiners.

    Every public method of a subclass is an operation: it runs when the request
    query has a key that normalizes to its name, and receives the query
    builder, the query value and the request. An operation may modify the
    builder in place or return a new one (SQLAlchemy selects are generative).

    The methods declared here are hooks, never operations, even when a
    subclass overrides them or a request key matches their name.

    Example:
        class HeroRefiner(Refiner):
            def name(self, query, value, request):
                return query.where(Hero.name == value)

            def minAge(self, query, value, request):
                return query.where(Hero.age >= int(value))

        # GET /heroes/?name=Deadpond&min-age=18
        query = refine(select(Hero), request, HeroRefiner)
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _build_operation_table(cls)

    def keys_for_request(self, request: Request) -> List[str]:
        """
        Return the keys to look for when no explicit keys are given.

        Args:
            request: Incoming request

        Returns:
            List[str]: All query parameter keys, in request order
        """
        return query_keys(request)

    def obligatory_keys(self, request: Request) -> List[str]:
        """
        Return the keys whose operations always run.

        Obligatory operations run even when the key is missing from the query
        (receiving None as value) or absent from an explicit key list.

        Args:
            request: Incoming request

        Returns:
            List[str]: Obligatory keys
        """
        return []

    def before(self, query: Any, request: Request) -> Any:
        """Run once before validation and matched operations."""
        return None

    def after(self, query: Any, request: Request) -> Any:
        """Run once after all matched operations."""
        return None

    def rules(self, request: Request) -> Mapping[str, Any]:
        """
        Return the validation rules, used by refiners that are ValidatesRefiner.

        Each rule maps a query key to a type annotation, an
        ``(annotation, default)`` tuple or an ``(annotation, Field(...))`` tuple.
        """
        return {}

    def messages(self, request: Request) -> Mapping[str, str]:
        """Return custom validation messages, keyed by "key.type", "key" or "type"."""
        return {}

    def attributes(self, request: Request) -> Mapping[str, str]:
        """Return display names of query keys for validation messages."""
        return {}


class ValidatesRefiner:
    """
    Capability marker for refiners that validate the query before refining.

    Example:
        class HeroRefiner(ValidatesRefiner, Refiner):
            def rules(self, request):
                return {"min-age": (int, Field(default=None, ge=0))}
    """


_operation_tables: Dict[type, Mapping[str, OperationFn]] = {}
_operation_tables_lock = threading.Lock()
_base_methods: Optional[FrozenSet[str]] = None


def _public_methods(cls: type) -> Dict[str, OperationFn]:
    """
    Collect the public plain functions reachable on a class.

    Skips names starting with an underscore, static and class methods,
    properties, non-callable attributes and abstract methods.

    Args:
        cls: Class to inspect

    Returns:
        Dict[str, OperationFn]: Method name to unbound function

    Raises:
        TypeError: If a public method is a coroutine function
    """
    methods: Dict[str, OperationFn] = {}
    for name in dir(cls):
        if name.startswith("_"):
            continue
        attr = inspect.getattr_static(cls, name)
        if not inspect.isfunction(attr):
            continue
        if getattr(attr, "__isabstractmethod__", False):
            continue
        if inspect.iscoroutinefunction(attr):
            raise TypeError(
                f"{cls.__qualname__}.{name} is a coroutine function; "
                "refiner operations must be synchronous."
            )
        methods[name] = attr
    return methods


def base_methods() -> FrozenSet[str]:
    """Return the public method names declared by the Refiner base class."""
    global _base_methods
    if _base_methods is None:
        _base_methods = frozenset(_public_methods(Refiner))
    return _base_methods


def _build_operation_table(cls: type) -> Mapping[str, OperationFn]:
    reserved = base_methods()
    table = MappingProxyType(
        {name: fn for name, fn in _public_methods(cls).items() if name not in reserved}
    )
    with _operation_tables_lock:
        _operation_tables[cls] = table
    return table


def invocable_operations(refiner_cls: Type[Refiner]) -> Mapping[str, OperationFn]:
    """
    Return the operation table of a refiner class.

    Tables are built when the class is created and kept for the life of the
    process, so methods attached to the class afterwards are never dispatched.
    Classes missing from the table (e.g. created before the module finished
    importing) are built on first use.

    Args:
        refiner_cls: Refiner class

    Returns:
        Mapping[str, OperationFn]: Read-only operation name to function mapping
    """
    table = _operation_tables.get(refiner_cls)
    if table is None:
        table = _build_operation_table(refiner_cls)
    return table
