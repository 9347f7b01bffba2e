"""Refine engine: resolves refiner operations from a request and dispatches them."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from fastapi import Request

from fastapi_refine.config import RefineConfig
from fastapi_refine.keys import query_parameters
from fastapi_refine.models import PlannedOperation
from fastapi_refine.refiner import Refiner, ValidatesRefiner, base_methods, invocable_operations
from fastapi_refine.registry import RefinerLike, resolve_refiner
from fastapi_refine.validation import (
    filter_precognitive_rules,
    is_precognitive,
    precognition_success,
    validate,
    validate_only_keys,
)

logger = logging.getLogger(__name__)

Keys = Optional[Union[str, Sequence[str]]]


class RefineQuery:
    """
    Refine a query builder using the query parameters of a request.

    The protocol of a match is:
    1. ``before`` hook
    2. Validation, if the refiner is a ValidatesRefiner
    3. Each resolved operation, in order
    4. ``after`` hook

    Hooks and operations may return a new builder, which replaces the current
    one. Exceptions are never caught: a failing operation stops dispatch and
    leaves earlier changes in place.
    """

    def __init__(
        self,
        builder: Any,
        request: Request,
        refiner: Refiner,
        config: Optional[RefineConfig] = None,
    ):
        """
        Initialize RefineQuery.

        Args:
            builder: Query builder to refine, e.g. a SQLAlchemy Select
            request: Incoming request
            refiner: Refiner instance
            config: Refine configuration, defaults to RefineConfig()
        """
        self.builder = builder
        self.request = request
        self.refiner = refiner
        self.config = config or RefineConfig()

    def match(self, keys: Keys = None) -> Any:
        """
        Run the refiner against the builder.

        Args:
            keys: Explicit keys to look for, None to ask the refiner

        Returns:
            Any: The refined builder

        Raises:
            RefineValidationError: If the refiner validates and the query fails its rules
        """
        self._apply(self.refiner.before(self.builder, self.request))

        if isinstance(self.refiner, ValidatesRefiner):
            self.validate()

        plan = self.plan(keys)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Refining with %s: %s",
                type(self.refiner).__qualname__,
                [(planned.method, planned.key) for planned in plan],
            )

        operations = invocable_operations(type(self.refiner))
        for planned in plan:
            operation = operations[planned.method]
            self._apply(operation(self.refiner, self.builder, planned.value, self.request))

        self._apply(self.refiner.after(self.builder, self.request))
        return self.builder

    def plan(self, keys: Keys = None) -> List[PlannedOperation]:
        """
        Resolve the operations to run and the value each one receives.

        Keys missing from the query are dropped, then obligatory keys are
        merged in. When two keys map to the same method, the last key wins
        and the first one sets the position.

        Args:
            keys: Explicit keys to look for, None to ask the refiner

        Returns:
            List[PlannedOperation]: Operations in dispatch order
        """
        params = query_parameters(self.request)

        if keys is None:
            keys = self.refiner.keys_for_request(self.request)
        elif isinstance(keys, str):
            keys = [keys]

        matched: Dict[str, str] = {}
        for key in keys:
            if key in params:
                matched[self.config.normalize_key(key)] = key

        for key in self.refiner.obligatory_keys(self.request):
            matched[self.config.normalize_key(key)] = key

        operations = invocable_operations(type(self.refiner))
        reserved = base_methods()

        return [
            PlannedOperation(method=method, key=key, value=params.get(key))
            for method, key in matched.items()
            if method in operations and method not in reserved
        ]

    def validate(self) -> Dict[str, Any]:
        """
        Validate all query parameters against the refiner rules.

        Precognitive requests only validate the keys they ask for, and end
        with an empty 204 response when those keys pass.

        Returns:
            Dict[str, Any]: Validated values keyed by query key

        Raises:
            RefineValidationError: If the query fails the rules
            HTTPException: 204 when a precognitive validation succeeds
        """
        rules = self.refiner.rules(self.request)
        precognitive = is_precognitive(self.request, self.config)
        if precognitive:
            rules = filter_precognitive_rules(self.request, rules, self.config)

        validated = validate(
            query_parameters(self.request),
            rules,
            self.refiner.messages(self.request),
            self.refiner.attributes(self.request),
            location=self.config.error_location,
        )

        if precognitive and validate_only_keys(self.request, self.config) is not None:
            raise precognition_success(self.config)

        return validated

    def _apply(self, result: Any) -> None:
        """Replace the builder with a hook or operation result, if any."""
        if result is not None:
            self.builder = result

    @classmethod
    def refine(
        cls,
        builder: Any,
        request: Request,
        refiner: RefinerLike,
        keys: Keys = None,
        *,
        config: Optional[RefineConfig] = None,
    ) -> Any:
        """
        Resolve a refiner and run it against a builder.

        Args:
            builder: Query builder to refine
            request: Incoming request
            refiner: Refiner instance, Refiner subclass or registered name
            keys: Explicit keys to look for, None to ask the refiner
            config: Refine configuration

        Returns:
            Any: The refined builder
        """
        instance = resolve_refiner(refiner, config)
        return cls(builder, request, instance, config).match(keys)


def refine(
    builder: Any,
    request: Request,
    refiner: RefinerLike,
    keys: Keys = None,
    *,
    config: Optional[RefineConfig] = None,
) -> Any:
    """
    Refine a query builder with a refiner, using the request query.

    Example:
        @app.get("/heroes/")
        def read_heroes(request: Request, session: Session = Depends(get_session)):
            query = refine(select(Hero), request, HeroRefiner)
            return session.exec(query).all()
    """
    return RefineQuery.refine(builder, request, refiner, keys, config=config)
