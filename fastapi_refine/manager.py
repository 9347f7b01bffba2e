"""FastAPI integration for refiners."""

from typing import Annotated, Any, Callable, List, Optional, Type

from fastapi import Depends, Request
from sqlmodel import Session, SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from fastapi_refine.config import RefineConfig
from fastapi_refine.engine import Keys, RefineQuery
from fastapi_refine.models import PlannedOperation
from fastapi_refine.refiner import Refiner
from fastapi_refine.registry import RefinerLike, resolve_refiner


class RefineManager:
    """
    Request-scoped entry point to refine queries from a FastAPI route.

    Example:
        @app.get("/heroes/")
        def read_heroes(
            session: Session = Depends(get_session),
            refine: RefineManager = Depends(RefineManager),
        ):
            query = refine.refine(select(Hero), HeroRefiner)
            return session.exec(query).all()
    """

    def __init__(self, request: Request):
        """
        Initialize RefineManager.

        Args:
            request: FastAPI Request object
        """
        self.request = request
        self.config = RefineConfig()

    def apply_config(self, config: RefineConfig) -> "RefineManager":
        """
        Apply a configuration to this RefineManager instance.

        Args:
            config: RefineConfig instance with settings

        Returns:
            RefineManager: Self for chaining
        """
        self.config = config
        return self

    def plan(self, refiner: RefinerLike, keys: Keys = None) -> List[PlannedOperation]:
        """
        Resolve the operations a refiner would run for this request, without running them.

        Args:
            refiner: Refiner instance, Refiner subclass or registered name
            keys: Explicit keys to look for, None to ask the refiner

        Returns:
            List[PlannedOperation]: Operations in dispatch order
        """
        instance = resolve_refiner(refiner, self.config)
        return RefineQuery(None, self.request, instance, self.config).plan(keys)

    def refine(self, builder: Any, refiner: RefinerLike, keys: Keys = None) -> Any:
        """
        Refine a query builder.

        Args:
            builder: Query builder, e.g. a SQLAlchemy Select
            refiner: Refiner instance, Refiner subclass or registered name
            keys: Explicit keys to look for, None to ask the refiner

        Returns:
            Any: The refined builder
        """
        return RefineQuery.refine(builder, self.request, refiner, keys, config=self.config)

    def from_model(
        self,
        model: Type[SQLModel],
        session: Session,
        refiner: RefinerLike,
        keys: Keys = None,
    ) -> List[Any]:
        """
        Convenience method to refine and run a select of a model.

        Args:
            model: SQLModel class to query
            session: Database session
            refiner: Refiner instance, Refiner subclass or registered name
            keys: Explicit keys to look for, None to ask the refiner

        Returns:
            List[Any]: Matching rows

        Example:
            @app.get("/heroes/")
            def read_heroes(
                session: Session = Depends(get_session),
                refine: RefineManager = Depends(RefineManager),
            ):
                return refine.from_model(Hero, session, HeroRefiner)
        """
        query = self.refine(select(model), refiner, keys)
        return list(session.exec(query).all())

    async def from_model_async(
        self,
        model: Type[SQLModel],
        session: AsyncSession,
        refiner: RefinerLike,
        keys: Keys = None,
    ) -> List[Any]:
        """
        Convenience method to refine and run a select of a model (async version).

        Operations still run synchronously; only the query execution is awaited.

        Args:
            model: SQLModel class to query
            session: Async database session
            refiner: Refiner instance, Refiner subclass or registered name
            keys: Explicit keys to look for, None to ask the refiner

        Returns:
            List[Any]: Matching rows
        """
        query = self.refine(select(model), refiner, keys)
        result = await session.exec(query)
        return list(result.all())


def refine_by(
    refiner: Type[Refiner],
    keys: Keys = None,
    config: Optional[RefineConfig] = None,
) -> Callable[..., Callable[[Any], Any]]:
    """
    Build a dependency that refines queries with a refiner class.

    The refiner is built by FastAPI's dependency injection, so its
    constructor may declare dependencies of its own.

    Args:
        refiner: Refiner class
        keys: Explicit keys to look for, None to ask the refiner
        config: Refine configuration

    Returns:
        Callable: Dependency returning a ``builder -> refined builder`` function

    Example:
        @app.get("/heroes/")
        def read_heroes(
            session: Session = Depends(get_session),
            refine_heroes=Depends(refine_by(HeroRefiner)),
        ):
            return session.exec(refine_heroes(select(Hero))).all()
    """

    def dependency(
        request: Request,
        instance: Annotated[Refiner, Depends(refiner)],
    ) -> Callable[[Any], Any]:
        def apply(builder: Any) -> Any:
            return RefineQuery.refine(builder, request, instance, keys, config=config)

        return apply

    return dependency
