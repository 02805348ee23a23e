from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Iterator

from fastapi import Request, Response
from fastapi.routing import APIRoute
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

CallNext = Callable[[Request], Awaitable[Response]]


class Stage(ABC):
    """
    One step of a request pipeline.

    A stage either returns the response produced by `call_next` (optionally
    decorated) or returns its own terminal response without calling it.
    """

    @abstractmethod
    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class StageMiddleware(BaseHTTPMiddleware):
    """Mounts a stage as global Starlette middleware."""

    def __init__(self, app: ASGIApp, stage: Stage):
        super().__init__(app)
        self.stage = stage

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        return await self.stage.dispatch(request, call_next)


def _link(stage: Stage, call_next: CallNext) -> CallNext:
    async def handler(request: Request) -> Response:
        return await stage.dispatch(request, call_next)

    return handler


class MiddlewareChain:
    """
    Ordered, immutable composition of stages.

    The first stage is the outermost one: it sees the request first and the
    response last.

    Example:
        ```python
        protected = MiddlewareChain(BodySizeGuardStage(limit), CSRFStage(guard))
        authenticated = MiddlewareChain(TokenAuthStage(authenticator)).append(CSRFStage(guard))

        handler = protected.then(endpoint)
        app = FastAPI(middleware=global_chain.as_middleware())
        ```
    """

    def __init__(self, *stages: Stage):
        self.stages: tuple[Stage, ...] = tuple(stages)

    def append(self, *stages: Stage) -> "MiddlewareChain":
        """Return a new chain with `stages` added after the existing ones."""
        return MiddlewareChain(*self.stages, *stages)

    def then(self, endpoint: CallNext) -> CallNext:
        """
        Wrap `endpoint` with every stage of the chain

        Args:
            endpoint: Innermost request handler

        Returns:
            Handler running the stages in order, then `endpoint`
        """
        handler = endpoint
        for stage in reversed(self.stages):
            handler = _link(stage, handler)

        return handler

    def as_middleware(self) -> list[Middleware]:
        """Starlette middleware entries, outermost first, for `FastAPI(middleware=...)`."""
        return [Middleware(StageMiddleware, stage=stage) for stage in self.stages]

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    def __len__(self) -> int:
        return len(self.stages)

    def __repr__(self) -> str:
        return f"MiddlewareChain({', '.join(repr(stage) for stage in self.stages)})"


def chained_route(chain: MiddlewareChain) -> type[APIRoute]:
    """
    Build an `APIRoute` class whose handler runs behind `chain`.

    The chain is composed once per route, when FastAPI builds the route app.

    Example:
        ```python
        router.add_api_route("/users", create_user, methods=["POST"],
                             route_class_override=chained_route(protected))
        ```
    """

    class ChainedRoute(APIRoute):
        route_chain = chain

        def get_route_handler(self) -> Callable[[Request], Any]:
            return self.route_chain.then(super().get_route_handler())

    return ChainedRoute
