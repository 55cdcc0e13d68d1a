from typing import Awaitable, Callable, Type, TypeVar

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from minicore_di.domain import IServiceProvider, IServiceScope, IServiceScopeFactory

T = TypeVar("T")

SCOPE_STATE_ATTRIBUTE = "service_scope"


def create_fastapi_dependency(provider: IServiceProvider, service_type: Type[T]) -> Callable[[], T]:
    """Create a FastAPI Depends() callable that resolves from the root provider.

    The resolved instance lifetime follows the registration (singleton or
    transient). Scoped services need `create_scoped_dependency` instead.

    Args:
        provider: The provider to resolve services from.
        service_type: The type to resolve when the dependency is called.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> services = ServiceCollection()
        >>> services.add_singleton(UserRepository)
        >>> provider = services.build_service_provider()
        >>>
        >>> get_user_repo = create_fastapi_dependency(provider, UserRepository)
        >>>
        >>> @app.get("/users")
        >>> async def list_users(repo: UserRepository = Depends(get_user_repo)):
        ...     return await repo.get_all()
    """

    def dependency() -> T:
        """Resolve the service from the provider."""
        return provider.resolve_required(service_type)

    return dependency


def create_scoped_dependency(service_type: Type[T]) -> Callable[[Request], T]:
    """Create a FastAPI dependency that resolves from the request scope.

    Each request gets its own instance of scoped services. Requires the
    ScopedServiceMiddleware to be installed.

    Args:
        service_type: The type to resolve from the request scope.

    Returns:
        A callable that resolves from the request scope.

    Example:
        >>> app.add_middleware(ScopedServiceMiddleware, provider=provider)
        >>>
        >>> get_request_context = create_scoped_dependency(RequestContext)
        >>>
        >>> @app.get("/process")
        >>> async def process_request(ctx: RequestContext = Depends(get_request_context)):
        ...     return {"request_id": ctx.request_id}
    """

    def scoped_dependency(request: Request) -> T:
        """Resolve from the request's scope."""
        return get_request_scope(request).resolve_required(service_type)

    return scoped_dependency


class ScopedServiceMiddleware(BaseHTTPMiddleware):
    """Middleware that opens a service scope for each request.

    The scope is accessible via `request.state.service_scope` and is disposed
    once the response has been produced, even when the endpoint raises.

    Attributes:
        provider: The root provider to create scopes from.

    Example:
        >>> app = FastAPI()
        >>> app.add_middleware(ScopedServiceMiddleware, provider=provider)
        >>>
        >>> @app.get("/")
        >>> async def root(request: Request):
        ...     scope = request.state.service_scope
        ...     return {"message": "Hello"}
    """

    def __init__(self, app: FastAPI, provider: IServiceScopeFactory):
        """Initialize the middleware with the root provider.

        Args:
            app: The FastAPI/Starlette application.
            provider: The root provider to create scopes from.
        """
        super().__init__(app)
        self.provider = provider

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Open a scope for the request and execute the endpoint.

        Args:
            request: The incoming HTTP request.
            call_next: The next middleware or endpoint handler.

        Returns:
            The response from the endpoint.
        """
        scope: IServiceScope = self.provider.create_scope()
        setattr(request.state, SCOPE_STATE_ATTRIBUTE, scope)

        try:
            response = await call_next(request)
            return response
        finally:
            scope.dispose()


def get_request_scope(request: Request) -> IServiceScope:
    """FastAPI dependency returning the request's service scope."""
    scope = getattr(request.state, SCOPE_STATE_ATTRIBUTE, None)
    if scope is None:
        raise RuntimeError("Request does not have a service scope. Did you forget to add ScopedServiceMiddleware?")
    return scope
