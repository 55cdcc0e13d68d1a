from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from minicore_di.domain.models import ResolutionContext, ServiceDescriptor

if TYPE_CHECKING:
    from types import TracebackType

T = TypeVar("T")


class IServiceProvider(ABC):
    """Abstract interface for resolving services.

    Requesting `IServiceProvider` itself always yields the provider the request was made on.
    """

    @abstractmethod
    def resolve(self, service_type: Type[T]) -> Optional[T]:
        """Resolve an instance of the requested type.

        Args:
            service_type: The type to resolve.

        Returns:
            The instance, or None when nothing satisfies the type.
        """

    @abstractmethod
    def resolve_required(self, service_type: Type[T]) -> T:
        """Resolve an instance of the requested type.

        Args:
            service_type: The type to resolve.

        Raises:
            UnresolvableError: If nothing satisfies the type.
        """

    @abstractmethod
    def resolve_all(self, service_type: Type[T]) -> List[T]:
        """Resolve every registration of the requested type, in registration order."""

    @abstractmethod
    def is_service(self, service_type: Any) -> bool:
        """Return whether the type can be resolved without constructing it."""


class IServiceScope(IServiceProvider):
    """Abstract interface for a disposable unit-of-work resolver."""

    @abstractmethod
    def dispose(self) -> None:
        """Release every disposable scoped instance. Safe to call more than once."""

    def __enter__(self) -> "IServiceScope":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional["TracebackType"],
    ) -> bool:
        self.dispose()
        return False


class IServiceScopeFactory(ABC):
    """Abstract interface for creating scopes."""

    @abstractmethod
    def create_scope(self) -> IServiceScope:
        """Create and return a new scope."""


class IServiceLookup(ABC):
    """Engine operations the constructor resolver calls back into while building a graph."""

    @abstractmethod
    def is_service(self, service_type: Any) -> bool:
        """Return whether the type can be resolved."""

    @abstractmethod
    def resolve_dependency(self, service_type: Any, context: ResolutionContext) -> Any:
        """Resolve a dependency inside an ongoing resolution, returning None when not found."""


class IResolver(ABC):
    """Abstract interface for constructor-injection operations."""

    @abstractmethod
    def create_instance(
        self,
        implementation_type: Any,
        lookup: IServiceLookup,
        context: ResolutionContext,
    ) -> Any:
        """Select a constructor, resolve its parameters and create the instance.

        Args:
            implementation_type: The class (or closed generic alias) to instantiate.
            lookup: The engine used to resolve constructor parameters.
            context: The ongoing resolution.

        Returns:
            Instance with all dependencies injected.

        Raises:
            NoConstructorError: If the type cannot be instantiated at all.
            NoResolvableConstructorError: If no constructor has only satisfiable parameters.
            UnresolvedDependencyError: If a required parameter cannot be resolved.
        """


class ILifetimeManager(ABC):
    """Abstract interface for managing service lifetimes."""

    @abstractmethod
    def get_or_create(
        self,
        descriptor: ServiceDescriptor,
        scoped_instances: Optional[Dict[int, Tuple[ServiceDescriptor, Any]]],
        factory: Callable[[], Any],
    ) -> Any:
        """Get existing instance or create a new one based on lifetime.

        Args:
            descriptor: The registration being resolved.
            scoped_instances: The calling scope's cache, or None at the root.
            factory: A callable to create a new instance if needed.
        """

    @abstractmethod
    def dispose(self) -> None:
        """Release every cached singleton and clear the cache."""
