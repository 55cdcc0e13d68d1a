import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Type, TypeVar

from minicore_di.application.lifetime_manager import release_all
from minicore_di.domain import IServiceScope, ObjectDisposedError, ServiceDescriptor, UnresolvableError

if TYPE_CHECKING:
    from minicore_di.application.service_provider import ServiceProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceScope(IServiceScope):
    """A disposable unit of work with its own cache for scoped services.

    Resolution is delegated to the root provider, which uses this scope's cache for
    scoped services and its own shared cache for singletons. A scope is meant to be
    used by one thread at a time.

    Example:
        >>> with provider.create_scope() as scope:
        ...     service = scope.resolve_required(RequestService)
        ... # Disposable scoped instances are closed here
    """

    def __init__(self, root: "ServiceProvider") -> None:
        self._root = root
        self._scoped_instances: Dict[int, Tuple[ServiceDescriptor, Any]] = {}
        self._disposed = False
        logger.debug("Created service scope %#x", id(self))

    @property
    def scoped_instances(self) -> Dict[int, Tuple[ServiceDescriptor, Any]]:
        """The scope's cache of (registration, instance) entries, keyed by registration."""
        return self._scoped_instances

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def resolve(self, service_type: Type[T]) -> Optional[T]:
        self._throw_if_disposed()
        return self._root.resolve_dependency(service_type, self._root.start_resolution(self))

    def resolve_required(self, service_type: Type[T]) -> T:
        instance = self.resolve(service_type)
        if instance is None:
            raise UnresolvableError(service_type)
        return instance

    def resolve_all(self, service_type: Type[T]) -> List[T]:
        self._throw_if_disposed()
        return self._root.resolve_dependency(List[service_type], self._root.start_resolution(self))  # type: ignore[valid-type]

    def is_service(self, service_type: Any) -> bool:
        self._throw_if_disposed()
        return self._root.is_service(service_type)

    def dispose(self) -> None:
        """Release every disposable scoped instance and clear the cache.

        Failures while releasing one instance are logged and do not stop the others.
        Calling it again has no effect.
        """
        if self._disposed:
            return
        self._disposed = True
        instances = [instance for _, instance in self._scoped_instances.values()]
        self._scoped_instances.clear()
        release_all(instances, "service scope")
        logger.debug("Disposed service scope %#x", id(self))

    def _throw_if_disposed(self) -> None:
        if self._disposed:
            raise ObjectDisposedError(type(self).__name__)
