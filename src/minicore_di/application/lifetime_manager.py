import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from minicore_di.domain import (
    ActivationError,
    DIException,
    ILifetimeManager,
    Lifetime,
    ScopeError,
    ServiceDescriptor,
    ServiceProviderOptions,
)
from minicore_di.domain.exceptions import type_name

logger = logging.getLogger(__name__)


def release_instance(instance: Any) -> None:
    """Release a disposable instance. Objects exposing a callable `close()` are disposable."""
    close = getattr(instance, "close", None)
    if callable(close):
        close()


def release_all(instances: Any, owner: str) -> None:
    """Release every instance, logging and continuing past individual failures."""
    for instance in instances:
        try:
            release_instance(instance)
        except Exception:
            logger.warning("Failed to release %s held by %s", type(instance).__name__, owner, exc_info=True)


class LifetimeManager(ILifetimeManager):
    """Manages instance lifetimes for singleton, scoped, and transient services.

    Owns the singleton cache shared by the root provider and every scope. Scoped
    caches belong to their scope and are passed in per call. Caches are keyed by
    registration, so each registration of a service type caches its own instance. Entries
    hold the registration next to the instance, so a key is never reused while cached.

    Attributes:
        _options: Provider options (scope validation).
        _singleton_cache: (registration, instance) entries for singletons.
        _singleton_lock: Serialises singleton construction.
    """

    def __init__(self, options: Optional[ServiceProviderOptions] = None) -> None:
        self._options = options or ServiceProviderOptions()
        self._singleton_cache: Dict[int, Tuple[ServiceDescriptor, Any]] = {}
        self._singleton_lock = threading.RLock()

    def get_or_create(
        self,
        descriptor: ServiceDescriptor,
        scoped_instances: Optional[Dict[int, Tuple[ServiceDescriptor, Any]]],
        factory: Callable[[], Any],
    ) -> Any:
        """Get existing instance or create new one based on lifetime.

        Args:
            descriptor: Registration being resolved.
            scoped_instances: The calling scope's cache, or None at the root provider.
            factory: Function to create new instance if needed.

        Returns:
            Instance according to lifetime rules:
            - Singleton: Returns cached instance or creates and caches new one
            - Scoped: Returns the scope's cached instance or creates and caches new one
            - Transient: Always creates new instance

        Raises:
            ScopeError: If a scoped service is requested at the root with scope validation on.
            ActivationError: If the factory raises a non-container error.
        """
        key = id(descriptor)

        if descriptor.lifetime == Lifetime.SINGLETON:
            with self._singleton_lock:
                entry = self._singleton_cache.get(key)
            if entry is not None:
                return entry[1]

            # Double-checked: a racing thread may have built it while we waited
            with self._singleton_lock:
                entry = self._singleton_cache.get(key)
                if entry is None:
                    entry = (descriptor, self._create(descriptor, factory))
                    self._singleton_cache[key] = entry
                return entry[1]

        if descriptor.lifetime == Lifetime.SCOPED:
            if scoped_instances is None:
                if self._options.validate_scopes:
                    raise ScopeError(
                        f"Cannot resolve scoped service '{type_name(descriptor.service_type)}' "
                        "from root service provider."
                    )
                logger.warning(
                    "Scoped service %s resolved from the root provider; a new uncached instance is created",
                    type_name(descriptor.service_type),
                )
                return self._create(descriptor, factory)

            entry = scoped_instances.get(key)
            if entry is None:
                entry = (descriptor, self._create(descriptor, factory))
                scoped_instances[key] = entry
            return entry[1]

        # Lifetime.TRANSIENT
        return self._create(descriptor, factory)

    def _create(self, descriptor: ServiceDescriptor, factory: Callable[[], Any]) -> Any:
        try:
            return factory()
        except DIException:
            raise
        except Exception as e:
            raise ActivationError(descriptor.service_type, e) from e

    def dispose(self) -> None:
        """Release every disposable singleton and clear the cache."""
        with self._singleton_lock:
            instances = [instance for _, instance in self._singleton_cache.values()]
            self._singleton_cache.clear()
        release_all(instances, "root service provider")
