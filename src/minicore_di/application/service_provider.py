import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar, get_args, get_origin

from minicore_di.application.circular_detector import CircularDependencyDetector
from minicore_di.application.generics import (
    close_generic,
    collection_element_type,
    is_assignable,
    is_closed_generic,
)
from minicore_di.application.lifetime_manager import LifetimeManager
from minicore_di.application.resolver import DependencyResolver
from minicore_di.application.service_scope import ServiceScope
from minicore_di.domain import (
    BuildValidationError,
    ILifetimeManager,
    ImplementationKind,
    IResolver,
    IServiceLookup,
    IServiceProvider,
    IServiceScope,
    IServiceScopeFactory,
    Lifetime,
    ObjectDisposedError,
    ResolutionContext,
    ServiceDescriptor,
    ServiceProviderOptions,
    UnresolvableError,
)
from minicore_di.domain.exceptions import type_name

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceProvider(IServiceProvider, IServiceScopeFactory, IServiceLookup):
    """Root dependency injection container.

    Compiled from a `ServiceCollection`. Resolves services by looking up the last
    registration for the requested type (closing open generic registrations on
    demand), applying lifetime caching and building instances through constructor
    injection with circular dependency detection.

    Registrations are read-only after build. The singleton cache and the closed
    generic cache are the only shared mutable state, each guarded by its own lock.

    Attributes:
        _descriptors: Snapshot of the registrations, in registration order.
        _options: Validation options.
        _resolver: Component responsible for constructor injection.
        _lifetime_manager: Component managing instance lifetimes.
        _circular_detector: Component detecting circular dependencies.
    """

    def __init__(
        self,
        services: Iterable[ServiceDescriptor],
        options: Optional[ServiceProviderOptions] = None,
    ) -> None:
        """Compile registrations into a provider.

        Args:
            services: Registrations, in registration order.
            options: Optional validation options.

        Raises:
            BuildValidationError: If `validate_on_build` is set and a registration cannot be resolved.
        """
        self._descriptors = tuple(services)
        self._options = options or ServiceProviderOptions()
        self._resolver: IResolver = DependencyResolver()
        self._lifetime_manager: ILifetimeManager = LifetimeManager(self._options)
        self._circular_detector = CircularDependencyDetector()
        self._closed_generic_descriptors: Dict[Any, ServiceDescriptor] = {}
        self._closed_generic_lock = threading.Lock()
        self._disposed = False

        # Last registration wins
        self._last_descriptors: Dict[Any, ServiceDescriptor] = {}
        for descriptor in self._descriptors:
            self._last_descriptors[descriptor.service_type] = descriptor

        logger.debug(
            "Built service provider with %d registrations (validate_scopes=%s, validate_on_build=%s)",
            len(self._descriptors),
            self._options.validate_scopes,
            self._options.validate_on_build,
        )

        if self._options.validate_on_build:
            self._validate_on_build()

    @property
    def options(self) -> ServiceProviderOptions:
        return self._options

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def resolve(self, service_type: Type[T]) -> Optional[T]:
        """Resolve and return an instance of the specified type.

        Args:
            service_type: The type to resolve.

        Returns:
            Instance of the requested type, or None when nothing is registered for it.

        Raises:
            ObjectDisposedError: If the provider has been disposed.
            ScopeError: If the type is scoped and scope validation is enabled.
            CircularDependencyError: If a circular dependency is detected.

        Example:
            >>> user_service = provider.resolve(UserService)
        """
        return self.resolve_dependency(service_type, self.start_resolution())

    def resolve_required(self, service_type: Type[T]) -> T:
        """Resolve an instance of the specified type, failing when it is not registered.

        Raises:
            UnresolvableError: If nothing satisfies the type.
        """
        instance = self.resolve(service_type)
        if instance is None:
            raise UnresolvableError(service_type)
        return instance

    def resolve_all(self, service_type: Type[T]) -> List[T]:
        """Resolve every registration of the type, in registration order."""
        return self.resolve_dependency(List[service_type], self.start_resolution())  # type: ignore[valid-type]

    def is_service(self, service_type: Any) -> bool:
        """Return whether the type can be resolved, without constructing anything."""
        self._throw_if_disposed()
        if service_type is IServiceProvider or service_type is IServiceScopeFactory:
            return True
        if collection_element_type(service_type) is not None:
            return True
        return self._find_descriptor(service_type) is not None

    def create_scope(self) -> IServiceScope:
        """Create a scope sharing this provider's registrations and singletons.

        Returns:
            New scope with its own cache for scoped services.

        Example:
            >>> with provider.create_scope() as scope:
            ...     # Same instance within this scope
            ...     ctx1 = scope.resolve(RequestContext)
            ...     ctx2 = scope.resolve(RequestContext)
            ...     assert ctx1 is ctx2
        """
        self._throw_if_disposed()
        return ServiceScope(self)

    def dispose(self) -> None:
        """Release every disposable singleton. Safe to call more than once."""
        if self._disposed:
            return
        self._lifetime_manager.dispose()
        self._disposed = True
        logger.debug("Disposed service provider")

    def __enter__(self) -> "ServiceProvider":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.dispose()
        return False

    def start_resolution(self, scope: Optional[IServiceScope] = None) -> ResolutionContext:
        """Create the context for a resolve call made on the root (no scope) or on a scope.

        A call made from inside a factory or constructor continues the resolution that is
        building it, so cycles passing through factories are detected.
        """
        return self._circular_detector.start_resolution(scope)

    def resolve_dependency(self, service_type: Any, context: ResolutionContext) -> Any:
        """Resolve a type within an ongoing resolution.

        Used by scopes and by the constructor resolver for nested dependencies.

        Returns:
            The instance, a list for collection requests, or None when not found.
        """
        self._throw_if_disposed()

        # The provider a request was made on resolves itself
        if service_type is IServiceProvider:
            return context.scope if context.scope is not None else self
        if service_type is IServiceScopeFactory:
            return self

        element_type = collection_element_type(service_type)
        if element_type is not None:
            return [
                self._resolve_descriptor(descriptor, context)
                for descriptor in self._descriptors
                if descriptor.service_type == element_type
            ]

        descriptor = self._find_descriptor(service_type)
        if descriptor is None:
            return None
        return self._resolve_descriptor(descriptor, context)

    def _find_descriptor(self, service_type: Any) -> Optional[ServiceDescriptor]:
        try:
            descriptor = self._last_descriptors.get(service_type)
        except TypeError:
            # Unhashable request, nothing can match it
            return None
        if descriptor is not None:
            return descriptor

        if not is_closed_generic(service_type):
            return None

        with self._closed_generic_lock:
            cached = self._closed_generic_descriptors.get(service_type)
        if cached is not None:
            return cached

        return self._close_open_generic(service_type)

    def _close_open_generic(self, closed_service_type: Any) -> Optional[ServiceDescriptor]:
        """Synthesize a registration for `Handler[Order]` from an open `Handler` registration."""
        definition = get_origin(closed_service_type)
        open_descriptor = next(
            (
                descriptor
                for descriptor in reversed(self._descriptors)
                if descriptor.service_type is definition and descriptor.is_open_generic
            ),
            None,
        )
        if open_descriptor is None:
            return None

        closed_implementation_type = close_generic(open_descriptor.implementation_type, get_args(closed_service_type))
        if closed_implementation_type is None:
            return None
        if not is_assignable(closed_service_type, closed_implementation_type):
            return None

        closed_descriptor = ServiceDescriptor.describe(
            closed_service_type,
            closed_implementation_type,
            open_descriptor.lifetime,
        )
        with self._closed_generic_lock:
            # Keep the first descriptor if another thread closed the same type concurrently
            closed_descriptor = self._closed_generic_descriptors.setdefault(closed_service_type, closed_descriptor)

        logger.debug(
            "Closed open generic %s as %s",
            type_name(closed_service_type),
            type_name(closed_implementation_type),
        )
        return closed_descriptor

    def _resolve_descriptor(self, descriptor: ServiceDescriptor, context: ResolutionContext) -> Any:
        if descriptor.lifetime == Lifetime.SINGLETON:
            # Singletons are built against the root, never against the requesting scope
            context = context.model_copy(update={"scope": None})

        scoped_instances = context.scope.scoped_instances if context.scope is not None else None
        return self._lifetime_manager.get_or_create(
            descriptor,
            scoped_instances,
            lambda: self._create_instance(descriptor, context),
        )

    def _create_instance(self, descriptor: ServiceDescriptor, context: ResolutionContext) -> Any:
        kind = descriptor.implementation_kind

        if kind == ImplementationKind.INSTANCE:
            return descriptor.implementation_instance

        if kind == ImplementationKind.FACTORY:
            requester = context.scope if context.scope is not None else self
            with self._circular_detector.guard(context, descriptor.service_type, descriptor.implementation_factory):
                return descriptor.implementation_factory(requester)

        with self._circular_detector.guard(context, descriptor.service_type, descriptor.implementation_type):
            return self._resolver.create_instance(descriptor.implementation_type, self, context)

    def _validate_on_build(self) -> None:
        """Resolve every registered service once, inside a throwaway scope."""
        with self.create_scope() as scope:
            for descriptor in self._descriptors:
                if descriptor.is_open_generic:
                    continue
                try:
                    scope.resolve(descriptor.service_type)
                except Exception as e:
                    raise BuildValidationError(descriptor.service_type, e) from e

    def _throw_if_disposed(self) -> None:
        if self._disposed:
            raise ObjectDisposedError(type(self).__name__)
