from typing import Any, Callable, Iterable, Iterator, List, Optional, Union, overload

from minicore_di.application.service_provider import ServiceProvider
from minicore_di.domain import (
    InvalidRegistrationError,
    IServiceProvider,
    Lifetime,
    ServiceDescriptor,
    ServiceProviderOptions,
    is_generic_definition,
)


class ServiceCollection:
    """Ordered collection of service registrations.

    Registration order is preserved: the last registration for a type wins when a
    single instance is requested, and all of them are returned, in order, when a
    collection is requested. Build it into a `ServiceProvider` once populated.

    Example:
        >>> services = ServiceCollection()
        >>> services.add_singleton(Clock, SystemClock)
        >>> services.add_open_generic(Logger, ConsoleLogger, Lifetime.SINGLETON)
        >>> services.add_transient(Job, CleanupJob)
        >>> provider = services.build_service_provider(validate_scopes=True)
    """

    def __init__(self, descriptors: Optional[Iterable[ServiceDescriptor]] = None) -> None:
        self._descriptors: List[ServiceDescriptor] = []
        for descriptor in descriptors or ():
            self.add(descriptor)

    def add(self, descriptor: ServiceDescriptor) -> "ServiceCollection":
        """Append a registration.

        Raises:
            TypeError: If the argument is not a `ServiceDescriptor`.
        """
        if not isinstance(descriptor, ServiceDescriptor):
            raise TypeError(f"Expected ServiceDescriptor, got {type(descriptor).__name__}")
        self._descriptors.append(descriptor)
        return self

    def _add(
        self,
        service_type: Any,
        implementation_type: Any,
        instance: Any,
        factory: Optional[Callable[[IServiceProvider], Any]],
        lifetime: Lifetime,
    ) -> "ServiceCollection":
        if implementation_type is None and instance is None and factory is None:
            implementation_type = service_type
        return self.add(
            ServiceDescriptor(
                service_type=service_type,
                implementation_type=implementation_type,
                implementation_instance=instance,
                implementation_factory=factory,
                lifetime=lifetime,
            )
        )

    def add_singleton(
        self,
        service_type: Any,
        implementation_type: Any = None,
        *,
        instance: Any = None,
        factory: Optional[Callable[[IServiceProvider], Any]] = None,
    ) -> "ServiceCollection":
        """Register a singleton built from a class, a precomputed instance, or a factory.

        With no implementation the service type is registered as its own implementation.

        Example:
            >>> services.add_singleton(Clock, SystemClock)
            >>> services.add_singleton(Settings, instance=Settings(debug=True))
            >>> services.add_singleton(Database, factory=lambda sp: Database(sp.resolve_required(Settings)))
        """
        return self._add(service_type, implementation_type, instance, factory, Lifetime.SINGLETON)

    def add_scoped(
        self,
        service_type: Any,
        implementation_type: Any = None,
        *,
        factory: Optional[Callable[[IServiceProvider], Any]] = None,
    ) -> "ServiceCollection":
        """Register a service created once per scope."""
        return self._add(service_type, implementation_type, None, factory, Lifetime.SCOPED)

    def add_transient(
        self,
        service_type: Any,
        implementation_type: Any = None,
        *,
        factory: Optional[Callable[[IServiceProvider], Any]] = None,
    ) -> "ServiceCollection":
        """Register a service created on every resolution."""
        return self._add(service_type, implementation_type, None, factory, Lifetime.TRANSIENT)

    def add_open_generic(
        self,
        service_type: Any,
        implementation_type: Any,
        lifetime: Union[Lifetime, str],
    ) -> "ServiceCollection":
        """Register an open generic binding such as `Handler` -> `DefaultHandler`.

        Requests for `Handler[Order]` are then satisfied by `DefaultHandler[Order]`.

        Raises:
            InvalidRegistrationError: If either type is not an unsubscripted generic class.
        """
        if not (is_generic_definition(service_type) and is_generic_definition(implementation_type)):
            raise InvalidRegistrationError(
                f"Open generic registration requires generic definitions, got {service_type!r} and "
                f"{implementation_type!r}."
            )
        return self.add(
            ServiceDescriptor(service_type=service_type, implementation_type=implementation_type, lifetime=lifetime)
        )

    def build_service_provider(
        self,
        options: Optional[ServiceProviderOptions] = None,
        **overrides: bool,
    ) -> ServiceProvider:
        """Compile the current registrations into a provider.

        Later additions to this collection do not affect the built provider.

        Args:
            options: Validation options.
            **overrides: Option fields overriding `options` (e.g. `validate_scopes=True`).

        Raises:
            BuildValidationError: If `validate_on_build` is set and a registration cannot be resolved.
        """
        if overrides:
            base = options.model_dump() if options is not None else {}
            options = ServiceProviderOptions(**{**base, **overrides})
        return ServiceProvider(self._descriptors, options)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(self._descriptors)

    @overload
    def __getitem__(self, index: int) -> ServiceDescriptor: ...

    @overload
    def __getitem__(self, index: slice) -> List[ServiceDescriptor]: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[ServiceDescriptor, List[ServiceDescriptor]]:
        return self._descriptors[index]

    def __contains__(self, service_type: object) -> bool:
        return any(descriptor.service_type == service_type for descriptor in self._descriptors)
