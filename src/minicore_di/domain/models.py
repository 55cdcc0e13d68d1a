import inspect
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple, get_origin

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from minicore_di.domain.enums import ImplementationKind, Lifetime
from minicore_di.domain.exceptions import CircularDependencyError, InvalidRegistrationError

if TYPE_CHECKING:
    from minicore_di.domain.interfaces import IServiceProvider


def is_generic_definition(service_type: Any) -> bool:
    """Return whether the type is an unsubscripted generic class such as `Handler`."""
    return inspect.isclass(service_type) and bool(getattr(service_type, "__parameters__", ()))


class ServiceDescriptor(BaseModel):
    """Value object describing one service-type to implementation binding.

    Exactly one of `implementation_type`, `implementation_instance` and
    `implementation_factory` must be supplied.

    Attributes:
        service_type: The type callers request.
        implementation_type: Class constructed through constructor injection.
        implementation_instance: Precomputed object returned as-is.
        implementation_factory: Callable receiving the requesting provider.
        lifetime: How long the built instance should live.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    service_type: Any = Field(..., description="The service type callers request.")
    implementation_type: Optional[Any] = Field(
        default=None, description="The class to construct for the service."
    )
    implementation_instance: Optional[Any] = Field(
        default=None, description="A precomputed instance of the service."
    )
    implementation_factory: Optional[Callable[..., Any]] = Field(
        default=None, description="Factory receiving the requesting provider and returning an instance."
    )
    lifetime: Lifetime = Field(..., description="The lifetime of the registered service.")

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidRegistrationError(f"Invalid service registration: {e}") from e

    @model_validator(mode="after")
    def _check_single_implementation(self) -> "ServiceDescriptor":
        supplied = [
            value
            for value in (self.implementation_type, self.implementation_instance, self.implementation_factory)
            if value is not None
        ]
        if len(supplied) != 1:
            raise InvalidRegistrationError(
                "Exactly one of implementation_type, implementation_instance, "
                "or implementation_factory must be provided."
            )
        if self.service_type is None:
            raise InvalidRegistrationError("A service type is required.")
        if self.implementation_type is not None and not (
            inspect.isclass(self.implementation_type) or get_origin(self.implementation_type) is not None
        ):
            raise InvalidRegistrationError(f"Implementation type {self.implementation_type!r} is not a class.")
        return self

    @property
    def implementation_kind(self) -> ImplementationKind:
        if self.implementation_type is not None:
            return ImplementationKind.TYPE
        if self.implementation_instance is not None:
            return ImplementationKind.INSTANCE
        return ImplementationKind.FACTORY

    @property
    def is_open_generic(self) -> bool:
        """Whether both the service and the implementation are unbound generic definitions."""
        return is_generic_definition(self.service_type) and is_generic_definition(self.implementation_type)

    @classmethod
    def describe(cls, service_type: Any, implementation_type: Any, lifetime: Lifetime) -> "ServiceDescriptor":
        return cls(service_type=service_type, implementation_type=implementation_type, lifetime=lifetime)

    @classmethod
    def describe_instance(cls, service_type: Any, instance: Any, lifetime: Lifetime) -> "ServiceDescriptor":
        return cls(service_type=service_type, implementation_instance=instance, lifetime=lifetime)

    @classmethod
    def describe_factory(
        cls, service_type: Any, factory: Callable[["IServiceProvider"], Any], lifetime: Lifetime
    ) -> "ServiceDescriptor":
        return cls(service_type=service_type, implementation_factory=factory, lifetime=lifetime)

    @classmethod
    def singleton(cls, service_type: Any, implementation_type: Any) -> "ServiceDescriptor":
        return cls.describe(service_type, implementation_type, Lifetime.SINGLETON)

    @classmethod
    def singleton_instance(cls, service_type: Any, instance: Any) -> "ServiceDescriptor":
        return cls.describe_instance(service_type, instance, Lifetime.SINGLETON)

    @classmethod
    def scoped(cls, service_type: Any, implementation_type: Any) -> "ServiceDescriptor":
        return cls.describe(service_type, implementation_type, Lifetime.SCOPED)

    @classmethod
    def transient(cls, service_type: Any, implementation_type: Any) -> "ServiceDescriptor":
        return cls.describe(service_type, implementation_type, Lifetime.TRANSIENT)


class ServiceProviderOptions(BaseModel):
    """Options controlling validation performed by the service provider.

    Attributes:
        validate_scopes: Reject scoped services resolved from the root provider.
        validate_on_build: Resolve every registered service once while building.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    validate_scopes: bool = Field(
        default=False,
        description="Fail when a scoped service is resolved from the root provider.",
    )
    validate_on_build: bool = Field(
        default=False,
        description="Resolve every registration once while building the provider.",
    )


class ResolutionContext(BaseModel):
    """Tracks one resolution call chain.

    Created per top-level resolve call and passed explicitly through the recursion,
    so concurrent resolutions never share it.

    Attributes:
        scope: The scope the call runs in, or None at the root provider.
        stack: (service type, implementation type) pairs currently being constructed.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    scope: Optional[Any] = Field(default=None, description="The scope the resolution runs in.")
    stack: List[Tuple[Any, Any]] = Field(
        default_factory=list,
        description="Stack of types currently being constructed.",
    )

    def push(self, service_type: Any, implementation_type: Any) -> None:
        """Add a construction frame to the resolution stack.

        Args:
            service_type: The service being built.
            implementation_type: The class being constructed for it.

        Raises:
            CircularDependencyError: If either type is already being constructed.
        """
        for index, frame in enumerate(self.stack):
            if service_type in frame or implementation_type in frame:
                cycle = [entry[0] for entry in self.stack[index:]] + [service_type]
                raise CircularDependencyError(cycle)
        self.stack.append((service_type, implementation_type))

    def pop(self) -> None:
        """Remove the last (most recent) frame from the stack."""
        if self.stack:
            self.stack.pop()
