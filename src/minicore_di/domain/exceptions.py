from typing import Any, List, Optional, get_args, get_origin


def type_name(service_type: Any) -> str:
    """Readable name for a class or a parameterised generic alias such as `Handler[Order]`."""
    arguments = get_args(service_type)
    if get_origin(service_type) is not None and arguments:
        return f"{type_name(get_origin(service_type))}[{', '.join(type_name(argument) for argument in arguments)}]"
    return getattr(service_type, "__name__", repr(service_type))


class DIException(Exception):
    """Base exception for DI-related errors."""


class InvalidRegistrationError(DIException):
    """Raised when a service descriptor is malformed.

    This occurs when:
    - Zero or more than one implementation kind is supplied.
    - The lifetime is not a valid `Lifetime`.
    - The implementation type is not a class.
    """


class CircularDependencyError(DIException):
    """Raised when a circular dependency is detected.

    Attributes:
        dependency_chain: List of types involved in the circular dependency.
    """

    def __init__(self, dependency_chain: List[Any]) -> None:
        self.dependency_chain = dependency_chain
        message = f"Circular dependency detected: {' -> '.join([type_name(cls) for cls in dependency_chain])}"
        super().__init__(message)


class UnresolvableError(DIException):
    """Raised when a required service cannot be resolved.

    Attributes:
        cls: The type that could not be resolved.
        reason: Optional reason for the failure.
    """

    def __init__(self, cls: Any, reason: Optional[str] = None) -> None:
        self.cls = cls
        self.reason = reason
        message = f"Unable to resolve service for type: {type_name(cls)}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class NoConstructorError(DIException):
    """Raised when an implementation type exposes no usable constructor.

    Abstract classes and protocols cannot be instantiated.
    """

    def __init__(self, implementation_type: Any) -> None:
        self.implementation_type = implementation_type
        super().__init__(f"No usable constructor found for type '{type_name(implementation_type)}'.")


class NoResolvableConstructorError(DIException):
    """Raised when every constructor has at least one unsatisfiable parameter."""

    def __init__(self, implementation_type: Any) -> None:
        self.implementation_type = implementation_type
        super().__init__(f"No resolvable constructor found for type '{type_name(implementation_type)}'.")


class UnresolvedDependencyError(DIException):
    """Raised when a required constructor parameter cannot be satisfied.

    Attributes:
        service_type: The parameter's type, or None when the parameter lacks an annotation.
        parameter_name: Name of the constructor parameter.
        requesting_type: The implementation type whose constructor needs it.
    """

    def __init__(self, service_type: Any, parameter_name: str, requesting_type: Any) -> None:
        self.service_type = service_type
        self.parameter_name = parameter_name
        self.requesting_type = requesting_type
        if service_type is None:
            message = (
                f"Constructor parameter '{parameter_name}' of type '{type_name(requesting_type)}' "
                "lacks a type hint and has no default value."
            )
        else:
            message = (
                f"Unable to resolve service for type '{type_name(service_type)}' required by "
                f"constructor parameter '{parameter_name}' of type '{type_name(requesting_type)}'."
            )
        super().__init__(message)


class ActivationError(DIException):
    """Raised when a constructor or factory fails while building an instance.

    The original exception is available as `__cause__`.
    """

    def __init__(self, service_type: Any, error: Exception) -> None:
        self.service_type = service_type
        super().__init__(f"Failed to create instance of '{type_name(service_type)}': {error}")


class ScopeError(DIException):
    """Raised for invalid scope operations.

    This occurs when a scoped service is resolved from the root provider
    while scope validation is enabled.
    """


class ObjectDisposedError(DIException):
    """Raised when a disposed provider or scope is used."""

    def __init__(self, object_name: str) -> None:
        self.object_name = object_name
        super().__init__(f"Cannot access a disposed object: {object_name}")


class BuildValidationError(DIException):
    """Raised when build-time validation fails to resolve a registered service."""

    def __init__(self, service_type: Any, error: Exception) -> None:
        self.service_type = service_type
        super().__init__(f"Unable to resolve service for type '{type_name(service_type)}' during validation. {error}")
