"""
Domain layer - Core business logic and models.

This layer contains the fundamental rules and models for dependency injection.
It has no dependencies on other layers.
"""

from .enums import ImplementationKind, Lifetime
from .exceptions import (
    ActivationError,
    BuildValidationError,
    CircularDependencyError,
    DIException,
    InvalidRegistrationError,
    NoConstructorError,
    NoResolvableConstructorError,
    ObjectDisposedError,
    ScopeError,
    UnresolvableError,
    UnresolvedDependencyError,
)
from .interfaces import (
    ILifetimeManager,
    IResolver,
    IServiceLookup,
    IServiceProvider,
    IServiceScope,
    IServiceScopeFactory,
)
from .models import ResolutionContext, ServiceDescriptor, ServiceProviderOptions, is_generic_definition

__all__ = [
    # Enums
    "Lifetime",
    "ImplementationKind",
    # Exceptions
    "DIException",
    "InvalidRegistrationError",
    "CircularDependencyError",
    "UnresolvableError",
    "NoConstructorError",
    "NoResolvableConstructorError",
    "UnresolvedDependencyError",
    "ActivationError",
    "ScopeError",
    "ObjectDisposedError",
    "BuildValidationError",
    # Interfaces
    "IServiceProvider",
    "IServiceScope",
    "IServiceScopeFactory",
    "IServiceLookup",
    "IResolver",
    "ILifetimeManager",
    # Models
    "ServiceDescriptor",
    "ServiceProviderOptions",
    "ResolutionContext",
    "is_generic_definition",
]
