"""
minicore-di: Dependency injection container with constructor auto-wiring, scopes and open generics.

Public API exports for the minicore-di package.
"""

# Application exports
from minicore_di.application.service_collection import ServiceCollection
from minicore_di.application.service_provider import ServiceProvider
from minicore_di.application.service_scope import ServiceScope

# Domain exports
from minicore_di.domain.enums import ImplementationKind, Lifetime
from minicore_di.domain.exceptions import (
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
from minicore_di.domain.interfaces import IServiceProvider, IServiceScope, IServiceScopeFactory
from minicore_di.domain.models import ServiceDescriptor, ServiceProviderOptions

__version__ = "0.1.0"

__all__ = [
    # Container
    "ServiceCollection",
    "ServiceProvider",
    "ServiceScope",
    "ServiceDescriptor",
    "ServiceProviderOptions",
    # Interfaces
    "IServiceProvider",
    "IServiceScope",
    "IServiceScopeFactory",
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
]
