"""
Application layer - Use cases and orchestration.

This layer contains the registry, the resolution engine and scopes.
It depends only on the Domain layer.
"""

from .circular_detector import CircularDependencyDetector
from .lifetime_manager import LifetimeManager
from .resolver import DependencyResolver
from .service_collection import ServiceCollection
from .service_provider import ServiceProvider
from .service_scope import ServiceScope

__all__ = [
    "ServiceCollection",
    "ServiceProvider",
    "ServiceScope",
    "DependencyResolver",
    "LifetimeManager",
    "CircularDependencyDetector",
]
