"""
Testing utilities module.

Provides helpers for testing applications using minicore-di.
"""

from .utilities import MockScope, TestServiceCollection, create_mock_provider

__all__ = [
    "TestServiceCollection",
    "create_mock_provider",
    "MockScope",
]
