"""
FastAPI integration module.

Provides helpers for opening one service scope per request and resolving
services in FastAPI dependencies.
"""

from .integration import (
    ScopedServiceMiddleware,
    create_fastapi_dependency,
    create_scoped_dependency,
    get_request_scope,
)

__all__ = [
    "create_fastapi_dependency",
    "create_scoped_dependency",
    "get_request_scope",
    "ScopedServiceMiddleware",
]
