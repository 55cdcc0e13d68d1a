"""Application layer - Circular dependency detection."""

import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, List, Optional, Tuple

from minicore_di.domain import ResolutionContext

# (owning thread, stack) of the resolution in progress, set while a frame is guarded.
# Copied contexts (new tasks, threads that inherit context) must not join another thread's stack.
_active_stack: ContextVar[Optional[Tuple[int, List[Tuple[Any, Any]]]]] = ContextVar("resolution_stack", default=None)


class CircularDependencyDetector:
    """Detects circular dependencies during resolution.

    The resolution stack lives in the `ResolutionContext` handed down through each
    recursive resolve call, so every top-level call (and every thread) gets its own.
    When a service or implementation type appears twice in the stack, a circular
    dependency is detected.

    Factories and constructors that call back into a provider start a new public
    resolve call. `start_resolution` attaches such calls to the stack of the
    resolution that is already running, so cycles through them are still detected.
    """

    def start_resolution(self, scope: Any = None) -> ResolutionContext:
        """Create the context for a public resolve call made on `scope` (None for the root)."""
        context = ResolutionContext(scope=scope)
        active = _active_stack.get()
        if active is not None and active[0] == threading.get_ident():
            context.stack = active[1]
        return context

    @contextmanager
    def guard(self, context: ResolutionContext, service_type: Any, implementation: Any) -> Iterator[None]:
        """Keep a registration on the resolution stack while its instance is built.

        The frame is popped whether construction succeeds or fails, so a failed
        branch never affects later resolutions.

        Args:
            context: The ongoing resolution.
            service_type: The service being built.
            implementation: The class being constructed, or the factory being called.

        Raises:
            CircularDependencyError: If the service or implementation is already being built.

        Example:
            >>> detector = CircularDependencyDetector()
            >>> with detector.guard(context, ServiceA, ServiceA):
            ...     with detector.guard(context, ServiceB, ServiceB):
            ...         with detector.guard(context, ServiceA, ServiceA):  # Raises CircularDependencyError
            ...             pass
        """
        context.push(service_type, implementation)
        token = _active_stack.set((threading.get_ident(), context.stack))
        try:
            yield
        finally:
            _active_stack.reset(token)
            context.pop()
