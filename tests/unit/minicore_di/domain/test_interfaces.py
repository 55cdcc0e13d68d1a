"""Unit tests for domain interfaces."""

import pytest

from minicore_di.domain.interfaces import (
    ILifetimeManager,
    IResolver,
    IServiceLookup,
    IServiceProvider,
    IServiceScope,
    IServiceScopeFactory,
)


class TestAbstractInterfaces:
    """Test that the interfaces cannot be instantiated directly."""

    @pytest.mark.parametrize(
        "interface",
        [IServiceProvider, IServiceScope, IServiceScopeFactory, IServiceLookup, IResolver, ILifetimeManager],
    )
    def test_interface_is_abstract(self, interface):
        """Test that instantiating an interface raises TypeError."""
        with pytest.raises(TypeError):
            interface()

    def test_scope_is_a_provider(self):
        """Test that scopes resolve like providers."""
        assert issubclass(IServiceScope, IServiceProvider)


class TestServiceScopeContextManager:
    """Test the context manager behaviour shared by scopes."""

    def test_exit_disposes(self):
        """Test that leaving the with-block disposes the scope."""

        class RecordingScope(IServiceScope):
            def __init__(self):
                self.dispose_calls = 0

            def resolve(self, service_type):
                return None

            def resolve_required(self, service_type):
                raise LookupError(service_type)

            def resolve_all(self, service_type):
                return []

            def is_service(self, service_type):
                return False

            def dispose(self):
                self.dispose_calls += 1

        scope = RecordingScope()
        with scope as entered:
            assert entered is scope
            assert scope.dispose_calls == 0

        assert scope.dispose_calls == 1

    def test_exit_does_not_swallow_exceptions(self):
        """Test that exceptions raised in the with-block propagate."""

        class MinimalScope(IServiceScope):
            def resolve(self, service_type):
                return None

            def resolve_required(self, service_type):
                raise LookupError(service_type)

            def resolve_all(self, service_type):
                return []

            def is_service(self, service_type):
                return False

            def dispose(self):
                pass

        with pytest.raises(RuntimeError):
            with MinimalScope():
                raise RuntimeError("boom")
