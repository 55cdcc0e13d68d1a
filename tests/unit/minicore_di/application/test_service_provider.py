"""Unit tests for ServiceProvider."""

import logging
from typing import Generic, Iterable, List, Sequence, TypeVar

import pytest
from pydantic import ValidationError

from minicore_di import (
    ActivationError,
    BuildValidationError,
    IServiceProvider,
    IServiceScopeFactory,
    ObjectDisposedError,
    ScopeError,
    ServiceCollection,
    ServiceDescriptor,
    ServiceProvider,
    ServiceProviderOptions,
    UnresolvableError,
    UnresolvedDependencyError,
)

T = TypeVar("T")


class Clock:
    pass


class SystemClock(Clock):
    pass


class FakeClock(Clock):
    pass


class Scheduler:
    def __init__(self, clock: Clock):
        self.clock = clock


class Connection:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class Repository(Generic[T]):
    pass


class SqlRepository(Repository[T]):
    pass


class Broken:
    def __init__(self):
        raise ValueError("cannot start")


class TestProviderBuild:
    """Test cases for provider construction."""

    def test_provider_implements_interfaces(self):
        """Test that the provider is both a provider and a scope factory."""
        provider = ServiceProvider([])

        assert isinstance(provider, IServiceProvider)
        assert isinstance(provider, IServiceScopeFactory)

    def test_default_options(self):
        """Test that validation is off by default."""
        provider = ServiceProvider([])

        assert provider.options.validate_scopes is False
        assert provider.options.validate_on_build is False

    def test_build_logs_registration_count(self, caplog):
        """Test that building logs a debug summary."""
        with caplog.at_level(logging.DEBUG, logger="minicore_di.application.service_provider"):
            ServiceProvider([ServiceDescriptor.singleton(Clock, SystemClock)])

        assert "Built service provider with 1 registrations" in caplog.text

    def test_validate_on_build_reports_unresolvable_registration(self):
        """Test that build-time validation surfaces missing dependencies."""
        services = ServiceCollection().add_transient(Scheduler)

        with pytest.raises(BuildValidationError, match="Scheduler") as exc_info:
            services.build_service_provider(validate_on_build=True)

        assert isinstance(exc_info.value.__cause__, UnresolvedDependencyError)

    def test_validate_on_build_accepts_valid_registrations(self):
        """Test that valid registrations, scoped ones included, pass validation."""
        services = (
            ServiceCollection()
            .add_singleton(Clock, SystemClock)
            .add_scoped(Scheduler)
            .add_open_generic(Repository, SqlRepository, "transient")
        )

        provider = services.build_service_provider(validate_on_build=True, validate_scopes=True)

        assert provider.resolve(Clock) is not None

    def test_validate_on_build_does_not_keep_scoped_instances(self):
        """Test that validation disposes the scoped instances it built."""
        connections = []

        def factory(provider):
            connection = Connection()
            connections.append(connection)
            return connection

        ServiceCollection().add_scoped(Connection, factory=factory).build_service_provider(validate_on_build=True)

        assert len(connections) == 1
        assert connections[0].closed is True


class TestResolve:
    """Test cases for resolve and resolve_required."""

    def test_unregistered_returns_none(self):
        """Test that resolve returns None for unknown types."""
        assert ServiceProvider([]).resolve(Clock) is None

    def test_resolve_required_raises_for_unregistered(self):
        """Test that resolve_required fails for unknown types."""
        with pytest.raises(UnresolvableError, match="Clock"):
            ServiceProvider([]).resolve_required(Clock)

    def test_last_registration_wins(self):
        """Test that single resolution uses the latest registration."""
        services = ServiceCollection().add_singleton(Clock, SystemClock).add_singleton(Clock, FakeClock)

        assert isinstance(services.build_service_provider().resolve(Clock), FakeClock)

    def test_instance_registration_returned_as_is(self):
        """Test that instance registrations are returned unchanged."""
        clock = FakeClock()
        provider = ServiceCollection().add_singleton(Clock, instance=clock).build_service_provider()

        assert provider.resolve(Clock) is clock

    def test_factory_receives_requesting_provider(self):
        """Test that factories receive the provider that made the request."""
        received = []

        def factory(provider):
            received.append(provider)
            return SystemClock()

        provider = ServiceCollection().add_transient(Clock, factory=factory).build_service_provider()
        provider.resolve(Clock)

        assert received == [provider]

    def test_constructor_injection(self):
        """Test that constructor dependencies are resolved."""
        provider = (
            ServiceCollection().add_singleton(Clock, SystemClock).add_transient(Scheduler).build_service_provider()
        )

        scheduler = provider.resolve(Scheduler)

        assert scheduler.clock is provider.resolve(Clock)

    def test_constructor_error_wrapped(self):
        """Test that constructor failures surface as ActivationError."""
        provider = ServiceCollection().add_transient(Broken).build_service_provider()

        with pytest.raises(ActivationError, match="cannot start"):
            provider.resolve(Broken)

    def test_unhashable_request_returns_none(self):
        """Test that unhashable service types resolve to nothing."""
        assert ServiceProvider([]).resolve([Clock]) is None


class TestSpecialServices:
    """Test cases for the provider resolving itself."""

    def test_provider_resolves_itself(self):
        """Test that IServiceProvider resolves to the root when asked at the root."""
        provider = ServiceProvider([])

        assert provider.resolve(IServiceProvider) is provider

    def test_scope_factory_resolves_to_root(self):
        """Test that IServiceScopeFactory resolves to the root provider."""
        provider = ServiceProvider([])

        assert provider.resolve(IServiceScopeFactory) is provider

    def test_special_services_are_services(self):
        """Test that is_service reports the built-in services."""
        provider = ServiceProvider([])

        assert provider.is_service(IServiceProvider)
        assert provider.is_service(IServiceScopeFactory)


class TestCollections:
    """Test cases for resolving every registration of a type."""

    def test_resolve_all_in_registration_order(self):
        """Test that resolve_all returns each registration in order."""
        services = ServiceCollection().add_transient(Clock, SystemClock).add_transient(Clock, FakeClock)

        clocks = services.build_service_provider().resolve_all(Clock)

        assert [type(clock) for clock in clocks] == [SystemClock, FakeClock]

    def test_resolve_all_empty_for_unregistered(self):
        """Test that an unregistered type yields an empty list."""
        assert ServiceProvider([]).resolve_all(Clock) == []

    @pytest.mark.parametrize("collection_type", [List, Iterable, Sequence])
    def test_collection_request_forms(self, collection_type):
        """Test that the supported collection forms all return a list."""
        provider = ServiceCollection().add_singleton(Clock, SystemClock).build_service_provider()

        result = provider.resolve(collection_type[Clock])

        assert isinstance(result, list)
        assert len(result) == 1

    def test_collection_members_are_distinct_singletons(self):
        """Test that each singleton registration keeps its own instance."""
        services = ServiceCollection().add_singleton(Clock, SystemClock).add_singleton(Clock, SystemClock)
        provider = services.build_service_provider()

        first, second = provider.resolve_all(Clock)

        assert first is not second
        assert provider.resolve(Clock) is second

    def test_collection_is_always_a_service(self):
        """Test that collection requests are always resolvable."""
        assert ServiceProvider([]).is_service(List[Clock])


class TestIsService:
    """Test cases for is_service."""

    def test_registered_type(self):
        """Test that registered types are services."""
        provider = ServiceCollection().add_singleton(Clock, SystemClock).build_service_provider()

        assert provider.is_service(Clock)
        assert not provider.is_service(Scheduler)

    def test_is_service_does_not_construct(self):
        """Test that is_service never builds an instance."""
        calls = []
        provider = (
            ServiceCollection().add_singleton(Clock, factory=lambda sp: calls.append(1)).build_service_provider()
        )

        assert provider.is_service(Clock)
        assert calls == []

    def test_closable_open_generic(self):
        """Test that closed requests satisfiable from an open registration are services."""
        provider = (
            ServiceCollection().add_open_generic(Repository, SqlRepository, "scoped").build_service_provider()
        )

        assert provider.is_service(Repository[Clock])
        assert not provider.is_service(SqlRepository[Clock])


class TestScopeValidation:
    """Test cases for scoped services requested at the root."""

    def test_scoped_at_root_rejected_when_validating(self):
        """Test that scope validation raises ScopeError."""
        provider = ServiceCollection().add_scoped(Clock, SystemClock).build_service_provider(validate_scopes=True)

        with pytest.raises(ScopeError):
            provider.resolve(Clock)

    def test_scoped_at_root_allowed_without_validation(self):
        """Test the uncached fallback when validation is off."""
        provider = ServiceCollection().add_scoped(Clock, SystemClock).build_service_provider()

        assert provider.resolve(Clock) is not provider.resolve(Clock)


class TestDisposal:
    """Test cases for provider disposal."""

    def test_dispose_closes_singletons(self):
        """Test that disposable singletons are closed."""
        provider = ServiceCollection().add_singleton(Connection).build_service_provider()
        connection = provider.resolve(Connection)

        provider.dispose()

        assert connection.closed is True
        assert provider.is_disposed is True

    def test_dispose_is_idempotent(self):
        """Test that a second dispose has no effect."""
        provider = ServiceProvider([])

        provider.dispose()
        provider.dispose()

        assert provider.is_disposed

    def test_disposed_provider_rejects_use(self):
        """Test that a disposed provider refuses resolution and scope creation."""
        provider = ServiceProvider([])
        provider.dispose()

        with pytest.raises(ObjectDisposedError, match="ServiceProvider"):
            provider.resolve(Clock)
        with pytest.raises(ObjectDisposedError):
            provider.create_scope()

    def test_disposed_provider_rejects_is_service(self):
        """Test that a disposed provider refuses capability queries too."""
        provider = ServiceCollection().add_singleton(Clock, SystemClock).build_service_provider()
        provider.dispose()

        with pytest.raises(ObjectDisposedError):
            provider.is_service(Clock)

    def test_context_manager_disposes(self):
        """Test that leaving the with block disposes the provider."""
        with ServiceCollection().add_singleton(Connection).build_service_provider() as provider:
            connection = provider.resolve(Connection)

        assert connection.closed is True
        assert provider.is_disposed

    def test_options_object_is_frozen(self):
        """Test that options cannot be changed after the provider is built."""
        provider = ServiceProvider([], ServiceProviderOptions(validate_scopes=True))

        with pytest.raises(ValidationError):
            provider.options.validate_scopes = False
