import types

import pytest

from bindery.binding import Requirement
from bindery.config import InjectorConfig
from bindery.domain import RequestOptions
from bindery.errors import ConfigurationError
from bindery.registry import RegistryBuilder
from bindery.resolution import Resolver
from bindery.testing import MockStrategy, injected_implementation, injected_services

from example_services import (
    InMemoryUserStore,
    Mailer,
    PostgresUserStore,
    SmtpMailer,
    UserStore,
)


@pytest.fixture
def builder():
    return RegistryBuilder()


def make_resolver(builder, **config) -> Resolver:
    return Resolver(InjectorConfig(services=builder.build(), **config))


def test_bound_service_is_aliased_by_its_name(builder):
    class Controller:
        def find(self, name):
            return self.UserStore().find(name)

    builder.register(Controller, UserStore, PostgresUserStore)
    make_resolver(builder).injects(UserStore)(Controller)

    assert Controller.UserStore is PostgresUserStore
    assert Controller().find("arthur") == "postgres:arthur"
    assert injected_implementation(Controller, UserStore) is PostgresUserStore


def test_requirements_carry_alias_tags_and_default(builder):
    class Clock:
        pass

    class FixedClock(Clock):
        pass

    class Controller:
        pass

    builder.register(Controller, UserStore, PostgresUserStore, tags=["postgres"])
    builder.register(Controller, UserStore, InMemoryUserStore, tags=["memory"])
    builder.register(Controller, Mailer, SmtpMailer, tags=["smtp"])
    make_resolver(builder).injects(
        Requirement(UserStore, alias="store", tags=["memory"]),
        Requirement(Mailer, alias="mail", tags="smtp"),
        Requirement(Clock, alias="clock", default=FixedClock),
    )(Controller)

    assert Controller.store is InMemoryUserStore
    assert Controller.mail is SmtpMailer
    assert Controller.clock is FixedClock
    assert dict(injected_services(Controller)) == {
        (UserStore, frozenset({"memory"})): InMemoryUserStore,
        (Mailer, frozenset({"smtp"})): SmtpMailer,
        (Clock, frozenset()): FixedClock,
    }


def test_same_service_with_different_tags_binds_separately(builder):
    class Controller:
        pass

    builder.register(Controller, UserStore, PostgresUserStore, tags=["postgres"])
    builder.register(Controller, UserStore, InMemoryUserStore, tags=["memory"])
    make_resolver(builder).injects(
        Requirement(UserStore, alias="durable", tags=["postgres"]),
        Requirement(UserStore, alias="volatile", tags=["memory"]),
    )(Controller)

    assert injected_implementation(Controller, UserStore, ["postgres"]) is PostgresUserStore
    assert injected_implementation(Controller, UserStore, ["memory"]) is InMemoryUserStore


def test_global_tags_are_part_of_the_binding_key(builder):
    class Controller:
        pass

    builder.register(Controller, UserStore, InMemoryUserStore, tags=["test"])
    resolver = make_resolver(builder, options=RequestOptions(tags=frozenset({"test"})))
    resolver.injects(UserStore)(Controller)

    assert injected_implementation(Controller, UserStore, {"test"}) is InMemoryUserStore


def test_bindings_accumulate(builder):
    resolver = make_resolver(builder)

    @resolver.injects(Mailer)
    @resolver.injects(UserStore)
    class Controller:
        pass

    assert set(injected_services(Controller)) == {
        (UserStore, frozenset()),
        (Mailer, frozenset()),
    }


def test_missing_binding_raises_lookup_error(builder):
    resolver = make_resolver(builder)

    @resolver.injects(UserStore)
    class Controller:
        pass

    with pytest.raises(LookupError, match="no binding for service `Mailer`"):
        injected_implementation(Controller, Mailer)
    with pytest.raises(LookupError):
        injected_implementation(Controller, UserStore, ["postgres"])


def test_unbound_component_has_no_bindings():
    class Controller:
        pass

    assert dict(injected_services(Controller)) == {}


def test_bindings_are_read_only(builder):
    resolver = make_resolver(builder)

    @resolver.injects(UserStore)
    class Controller:
        pass

    with pytest.raises(TypeError):
        injected_services(Controller)[(Mailer, frozenset())] = SmtpMailer


def test_bind_onto_module(builder):
    builder.register("plugin", UserStore, PostgresUserStore)
    resolver = make_resolver(builder)
    module = types.ModuleType("plugin")

    resolver.bind(module, Requirement(UserStore, alias="store"))

    assert module.store is PostgresUserStore
    assert injected_implementation(module, UserStore) is PostgresUserStore


def test_failed_requirement_leaves_component_unbound(builder):
    builder.register("plugin", UserStore, PostgresUserStore)
    resolver = make_resolver(builder)
    module = types.ModuleType("plugin")

    with pytest.raises(ConfigurationError):
        resolver.bind(
            module,
            Requirement(UserStore, alias="store"),
            Requirement("user_store", alias="broken"),
        )

    assert not hasattr(module, "store")
    assert not hasattr(module, "broken")
    assert dict(injected_services(module)) == {}


def test_failed_requirement_keeps_earlier_bindings(builder):
    class Controller:
        pass

    builder.register(Controller, UserStore, PostgresUserStore)
    resolver = make_resolver(builder)
    resolver.injects(UserStore)(Controller)

    with pytest.raises(ConfigurationError):
        resolver.injects(Requirement(Mailer, alias="mail"), Requirement("user_store", alias="broken"))(
            Controller
        )

    assert not hasattr(Controller, "mail")
    assert dict(injected_services(Controller)) == {(UserStore, frozenset()): PostgresUserStore}


def test_unnamed_service_needs_an_alias(builder):
    class Controller:
        pass

    builder.register(Controller, "user_store", PostgresUserStore)
    resolver = make_resolver(builder)

    with pytest.raises(ConfigurationError, match="must be given an alias"):
        resolver.injects("user_store")(Controller)


def test_invalid_resolution_fails_at_definition_time(builder):
    resolver = make_resolver(builder)

    with pytest.raises(ConfigurationError, match="service `user_store`"):

        @resolver.injects(Requirement("user_store", alias="store"))
        class Controller:
            pass


def test_mock_strategy_binds_distinct_doubles_per_component():
    resolver = Resolver(InjectorConfig(strategy=MockStrategy()))

    @resolver.injects(UserStore)
    class First:
        pass

    @resolver.injects(UserStore)
    class Second:
        pass

    first = injected_implementation(First, UserStore)
    second = injected_implementation(Second, UserStore)
    assert first is not second
    assert issubclass(first, UserStore)
