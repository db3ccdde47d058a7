"""
Test support: a strategy that binds every service to a fresh test double, and
helpers for inspecting the implementations bound into a component.

Configure the resolver used under test with :class:`MockStrategy` and each service
resolution yields a new class named ``<Service>Mock<n>``. The class subclasses the
service, and every public method is replaced by a ``unittest.mock`` autospec that
checks call signatures against the service's own:

    >>> resolver = Resolver(InjectorConfig(strategy=MockStrategy()))
    >>> store = resolver.get_implementation(UserStore, UserController)
    >>> store.find.mock.return_value = User("arthur")
    >>> store().find("arthur")
    User(name='arthur')
    >>> store.find.assert_called_once()

No two resolutions ever share a double, even for the same service, so tests
cannot leak expectations into each other.
"""

import inspect
import itertools
import logging
import threading
from typing import Any, Hashable
from unittest.mock import PropertyMock, create_autospec

from bindery.binding import injected_implementation, injected_services
from bindery.domain import RequestOptions, ResolutionResult, service_name
from bindery.errors import ConfigurationError

__all__ = [
    "MockStrategy",
    "make_mock",
    "injected_implementation",
    "injected_services",
]

logger = logging.getLogger(__name__)

_mock_ids = itertools.count(1)
_mock_ids_lock = threading.Lock()


def _next_mock_id() -> int:
    with _mock_ids_lock:
        return next(_mock_ids)


def make_mock(service: Any) -> type:
    """Create a uniquely named test double class for a service.

    Args:
        service: The service class (abstract class or protocol) to imitate.

    Returns:
        A new subclass of ``service`` whose public methods are autospecced mocks and
        whose properties are ``PropertyMock`` instances.

    Raises:
        ConfigurationError: If ``service`` is not a class.
    """
    if not inspect.isclass(service):
        raise ConfigurationError(
            f"Cannot create a test double for `{service!r}`: services must be classes",
            service=service,
            value=service,
        )

    name = f"{service.__name__}Mock{_next_mock_id()}"
    namespace = {
        attribute: _autospec(value)
        for attribute, value in _public_members(service)
    }
    namespace["__module__"] = service.__module__
    namespace["__qualname__"] = name

    mock = type(service)(name, (service,), namespace)
    logger.debug(f"[bindery:mock] Created {name} for {service_name(service)}")
    return mock


def _public_members(service: type):
    for attribute in dir(service):
        if attribute.startswith("_"):
            continue
        value = inspect.getattr_static(service, attribute)
        if isinstance(value, (staticmethod, classmethod, property)) or callable(value):
            yield attribute, value


def _autospec(value: Any) -> Any:
    if isinstance(value, staticmethod):
        return staticmethod(create_autospec(value.__func__))
    if isinstance(value, classmethod):
        return classmethod(create_autospec(value.__func__))
    if isinstance(value, property):
        return PropertyMock()
    return create_autospec(value)


class MockStrategy:
    """Resolves every service to a fresh test double, ignoring any registrations."""

    def get_implementation(
        self, service: Any, component: Hashable, options: RequestOptions
    ) -> ResolutionResult:
        return ResolutionResult(make_mock(service), frozenset())

    def __repr__(self) -> str:
        return "MockStrategy()"
