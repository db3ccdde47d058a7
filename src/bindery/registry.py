"""Registration and lookup of service implementations per component."""

import logging
from collections import defaultdict
from typing import Any, Callable, Hashable, Iterable, Mapping, Optional

from bindery.domain import Registration, as_tags, component_key
from bindery.errors import ConfigurationError

__all__ = [
    "Registration",
    "ServiceRegistry",
    "RegistryBuilder",
]

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Immutable table of the implementations registered for each component.

    A registry is built once, typically when configuration is loaded, and is
    read-only thereafter. Lookups for components with nothing registered simply
    yield no registrations.
    """

    def __init__(self, entries: Optional[Mapping[Hashable, Iterable[Registration]]] = None):
        self._entries: dict[Hashable, tuple[Registration, ...]] = {}
        for component, registrations in (entries or {}).items():
            key = component_key(component)
            self._entries[key] = self._entries.get(key, ()) + tuple(registrations)

    def lookup(self, component: Hashable) -> list[Registration]:
        """Retrieve the registrations filed under a component, in registration order.

        Args:
            component: The component requesting a service.

        Returns:
            The component's registrations, or an empty list if it has none.
        """
        return list(self._entries.get(component_key(component), ()))

    def components(self) -> list[Hashable]:
        return list(self._entries)

    def __contains__(self, component: Hashable) -> bool:
        return component_key(component) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ServiceRegistry({len(self)} components)"

    @classmethod
    def from_mapping(cls, services: Mapping[Hashable, Iterable[Mapping[str, Any]]]) -> "ServiceRegistry":
        """Build a registry from plain configuration data.

        Args:
            services: Mapping of component to a list of entries, each holding a
                ``service``, an ``impl`` and optionally ``tags``.

        Raises:
            ConfigurationError: If an entry lacks a service or an implementation.

        Example:
            >>> ServiceRegistry.from_mapping({
            ...     UserController: [
            ...         {"service": UserStore, "impl": PostgresUserStore, "tags": ["postgres"]},
            ...         {"service": UserStore, "impl": InMemoryUserStore, "tags": ["memory"]},
            ...     ]
            ... })
        """
        builder = RegistryBuilder()
        for component, entries in services.items():
            for entry in entries or []:
                missing = {"service", "impl"} - set(entry)
                if missing:
                    raise ConfigurationError(
                        f"Registration {entry!r} for component {component_key(component)!r} "
                        f"is missing {sorted(missing)}"
                    )
                builder.register(
                    component, entry["service"], entry["impl"], entry.get("tags") or ()
                )
        return builder.build()


class RegistryBuilder:
    """Collects registrations before freezing them into a :class:`ServiceRegistry`."""

    def __init__(self):
        self._registrations: dict[Hashable, list[Registration]] = defaultdict(list)

    def register(
        self,
        component: Hashable,
        service: Any,
        implementation: Any,
        tags: Iterable[Hashable] = (),
    ) -> Registration:
        """Register an implementation of a service for a component.

        Args:
            component: The component that will request the service.
            service: The service being implemented.
            implementation: The class or module implementing it.
            tags: Optional tags distinguishing this implementation from others.

        Returns:
            The new :class:`Registration`.
        """
        registration = Registration(service, implementation, as_tags(tags) or frozenset())
        self._registrations[component_key(component)].append(registration)
        return registration

    def implements(
        self,
        service: Any,
        component: Hashable,
        tags: Iterable[Hashable] = (),
    ) -> Callable:
        """Decorator to register a class as an implementation of a service.

        Args:
            service: The service the decorated class implements.
            component: The component the implementation is registered for.
            tags: Optional tags for contextual selection.

        Returns:
            A decorator that registers the class and returns it unchanged.

        Example:
            @builder.implements(UserStore, UserController, tags=["postgres"])
            class PostgresUserStore(UserStore):
                ...
        """

        def decorator(implementation):
            self.register(component, service, implementation, tags)
            return implementation

        return decorator

    def build(self) -> ServiceRegistry:
        registry = ServiceRegistry(self._registrations)
        logger.debug(f"[bindery:registry] Built registry with {len(registry)} components")
        return registry
