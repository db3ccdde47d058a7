"""
Static bindings: resolve a component's services once and keep the results on it.

A component declares the services it needs when it is defined. Each one is resolved
once, exposed as an attribute of the component under an alias, and recorded in the
component's ``__injected_services__`` mapping, keyed by service and resolved tags:

    >>> @resolver.injects(UserStore, Requirement(Mailer, alias="mail", tags=["smtp"]))
    ... class UserController:
    ...     def register(self, name):
    ...         self.UserStore().add(name)
    ...         self.mail().send(name, "Welcome!")
    >>> injected_implementation(UserController, Mailer, ["smtp"])
    <class 'myapp.mail.SmtpMailer'>
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, FrozenSet, Hashable, Iterable, Mapping, Optional, TYPE_CHECKING

from bindery.domain import as_tags, component_key, service_name
from bindery.errors import ConfigurationError

if TYPE_CHECKING:
    from bindery.resolution import Resolver

__all__ = [
    "Requirement",
    "bind_services",
    "injected_services",
    "injected_implementation",
]

logger = logging.getLogger(__name__)

INJECTED_SERVICES = "__injected_services__"

BindingKey = tuple[Any, FrozenSet[Hashable]]


@dataclass(frozen=True)
class Requirement:
    """A service a component depends on.

    Attributes:
        service: The service to resolve.
        alias: The attribute name the implementation is exposed under. Defaults to
            the service's own name.
        tags: Tags to resolve the service with. When omitted, the resolver's global
            tags apply.
        default: Implementation to use when no registration matches.
    """

    service: Any
    alias: Optional[str] = None
    tags: Optional[FrozenSet[Hashable]] = None
    default: Any = None

    def __post_init__(self):
        object.__setattr__(self, "tags", as_tags(self.tags))

    @property
    def attribute_name(self) -> str:
        if self.alias:
            return self.alias
        name = getattr(self.service, "__name__", None)
        if not name:
            raise ConfigurationError(
                f"Service `{self.service!r}` has no name, so it must be given an alias",
                service=self.service,
            )
        return name


def _as_requirement(requirement: Any) -> Requirement:
    return requirement if isinstance(requirement, Requirement) else Requirement(requirement)


def bind_services(resolver: "Resolver", component: Any, requirements: Iterable[Any]) -> Any:
    """Resolve each requirement for ``component`` and bind the results onto it.

    Args:
        resolver: The resolver used for every requirement.
        component: The class or module receiving the bindings.
        requirements: Services, or :class:`Requirement` instances.

    Returns:
        The component, with an attribute per requirement and an updated
        ``__injected_services__`` mapping.

    Raises:
        ConfigurationError: If any requirement cannot be resolved to a valid implementation.
    """
    bindings: dict[BindingKey, Any] = dict(vars(component).get(INJECTED_SERVICES, {}))
    aliases: list[tuple[str, Any]] = []

    # Nothing is set on the component until every requirement has resolved.
    for requirement in map(_as_requirement, requirements):
        result = resolver.resolve(
            requirement.service,
            component,
            tags=requirement.tags,
            default=requirement.default,
        )
        bindings[(requirement.service, result.resolved_tags)] = result.implementation
        aliases.append((requirement.attribute_name, result.implementation))

    for alias, implementation in aliases:
        setattr(component, alias, implementation)
        logger.debug(
            f"[bindery:bind] {component_key(component)}.{alias} "
            f"-> {service_name(implementation)}"
        )
    setattr(component, INJECTED_SERVICES, MappingProxyType(bindings))
    return component


def injected_services(component: Any) -> Mapping[BindingKey, Any]:
    """Return the bindings recorded on a component, keyed by ``(service, tags)``."""
    return vars(component).get(INJECTED_SERVICES, MappingProxyType({}))


def injected_implementation(
    component: Any, service: Any, tags: Iterable[Hashable] = ()
) -> Any:
    """Look up the implementation bound to a component for a service and tag set.

    Raises:
        LookupError: If the component holds no such binding.
    """
    key = (service, as_tags(tags) or frozenset())
    try:
        return injected_services(component)[key]
    except KeyError:
        raise LookupError(
            f"{component_key(component)} has no binding for service "
            f"`{service_name(service)}` with tags {sorted(map(str, key[1]))}"
        ) from None
