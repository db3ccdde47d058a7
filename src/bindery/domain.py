"""Domain models used throughout the framework."""

import inspect
from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, Hashable, Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from bindery.registry import ServiceRegistry

__all__ = [
    "Registration",
    "RequestOptions",
    "ResolutionResult",
    "component_key",
    "service_name",
    "as_tags",
]


@dataclass(frozen=True)
class Registration:
    """Binds an implementation to a service on behalf of a single component.

    Attributes:
        service: The abstract service (usually an abstract class or protocol).
        implementation: The class or module implementing the service.
        tags: Labels used to pick between several implementations of the same service.
    """

    service: Any
    implementation: Any
    tags: FrozenSet[Hashable] = field(default_factory=frozenset)


@dataclass(frozen=True)
class RequestOptions:
    """Options supplied with a resolution request.

    A field left as ``None`` is absent: it neither overrides another set of
    options when merged, nor contributes anything to the request.

    Attributes:
        tags: The tags requested by the caller.
        default: The implementation to fall back to when nothing matches.
        services: The registry the strategy should consult.
    """

    tags: Optional[FrozenSet[Hashable]] = None
    default: Any = None
    services: Optional["ServiceRegistry"] = None

    @property
    def requested_tags(self) -> FrozenSet[Hashable]:
        return self.tags if self.tags is not None else frozenset()

    def merged_with(self, overrides: "RequestOptions") -> "RequestOptions":
        """Return a copy of these options with every field defined in ``overrides`` taking precedence.

        Example:
            >>> base = RequestOptions(tags=frozenset({"prod"}), default=Fallback)
            >>> base.merged_with(RequestOptions(tags=frozenset({"test"})))
            RequestOptions(tags=frozenset({'test'}), default=Fallback, services=None)
        """
        defined = {
            name: value
            for name, value in vars(overrides).items()
            if value is not None
        }
        return replace(self, **defined)


@dataclass(frozen=True)
class ResolutionResult:
    """The outcome of a single resolution.

    Attributes:
        implementation: The selected implementation.
        resolved_tags: The tags that were requested. Callers use these, together with
            the service, to key any binding they cache.
    """

    implementation: Any
    resolved_tags: FrozenSet[Hashable] = field(default_factory=frozenset)


def as_tags(tags: Optional[Iterable[Hashable]]) -> Optional[FrozenSet[Hashable]]:
    """Normalise a tag collection to a frozenset, preserving ``None`` as absent.

    A bare string is treated as a single tag rather than a sequence of characters.
    """
    if tags is None:
        return None
    if isinstance(tags, str):
        return frozenset([tags])
    return frozenset(tags)


def component_key(component: Hashable) -> Hashable:
    """Derive the registry key for a component.

    Classes, modules and functions are keyed by their dotted name so that registries
    loaded from configuration files (where components are written as strings) and
    registries built in code agree. Strings written with a ``module:Name`` separator
    are normalised to ``module.Name``. Anything else is used as is.

    Example:
        >>> component_key(UserController)        # "myapp.web.UserController"
        >>> component_key("myapp.web:UserController")  # "myapp.web.UserController"
    """
    if inspect.ismodule(component):
        return component.__name__
    if inspect.isclass(component) or inspect.isfunction(component):
        return f"{component.__module__}.{component.__qualname__}"
    if isinstance(component, str):
        return component.replace(":", ".")
    return component


def service_name(service: Any) -> str:
    return getattr(service, "__qualname__", None) or getattr(
        service, "__name__", None
    ) or str(service)
