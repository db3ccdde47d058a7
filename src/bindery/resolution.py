"""
Resolution of services into implementations.

:class:`Resolver` is the single entry point used both when a component binds its
services at definition time and when code looks an implementation up at runtime.
It merges the options given at the call site over the configuration's global
options, asks the configured strategy for an implementation, and checks that the
strategy returned a class or a module.
"""

import inspect
import logging
from pathlib import Path
from typing import Any, Callable, Hashable, Iterable, Mapping, Optional, Union

from bindery.binding import Requirement, bind_services
from bindery.config import InjectorConfig, load_config, load_config_file
from bindery.domain import (
    RequestOptions,
    ResolutionResult,
    as_tags,
    component_key,
    service_name,
)
from bindery.errors import ConfigurationError

__all__ = ["Resolver", "is_implementation"]

logger = logging.getLogger(__name__)


def is_implementation(value: Any) -> bool:
    """Whether ``value`` can be bound to a service: a class or a module."""
    return inspect.isclass(value) or inspect.ismodule(value)


class Resolver:
    """Resolves services on behalf of components using a fixed configuration.

    Resolution has no side effects and holds no mutable state, so a resolver can
    be shared freely between threads.

    Example:
        >>> resolver = Resolver(load_config_file("bindery.yaml"))
        >>> store = resolver.get_implementation(UserStore, UserController, tag="postgres")
    """

    def __init__(self, config: Optional[InjectorConfig] = None):
        self.config = config or InjectorConfig()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Resolver":
        return cls(load_config(data))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Resolver":
        return cls(load_config_file(path))

    def resolve(
        self,
        service: Any,
        component: Hashable,
        *,
        tags: Optional[Iterable[Hashable]] = None,
        tag: Optional[Hashable] = None,
        default: Any = None,
    ) -> ResolutionResult:
        """Resolve the implementation of a service for a component.

        Args:
            service: The service to resolve.
            component: The component requesting it.
            tags: Tags to select among registered implementations. Overrides any
                globally configured tags.
            tag: Shorthand for a single tag; ignored when ``tags`` is given.
            default: Implementation to use when no registration matches.

        Returns:
            The implementation and the tags it was resolved under.

        Raises:
            ConfigurationError: If the strategy does not return a class or a module.
        """
        if tags is None and tag is not None:
            tags = [tag]
        options = self.config.base_options.merged_with(
            RequestOptions(tags=as_tags(tags), default=default)
        )

        result = self.config.strategy.get_implementation(service, component, options)

        is_result = isinstance(result, ResolutionResult)
        implementation = result.implementation if is_result else result
        if not (is_result and is_implementation(implementation)):
            raise ConfigurationError(
                f"Expected a valid implementation for service `{service_name(service)}`, "
                f"got `{implementation!r}`",
                service=service,
                value=implementation,
            )

        try:
            resolved_tags = as_tags(result.resolved_tags) or frozenset()
        except TypeError as e:
            raise ConfigurationError(
                f"Expected hashable resolved tags for service `{service_name(service)}`, "
                f"got `{result.resolved_tags!r}`",
                service=service,
                value=result.resolved_tags,
            ) from e

        logger.debug(
            f"[bindery:resolve] {service_name(service)} for {component_key(component)} "
            f"-> {service_name(implementation)} (tags={sorted(map(str, resolved_tags))})"
        )
        return ResolutionResult(implementation, resolved_tags)

    def get_implementation(
        self,
        service: Any,
        component: Hashable,
        *,
        tags: Optional[Iterable[Hashable]] = None,
        tag: Optional[Hashable] = None,
        default: Any = None,
    ) -> Any:
        """Return only the implementation resolved by :meth:`resolve`."""
        return self.resolve(
            service, component, tags=tags, tag=tag, default=default
        ).implementation

    def bind(self, component: Any, *requirements: Union[Any, Requirement]) -> Any:
        """Resolve and bind services onto an existing class or module."""
        return bind_services(self, component, requirements)

    def injects(self, *requirements: Union[Any, Requirement]) -> Callable:
        """Class decorator binding each required service onto the decorated class.

        Args:
            requirements: Services, or :class:`~bindery.binding.Requirement` instances
                carrying an alias, tags or a default.

        Example:
            @resolver.injects(UserStore, Requirement(Mailer, alias="mail", tags=["smtp"]))
            class UserController:
                ...
        """

        def decorator(cls):
            return bind_services(self, cls, requirements)

        return decorator

    def __repr__(self) -> str:
        return f"Resolver({self.config.strategy!r})"
