"""
Process-wide resolver configuration.

Configuration is loaded once at process start into an immutable
:class:`InjectorConfig` and handed to a :class:`~bindery.resolution.Resolver`.
It can be built in code, from plain data, or from a YAML file:

    strategy: ranking            # or "mock", or "package.module:StrategyClass"
    tags: [prod]                 # optional tags applied to every request
    default: myapp.stores:NullStore
    services:
      myapp.web:UserController:
        - service: myapp.stores:UserStore
          impl: myapp.stores:PostgresUserStore
          tags: [postgres, prod]
        - service: myapp.stores:UserStore
          impl: myapp.stores:InMemoryUserStore
          tags: [memory, test]

Services, implementations, defaults and strategies written as strings are imported.
Components are only ever used as lookup keys, so they stay as dotted names and are
not imported.
"""

import importlib
import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from bindery.domain import RequestOptions, as_tags
from bindery.errors import ConfigurationError
from bindery.registry import ServiceRegistry
from bindery.strategy import Strategy, TagRankingStrategy
from bindery.testing import MockStrategy

__all__ = [
    "InjectorConfig",
    "STRATEGIES",
    "import_object",
    "load_config",
    "load_config_file",
]

logger = logging.getLogger(__name__)

STRATEGIES = {
    "ranking": TagRankingStrategy,
    "mock": MockStrategy,
}

_KNOWN_KEYS = {"strategy", "services", "tags", "default"}


@dataclass(frozen=True)
class InjectorConfig:
    """
    Everything a resolver needs, fixed for the lifetime of the process.

    Attributes:
        strategy: The strategy selecting implementations.
        services: The registry of implementations per component.
        options: Options applied to every request. Call-site options take precedence.
    """

    strategy: Strategy = field(default_factory=TagRankingStrategy)
    services: ServiceRegistry = field(default_factory=ServiceRegistry)
    options: RequestOptions = field(default_factory=RequestOptions)

    @property
    def base_options(self) -> RequestOptions:
        return RequestOptions(services=self.services).merged_with(self.options)


def import_object(path: Any) -> Any:
    """Import an object from a ``package.module:Name`` or ``package.module.Name`` path.

    Values that are not strings are returned unchanged.

    Raises:
        ConfigurationError: If the path cannot be imported.
    """
    if not isinstance(path, str):
        return path

    if ":" in path:
        module_name, _, attribute_path = path.partition(":")
    else:
        module_name, _, attribute_path = path.rpartition(".")
    if not module_name or not attribute_path:
        raise ConfigurationError(f"Invalid import path `{path}`", value=path)

    try:
        target = importlib.import_module(module_name)
        for attribute in attribute_path.split("."):
            target = getattr(target, attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot import `{path}`: {e}", value=path) from e
    return target


def _load_strategy(strategy: Any) -> Strategy:
    if isinstance(strategy, str):
        strategy = STRATEGIES.get(strategy) or import_object(strategy)
    if inspect.isclass(strategy):
        strategy = strategy()
    if not callable(getattr(strategy, "get_implementation", None)):
        raise ConfigurationError(
            f"Strategy `{strategy!r}` does not define get_implementation()",
            value=strategy,
        )
    return strategy


def _load_services(services: Mapping[str, Any]) -> ServiceRegistry:
    if not isinstance(services, Mapping):
        raise ConfigurationError(
            f"Expected services to be a mapping of component to registrations, got `{services!r}`",
            value=services,
        )
    return ServiceRegistry.from_mapping(
        {
            component: [_load_registration(component, entry) for entry in entries or []]
            for component, entries in services.items()
        }
    )


def _load_registration(component: Any, entry: Any) -> Mapping[str, Any]:
    if not isinstance(entry, Mapping):
        raise ConfigurationError(
            f"Registration for component `{component}` must be a mapping, got `{entry!r}`",
            value=entry,
        )
    loaded = dict(entry)
    for key in ("service", "impl"):
        if key in loaded:
            loaded[key] = import_object(loaded[key])
    return loaded


def load_config(data: Mapping[str, Any]) -> InjectorConfig:
    """Build an :class:`InjectorConfig` from plain configuration data.

    Args:
        data: Mapping with the optional keys ``strategy``, ``services``, ``tags``
            and ``default``.

    Returns:
        The loaded configuration.

    Raises:
        ConfigurationError: If the data contains unknown keys, malformed
            registrations, or paths that cannot be imported.
    """
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys {sorted(unknown)}")

    config = InjectorConfig(
        strategy=_load_strategy(data.get("strategy") or TagRankingStrategy),
        services=_load_services(data.get("services") or {}),
        options=RequestOptions(
            tags=as_tags(data.get("tags")),
            default=import_object(data.get("default")),
        ),
    )
    logger.debug(
        f"[bindery:config] Loaded {config.strategy!r} with {config.services!r}"
    )
    return config


def load_config_file(path: Union[str, Path]) -> InjectorConfig:
    """Load an :class:`InjectorConfig` from a YAML file.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML, or does
            not hold a mapping.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Expected a mapping at the top level of {path}, got `{type(data).__name__}`"
        )
    logger.debug(f"[bindery:config] Reading configuration from {path}")
    return load_config(data)
