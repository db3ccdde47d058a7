"""Bindery dependency resolution.

Bindery decides, for a component that needs an abstract service, which concrete
implementation it gets. Implementations are registered per component, optionally
tagged, and a pluggable strategy picks one deterministically: the registration
whose tags best match the request, or a default when nothing matches. Resolution
is a pure function of the configuration and the request; components bind the
results once, when they are defined.

Key Features:
    - Per-component registrations with tag-based selection
    - Swappable resolution strategies (tag ranking in production, test doubles in tests)
    - Configuration from code, plain data or YAML files
    - Static bindings that can be inspected from tests

Basic Usage:
    >>> from bindery.config import InjectorConfig
    >>> from bindery.registry import RegistryBuilder
    >>> from bindery.resolution import Resolver
    >>>
    >>> builder = RegistryBuilder()
    >>> builder.register(UserController, UserStore, PostgresUserStore, tags=["postgres"])
    >>> resolver = Resolver(InjectorConfig(services=builder.build()))
    >>>
    >>> @resolver.injects(Requirement(UserStore, alias="store", tags=["postgres"]))
    ... class UserController:
    ...     pass
    >>> UserController.store
    <class 'PostgresUserStore'>

The framework consists of several core modules:
    - registry: Registration of implementations per component
    - strategy: The strategy protocol and the tag-ranking strategy
    - resolution: The resolver, entry point for every resolution
    - binding: Static bindings of resolved services onto components
    - config: Configuration loading
    - testing: Test double strategy and binding inspection helpers
    - domain: Core domain models (Registration, RequestOptions, ResolutionResult)
    - errors: Framework-specific exceptions
"""
