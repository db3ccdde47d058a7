"""
Strategies decide which implementation is bound to a requested service.

A strategy is any object with a ``get_implementation(service, component, options)``
method returning a :class:`ResolutionResult`. Strategies must always return an
implementation: finding no registration is a normal outcome, handled by falling
back to a default. They should only raise for configuration they cannot interpret.

The production strategy, :class:`TagRankingStrategy`, ranks the registrations filed
for the requesting component by how well their tags match the requested tags:

    1. The registration with the highest tag similarity, if its score is not negative
    2. The ``default`` given in the request options, if any
    3. The service itself, as the implementation of last resort
"""

import logging
from typing import Any, FrozenSet, Hashable, Iterable, Protocol

from bindery.domain import Registration, RequestOptions, ResolutionResult, component_key

__all__ = [
    "Strategy",
    "TagRankingStrategy",
    "rank_registrations",
    "tags_similarity",
]

logger = logging.getLogger(__name__)


class Strategy(Protocol):
    def get_implementation(
        self, service: Any, component: Hashable, options: RequestOptions
    ) -> ResolutionResult:
        """Resolve the implementation of ``service`` for ``component``.

        Args:
            service: The service to resolve.
            component: The component requesting the service.
            options: Merged request and global options, including the registry.

        Returns:
            The selected implementation and the tags it was resolved under.
        """
        ...


def tags_similarity(tags: FrozenSet[Hashable], other: FrozenSet[Hashable]) -> int:
    """Score how well two tag sets match.

    The smaller set is always evaluated against the larger one:

    - if the smaller set is empty, the score is minus the size of the larger one;
    - if both sets are equal, the score is their size;
    - otherwise, the score is the number of tags of the smaller set found in the larger.

    Example:
        >>> tags_similarity(frozenset(), frozenset({"a", "b"}))
        -2
        >>> tags_similarity(frozenset({"a", "b"}), frozenset({"a", "b"}))
        2
        >>> tags_similarity(frozenset({"a", "c"}), frozenset({"a", "b", "d"}))
        1
    """
    if len(tags) > len(other):
        tags, other = other, tags

    if not tags:
        return -len(other)
    if tags == other:
        return len(tags)
    return sum(1 for tag in tags if tag in other)


def rank_registrations(
    registrations: Iterable[Registration],
    service: Any,
    tags: FrozenSet[Hashable],
) -> list[tuple[int, Registration]]:
    """Score the registrations of ``service`` against the requested tags, best first.

    Registrations with equal scores keep their registration order.
    """
    candidates = [r for r in registrations if r.service == service]
    return sorted(
        ((tags_similarity(r.tags, tags), r) for r in candidates),
        key=lambda scored: scored[0],
        reverse=True,
    )


class TagRankingStrategy:
    """Selects the registered implementation whose tags best match the request."""

    def get_implementation(
        self, service: Any, component: Hashable, options: RequestOptions
    ) -> ResolutionResult:
        tags = options.requested_tags
        fallback = options.default if options.default is not None else service
        registrations = options.services.lookup(component) if options.services else []

        ranked = rank_registrations(registrations, service, tags)
        if ranked and ranked[0][0] >= 0:
            score, registration = ranked[0]
            logger.debug(
                f"[bindery:rank] {component_key(component)} matched "
                f"{registration.implementation!r} with score {score}"
            )
            return ResolutionResult(registration.implementation, tags)

        logger.debug(
            f"[bindery:rank] {component_key(component)} has no match among "
            f"{len(ranked)} candidates, falling back to {fallback!r}"
        )
        return ResolutionResult(fallback, tags)

    def __repr__(self) -> str:
        return "TagRankingStrategy()"
