"""High level entry points for constructing resolvers."""

from typing import Any, Optional

from propwire.registry import DependencyRegistry
from propwire.resolver import Resolver

__all__ = ["make_resolver"]


def make_resolver(
    values: Optional[dict[Any, Any]] = None,
    mappings: Optional[dict[type, type]] = None,
) -> Resolver:
    """Construct a :class:`Resolver` from tables of values and mappings.

    Values are registered before mappings, each in the order given.

    Args:
        values: Mapping of type keys to the singleton values registered for them.
        mappings: Mapping of declared types to the subclasses constructed in
            their place.

    Returns:
        A resolver with a fresh metadata cache.

    Raises:
        IncompatibleValueError: If a value is not an instance of its key.
        IncompatibleMappingError: If a mapping's target is not a subtype of its source.

    Example:
        >>> resolver = make_resolver(
        ...     values={Logger: console_logger},
        ...     mappings={Connection: PooledConnection},
        ... )
        >>> service = resolver.resolve(Service)
    """
    registry = DependencyRegistry()
    for dependency_type, value in (values or {}).items():
        registry.register(dependency_type, value)
    for from_type, to_type in (mappings or {}).items():
        registry.map(from_type, to_type)

    return Resolver(registry)
