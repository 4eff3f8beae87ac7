"""
Construction of instances and population of their properties.

The :class:`Resolver` builds an object graph from a root class. For each class
in the target's MRO, most derived first, it looks up the cached metadata and:

* assigns registered values to properties whose declared type is registered;
* constructs every resolvable property's declared type (or the type it is
  mapped to), resolves the new instance recursively and assigns it.

Resolution is not guarded against cycles. A resolvable property whose type
leads back to the declaring class recurses until Python raises ``RecursionError``.
"""

import logging
from typing import Any, Callable, Iterable, Optional, TypeVar

from propwire.domain import Property
from propwire.errors import NullTargetError
from propwire.introspection import instantiate, type_name
from propwire.metadata_cache import TypeMetadataCache
from propwire.registry import DependencyRegistry

__all__ = ["Resolver"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Resolver:
    """Property-injection resolver.

    Args:
        registry: Registered values and type mappings. A new, empty registry is
            created if omitted.
        cache: Metadata cache. A new cache using the default resolvable marker is
            created if omitted. A cache is bound to one registry and cannot be
            shared by resolvers with different registries.

    Raises:
        DependencyError: If ``cache`` is already bound to another registry.

    Example:
        >>> resolver = Resolver()
        >>> resolver.register(Logger, console_logger)
        >>> service = resolver.resolve(Service)
        >>> service.log is console_logger
        True
    """

    def __init__(
        self,
        registry: Optional[DependencyRegistry] = None,
        cache: Optional[TypeMetadataCache] = None,
    ):
        self.registry = registry if registry is not None else DependencyRegistry()
        self.cache = cache if cache is not None else TypeMetadataCache()
        self.cache.bind(self.registry)

    def register(self, dependency_type: Any, value: Any) -> None:
        """Register a singleton value, see :meth:`DependencyRegistry.register`."""
        self.registry.register(dependency_type, value)

    def map(self, from_type: type, to_type: type) -> None:
        """Register a type mapping, see :meth:`DependencyRegistry.map`."""
        self.registry.map(from_type, to_type)

    def resolve(self, target_type: type[T]) -> T:
        """Construct ``target_type`` and resolve all of its properties.

        Args:
            target_type: The class to construct. Mappings are not applied to the
                root type, only to resolvable properties.

        Returns:
            A new, fully resolved instance.

        Raises:
            NotConstructibleError: If ``target_type`` or the type of any resolvable
                property in the graph cannot be constructed.
            ArgumentMismatchError: If one of those types' initializers requires
                arguments.
        """
        logger.debug(f"Resolving {type_name(target_type)}")
        instance = instantiate(target_type)
        self._resolve_object_properties(instance, type(instance))
        return instance

    def resolve_properties(self, instance: Any) -> None:
        """Resolve the properties of an existing instance, starting from its runtime type.

        Raises:
            NullTargetError: If ``instance`` is None.
        """
        if instance is None:
            raise NullTargetError("Cannot resolve properties of None")

        self._resolve_object_properties(instance, type(instance))

    def transform_dependencies(
        self,
        dependency_type: type[T],
        apply: Callable[[T], Any],
        select: Optional[Callable[[list[T]], Iterable[T]]] = None,
    ) -> None:
        """Apply ``apply`` to every registered value that is an instance of ``dependency_type``.

        Typing constructs that cannot be used with ``isinstance``, such as
        ``Callable[[str], str]``, match only the value registered under that key.

        Values are visited in registry order, unless ``select`` is given: it
        receives the full list of matching values and returns the values to
        visit, in the order they should be visited. It may reorder, drop or
        repeat values.

        Example:
            >>> resolver.transform_dependencies(
            ...     Startable,
            ...     lambda startable: startable.start(),
            ...     select=lambda startables: sorted(startables, key=lambda s: s.priority),
            ... )
        """
        matching = self.registry.values_of_type(dependency_type)
        selected = select(matching) if select is not None else matching

        for value in selected:
            apply(value)

    def _resolve_object_properties(self, instance: Any, start_type: type) -> None:
        assigned: set[str] = set()

        for owner_type in start_type.__mro__:
            if owner_type is object:
                break

            metadata = self.cache.get_or_compute(owner_type, self.registry)

            for prop, value in metadata.bindings:
                # a more derived declaration of the same name takes precedence
                if prop.name not in assigned:
                    setattr(instance, prop.name, value)
                    assigned.add(prop.name)

            for prop in metadata.resolvables:
                if prop.name not in assigned:
                    setattr(instance, prop.name, self._build_property(prop))
                    assigned.add(prop.name)

    def _build_property(self, prop: Property) -> Any:
        target_type = prop.declared_type
        mapped_type = self.registry.lookup_mapping(target_type)
        if mapped_type is not None:
            logger.debug(
                f"Substituting {type_name(mapped_type)} for {type_name(target_type)} in {prop}"
            )
            target_type = mapped_type

        property_value = instantiate(target_type, prop.owner)
        self._resolve_object_properties(property_value, type(property_value))
        return property_value
