"""Per-class resolution metadata, computed once and reused.

Computing the metadata for a class means reading its annotations and
classifying each property against the registry. The result is cached for the
lifetime of the cache and never recomputed.

Concurrent first use of a class is allowed to compute the metadata more than
once. Only the commit is serialised: the first computation to commit becomes
the authoritative entry and later ones are discarded.
"""

import logging
import threading
from typing import Any, Callable, Optional

from propwire.domain import Property, TypeMetadata
from propwire.errors import DependencyError
from propwire.introspection import declared_properties, type_name
from propwire.markers import is_resolvable
from propwire.registry import DependencyRegistry

__all__ = ["TypeMetadataCache"]

logger = logging.getLogger(__name__)


class TypeMetadataCache:
    """Cache of :class:`TypeMetadata` keyed by class.

    Bindings hold values taken from a registry, so a cache serves exactly one
    registry: it is bound to the first registry it is used with, and any other
    registry is rejected.

    Args:
        is_marked: Predicate deciding whether a property carries the resolvable
            marker. Defaults to :func:`propwire.markers.is_resolvable`.
    """

    def __init__(self, is_marked: Callable[[Property], bool] = is_resolvable):
        self._is_marked = is_marked
        self._entries: dict[type, TypeMetadata] = {}
        self._registry: Optional[DependencyRegistry] = None
        self._lock = threading.Lock()

    def bind(self, registry: DependencyRegistry) -> None:
        """Bind the cache to ``registry``. Binding again to the same registry is a no-op.

        Raises:
            DependencyError: If the cache is already bound to another registry.
        """
        with self._lock:
            if self._registry is None:
                self._registry = registry
                return
            bound = self._registry

        if bound is not registry:
            raise DependencyError(
                "Metadata cache is already bound to another registry and cannot be shared"
            )

    def get_or_compute(
        self, owner_type: type, registry: DependencyRegistry
    ) -> TypeMetadata:
        """Return the metadata for ``owner_type``, computing it on first use.

        Args:
            owner_type: The class whose directly declared properties are classified.
            registry: The registry consulted for registered values.

        Returns:
            The committed metadata entry for ``owner_type``.

        Raises:
            DependencyError: If the cache is bound to a different registry.
        """
        if self._registry is not registry:
            self.bind(registry)

        entry = self._entries.get(owner_type)
        if entry is not None:
            return entry

        return self._commit(owner_type, self._compute(owner_type, registry))

    def get(self, owner_type: type) -> Optional[TypeMetadata]:
        return self._entries.get(owner_type)

    def _compute(self, owner_type: type, registry: DependencyRegistry) -> TypeMetadata:
        bindings: list[tuple[Property, Any]] = []
        resolvables: list[Property] = []

        for prop in declared_properties(owner_type):
            if prop.declared_type in registry:
                bindings.append((prop, registry.lookup_value(prop.declared_type)))
            elif self._is_marked(prop):
                resolvables.append(prop)

        logger.debug(
            f"Computed metadata for {type_name(owner_type)}: "
            f"{len(bindings)} bound, {len(resolvables)} resolvable"
        )
        return TypeMetadata(owner_type, tuple(bindings), tuple(resolvables))

    def _commit(self, owner_type: type, metadata: TypeMetadata) -> TypeMetadata:
        with self._lock:
            committed = self._entries.get(owner_type)
            if committed is None:
                self._entries[owner_type] = metadata
                return metadata

        logger.debug(
            f"Discarded redundant metadata computation for {type_name(owner_type)}"
        )
        return committed

    def __contains__(self, owner_type: type) -> bool:
        return owner_type in self._entries

    def __len__(self) -> int:
        return len(self._entries)
