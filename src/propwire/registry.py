"""Registration of singleton values and type mappings."""

import inspect
import logging
from typing import Any, Callable, Optional

from propwire.errors import (
    DuplicateRegistrationError,
    IncompatibleMappingError,
    IncompatibleValueError,
)
from propwire.introspection import type_name

__all__ = ["DependencyRegistry"]

logger = logging.getLogger(__name__)


class DependencyRegistry:
    """Registry of singleton values and interface-to-implementation mappings.

    Values are keyed by type: any property whose declared type is a registered
    key is populated with the registered value. Mappings redirect the
    construction of a resolvable property's declared type to a subclass.

    The registry only grows. Registration is expected to happen during a
    single-threaded setup phase, before resolution starts.

    Example:
        >>> registry = DependencyRegistry()
        >>> registry.register(Logger, ConsoleLogger())
        >>> registry.map(Connection, PooledConnection)
        >>> registry.lookup_mapping(Connection)
        <class 'PooledConnection'>
    """

    def __init__(self):
        self._values: dict[Any, Any] = {}
        self._mappings: dict[type, type] = {}

    def register(self, dependency_type: Any, value: Any) -> None:
        """Bind a type to a singleton value.

        Args:
            dependency_type: The type key. Usually a class, but any hashable typing
                construct (e.g. ``Callable[[str], str]``) may be used as an opaque key.
            value: The value injected into properties declared with that type.

        Raises:
            DuplicateRegistrationError: If a value is already registered for the type.
            IncompatibleValueError: If the key is a class and the value is not an
                instance of it.
        """
        if dependency_type in self._values:
            raise DuplicateRegistrationError(
                f"A value is already registered for {type_name(dependency_type)}"
            )
        if _is_checkable_class(dependency_type) and not isinstance(value, dependency_type):
            raise IncompatibleValueError(
                f"Value {value!r} is not an instance of {type_name(dependency_type)}"
            )

        self._values[dependency_type] = value
        logger.debug(f"Registered value for {type_name(dependency_type)}")

    def map(self, from_type: type, to_type: type) -> None:
        """Construct ``to_type`` wherever a resolvable property declares ``from_type``.

        Both checks run before anything is stored, so a rejected mapping leaves
        the registry unchanged.

        Raises:
            IncompatibleMappingError: If ``to_type`` is not ``from_type`` or a subclass of it.
            DuplicateRegistrationError: If ``from_type`` is already mapped.
        """
        if not _is_subtype(to_type, from_type):
            raise IncompatibleMappingError(
                f"Cannot map {type_name(from_type)} to {type_name(to_type)}: "
                f"{type_name(to_type)} is not a subtype of {type_name(from_type)}"
            )
        if from_type in self._mappings:
            raise DuplicateRegistrationError(
                f"{type_name(from_type)} is already mapped to "
                f"{type_name(self._mappings[from_type])}"
            )

        self._mappings[from_type] = to_type
        logger.debug(f"Mapped {type_name(from_type)} to {type_name(to_type)}")

    def maps(self, from_type: type) -> Callable[[type], type]:
        """Decorator mapping ``from_type`` to the decorated class.

        Example:
            @registry.maps(Connection)
            class PooledConnection(Connection):
                pass
        """

        def decorator(cls: type) -> type:
            self.map(from_type, cls)
            return cls

        return decorator

    def lookup_value(self, dependency_type: Any) -> Optional[Any]:
        return self._values.get(dependency_type)

    def lookup_mapping(self, dependency_type: Any) -> Optional[type]:
        return self._mappings.get(dependency_type)

    def values(self) -> list[Any]:
        """Return the registered values in registration order."""
        return list(self._values.values())

    def values_of_type(self, dependency_type: Any) -> list[Any]:
        """Return the registered values matching ``dependency_type``, in registration order.

        Classes and runtime-checkable protocols match every value that is an
        instance of them. Other keys, such as ``Callable[[str], str]``, cannot be
        checked with ``isinstance`` and match only the value registered under
        that exact key.
        """
        if _is_checkable_class(dependency_type):
            return [value for value in self._values.values() if isinstance(value, dependency_type)]
        if dependency_type in self._values:
            return [self._values[dependency_type]]
        return []

    def __contains__(self, dependency_type: Any) -> bool:
        return dependency_type in self._values


def _is_checkable_class(dependency_type: Any) -> bool:
    # isinstance() against a non-runtime protocol raises
    if not inspect.isclass(dependency_type):
        return False
    return not getattr(dependency_type, "_is_protocol", False) or getattr(
        dependency_type, "_is_runtime_protocol", False
    )


def _is_subtype(to_type: Any, from_type: Any) -> bool:
    if not (inspect.isclass(to_type) and inspect.isclass(from_type)):
        return False
    try:
        return issubclass(to_type, from_type)
    except TypeError:
        return False
