"""The marker flagging a property as resolvable.

A property is resolvable when its annotation is ``Annotated`` and the metadata
contains :class:`Resolvable`, either the class itself or an instance of it::

    class Service:
        conn: Annotated[Connection, Resolvable]
        cache: Annotated[Cache, Resolvable()]

Resolvable properties that have no registered value are constructed and
resolved recursively. Unmarked properties are only ever populated from
registered values.
"""

from typing import Annotated, TypeVar

from propwire.domain import Property

__all__ = ["Resolvable", "ResolvableOf", "is_resolvable"]

T = TypeVar("T")


class Resolvable:
    """Marker placed in ``Annotated`` metadata."""

    def __repr__(self) -> str:
        return "Resolvable()"


ResolvableOf = Annotated[T, Resolvable]
"""Generic alias for ``Annotated[T, Resolvable]``.

Example:
    >>> class Service:
    ...     conn: ResolvableOf[Connection]
"""


def is_resolvable(prop: Property) -> bool:
    """Return whether the property carries the resolvable marker."""
    return any(
        marker is Resolvable or isinstance(marker, Resolvable)
        for marker in prop.metadata
    )
