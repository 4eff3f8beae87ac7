"""Domain models used throughout the resolver."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Property:
    """A property declared directly on a class through an annotation.

    Attributes:
        owner: The class whose own annotations declare this property.
        name: The attribute name the property is assigned to.
        declared_type: The declared type, with any ``Annotated`` or ``Optional``
            wrapper removed. This is the key used for registry lookups.
        annotation: The annotation exactly as it was declared.
        metadata: The extra arguments of an ``Annotated`` annotation, empty if
            the annotation was not ``Annotated``.
    """

    owner: type
    name: str
    declared_type: Any
    annotation: Any
    metadata: tuple[Any, ...] = ()

    def __str__(self) -> str:
        return f"{self.owner.__qualname__}.{self.name}"


@dataclass(frozen=True)
class TypeMetadata:
    """
    The resolution plan for the properties declared directly on one class.

    Attributes:
        owner: The class the metadata was computed for.
        bindings: Properties whose declared type has a registered value, paired
            with that value, in declaration order.
        resolvables: Properties carrying the resolvable marker that did not match
            a registered value, in declaration order.
    """

    owner: type
    bindings: tuple[tuple[Property, Any], ...]
    resolvables: tuple[Property, ...]

    @property
    def is_empty(self) -> bool:
        return not self.bindings and not self.resolvables
