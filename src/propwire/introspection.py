"""Reading declared properties off classes and constructing instances.

Properties are the annotations a class declares in its own body. Inherited
annotations are not returned here: the resolver walks the MRO and asks for
each class separately. ``ClassVar`` and ``InitVar`` annotations do not describe
instance attributes and are skipped.
"""

import inspect
import logging
import types
from dataclasses import InitVar
from typing import Annotated, Any, ClassVar, Optional, Union, get_args, get_origin

from propwire.domain import Property
from propwire.errors import (
    ArgumentMismatchError,
    DependencyError,
    NotConstructibleError,
)

__all__ = ["declared_properties", "instantiate", "type_name"]

logger = logging.getLogger(__name__)

_UNION_ORIGINS = (Union, types.UnionType)

_REQUIRED_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.KEYWORD_ONLY,
)


def type_name(target: Any) -> str:
    """Return a readable, module-qualified name for a type or typing construct."""
    if inspect.isclass(target):
        return f"{target.__module__}.{target.__qualname__}"
    return repr(target)


def declared_properties(owner: type) -> list[Property]:
    """Return the properties declared directly on ``owner``, in declaration order.

    Args:
        owner: The class to inspect.

    Returns:
        One :class:`Property` per instance annotation in the class body.

    Raises:
        DependencyError: If a string annotation cannot be evaluated.

    Example:
        >>> class Service:
        ...     log: Logger
        ...     conn: Annotated[Connection, Resolvable]
        >>> [p.name for p in declared_properties(Service)]
        ['log', 'conn']
    """
    try:
        annotations = inspect.get_annotations(owner, eval_str=True)
    except NameError as e:
        raise DependencyError(
            f"Cannot evaluate annotations declared on {type_name(owner)}: {e}"
        ) from e

    return [
        _make_property(owner, name, annotation)
        for name, annotation in annotations.items()
        if not _is_class_level(annotation)
    ]


def _make_property(owner: type, name: str, annotation: Any) -> Property:
    declared_type, metadata = _unwrap(annotation)
    return Property(owner, name, declared_type, annotation, metadata)


def _unwrap(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    """Strip ``Annotated`` and ``Optional`` layers, collecting ``Annotated`` metadata.

    Example:
        >>> _unwrap(Optional[Annotated[Connection, Resolvable]])
        (Connection, (Resolvable,))
    """
    declared_type = annotation
    metadata: list[Any] = []
    while True:
        origin = get_origin(declared_type)
        if origin is Annotated:
            declared_type, *extras = get_args(declared_type)
            metadata.extend(extras)
        elif origin in _UNION_ORIGINS:
            members = [arg for arg in get_args(declared_type) if arg is not type(None)]
            if len(members) != 1:
                break
            declared_type = members[0]
        else:
            break
    return declared_type, tuple(metadata)


def _is_class_level(annotation: Any) -> bool:
    return (
        annotation is ClassVar
        or get_origin(annotation) is ClassVar
        or isinstance(annotation, InitVar)
    )


def instantiate(target_type: Any, owner: Optional[type] = None) -> Any:
    """Construct ``target_type`` through its zero-argument initializer.

    Args:
        target_type: The class to construct.
        owner: The class whose property requires the new instance, if any. Only
            used to make error messages point at the declaring class.

    Returns:
        A new instance of ``target_type``.

    Raises:
        NotConstructibleError: If ``target_type`` is not a class, is abstract or
            is a protocol.
        ArgumentMismatchError: If the initializer has required parameters.
    """
    context = f" for owner {type_name(owner)}" if owner is not None else ""

    if not inspect.isclass(target_type):
        raise NotConstructibleError(
            f"{type_name(target_type)} is not a class and cannot be constructed{context}"
        )
    if inspect.isabstract(target_type) or getattr(target_type, "_is_protocol", False):
        raise NotConstructibleError(
            f"{type_name(target_type)} is abstract and cannot be constructed{context}"
        )

    required = _required_parameters(target_type)
    if required:
        raise ArgumentMismatchError(
            f"Parameterless initializer needed in order to build object of type "
            f"{type_name(target_type)}{context}, but it requires {required}"
        )

    logger.debug(f"Constructing {type_name(target_type)}{context}")
    return target_type()


def _required_parameters(target_type: type) -> list[str]:
    try:
        signature = inspect.signature(target_type)
    except (TypeError, ValueError):
        # builtins without an introspectable signature
        return []
    return [
        name
        for name, parameter in signature.parameters.items()
        if parameter.kind in _REQUIRED_KINDS and parameter.default is parameter.empty
    ]
