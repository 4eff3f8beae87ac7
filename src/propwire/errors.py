__all__ = [
    "DependencyError",
    "DuplicateRegistrationError",
    "IncompatibleMappingError",
    "IncompatibleValueError",
    "NotConstructibleError",
    "ArgumentMismatchError",
    "NullTargetError",
]


class DependencyError(Exception):
    """Raised when a dependency cannot be registered, constructed or resolved."""

    pass


class DuplicateRegistrationError(DependencyError):
    """Raised when a value or mapping is registered twice for the same type."""

    pass


class IncompatibleMappingError(DependencyError):
    """Raised when a mapping's target type is not a subtype of its source type."""

    pass


class IncompatibleValueError(DependencyError):
    """Raised when a registered value is not an instance of its type key."""

    pass


class NotConstructibleError(DependencyError):
    """Raised when a type has no usable zero-argument initializer."""

    pass


class ArgumentMismatchError(NotConstructibleError):
    """Raised when a type's initializer requires arguments."""

    pass


class NullTargetError(DependencyError):
    """Raised when property resolution is requested without an instance."""

    pass
