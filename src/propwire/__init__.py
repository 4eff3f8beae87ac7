"""Propwire property-injection resolver.

Propwire constructs objects and populates their annotated properties. A
property is populated either with a singleton value registered for its
declared type, or, when it is marked resolvable, with a freshly constructed
instance of its declared type (or of the subclass that type is mapped to),
itself resolved recursively. Properties declared on base classes are populated
as well.

Key Features:
    - Singleton values keyed by type
    - Interface-to-implementation mappings checked at registration time
    - Resolvable properties marked with ``typing.Annotated``
    - Per-class introspection computed once and cached, safe under concurrent first use

Basic Usage:
    >>> from typing import Annotated
    >>> from propwire.markers import Resolvable
    >>> from propwire.resolver import Resolver
    >>>
    >>> class Service:
    ...     log: Logger
    ...     conn: Annotated[Connection, Resolvable]
    >>>
    >>> resolver = Resolver()
    >>> resolver.register(Logger, console_logger)
    >>> service = resolver.resolve(Service)
    >>> service.log is console_logger
    True

The package consists of several modules:
    - resolver: The resolution engine
    - registry: Registered values and type mappings
    - metadata_cache: Cached per-class resolution metadata
    - markers: The resolvable marker
    - introspection: Property discovery and construction
    - builders: High-level resolver construction
    - domain: Core domain models (Property, TypeMetadata)
    - errors: Library-specific exceptions
"""
