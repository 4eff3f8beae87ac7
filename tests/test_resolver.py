import threading
from abc import ABC, abstractmethod
from dataclasses import FrozenInstanceError, dataclass
from typing import Annotated, Callable, ClassVar, Optional

import pytest

from propwire.errors import (
    ArgumentMismatchError,
    DependencyError,
    DuplicateRegistrationError,
    IncompatibleMappingError,
    NotConstructibleError,
    NullTargetError,
)
from propwire.markers import Resolvable
from propwire.metadata_cache import TypeMetadataCache
from propwire.resolver import Resolver

Greeter = Callable[[str], str]


class Logger:
    def log(self, line):
        pass


class ConsoleLogger(Logger):
    def __init__(self):
        self.lines = []

    def log(self, line):
        self.lines.append(line)


class Pool:
    log: Logger


class Connection:
    log: Logger
    pool: Annotated[Pool, Resolvable]


class PooledConnection(Connection):
    pass


class Service:
    log: Logger
    conn: Annotated[Connection, Resolvable]
    name: str


class ChildService(Service):
    pass


class Transport(ABC):
    @abstractmethod
    def send(self, message): ...


class HttpTransport(Transport):
    log: Logger

    def send(self, message):
        self.log.log(message)


class Client:
    transport: Annotated[Transport, Resolvable]


class Node:
    next: "Annotated[Node, Resolvable]"


@pytest.fixture
def console_logger():
    return ConsoleLogger()


@pytest.fixture
def resolver(console_logger):
    resolver = Resolver()
    resolver.register(Logger, console_logger)
    return resolver


def test_type_without_properties_resolves_to_new_instance():
    class Plain:
        pass

    resolver = Resolver()

    first = resolver.resolve(Plain)
    second = resolver.resolve(Plain)

    assert isinstance(first, Plain)
    assert first is not second


def test_registered_value_and_resolvable_property_are_populated(resolver, console_logger):
    service = resolver.resolve(Service)

    assert service.log is console_logger
    assert type(service.conn) is Connection


def test_unmanaged_property_is_left_unset(resolver):
    service = resolver.resolve(Service)

    assert not hasattr(service, "name")


def test_resolvable_properties_are_resolved_recursively(resolver, console_logger):
    service = resolver.resolve(Service)

    assert service.conn.log is console_logger
    assert isinstance(service.conn.pool, Pool)
    assert service.conn.pool.log is console_logger


def test_each_resolution_constructs_new_resolvable_instances(resolver):
    first = resolver.resolve(Service)
    second = resolver.resolve(Service)

    assert first.conn is not second.conn


def test_mapped_type_is_constructed_for_resolvable_property(resolver, console_logger):
    resolver.map(Connection, PooledConnection)

    service = resolver.resolve(Service)

    assert type(service.conn) is PooledConnection
    assert service.conn.log is console_logger
    assert isinstance(service.conn.pool, Pool)


def test_mapping_makes_abstract_declared_type_resolvable(resolver, console_logger):
    resolver.map(Transport, HttpTransport)

    client = resolver.resolve(Client)
    client.transport.send("hello")

    assert type(client.transport) is HttpTransport
    assert console_logger.lines == ["hello"]


def test_mapping_is_not_applied_to_root_type(resolver):
    resolver.map(Connection, PooledConnection)

    assert type(resolver.resolve(Connection)) is Connection


def test_incompatible_mapping_is_rejected(resolver):
    with pytest.raises(IncompatibleMappingError):
        resolver.map(PooledConnection, Connection)

    assert type(resolver.resolve(Service).conn) is Connection


def test_duplicate_registration_is_rejected(resolver, console_logger):
    with pytest.raises(DuplicateRegistrationError):
        resolver.register(Logger, ConsoleLogger())

    assert resolver.resolve(Service).log is console_logger


def test_inherited_properties_are_populated(resolver, console_logger):
    child = resolver.resolve(ChildService)

    assert child.log is console_logger
    assert type(child.conn) is Connection
    assert ChildService in resolver.cache
    assert Service in resolver.cache


def test_properties_from_every_base_are_populated(resolver, console_logger):
    class Audited:
        audit: Annotated[Pool, Resolvable]

    class AuditedService(Service, Audited):
        pass

    service = resolver.resolve(AuditedService)

    assert service.log is console_logger
    assert isinstance(service.conn, Connection)
    assert isinstance(service.audit, Pool)


def test_derived_declaration_overrides_base_declaration(resolver):
    class SpecialService(Service):
        conn: Annotated[PooledConnection, Resolvable]

    service = resolver.resolve(SpecialService)

    assert type(service.conn) is PooledConnection


def test_optional_properties_are_populated(resolver, console_logger):
    @dataclass
    class Settings:
        retries: int = 3
        log: Optional[Logger] = None

    settings = resolver.resolve(Settings)

    assert settings.retries == 3
    assert settings.log is console_logger


def test_class_variables_are_not_populated(resolver):
    class Holder:
        shared: ClassVar[Logger]

    assert "shared" not in vars(resolver.resolve(Holder))


def test_typing_construct_keys_are_injected():
    class Greeting:
        greet: Greeter

    resolver = Resolver()
    resolver.register(Greeter, lambda name: f"Hello {name}")

    assert resolver.resolve(Greeting).greet("Dominic") == "Hello Dominic"


def test_resolve_properties_populates_existing_instance(resolver, console_logger):
    service = Service()
    service.name = "existing"

    resolver.resolve_properties(service)

    assert service.log is console_logger
    assert isinstance(service.conn, Connection)
    assert service.name == "existing"


def test_resolve_properties_starts_from_runtime_type(resolver, console_logger):
    service: Service = ChildService()

    resolver.resolve_properties(service)

    assert service.log is console_logger
    assert ChildService in resolver.cache


def test_resolve_properties_rejects_none(resolver):
    with pytest.raises(NullTargetError):
        resolver.resolve_properties(None)


def test_root_type_requiring_arguments_is_rejected(resolver):
    class NeedsHost:
        def __init__(self, host):
            self.host = host

    with pytest.raises(ArgumentMismatchError):
        resolver.resolve(NeedsHost)


def test_unmapped_abstract_resolvable_property_is_rejected(resolver):
    with pytest.raises(NotConstructibleError, match="for owner .*Client"):
        resolver.resolve(Client)


def test_resolvable_property_requiring_arguments_is_rejected(resolver):
    class NeedsPort:
        def __init__(self, port):
            self.port = port

    class Holder:
        dependency: Annotated[NeedsPort, Resolvable]

    with pytest.raises(ArgumentMismatchError, match="for owner .*Holder"):
        resolver.resolve(Holder)


def test_assignment_errors_propagate(resolver):
    @dataclass(frozen=True)
    class Frozen:
        log: Optional[Logger] = None

    with pytest.raises(FrozenInstanceError):
        resolver.resolve(Frozen)


def test_cycles_are_not_guarded():
    with pytest.raises(RecursionError):
        Resolver().resolve(Node)


def test_transform_dependencies_visits_matching_values_in_registry_order():
    class Startable:
        def __init__(self):
            self.started = False

    class Cache(Startable):
        pass

    class Queue(Startable):
        pass

    resolver = Resolver()
    cache, queue = Cache(), Queue()
    resolver.register(Cache, cache)
    resolver.register(Logger, Logger())
    resolver.register(Queue, queue)

    visited = []
    resolver.transform_dependencies(Startable, visited.append)

    assert visited == [cache, queue]


def test_transform_dependencies_applies_selection():
    class Startable:
        def __init__(self, priority):
            self.priority = priority

    class Cache(Startable):
        def __init__(self):
            super().__init__(2)

    class Queue(Startable):
        def __init__(self):
            super().__init__(1)

    class Disabled(Startable):
        def __init__(self):
            super().__init__(0)

    resolver = Resolver()
    cache, queue, disabled = Cache(), Queue(), Disabled()
    resolver.register(Cache, cache)
    resolver.register(Queue, queue)
    resolver.register(Disabled, disabled)

    seen = []
    visited = []

    def select(startables):
        seen.extend(startables)
        return sorted(
            (startable for startable in startables if startable.priority > 0),
            key=lambda startable: startable.priority,
        )

    resolver.transform_dependencies(Startable, visited.append, select=select)

    assert seen == [cache, queue, disabled]
    assert visited == [queue, cache]


def test_transform_dependencies_mutates_injected_values(resolver, console_logger):
    resolver.transform_dependencies(ConsoleLogger, lambda logger: logger.log("configured"))

    assert resolver.resolve(Service).log.lines == ["configured"]


def test_concurrent_first_resolution_commits_single_entry(resolver, console_logger):
    workers = 8
    barrier = threading.Barrier(workers)
    results = []
    results_lock = threading.Lock()

    class Fresh:
        log: Logger
        conn: Annotated[Connection, Resolvable]

    def resolve():
        barrier.wait()
        fresh = resolver.resolve(Fresh)
        with results_lock:
            results.append(fresh)

    threads = [threading.Thread(target=resolve) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == workers
    assert all(fresh.log is console_logger for fresh in results)
    assert all(type(fresh.conn) is Connection for fresh in results)
    assert all(isinstance(fresh.conn.pool, Pool) for fresh in results)
    assert len({id(fresh.conn) for fresh in results}) == workers
    assert all(owner in resolver.cache for owner in (Fresh, Connection, Pool))
    assert len(resolver.cache) == 3


def test_resolvers_with_different_registries_cannot_share_a_cache():
    cache = TypeMetadataCache()
    first = Resolver(cache=cache)
    first.register(Logger, ConsoleLogger())
    first.resolve(Service)

    with pytest.raises(DependencyError, match="bound to another registry"):
        Resolver(cache=cache)


def test_resolvers_sharing_a_registry_can_share_a_cache(console_logger):
    first = Resolver()
    first.register(Logger, console_logger)
    second = Resolver(first.registry, first.cache)

    assert first.resolve(Service).log is console_logger
    assert second.resolve(Service).log is console_logger


def test_transform_dependencies_matches_typing_constructs_by_key(resolver):
    def greeter(name: str) -> str:
        return f"Hello {name}"

    resolver.register(Greeter, greeter)

    visited = []
    resolver.transform_dependencies(Greeter, visited.append)

    assert visited == [greeter]
