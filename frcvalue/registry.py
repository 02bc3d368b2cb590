"""
Struct Registry - process-wide table of struct type name -> descriptor.

Registration happens in two steps:

1. Participating types *submit* a descriptor supplier (the @frcstruct
   decorator does this at class definition time). Nothing is registered yet.
2. The hosting process calls ``initialize_registry()`` once, before any
   thread looks types up. It drains every pending submission, registers the
   descriptors, and publishes an immutable snapshot.

Lookups read the published snapshot without locking. Writers (submit,
register, initialize) are serialized by one lock and publish a new snapshot
copy-on-write, so a reader never sees a half-updated table.

Re-registering an identical descriptor is a no-op. Registering a different
descriptor under a known name raises SchemaConflict and keeps the first one.

Examples:
    >>> registry = StructRegistry()
    >>> registry.submit(lambda: StructDescriptor("Empty"))
    >>> registry.initialize()
    >>> registry.lookup("Empty")
    StructDescriptor(type_name='Empty', fields=())
"""
import logging
import threading
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from .basic_types import FrcValue, TypeTag
from .descriptors import StructDescriptor, resolve_fields
from .errors import RegistryNotInitialized, SchemaConflict, SchemaMismatch
from .serialization import SerializationContext

logger = logging.getLogger(__name__)

DescriptorSupplier = Callable[[], StructDescriptor]


class StructRegistry:
    """A name -> StructDescriptor table with an explicit initialization phase."""

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: List[DescriptorSupplier] = []
        self._snapshot: Mapping[str, StructDescriptor] = MappingProxyType({})
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def submit(self, supplier: DescriptorSupplier) -> None:
        """Queue a descriptor supplier for the next initialize() call."""
        if not callable(supplier):
            raise TypeError(f"Descriptor supplier must be callable, got {type(supplier).__name__}")
        with self._lock:
            self._pending.append(supplier)

    def register(self, descriptor: StructDescriptor) -> StructDescriptor:
        """
        Register one descriptor immediately.

        Returns:
            StructDescriptor: The registered descriptor (the existing one for
            an idempotent re-registration).

        Raises:
            SchemaConflict: If a different descriptor already owns the name.
        """
        if not isinstance(descriptor, StructDescriptor):
            raise TypeError(f"Expected StructDescriptor, got {type(descriptor).__name__}")
        with self._lock:
            table = dict(self._snapshot)
            result = self._insert(table, descriptor)
            if table.keys() != self._snapshot.keys():
                if self._initialized:
                    logger.warning("Late registration of struct type %r after initialization",
                                   descriptor.type_name)
                self._snapshot = MappingProxyType(table)
            return result

    def initialize(self) -> None:
        """
        Register every pending submission and open the registry for lookups.

        Safe to call more than once. Submissions made after the first call
        (e.g. by a late import) are registered by the next call.

        Raises:
            SchemaConflict: If two submissions disagree about a type name.
                Nothing from this call is published and, on the first call,
                the registry stays uninitialized.
        """
        # Suppliers run unlocked; they may import modules that submit or register
        with self._lock:
            pending, self._pending = self._pending, []
        try:
            descriptors = [supplier() for supplier in pending]
        except Exception:
            self._requeue(pending)
            raise
        with self._lock:
            table = dict(self._snapshot)
            try:
                for descriptor in descriptors:
                    self._insert(table, descriptor)
            except Exception:
                self._pending = pending + self._pending
                raise
            if self._initialized and len(table) != len(self._snapshot):
                logger.warning("Registered %d struct types after initialization",
                               len(table) - len(self._snapshot))
            self._warn_unresolved(table)
            self._snapshot = MappingProxyType(table)
            if not self._initialized:
                self._initialized = True
                logger.info("Struct registry initialized with %d types", len(table))

    def _requeue(self, pending: List[DescriptorSupplier]) -> None:
        with self._lock:
            self._pending = pending + self._pending

    @staticmethod
    def _insert(table: Dict[str, StructDescriptor], descriptor: StructDescriptor) -> StructDescriptor:
        existing = table.get(descriptor.type_name)
        if existing is None:
            table[descriptor.type_name] = descriptor
            logger.debug("Registered struct type %s", descriptor)
            return descriptor
        if existing == descriptor:
            return existing
        logger.error("Conflicting descriptors for struct type %r: %s vs %s",
                     descriptor.type_name, existing, descriptor)
        raise SchemaConflict(descriptor.type_name, existing, descriptor)

    @staticmethod
    def _warn_unresolved(table: Dict[str, StructDescriptor]) -> None:
        for descriptor in table.values():
            for nested in descriptor.nested_type_names:
                if nested not in table:
                    logger.warning("Struct type %r refers to unregistered type %r",
                                   descriptor.type_name, nested)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def _tables(self) -> Mapping[str, StructDescriptor]:
        if not self._initialized:
            raise RegistryNotInitialized(
                "Struct registry queried before initialize_registry() was called"
            )
        return self._snapshot

    def lookup(self, type_name: str) -> Optional[StructDescriptor]:
        """
        Find the descriptor registered under ``type_name``.

        Returns:
            The descriptor, or None if no type has that name.

        Raises:
            RegistryNotInitialized: If called before initialize().
        """
        return self._tables().get(type_name)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._tables()

    def __len__(self) -> int:
        return len(self._tables())

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables())

    def type_names(self) -> Tuple[str, ...]:
        return tuple(self._tables())

    def validate(self, value: FrcValue,
                 context: Optional[SerializationContext] = None) -> StructDescriptor:
        """
        Check a struct value against its registered descriptor, recursively.

        This is the entry point for tooling that receives values of types it
        was not built with.

        Returns:
            StructDescriptor: The descriptor ``value`` was validated against.

        Raises:
            SchemaMismatch: If ``value`` is not a struct or its type (or a
                nested type) is not registered.
            MissingField, FieldTypeMismatch, UnknownField: As resolve_fields().
        """
        if value.tag is not TypeTag.STRUCT:
            raise SchemaMismatch(f"Expected a struct value, got {value.tag.wire_name}")
        descriptor = self.lookup(value.name)
        if descriptor is None:
            raise SchemaMismatch(f"Struct type {value.name!r} is not registered")
        for item in resolve_fields(value, descriptor, context).values():
            if item is not None and item.tag is TypeTag.STRUCT:
                self.validate(item, context)
        return descriptor

    def __repr__(self) -> str:
        state = "initialized" if self._initialized else f"{len(self._pending)} pending"
        return f"StructRegistry({len(self._snapshot)} types, {state})"


# ============================================================================
# Default Registry
# ============================================================================

REGISTRY = StructRegistry()
"""Process-wide default registry used by @frcstruct and the helpers below."""


def submit(supplier: DescriptorSupplier) -> None:
    REGISTRY.submit(supplier)


def register(descriptor: StructDescriptor) -> StructDescriptor:
    return REGISTRY.register(descriptor)


def lookup(type_name: str) -> Optional[StructDescriptor]:
    return REGISTRY.lookup(type_name)


def initialize_registry() -> None:
    """Initialize the default registry. Call once at process start."""
    REGISTRY.initialize()
