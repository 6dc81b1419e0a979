"""Type registry and exchange-record protocol for polymorphic objects.

Every serializable class derives from `SerializationInterface` and declares a
`TYPE_ID` that is unique within its `TypeFamily`. Objects are written to an
exchange record (a tree of dicts, lists and scalars) whose polymorphic nodes
carry the concrete type under the key ``"type-id"``. Reading a record back
goes through the `TypeRegistry`, which maps ``(family, type-id)`` pairs to
zero-argument factories.

The registry is filled by an explicit startup pass
(`XCTSystem.core.registration.register_all_types`) and treated as read-only
afterwards.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from ..utils.logging import get_logger
from ..utils.validation import IncompleteRecordError, TypeRegistrationError


logger = get_logger()


TYPE_ID_KEY = 'type-id'
GENERIC_TYPE_ID_KEY = 'generic type-id'

Factory = Callable[[], 'SerializationInterface']


class TypeFamily(Enum):
    """Families with independent type-id namespaces."""
    COMPONENT = 'component'
    DATA_MODEL = 'data model'
    PREPARE_STEP = 'prepare step'
    MISC = 'misc'


class SerializationInterface:
    """Base class for objects that can be written to and read from exchange records.

    Subclasses extend `to_variant` by calling the parent implementation and
    adding their own fields, so the final record accumulates the fields of
    every level of the hierarchy. Reading is split in two parts:

    - `from_variant` is the public entry point. It validates the record's
      type-id against the concrete type once and refuses incompatible records
      without touching the object.
    - `_read_variant` reads the fields; subclasses extend it by calling the
      parent implementation first. It never re-checks the type-id. It raises
      `IncompleteRecordError` if a nested record the object cannot do without
      fails to restore; `from_variant` then puts the previous state back.
    """

    TYPE_ID = -1

    def type(self) -> int:
        """Type-id of the concrete class."""
        return self.TYPE_ID

    def to_variant(self) -> Dict[str, Any]:
        """Serialize the object into an exchange record."""
        return {TYPE_ID_KEY: self.type()}

    def from_variant(self, variant: Mapping[str, Any]) -> bool:
        """Read the object state from an exchange record.

        Args:
            variant: Exchange record previously produced by `to_variant`

        Returns:
            True if the record was read, False if it was rejected because it
            describes another type or is incomplete (the object stays
            unchanged in that case)
        """
        if not self.accepts_variant(variant):
            declared = variant.get(TYPE_ID_KEY) if isinstance(variant, Mapping) else None
            logger.warning(
                f"{type(self).__name__}.from_variant: Could not construct instance! "
                f"reason: incompatible variant passed (type-id {declared}, "
                f"expected {self.type()})"
            )
            return False

        previous_state = dict(self.__dict__)
        try:
            self._read_variant(variant)
        except IncompleteRecordError as err:
            self.__dict__.clear()
            self.__dict__.update(previous_state)
            logger.warning(
                f"{type(self).__name__}.from_variant: Could not construct instance! "
                f"reason: {err}"
            )
            return False
        return True

    def accepts_variant(self, variant: Any) -> bool:
        """Whether `variant` is a record describing this concrete type."""
        if not isinstance(variant, Mapping):
            return False
        try:
            return int(variant.get(TYPE_ID_KEY)) == self.type()
        except (TypeError, ValueError):
            return False

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        """Read the fields introduced at this level of the hierarchy."""
        pass


class TypeRegistry:
    """Maps type-ids to factories, separately for each `TypeFamily`.

    A second, coarser table maps elemental component types to a generic
    placeholder class. It is consulted only when the exact type-id of a
    component record is unknown.
    """

    _instance: Optional['TypeRegistry'] = None

    def __init__(self):
        self._factories: Dict[TypeFamily, Dict[int, Factory]] = {
            family: {} for family in TypeFamily
        }
        self._elemental_fallbacks: Dict[int, Factory] = {}

    @classmethod
    def instance(cls) -> 'TypeRegistry':
        """Process-wide registry used by the module-level helpers."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, type_id: int, family: TypeFamily, factory: Factory) -> None:
        """Bind `type_id` within `family` to a zero-argument factory.

        Raises:
            TypeRegistrationError: If the type-id is already taken in `family`
        """
        type_id = int(type_id)
        factories = self._factories[family]
        if type_id in factories:
            raise TypeRegistrationError(
                f"Type-id {type_id} is already registered for family "
                f"'{family.value}' ({_factory_name(factories[type_id])})"
            )
        factories[type_id] = factory
        logger.debug(f"Registered {_factory_name(factory)} as {family.value} type {type_id}")

    def register_elemental_fallback(self, elemental_type: int, factory: Factory) -> None:
        """Bind an elemental component type to a generic placeholder factory.

        Raises:
            TypeRegistrationError: If the elemental type already has a fallback
        """
        elemental_type = int(elemental_type)
        if elemental_type in self._elemental_fallbacks:
            raise TypeRegistrationError(
                f"Elemental type {elemental_type} already has a fallback type"
            )
        self._elemental_fallbacks[elemental_type] = factory

    def factories(self, family: TypeFamily) -> Mapping[int, Factory]:
        """Read-only view of the factories registered for `family`."""
        return MappingProxyType(self._factories[family])

    def is_registered(self, type_id: int, family: TypeFamily) -> bool:
        return int(type_id) in self._factories[family]

    def create(self, variant: Any, family: TypeFamily) -> Optional[SerializationInterface]:
        """Reconstruct an object of `family` from its exchange record.

        Returns:
            The reconstructed object, or None if the record carries no type-id,
            the type-id is not registered in `family` or the object refuses
            the record
        """
        type_id = _read_type_id(variant, TYPE_ID_KEY)
        if type_id is None:
            return None

        factory = self._factories[family].get(type_id)
        if factory is None:
            return None

        obj = factory()
        if not obj.from_variant(variant):
            return None
        return obj

    def create_elemental_fallback(self, variant: Any) -> Optional[SerializationInterface]:
        """Build the generic placeholder for a component record of unknown type.

        Only the fields of the elemental base are read; subtype-specific
        fields of the record are discarded.
        """
        elemental_type = _read_type_id(variant, GENERIC_TYPE_ID_KEY)
        if elemental_type is None:
            return None

        factory = self._elemental_fallbacks.get(elemental_type)
        if factory is None:
            return None

        obj = factory()
        obj.read_elemental_variant(variant)
        logger.warning(
            f"Unknown component type-id {variant.get(TYPE_ID_KEY)}; "
            f"restored as {type(obj).__name__}"
        )
        return obj


def _read_type_id(variant: Any, key: str) -> Optional[int]:
    if not isinstance(variant, Mapping) or key not in variant:
        return None
    try:
        return int(variant[key])
    except (TypeError, ValueError):
        return None


def _factory_name(factory: Factory) -> str:
    return getattr(factory, '__name__', repr(factory))


def register(type_id: int, family: TypeFamily, factory: Factory) -> None:
    """Register a factory with the process-wide registry."""
    TypeRegistry.instance().register(type_id, family, factory)


def register_type(cls, family: TypeFamily) -> None:
    """Register a serializable class under its own `TYPE_ID`."""
    register(cls.TYPE_ID, family, cls)


def to_record(obj: SerializationInterface) -> Dict[str, Any]:
    """Exchange record of `obj`."""
    return obj.to_variant()


def from_record(variant: Any, family: TypeFamily) -> Optional[SerializationInterface]:
    """Reconstruct an object of `family` from `variant`, or None if the type is unknown."""
    return TypeRegistry.instance().create(variant, family)


def parse_component(variant: Any, fallback_to_generic: bool = False):
    """Reconstruct a system component.

    Args:
        variant: Exchange record of the component
        fallback_to_generic: Restore components of unknown type as the generic
            type of their elemental family instead of returning None

    Returns:
        SystemComponent or None
    """
    registry = TypeRegistry.instance()
    component = registry.create(variant, TypeFamily.COMPONENT)
    if component is None and fallback_to_generic:
        component = registry.create_elemental_fallback(variant)
    return component


def parse_data_model(variant: Any):
    """Reconstruct a data model, or None if its type is unknown."""
    return TypeRegistry.instance().create(variant, TypeFamily.DATA_MODEL)


def parse_prepare_step(variant: Any):
    """Reconstruct a prepare step, or None if its type is unknown."""
    return TypeRegistry.instance().create(variant, TypeFamily.PREPARE_STEP)


def parse_misc_object(variant: Any):
    """Reconstruct any other serializable object, or None if its type is unknown."""
    return TypeRegistry.instance().create(variant, TypeFamily.MISC)
