"""Base class of all CT system components."""

import copy
import weakref
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional

from ..core.serialization import GENERIC_TYPE_ID_KEY, SerializationInterface
from ..utils.logging import get_logger


logger = get_logger()


class ElementalType(IntEnum):
    """Elemental families of system components.

    The values double as the type-ids of the abstract elemental base classes.
    """
    DETECTOR = 100
    GANTRY = 200
    SOURCE = 300
    BEAM_MODIFIER = 400


class SystemComponent(SerializationInterface):
    """Common base of detectors, gantries, sources and beam modifiers.

    Every component has a name. When none is given, a default name is
    generated from `DEFAULT_NAME`, numbered per class ("Generic detector",
    "Generic detector (2)", ...).

    A component belongs to at most one `CTSystem` at a time.
    """

    TYPE_ID = 0
    ELEMENTAL_TYPE: Optional[ElementalType] = None
    DEFAULT_NAME = 'Generic system component'

    _name_counters: Dict[type, int] = {}

    def __init__(self, name: Optional[str] = None):
        self._name = name if name is not None else type(self).default_name()
        self._owner: Optional[weakref.ref] = None

    @classmethod
    def default_name(cls) -> str:
        """Next default name of this class."""
        count = SystemComponent._name_counters.get(cls, 0) + 1
        SystemComponent._name_counters[cls] = count
        return cls.DEFAULT_NAME if count == 1 else f"{cls.DEFAULT_NAME} ({count})"

    @property
    def name(self) -> str:
        return self._name

    def rename(self, name: str) -> None:
        self._name = name

    def elemental_type(self) -> int:
        return int(self.ELEMENTAL_TYPE) if self.ELEMENTAL_TYPE is not None else -1

    def info(self) -> str:
        """Human-readable description of the component."""
        return (f"Object({type(self).__name__}) {{\n"
                f"\tName: {self._name}\n"
                f"\tType-ID: {self.type()}\n")

    def clone(self) -> 'SystemComponent':
        """Deep copy of the component that is not owned by any system."""
        ret = copy.deepcopy(self)
        ret._owner = None
        return ret

    # ownership ----------------------------------------------------------

    def owner(self):
        """The system holding this component, or None."""
        return self._owner() if self._owner is not None else None

    def _set_owner(self, system) -> None:
        self._owner = weakref.ref(system) if system is not None else None

    # exchange record ----------------------------------------------------

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret[GENERIC_TYPE_ID_KEY] = self.elemental_type()
        ret['name'] = self._name
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._name = str(variant.get('name', self._name))

    def read_elemental_variant(self, variant: Mapping[str, Any]) -> None:
        """Read only the fields defined up to the elemental base class.

        Used to restore a record of an unknown concrete type as the generic
        placeholder of its elemental family.
        """
        for klass in type(self).__mro__:
            if 'ELEMENTAL_TYPE' in vars(klass):
                klass._read_variant(self, variant)
                return

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r})"
