"""CT system aggregate and its simple (one source, detector and gantry) variant."""

from typing import Any, Dict, List, Mapping, Optional

from .radiation_encoder import RadiationEncoder
from ..core.serialization import TYPE_ID_KEY, SerializationInterface, parse_component
from ..components.beam_modifiers import AbstractBeamModifier
from ..components.detectors import AbstractDetector
from ..components.gantries import AbstractGantry
from ..components.sources import AbstractSource
from ..components.system_component import ElementalType, SystemComponent
from ..utils.logging import get_logger
from ..utils.validation import SystemNotSimpleError


logger = get_logger()


class CTSystem(SerializationInterface):
    """Named, ordered collection of system components.

    The system owns its components: a component can be part of only one
    system at a time. Copies of a system (`clone`) contain clones of all
    components.

    A system is *valid* if it contains at least one detector, gantry and
    source, and *simple* if it contains exactly one of each.

    Example:
        >>> system = CTSystem('My system')
        >>> system << FlatPanelDetector((100, 100), (1.0, 1.0)) << TubularGantry(1000.0, 500.0)
    """

    TYPE_ID = 10
    DEFAULT_NAME = 'Generic CT-system'

    _name_counter = 0

    def __init__(self, name: Optional[str] = None):
        self._name = name if name is not None else CTSystem.default_name()
        self._components: List[SystemComponent] = []

    @staticmethod
    def default_name() -> str:
        CTSystem._name_counter += 1
        count = CTSystem._name_counter
        return CTSystem.DEFAULT_NAME if count == 1 else f"{CTSystem.DEFAULT_NAME} ({count})"

    # composition --------------------------------------------------------

    def add_component(self, component: Optional[SystemComponent]) -> None:
        """Append `component` to the system; None is ignored.

        Raises:
            ValueError: If the component already belongs to another system
        """
        self._insert_component(component)

    def _insert_component(self, component: Optional[SystemComponent]) -> None:
        if component is None:
            return
        owner = component.owner()
        if owner is self:
            logger.warning(
                f"{self._name}: component '{component.name}' is already part of this system"
            )
            return
        if owner is not None:
            raise ValueError(
                f"Component '{component.name}' is owned by system '{owner.name}'. "
                "Remove it there or add a clone."
            )
        component._set_owner(self)
        self._components.append(component)

    def __lshift__(self, component: Optional[SystemComponent]) -> 'CTSystem':
        self.add_component(component)
        return self

    def remove_component(self, component: SystemComponent) -> None:
        """Remove `component` (matched by identity); no-op if it is not part of the system."""
        for idx, comp in enumerate(self._components):
            if comp is component:
                del self._components[idx]
                comp._set_owner(None)
                return

    def clear(self) -> None:
        for comp in self._components:
            comp._set_owner(None)
        self._components = []

    # queries ------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    def rename(self, name: str) -> None:
        self._name = name

    def components(self) -> List[SystemComponent]:
        """Components in insertion order (the list is a copy)."""
        return list(self._components)

    def nb_components(self) -> int:
        return len(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def _of_type(self, elemental_type: ElementalType) -> List[SystemComponent]:
        return [c for c in self._components if c.elemental_type() == int(elemental_type)]

    def detectors(self) -> List[AbstractDetector]:
        return self._of_type(ElementalType.DETECTOR)

    def gantries(self) -> List[AbstractGantry]:
        return self._of_type(ElementalType.GANTRY)

    def sources(self) -> List[AbstractSource]:
        return self._of_type(ElementalType.SOURCE)

    def modifiers(self) -> List[AbstractBeamModifier]:
        return self._of_type(ElementalType.BEAM_MODIFIER)

    def is_empty(self) -> bool:
        return not self._components

    def is_valid(self) -> bool:
        return bool(self.detectors()) and bool(self.gantries()) and bool(self.sources())

    def is_simple(self) -> bool:
        return len(self.detectors()) == 1 and len(self.gantries()) == 1 and len(self.sources()) == 1

    def clone(self) -> 'CTSystem':
        """Deep copy of the system; every component is cloned."""
        ret = type(self)(name=self._name)
        for comp in self._components:
            ret._insert_component(comp.clone())
        return ret

    def info(self) -> str:
        ret = f"CT system: {self._name} {{\n"
        for comp in self._components:
            ret += comp.info() + "}\n"
        return ret + "}\n"

    def overview(self) -> str:
        ret = (f"CT system: {self._name}\n"
               f"\tNumber of components: {self.nb_components()}\n"
               f"\tSystem is valid: {str(self.is_valid()).lower()}\n"
               f"\tSystem is simple: {str(self.is_simple()).lower()}\n"
               "----------------------------------\nComponents:\n")
        for comp in self._components:
            ret += f"\t(*) {comp.name}\n"
        return ret

    # exchange record ----------------------------------------------------

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['name'] = self._name
        ret['components'] = [comp.to_variant() for comp in self._components]
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self.rename(str(variant.get('name', self._name)))
        self.clear()
        for record in variant.get('components', []):
            component = parse_component(record)
            if component is None:
                type_id = record.get(TYPE_ID_KEY) if isinstance(record, Mapping) else None
                logger.warning(
                    f"{self._name}: Skipping component of unknown type (type-id {type_id})"
                )
                continue
            self._insert_component(component)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, nb_components={self.nb_components()})"


class SimpleCTSystem(CTSystem):
    """CT system with exactly one detector, gantry and source.

    Further components can only be beam modifiers, added with
    `add_beam_modifier`. Detector, gantry and source are passed in by value:
    the system stores clones of the given components.
    """

    TYPE_ID = 11

    def __init__(self, detector: Optional[AbstractDetector] = None,
                 gantry: Optional[AbstractGantry] = None,
                 source: Optional[AbstractSource] = None,
                 name: Optional[str] = None):
        super().__init__(name)
        for comp in (detector, gantry, source):
            if comp is not None:
                self._insert_component(comp.clone())

    @classmethod
    def from_ct_system(cls, system: CTSystem) -> 'SimpleCTSystem':
        """Simple system holding clones of all components of `system`.

        Raises:
            SystemNotSimpleError: If `system` is not simple
        """
        if not system.is_simple():
            raise SystemNotSimpleError(
                f"System '{system.name}' is not simple: it needs exactly one detector, "
                "gantry and source"
            )
        ret = cls(name=system.name)
        for comp in system.components():
            ret._insert_component(comp.clone())
        return ret

    def detector(self) -> AbstractDetector:
        return self.detectors()[0]

    def gantry(self) -> AbstractGantry:
        return self.gantries()[0]

    def source(self) -> AbstractSource:
        return self.sources()[0]

    def add_component(self, component: Optional[SystemComponent]) -> None:
        raise TypeError(
            "SimpleCTSystem does not support adding arbitrary components; "
            "use add_beam_modifier or the replace_* methods"
        )

    def remove_component(self, component: SystemComponent) -> None:
        raise TypeError("SimpleCTSystem does not support removing components")

    def add_beam_modifier(self, modifier: AbstractBeamModifier) -> None:
        """Append a beam modifier (behind all existing ones in the beam path)."""
        if not isinstance(modifier, AbstractBeamModifier):
            raise TypeError(f"{type(modifier).__name__} is not a beam modifier")
        self._insert_component(modifier)

    def _replace(self, old: SystemComponent, new: SystemComponent) -> None:
        if new.owner() is not None:
            new = new.clone()
        idx = next(i for i, comp in enumerate(self._components) if comp is old)
        old._set_owner(None)
        new._set_owner(self)
        self._components[idx] = new

    def replace_detector(self, detector: AbstractDetector) -> None:
        self._replace(self.detector(), detector)

    def replace_gantry(self, gantry: AbstractGantry) -> None:
        self._replace(self.gantry(), gantry)

    def replace_source(self, source: AbstractSource) -> None:
        self._replace(self.source(), source)

    # radiation ----------------------------------------------------------

    def photons_per_pixel(self, module: int) -> float:
        """Mean number of photons incident on a pixel of `module` (see `RadiationEncoder`)."""
        return RadiationEncoder(self).photons_per_pixel(module)

    def photons_per_pixel_all(self) -> List[float]:
        return RadiationEncoder(self).photons_per_pixel_all()

    def photons_per_pixel_mean(self) -> float:
        return RadiationEncoder(self).photons_per_pixel_mean()

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        if not self.is_simple():
            logger.warning(f"{self._name}: Restored system is not simple")
