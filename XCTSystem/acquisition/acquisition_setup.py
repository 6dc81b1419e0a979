"""Acquisition setup: a simple CT system together with the prepare steps of every view."""

from typing import Any, Dict, List, Mapping, Optional

from .ct_system import CTSystem, SimpleCTSystem
from .preparation_protocols import AbstractPreparationProtocol
from .prepare_steps import AbstractPrepareStep
from ..core.serialization import SerializationInterface, parse_misc_object, parse_prepare_step
from ..utils.logging import get_logger


logger = get_logger()


class View:
    """Prepare steps (and a time stamp) describing the system state of one view."""

    def __init__(self, time_stamp: float = 0.0,
                 prepare_steps: Optional[List[AbstractPrepareStep]] = None):
        self.time_stamp = float(time_stamp)
        self._prepare_steps: List[AbstractPrepareStep] = list(prepare_steps or [])

    @property
    def prepare_steps(self) -> List[AbstractPrepareStep]:
        return self._prepare_steps

    def add_prepare_step(self, step: Optional[AbstractPrepareStep]) -> None:
        if step is None:
            logger.warning("View.add_prepare_step: Ignoring empty prepare step")
            return
        self._prepare_steps.append(step)

    def clear_prepare_steps(self) -> None:
        self._prepare_steps = []

    def nb_prepare_steps(self) -> int:
        return len(self._prepare_steps)

    def to_variant(self) -> Dict[str, Any]:
        return {
            'time stamp': self.time_stamp,
            'prepare steps': [step.to_variant() for step in self._prepare_steps],
        }

    @classmethod
    def from_variant(cls, variant: Mapping[str, Any]) -> 'View':
        ret = cls(variant.get('time stamp', 0.0))
        for record in variant.get('prepare steps', []):
            step = parse_prepare_step(record)
            if step is None:
                logger.warning("View: Skipping prepare step of unknown type")
                continue
            ret.add_prepare_step(step)
        return ret


class AcquisitionSetup(SerializationInterface):
    """A simple CT system and the list of views acquired with it.

    The setup owns its own copy of the system. `prepare_view(i)` applies the
    prepare steps of view `i`, in order, to that copy; the state left behind by
    earlier views is not reset.

    Args:
        system: System to acquire with; must be simple (None for an empty setup)
        nb_views: Number of (empty) views to create
    """

    TYPE_ID = 1

    def __init__(self, system: Optional[CTSystem] = None, nb_views: int = 0):
        self._system: Optional[SimpleCTSystem] = None
        self._views: List[View] = []
        if system is not None:
            self.reset_system(system)
        self.set_nb_views(nb_views)

    # system -------------------------------------------------------------

    def system(self) -> Optional[SimpleCTSystem]:
        return self._system

    def reset_system(self, system: CTSystem) -> None:
        """Replace the system by a copy of `system`.

        Raises:
            SystemNotSimpleError: If `system` is not simple
        """
        self._system = SimpleCTSystem.from_ct_system(system)

    # views --------------------------------------------------------------

    def views(self) -> List[View]:
        return self._views

    def view(self, view: int) -> View:
        return self._views[view]

    def nb_views(self) -> int:
        return len(self._views)

    def set_nb_views(self, nb_views: int) -> None:
        """Resize the view list; new views are empty and time-stamped with their index."""
        if nb_views < len(self._views):
            del self._views[nb_views:]
        while len(self._views) < nb_views:
            self._views.append(View(time_stamp=float(len(self._views))))

    def add_view(self, view: Any = None) -> None:
        """Append a view, given as `View` or as a list of prepare steps."""
        if view is None:
            logger.warning("AcquisitionSetup.add_view: Ignoring empty view")
            return
        if not isinstance(view, View):
            view = View(time_stamp=float(len(self._views)), prepare_steps=list(view))
        self._views.append(view)

    def add_prepare_step(self, view: int, step: AbstractPrepareStep) -> None:
        self._views[view].add_prepare_step(step)

    def clear_views(self) -> None:
        self._views = []

    def remove_all_prepare_steps(self) -> None:
        for view in self._views:
            view.clear_prepare_steps()

    def apply_preparation_protocol(self, protocol: AbstractPreparationProtocol) -> None:
        """Append the prepare steps generated by `protocol` to every view.

        The number of views must be set beforehand. A protocol that is not
        applicable to this setup is not applied.
        """
        if not self._views:
            logger.warning("AcquisitionSetup.apply_preparation_protocol: Number of views is 0. "
                           "Set the number of views before applying a preparation protocol.")
            return
        if not protocol.is_applicable_to(self):
            logger.warning(f"AcquisitionSetup.apply_preparation_protocol: "
                           f"{type(protocol).__name__} is not applicable to this setup")
            return
        for idx, view in enumerate(self._views):
            for step in protocol.prepare_steps(idx, self):
                view.add_prepare_step(step)

    def prepare_view(self, view: int) -> None:
        """Apply the prepare steps of view `view` to the system, in order."""
        if self._system is None:
            logger.warning("AcquisitionSetup.prepare_view: No system set")
            return
        logger.debug(f"Preparing view {view}")
        for step in self._views[view].prepare_steps:
            step.prepare(self._system)

    def is_valid(self) -> bool:
        """True if a system is set, there is at least one view and all steps apply."""
        if self._system is None or not self._views:
            return False
        for idx, view in enumerate(self._views):
            for step in view.prepare_steps:
                if not step.is_applicable_to(self._system):
                    logger.warning(
                        f"AcquisitionSetup: {type(step).__name__} of view {idx} "
                        "is not applicable to the system"
                    )
                    return False
        return True

    # exchange record ----------------------------------------------------

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['system'] = self._system.to_variant() if self._system is not None else None
        ret['views'] = [view.to_variant() for view in self._views]
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        system_record = variant.get('system')
        self._system = None
        if system_record is not None:
            system = parse_misc_object(system_record)
            if isinstance(system, SimpleCTSystem):
                self._system = system
            elif isinstance(system, CTSystem):
                self.reset_system(system)
            else:
                logger.warning("AcquisitionSetup: Could not restore the system")
        self._views = [View.from_variant(record) for record in variant.get('views', [])]
