"""Preparation protocols: generators of per-view prepare steps for an acquisition setup."""

from typing import List, Sequence

import numpy as np

from .prepare_steps import AbstractPrepareStep, SourceParam, XrayTubeParam
from ..utils.logging import get_logger


logger = get_logger()


class AbstractPreparationProtocol:
    """Creates the prepare steps of every view of an acquisition setup.

    A protocol is applied with `AcquisitionSetup.apply_preparation_protocol`,
    which appends the steps returned by `prepare_steps` to each view.
    """

    def prepare_steps(self, view_nb: int, setup) -> List[AbstractPrepareStep]:
        """Prepare steps for view `view_nb` of `setup`."""
        raise NotImplementedError

    def is_applicable_to(self, setup) -> bool:
        return True


class FlyingFocalSpot(AbstractPreparationProtocol):
    """Moves the focal spot to a given position (mm, source coordinates) in each view.

    Args:
        positions: One focal spot position per view
    """

    def __init__(self, positions: Sequence[Sequence[float]]):
        self._positions = [np.asarray(pos, dtype=np.float64).reshape(3) for pos in positions]

    @classmethod
    def two_alternating_spots(cls, position_1, position_2, nb_views: int) -> 'FlyingFocalSpot':
        """Focal spot alternating between two positions, starting with `position_1`."""
        return cls([position_1 if view % 2 == 0 else position_2 for view in range(nb_views)])

    def prepare_steps(self, view_nb: int, setup) -> List[AbstractPrepareStep]:
        step = SourceParam()
        step.set_focal_spot_position(*self._positions[view_nb])
        logger.debug(f"FlyingFocalSpot --- add prepare steps for view: {view_nb}, "
                     f"position: {self._positions[view_nb].tolist()}")
        return [step]

    def is_applicable_to(self, setup) -> bool:
        return (setup.system() is not None
                and SourceParam().is_applicable_to(setup.system())
                and len(self._positions) == setup.nb_views())


class TubeCurrentModulation(AbstractPreparationProtocol):
    """Sets the emission current (mA) of an X-ray tube in each view.

    Args:
        currents: One emission current per view
    """

    def __init__(self, currents: Sequence[float]):
        self._currents = [float(current) for current in currents]

    def prepare_steps(self, view_nb: int, setup) -> List[AbstractPrepareStep]:
        step = XrayTubeParam()
        step.set_emission_current(self._currents[view_nb])
        logger.debug(f"TubeCurrentModulation --- add prepare steps for view: {view_nb}, "
                     f"tube current: {self._currents[view_nb]}")
        return [step]

    def is_applicable_to(self, setup) -> bool:
        return (setup.system() is not None
                and XrayTubeParam().is_applicable_to(setup.system())
                and len(self._currents) == setup.nb_views())
