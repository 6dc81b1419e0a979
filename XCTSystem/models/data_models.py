"""Scalar data models of one variable and their arithmetic composition.

Models are used throughout the package to describe spectra, attenuation
curves and detector responses. Any two models can be combined with the
operators ``+ - * /`` and ``|`` (concatenation, i.e. ``(a | b)(x) = b(a(x))``).
Composition nodes keep references to their operands, so the same leaf model
may be shared by several expressions.
"""

import copy
from typing import Any, Dict, Mapping, Optional

import numpy as np

from ..core.serialization import SerializationInterface, parse_data_model
from ..utils.logging import get_logger
from ..utils.validation import IncompleteRecordError, InvalidOperandError


logger = get_logger()


class AbstractDataModel(SerializationInterface):
    """Base class of all data models.

    Subclasses implement `value_at` and, if they hold any state, `parameter`
    and `set_parameter`. The exchange record of a model is::

        {"type-id": ..., "name": ..., "parameters": parameter()}
    """

    TYPE_ID = 0

    def __init__(self, name: str = ''):
        self._name = name

    def value_at(self, position: float) -> float:
        """Value of the model at `position`."""
        raise NotImplementedError

    def __call__(self, position: float) -> float:
        return self.value_at(position)

    def clone(self) -> 'AbstractDataModel':
        """Independent copy of this model."""
        return copy.deepcopy(self)

    def is_integrable(self) -> bool:
        """Whether the model provides `bin_integral`."""
        return isinstance(self, AbstractIntegrableDataModel)

    def parameter(self) -> Any:
        """Model parameters as an exchange record (None if the model has none)."""
        return None

    def set_parameter(self, parameter: Any) -> None:
        """Set the model parameters from an exchange record."""
        pass

    @property
    def name(self) -> str:
        return self._name

    def set_name(self, name: str) -> None:
        self._name = name

    def to_variant(self) -> Dict[str, Any]:
        ret = super().to_variant()
        ret['name'] = self._name or type(self).__name__
        ret['parameters'] = self.parameter()
        return ret

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        super()._read_variant(variant)
        self._name = str(variant.get('name', ''))
        parameters = variant.get('parameters')
        if parameters is not None:
            self.set_parameter(parameters)

    # operators ----------------------------------------------------------

    def __add__(self, other):
        return DataModelAdd(self, _as_model(other))

    def __radd__(self, other):
        return DataModelAdd(_as_model(other), self)

    def __sub__(self, other):
        return DataModelSub(self, _as_model(other))

    def __rsub__(self, other):
        return DataModelSub(_as_model(other), self)

    def __mul__(self, other):
        return DataModelMul(self, _as_model(other))

    def __rmul__(self, other):
        return DataModelMul(_as_model(other), self)

    def __truediv__(self, other):
        return DataModelDiv(self, _as_model(other))

    def __rtruediv__(self, other):
        return DataModelDiv(_as_model(other), self)

    def __or__(self, other):
        return DataModelCat(self, _as_model(other))


class AbstractIntegrableDataModel(AbstractDataModel):
    """Data model that can be integrated over bins."""

    def bin_integral(self, position: float, bin_width: float) -> float:
        """Integral over ``[position - bin_width/2, position + bin_width/2]``."""
        raise NotImplementedError

    def mean_value(self, position: float, bin_width: float) -> float:
        """Mean value of the model within the bin centered at `position`."""
        if bin_width == 0.0:
            return self.value_at(position)
        return self.bin_integral(position, bin_width) / bin_width


def _as_model(operand) -> Optional[AbstractDataModel]:
    if isinstance(operand, (int, float)) and not isinstance(operand, bool):
        return ConstantModel(float(operand))
    return operand


class AbstractDataModelOperation(AbstractDataModel):
    """Binary operation on two data models.

    Operands are held by reference. Both must be given; a missing operand is
    reported immediately rather than at evaluation time.
    """

    def __init__(self, lhs: AbstractDataModel = None, rhs: AbstractDataModel = None,
                 _allow_empty: bool = False):
        super().__init__()
        if not _allow_empty:
            if lhs is None or rhs is None:
                raise InvalidOperandError(
                    f"{type(self).__name__}: Unable to construct data model operation. "
                    "At least one of the operands is missing."
                )
            for operand in (lhs, rhs):
                if not isinstance(operand, AbstractDataModel):
                    raise InvalidOperandError(
                        f"{type(self).__name__}: Operand of type {type(operand).__name__} "
                        "is not a data model."
                    )
        self._lhs = lhs
        self._rhs = rhs

    @classmethod
    def _empty(cls):
        """Operand-less instance used as a deserialization target."""
        return cls(_allow_empty=True)

    @property
    def lhs(self) -> AbstractDataModel:
        return self._lhs

    @property
    def rhs(self) -> AbstractDataModel:
        return self._rhs

    def clone(self) -> 'AbstractDataModelOperation':
        # operands stay shared
        return copy.copy(self)

    def parameter(self) -> Dict[str, Any]:
        return {
            'LHS model': self._lhs.to_variant(),
            'RHS model': self._rhs.to_variant(),
        }

    def set_parameter(self, parameter: Any) -> None:
        if not isinstance(parameter, Mapping):
            logger.warning(
                f"{type(self).__name__}.set_parameter: Could not set parameters! "
                "reason: incompatible variant passed"
            )
            return
        lhs = parse_data_model(parameter.get('LHS model'))
        rhs = parse_data_model(parameter.get('RHS model'))
        if lhs is None or rhs is None:
            logger.warning(
                f"{type(self).__name__}.set_parameter: Could not set parameters! "
                "reason: operand records could not be restored"
            )
            return
        self._lhs = lhs
        self._rhs = rhs

    def _read_variant(self, variant: Mapping[str, Any]) -> None:
        self._lhs = None
        self._rhs = None
        super()._read_variant(variant)
        if self._lhs is None or self._rhs is None:
            raise IncompleteRecordError(f"{type(self).__name__}: operand missing in record")


class DataModelAdd(AbstractDataModelOperation):
    TYPE_ID = 1

    def value_at(self, position: float) -> float:
        return self._lhs.value_at(position) + self._rhs.value_at(position)


class DataModelSub(AbstractDataModelOperation):
    TYPE_ID = 2

    def value_at(self, position: float) -> float:
        return self._lhs.value_at(position) - self._rhs.value_at(position)


class DataModelMul(AbstractDataModelOperation):
    TYPE_ID = 3

    def value_at(self, position: float) -> float:
        return self._lhs.value_at(position) * self._rhs.value_at(position)


class DataModelDiv(AbstractDataModelOperation):
    TYPE_ID = 4

    def value_at(self, position: float) -> float:
        numerator = np.float64(self._lhs.value_at(position))
        denominator = np.float64(self._rhs.value_at(position))
        with np.errstate(divide='ignore', invalid='ignore'):
            return float(numerator / denominator)


class DataModelCat(AbstractDataModelOperation):
    """Concatenation: the output of `lhs` is the input of `rhs`."""
    TYPE_ID = 5

    def value_at(self, position: float) -> float:
        return self._rhs.value_at(self._lhs.value_at(position))


class ConstantModel(AbstractIntegrableDataModel):
    """Model with the same value everywhere."""

    TYPE_ID = 20

    def __init__(self, value: float = 0.0, name: str = ''):
        super().__init__(name)
        self._value = float(value)

    def value_at(self, position: float) -> float:
        return self._value

    def bin_integral(self, position: float, bin_width: float) -> float:
        return self._value * bin_width

    def parameter(self) -> Dict[str, Any]:
        return {'value': self._value}

    def set_parameter(self, parameter: Any) -> None:
        if isinstance(parameter, Mapping):
            self._value = float(parameter.get('value', self._value))
        elif isinstance(parameter, (int, float)):
            self._value = float(parameter)
        else:
            logger.warning(
                "ConstantModel.set_parameter: Could not set parameters! "
                "reason: incompatible variant passed"
            )


class StepFunctionModel(AbstractDataModel):
    """Step of height `amplitude` at `threshold`.

    With ``left_is_zero`` the model is zero up to and including the
    threshold and `amplitude` above it; otherwise the other way round.
    """

    TYPE_ID = 50

    def __init__(self, threshold: float = 0.0, amplitude: float = 1.0,
                 left_is_zero: bool = True, name: str = ''):
        super().__init__(name)
        self._threshold = float(threshold)
        self._amplitude = float(amplitude)
        self._left_is_zero = bool(left_is_zero)

    def value_at(self, position: float) -> float:
        if position > self._threshold:
            return self._amplitude * float(self._left_is_zero)
        return self._amplitude * float(not self._left_is_zero)

    def parameter(self) -> Dict[str, Any]:
        return {
            'threshold': self._threshold,
            'amplitude': self._amplitude,
            'leftSideZero': self._left_is_zero,
        }

    def set_parameter(self, parameter: Any) -> None:
        if isinstance(parameter, Mapping):
            self._threshold = float(parameter.get('threshold', self._threshold))
            self._amplitude = float(parameter.get('amplitude', self._amplitude))
            self._left_is_zero = bool(parameter.get('leftSideZero', self._left_is_zero))
        elif isinstance(parameter, (list, tuple)):
            if len(parameter) < 3:
                logger.warning(
                    "StepFunctionModel.set_parameter: Could not set parameters! "
                    "reason: list has too few entries (required: 2 float, 1 bool)"
                )
                return
            self._threshold = float(parameter[0])
            self._amplitude = float(parameter[1])
            self._left_is_zero = bool(parameter[2])
        else:
            logger.warning(
                "StepFunctionModel.set_parameter: Could not set parameters! "
                "reason: incompatible variant passed"
            )
