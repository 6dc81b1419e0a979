"""Data models of one variable, tabulated data and X-ray spectra."""

from .data_models import (
    AbstractDataModel,
    AbstractIntegrableDataModel,
    AbstractDataModelOperation,
    DataModelAdd,
    DataModelSub,
    DataModelMul,
    DataModelDiv,
    DataModelCat,
    ConstantModel,
    StepFunctionModel,
)
from .tabulated import TabulatedDataModel
from .spectrum_models import (
    AbstractXraySpectrumModel,
    XraySpectrumTabulatedModel,
    FixedXraySpectrumModel,
    XrayLaserSpectrumModel,
    KramersLawSpectrumModel,
    HeuristicCubicSpectrumModel,
)
from .interval_series import IntervalDataSeries, SamplingRange

__all__ = [
    'AbstractDataModel',
    'AbstractIntegrableDataModel',
    'AbstractDataModelOperation',
    'DataModelAdd',
    'DataModelSub',
    'DataModelMul',
    'DataModelDiv',
    'DataModelCat',
    'ConstantModel',
    'StepFunctionModel',
    'TabulatedDataModel',
    'AbstractXraySpectrumModel',
    'XraySpectrumTabulatedModel',
    'FixedXraySpectrumModel',
    'XrayLaserSpectrumModel',
    'KramersLawSpectrumModel',
    'HeuristicCubicSpectrumModel',
    'IntervalDataSeries',
    'SamplingRange',
]
