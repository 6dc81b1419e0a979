"""Exchange-record protocol and type registry."""

from .serialization import (
    TYPE_ID_KEY,
    GENERIC_TYPE_ID_KEY,
    TypeFamily,
    SerializationInterface,
    TypeRegistry,
    register,
    register_type,
    to_record,
    from_record,
    parse_component,
    parse_data_model,
    parse_prepare_step,
    parse_misc_object,
)
from .registration import register_all_types

__all__ = [
    'TYPE_ID_KEY',
    'GENERIC_TYPE_ID_KEY',
    'TypeFamily',
    'SerializationInterface',
    'TypeRegistry',
    'register',
    'register_type',
    'to_record',
    'from_record',
    'parse_component',
    'parse_data_model',
    'parse_prepare_step',
    'parse_misc_object',
    'register_all_types',
]
