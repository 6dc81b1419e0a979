"""File containers for exchange records."""

from .serializers import (
    AbstractSerializer,
    JsonSerializer,
    YamlSerializer,
    Hdf5Serializer,
    plain_record,
)

__all__ = [
    'AbstractSerializer',
    'JsonSerializer',
    'YamlSerializer',
    'Hdf5Serializer',
    'plain_record',
]
