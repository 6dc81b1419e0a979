"""File containers for exchange records.

Every serializer stores exactly the exchange record tree of an object. The
JSON and YAML containers write the record as a document; the HDF5 container
maps the tree onto groups and attributes.
"""

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import h5py
import numpy as np
import yaml

from ..acquisition.acquisition_setup import AcquisitionSetup
from ..acquisition.ct_system import CTSystem
from ..core.serialization import (
    SerializationInterface,
    parse_component,
    parse_data_model,
    parse_misc_object,
    parse_prepare_step,
)
from ..utils.logging import get_logger


logger = get_logger()


def plain_record(value: Any) -> Any:
    """Copy of a record tree containing only builtin Python types."""
    if isinstance(value, Mapping):
        return {str(k): plain_record(v) for k, v in value.items()}
    if isinstance(value, np.ndarray):
        return plain_record(value.tolist())
    if isinstance(value, (list, tuple)):
        return [plain_record(v) for v in value]
    if isinstance(value, np.generic):
        return value.item()
    return value


class AbstractSerializer:
    """Writes exchange records to files and restores objects from them.

    Subclasses implement `_write_record` and `_read_record`.
    """

    def _write_record(self, record: Dict[str, Any], path: Path) -> None:
        raise NotImplementedError

    def _read_record(self, path: Path) -> Any:
        raise NotImplementedError

    def serialize(self, obj: SerializationInterface, path: str) -> None:
        """Write the exchange record of `obj` to `path`."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._write_record(plain_record(obj.to_variant()), path)
        logger.debug(f"{type(self).__name__}: wrote {type(obj).__name__} to {path}")

    def read_record(self, path: str) -> Any:
        """The stored exchange record.

        Raises:
            FileNotFoundError: If `path` does not exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Record file not found: {path}")
        return self._read_record(path)

    def serialize_component(self, component, path: str) -> None:
        self.serialize(component, path)

    def serialize_data_model(self, model, path: str) -> None:
        self.serialize(model, path)

    def serialize_system(self, system: CTSystem, path: str) -> None:
        self.serialize(system, path)

    def serialize_prepare_step(self, step, path: str) -> None:
        self.serialize(step, path)

    def serialize_acquisition_setup(self, setup: AcquisitionSetup, path: str) -> None:
        self.serialize(setup, path)

    def deserialize_component(self, path: str, fallback_to_generic: bool = False):
        """Restore a system component; None if its type is unknown.

        Args:
            path: File to read
            fallback_to_generic: Restore components of unknown type as the
                generic type of their elemental family
        """
        return parse_component(self.read_record(path), fallback_to_generic)

    def deserialize_data_model(self, path: str):
        return parse_data_model(self.read_record(path))

    def deserialize_prepare_step(self, path: str):
        return parse_prepare_step(self.read_record(path))

    def deserialize_system(self, path: str) -> Optional[CTSystem]:
        system = parse_misc_object(self.read_record(path))
        if system is not None and not isinstance(system, CTSystem):
            logger.warning(f"{path} does not contain a CT system")
            return None
        return system

    def deserialize_acquisition_setup(self, path: str) -> Optional[AcquisitionSetup]:
        setup = parse_misc_object(self.read_record(path))
        if setup is not None and not isinstance(setup, AcquisitionSetup):
            logger.warning(f"{path} does not contain an acquisition setup")
            return None
        return setup


class JsonSerializer(AbstractSerializer):
    """Exchange records as indented JSON documents."""

    def __init__(self, indent: int = 4):
        self.indent = indent

    def _write_record(self, record: Dict[str, Any], path: Path) -> None:
        with open(path, 'w') as f:
            json.dump(record, f, indent=self.indent)

    def _read_record(self, path: Path) -> Any:
        with open(path, 'r') as f:
            return json.load(f)


class YamlSerializer(AbstractSerializer):
    """Exchange records as YAML documents."""

    def _write_record(self, record: Dict[str, Any], path: Path) -> None:
        with open(path, 'w') as f:
            yaml.safe_dump(record, f, default_flow_style=False, sort_keys=False)

    def _read_record(self, path: Path) -> Any:
        with open(path, 'r') as f:
            return yaml.safe_load(f)


class Hdf5Serializer(AbstractSerializer):
    """Exchange records in HDF5 files.

    Mappings become groups and lists become groups flagged with the
    ``is_list`` attribute whose children are named by their index. Scalars
    are stored as attributes of the enclosing group; None is stored as an
    empty group flagged with ``is_none``.
    """

    LIST_FLAG = 'is_list'
    NONE_FLAG = 'is_none'

    def _write_record(self, record: Dict[str, Any], path: Path) -> None:
        with h5py.File(path, 'w') as f:
            self._write_mapping(f, record)

    def _read_record(self, path: Path) -> Any:
        with h5py.File(path, 'r') as f:
            return self._read_group(f)

    def _write_value(self, group, key: str, value: Any) -> None:
        if value is None:
            group.create_group(key).attrs[self.NONE_FLAG] = True
        elif isinstance(value, Mapping):
            self._write_mapping(group.create_group(key), value)
        elif isinstance(value, list):
            sub_group = group.create_group(key)
            sub_group.attrs[self.LIST_FLAG] = True
            for idx, item in enumerate(value):
                self._write_value(sub_group, str(idx), item)
        else:
            group.attrs[key] = value

    def _write_mapping(self, group, mapping: Mapping[str, Any]) -> None:
        for key, value in mapping.items():
            self._write_value(group, key, value)

    def _read_group(self, group) -> Any:
        attrs = dict(group.attrs)
        if attrs.pop(self.NONE_FLAG, False):
            return None
        is_list = bool(attrs.pop(self.LIST_FLAG, False))

        entries = {key: self._read_scalar(value) for key, value in attrs.items()}
        for key, sub_group in group.items():
            entries[key] = self._read_group(sub_group)

        if is_list:
            return [entries[key] for key in sorted(entries, key=int)]
        return entries

    @staticmethod
    def _read_scalar(value: Any) -> Any:
        if isinstance(value, bytes):
            return value.decode('utf-8')
        if isinstance(value, np.generic):
            return value.item()
        return value
