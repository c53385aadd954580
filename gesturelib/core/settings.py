"""Line-oriented text format for module and pipeline settings.

Every module block starts with ``MODULE_HEADER`` followed by
``ModuleType: <name>`` and then the module's fields, one ``Key: value`` line
each, in the order the module wrote them. Readers consume fields in the same
order and raise :class:`FormatError` on anything unexpected.
"""

from __future__ import annotations
from typing import Callable, List, TextIO, TypeVar
import numpy as np

from .errors import FormatError, InvalidConfigurationError

MODULE_HEADER = "GESTURELIB_MODULE_SETTINGS_V1"
PIPELINE_HEADER = "GESTURELIB_PIPELINE_SETTINGS_V1"

T = TypeVar("T")


class SettingsWriter:
    def __init__(self, sink: TextIO):
        self._sink = sink

    def write_line(self, line: str) -> None:
        self._sink.write(line + "\n")

    def write_header(self, header: str) -> None:
        self.write_line(header)

    def write_field(self, key: str, value) -> None:
        if isinstance(value, bool):
            value = int(value)
        self.write_line(f"{key}: {value}")

    def write_vector(self, key: str, values) -> None:
        values = np.asarray(values, dtype=np.float64).reshape(-1)
        self.write_line(f"{key}: " + " ".join(repr(float(v)) for v in values))

    def write_matrix(self, key: str, matrix) -> None:
        matrix = np.atleast_2d(np.asarray(matrix, dtype=np.float64))
        self.write_field(key, f"{matrix.shape[0]} {matrix.shape[1]}")
        for row in matrix:
            self.write_line(" ".join(repr(float(v)) for v in row))


class SettingsReader:
    def __init__(self, source: TextIO):
        self._source = source

    def read_line(self) -> str:
        line = self._source.readline()
        if line == "":
            raise FormatError("Unexpected end of settings stream")
        return line.rstrip("\r\n")

    def expect_header(self, header: str) -> None:
        line = self.read_line().strip()
        if line != header:
            raise FormatError(f"Expected header '{header}', found '{line}'")

    def read_field(self, key: str, cast: Callable[[str], T] = str) -> T:
        line = self.read_line()
        name, sep, raw = line.partition(":")
        if not sep or name.strip() != key:
            raise FormatError(f"Expected field '{key}', found '{line}'")
        try:
            return cast(raw.strip())
        except ValueError as e:
            raise FormatError(f"Could not parse field '{key}' from '{raw.strip()}': {e}") from e

    def read_int(self, key: str) -> int:
        return self.read_field(key, int)

    def read_float(self, key: str) -> float:
        return self.read_field(key, float)

    def read_bool(self, key: str) -> bool:
        return bool(self.read_field(key, int))

    def read_vector(self, key: str) -> np.ndarray:
        return self.read_field(key, _parse_floats)

    def read_matrix(self, key: str) -> np.ndarray:
        shape = self.read_field(key, _parse_ints)
        if len(shape) != 2:
            raise FormatError(f"Expected 2 shape values for '{key}', found {len(shape)}")
        rows, cols = shape
        if rows < 0 or cols < 0:
            raise InvalidConfigurationError(f"Matrix '{key}' has negative shape ({rows}, {cols})")
        matrix = np.zeros((rows, cols))
        for i in range(rows):
            try:
                row = _parse_floats(self.read_line())
            except ValueError as e:
                raise FormatError(f"Bad row {i} in matrix '{key}': {e}") from e
            if len(row) != cols:
                raise FormatError(f"Row {i} of '{key}' has {len(row)} values, expected {cols}")
            matrix[i] = row
        return matrix


def _parse_floats(raw: str) -> np.ndarray:
    return np.array([float(v) for v in raw.split()], dtype=np.float64)


def _parse_ints(raw: str) -> List[int]:
    return [int(v) for v in raw.split()]
