import numpy as np

from ..core.base import PreProcessing, stage_boundary
from ..core.circular_buffer import CircularBuffer
from ..core.settings import SettingsReader, SettingsWriter


class MovingAverageFilter(PreProcessing):
    """Per-dimension mean of the last ``filter_size`` samples.

    During warm-up the mean is taken over the samples seen so far rather
    than padding with zeros.
    """

    MODULE_TYPE = "MovingAverageFilter"

    def __init__(self, filter_size: int = 5, num_dimensions: int = 1):
        super().__init__()
        self.filter_size = 0
        self.data_buffer = None
        self.init(filter_size, num_dimensions)

    @stage_boundary
    def init(self, filter_size: int, num_dimensions: int) -> None:
        self._init(filter_size, num_dimensions)

    def _init(self, filter_size: int, num_dimensions: int) -> None:
        self._require_positive(filter_size=filter_size, num_dimensions=num_dimensions)
        self.filter_size = int(filter_size)
        self.num_input_dimensions = int(num_dimensions)
        self.num_output_dimensions = self.num_input_dimensions
        self.data_buffer = CircularBuffer(self.filter_size, self.num_input_dimensions)
        self.processed_data = np.zeros(self.num_output_dimensions)
        self.initialized = True

    def filter(self, x) -> np.ndarray:
        """Filter one sample; returns an empty array on failure."""
        if not self.process(x):
            return np.zeros(0)
        return self.get_processed_data()

    def _process(self, x: np.ndarray) -> np.ndarray:
        self.data_buffer.push(x)
        return self.data_buffer.latest().mean(axis=0)

    def _reset(self) -> None:
        self.data_buffer.fill(0.0)
        self.processed_data = np.zeros(self.num_output_dimensions)

    def _clone_from(self, other: "MovingAverageFilter") -> None:
        self.filter_size = other.filter_size
        self.data_buffer = other.data_buffer.copy() if other.data_buffer is not None else None
        self.processed_data = other.processed_data.copy()

    def _clear(self) -> None:
        super()._clear()
        self.filter_size = 0
        self.data_buffer = None

    def _write_settings(self, writer: SettingsWriter) -> None:
        writer.write_field("FilterSize", self.filter_size)
        writer.write_field("NumDimensions", self.num_input_dimensions)

    def _read_settings(self, reader: SettingsReader) -> None:
        filter_size = reader.read_int("FilterSize")
        num_dimensions = reader.read_int("NumDimensions")
        self._init(filter_size, num_dimensions)
