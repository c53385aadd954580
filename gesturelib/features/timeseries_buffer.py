import numpy as np

from ..core.base import FeatureExtraction, stage_boundary
from ..core.circular_buffer import CircularBuffer
from ..core.settings import SettingsReader, SettingsWriter


class TimeseriesBuffer(FeatureExtraction):
    """Sliding window over the most recent samples.

    Each update pushes one sample into a circular buffer of ``buffer_size``
    rows and emits the whole window flattened oldest-first, so the feature
    vector always has ``buffer_size * num_dimensions`` values. Before the
    window has filled, the missing rows are zeros.
    """

    MODULE_TYPE = "TimeseriesBuffer"

    def __init__(self, buffer_size: int = 5, num_dimensions: int = 1):
        super().__init__()
        self.buffer_size = 0
        self.data_buffer = None
        self.init(buffer_size, num_dimensions)

    @stage_boundary
    def init(self, buffer_size: int, num_dimensions: int) -> None:
        self._init(buffer_size, num_dimensions)

    def _init(self, buffer_size: int, num_dimensions: int) -> None:
        self._require_positive(buffer_size=buffer_size, num_dimensions=num_dimensions)
        self.buffer_size = int(buffer_size)
        self.num_input_dimensions = int(num_dimensions)
        self.num_output_dimensions = self.buffer_size * self.num_input_dimensions
        self.data_buffer = CircularBuffer(self.buffer_size, self.num_input_dimensions)
        self.feature_vector = np.zeros(self.num_output_dimensions)
        self.initialized = True

    def update(self, x) -> np.ndarray:
        """Push ``x`` and return the flattened window.

        ``x`` may be a scalar when the buffer holds 1-dimensional data. On
        failure an empty array is returned and ``last_error`` is set.
        """
        if not self.compute_features(x):
            return np.zeros(0)
        return self.get_feature_vector()

    def _compute_features(self, x: np.ndarray) -> np.ndarray:
        self.data_buffer.push(x)
        return self.data_buffer.flatten()

    def _reset(self) -> None:
        self.data_buffer.fill(0.0)
        self.feature_vector = np.zeros(self.num_output_dimensions)

    @stage_boundary
    def set_buffer_size(self, buffer_size: int) -> None:
        self._require_positive(buffer_size=buffer_size)
        self._require_initialized()
        self._init(buffer_size, self.num_input_dimensions)

    def get_buffer_size(self) -> int:
        return self.buffer_size if self.initialized else 0

    def get_data_buffer(self) -> np.ndarray:
        """Buffered samples as a ``(buffer_size, num_dimensions)`` array."""
        if not self.initialized:
            return np.zeros((0, 0))
        return self.data_buffer.to_array()

    def _clone_from(self, other: "TimeseriesBuffer") -> None:
        self.buffer_size = other.buffer_size
        self.data_buffer = other.data_buffer.copy() if other.data_buffer is not None else None
        self.feature_vector = other.feature_vector.copy()

    def _clear(self) -> None:
        super()._clear()
        self.buffer_size = 0
        self.data_buffer = None

    def _write_settings(self, writer: SettingsWriter) -> None:
        writer.write_field("BufferSize", self.buffer_size)
        writer.write_field("NumDimensions", self.num_input_dimensions)

    def _read_settings(self, reader: SettingsReader) -> None:
        buffer_size = reader.read_int("BufferSize")
        num_dimensions = reader.read_int("NumDimensions")
        self._require_positive(BufferSize=buffer_size, NumDimensions=num_dimensions)
        self._init(buffer_size, num_dimensions)
