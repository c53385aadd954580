from collections import Counter

import numpy as np

from ..core.base import PostProcessing, stage_boundary
from ..core.circular_buffer import CircularBuffer
from ..core.errors import InvalidConfigurationError
from ..core.settings import SettingsReader, SettingsWriter


class ClassLabelFilter(PostProcessing):
    """Majority filter over the last ``buffer_size`` predicted labels.

    The most frequent label in the buffer is emitted when it occurs at least
    ``minimum_count`` times, otherwise 0 (no gesture). Ties go to the label
    seen most recently.
    """

    MODULE_TYPE = "ClassLabelFilter"

    def __init__(self, minimum_count: int = 1, buffer_size: int = 1):
        super().__init__()
        self.minimum_count = 0
        self.buffer_size = 0
        self.filtered_class_label = 0
        self.label_buffer = None
        self.init(minimum_count, buffer_size)

    @stage_boundary
    def init(self, minimum_count: int, buffer_size: int) -> None:
        self._init(minimum_count, buffer_size)

    def _init(self, minimum_count: int, buffer_size: int) -> None:
        self._require_positive(minimum_count=minimum_count, buffer_size=buffer_size)
        if minimum_count > buffer_size:
            raise InvalidConfigurationError(
                f"minimum_count ({minimum_count}) cannot exceed buffer_size ({buffer_size})"
            )
        self.minimum_count = int(minimum_count)
        self.buffer_size = int(buffer_size)
        self.label_buffer = CircularBuffer(self.buffer_size, 1)
        self.filtered_class_label = 0
        self.num_input_dimensions = 1
        self.num_output_dimensions = 1
        self.processed_data = np.zeros(1)
        self.initialized = True

    def filter(self, predicted_class_label: int) -> int:
        if not self.process([predicted_class_label]):
            return 0
        return int(self.processed_data[0])

    def _process(self, x: np.ndarray) -> np.ndarray:
        self.label_buffer.push(x)
        labels = [int(v) for v in self.label_buffer.latest()[:, 0]]
        counts = Counter(labels)
        best_count = max(counts.values())
        # Most recent label among those tied at the top count
        best_label = next(label for label in reversed(labels) if counts[label] == best_count)
        self.filtered_class_label = best_label if best_count >= self.minimum_count else 0
        return np.array([float(self.filtered_class_label)])

    def get_filtered_class_label(self) -> int:
        return self.filtered_class_label

    def _reset(self) -> None:
        self.label_buffer.fill(0.0)
        self.filtered_class_label = 0
        self.processed_data = np.zeros(1)

    def _clone_from(self, other: "ClassLabelFilter") -> None:
        self.minimum_count = other.minimum_count
        self.buffer_size = other.buffer_size
        self.filtered_class_label = other.filtered_class_label
        self.label_buffer = other.label_buffer.copy() if other.label_buffer is not None else None
        self.processed_data = other.processed_data.copy()

    def _clear(self) -> None:
        super()._clear()
        self.minimum_count = 0
        self.buffer_size = 0
        self.label_buffer = None
        self.filtered_class_label = 0

    def _write_settings(self, writer: SettingsWriter) -> None:
        writer.write_field("MinimumCount", self.minimum_count)
        writer.write_field("BufferSize", self.buffer_size)

    def _read_settings(self, reader: SettingsReader) -> None:
        minimum_count = reader.read_int("MinimumCount")
        buffer_size = reader.read_int("BufferSize")
        self._init(minimum_count, buffer_size)
