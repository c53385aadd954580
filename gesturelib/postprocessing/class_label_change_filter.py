import numpy as np

from ..core.base import PostProcessing, stage_boundary
from ..core.settings import SettingsReader, SettingsWriter


class ClassLabelChangeFilter(PostProcessing):
    """Signals when the predicted class label changes.

    A classifier stream ``1,1,1,1,2,2,2,2,3,3`` becomes
    ``1,0,0,0,2,0,0,0,3,0``: the new label is emitted once on the sample
    where it changes and 0 otherwise. Useful for debouncing a gesture when
    only the transitions matter.
    """

    MODULE_TYPE = "ClassLabelChangeFilter"

    def __init__(self):
        super().__init__()
        self.filtered_class_label = 0
        self.label_changed = False
        self.init()

    @stage_boundary
    def init(self) -> None:
        self._init()

    def _init(self) -> None:
        self.filtered_class_label = 0
        self.label_changed = False
        self.num_input_dimensions = 1
        self.num_output_dimensions = 1
        self.processed_data = np.zeros(1)
        self.initialized = True

    def filter(self, predicted_class_label: int) -> int:
        """Filter one label; returns it on change, else 0."""
        if not self.process([predicted_class_label]):
            return 0
        return int(self.processed_data[0])

    def _process(self, x: np.ndarray) -> np.ndarray:
        label = int(x[0])
        self.label_changed = label != self.filtered_class_label
        if self.label_changed:
            self.filtered_class_label = label
            return np.array([float(label)])
        return np.zeros(1)

    def get_filtered_class_label(self) -> int:
        return self.filtered_class_label

    def get_change(self) -> bool:
        return self.label_changed

    def _reset(self) -> None:
        self._init()

    def _clone_from(self, other: "ClassLabelChangeFilter") -> None:
        self.filtered_class_label = other.filtered_class_label
        self.label_changed = other.label_changed
        self.processed_data = other.processed_data.copy()

    def _write_settings(self, writer: SettingsWriter) -> None:
        pass

    def _read_settings(self, reader: SettingsReader) -> None:
        self._init()
