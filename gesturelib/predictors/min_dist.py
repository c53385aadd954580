from typing import Callable

import numpy as np

from ..core.base import Classifier
from ..core.errors import FormatError
from ..core.settings import SettingsReader, SettingsWriter


class MinDist(Classifier):
    """Nearest-centroid classifier.

    Training stores one mean vector per class; prediction picks the class
    whose centroid is closest in Euclidean distance.
    """

    MODULE_TYPE = "MinDist"

    def __init__(self):
        super().__init__()
        self.centroids = np.zeros((0, 0))
        self.class_distances = np.zeros(0)

    def _train(self, X: np.ndarray, y: np.ndarray) -> None:
        labels = np.unique(y)
        centroids = np.stack([X[y == label].mean(axis=0) for label in labels])
        self.class_labels = labels.astype(np.int64)
        self.centroids = centroids

    def _predict_label(self, x: np.ndarray) -> int:
        self.class_distances = np.linalg.norm(self.centroids - x, axis=1)
        return int(self.class_labels[int(np.argmin(self.class_distances))])

    def get_class_distances(self) -> np.ndarray:
        return self.class_distances.copy()

    def _reset(self) -> None:
        super()._reset()
        self.class_distances = np.zeros(0)

    def _clone_model(self, other: "MinDist") -> None:
        self.centroids = other.centroids.copy()
        self.class_distances = other.class_distances.copy()

    def _clear(self) -> None:
        super()._clear()
        self.centroids = np.zeros((0, 0))
        self.class_distances = np.zeros(0)

    def _write_model(self, writer: SettingsWriter) -> None:
        writer.write_field("ClassLabels", " ".join(str(int(v)) for v in self.class_labels))
        writer.write_matrix("Centroids", self.centroids)

    def _read_model(self, reader: SettingsReader, num_inputs: int, num_outputs: int) -> Callable[[], None]:
        labels = reader.read_field("ClassLabels", lambda raw: np.array([int(v) for v in raw.split()], dtype=np.int64))
        centroids = reader.read_matrix("Centroids")
        if centroids.shape != (len(labels), num_inputs):
            raise FormatError(
                f"Centroids shape {centroids.shape} does not match "
                f"{len(labels)} classes x {num_inputs} inputs"
            )

        def install() -> None:
            self.class_labels = labels
            self.centroids = centroids

        return install
