from typing import Callable

import numpy as np

from ..core.base import Regressor
from ..core.errors import FormatError
from ..core.settings import SettingsReader, SettingsWriter


class LinearRegression(Regressor):
    """Ordinary least squares with a bias term, one column per output."""

    MODULE_TYPE = "LinearRegression"

    def __init__(self):
        super().__init__()
        self.weights = np.zeros((0, 0))  # (num_inputs + 1, num_outputs); row 0 is the bias

    def _train(self, X: np.ndarray, y: np.ndarray) -> None:
        design = np.hstack([np.ones((X.shape[0], 1)), X])
        weights, _, _, _ = np.linalg.lstsq(design, y, rcond=None)
        self.weights = weights

    def _regress(self, x: np.ndarray) -> np.ndarray:
        return self.weights[0] + x @ self.weights[1:]

    def _clone_model(self, other: "LinearRegression") -> None:
        self.weights = other.weights.copy()

    def _clear(self) -> None:
        super()._clear()
        self.weights = np.zeros((0, 0))

    def _write_regression_model(self, writer: SettingsWriter) -> None:
        writer.write_matrix("Weights", self.weights)

    def _read_regression_model(self, reader: SettingsReader, num_inputs: int, num_outputs: int) -> Callable[[], None]:
        weights = reader.read_matrix("Weights")
        if weights.shape != (num_inputs + 1, num_outputs):
            raise FormatError(
                f"Weights shape {weights.shape} does not match "
                f"({num_inputs + 1}, {num_outputs})"
            )

        def install() -> None:
            self.weights = weights

        return install
