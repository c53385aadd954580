import numpy as np

from ..core.base import PreProcessing, stage_boundary
from ..core.errors import InvalidConfigurationError
from ..core.settings import SettingsReader, SettingsWriter


class DeadZone(PreProcessing):
    """Zeroes values inside ``[lower_limit, upper_limit]``.

    Values above the band are shifted down by ``upper_limit`` and values below
    it are shifted up by ``lower_limit``, so the output is continuous at the
    band edges.
    """

    MODULE_TYPE = "DeadZone"

    def __init__(self, lower_limit: float = -0.1, upper_limit: float = 0.1, num_dimensions: int = 1):
        super().__init__()
        self.lower_limit = 0.0
        self.upper_limit = 0.0
        self.init(lower_limit, upper_limit, num_dimensions)

    @stage_boundary
    def init(self, lower_limit: float, upper_limit: float, num_dimensions: int) -> None:
        self._init(lower_limit, upper_limit, num_dimensions)

    def _init(self, lower_limit: float, upper_limit: float, num_dimensions: int) -> None:
        self._require_positive(num_dimensions=num_dimensions)
        if lower_limit >= upper_limit:
            raise InvalidConfigurationError(
                f"lower_limit ({lower_limit}) must be below upper_limit ({upper_limit})"
            )
        self.lower_limit = float(lower_limit)
        self.upper_limit = float(upper_limit)
        self.num_input_dimensions = int(num_dimensions)
        self.num_output_dimensions = self.num_input_dimensions
        self.processed_data = np.zeros(self.num_output_dimensions)
        self.initialized = True

    def filter(self, x) -> np.ndarray:
        if not self.process(x):
            return np.zeros(0)
        return self.get_processed_data()

    def _process(self, x: np.ndarray) -> np.ndarray:
        y = np.zeros_like(x)
        above = x > self.upper_limit
        below = x < self.lower_limit
        y[above] = x[above] - self.upper_limit
        y[below] = x[below] - self.lower_limit
        return y

    def _reset(self) -> None:
        self.processed_data = np.zeros(self.num_output_dimensions)

    def _clone_from(self, other: "DeadZone") -> None:
        self.lower_limit = other.lower_limit
        self.upper_limit = other.upper_limit
        self.processed_data = other.processed_data.copy()

    def _write_settings(self, writer: SettingsWriter) -> None:
        writer.write_field("LowerLimit", repr(self.lower_limit))
        writer.write_field("UpperLimit", repr(self.upper_limit))
        writer.write_field("NumDimensions", self.num_input_dimensions)

    def _read_settings(self, reader: SettingsReader) -> None:
        lower_limit = reader.read_float("LowerLimit")
        upper_limit = reader.read_float("UpperLimit")
        num_dimensions = reader.read_int("NumDimensions")
        self._init(lower_limit, upper_limit, num_dimensions)
