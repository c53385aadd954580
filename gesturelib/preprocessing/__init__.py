from .moving_average import MovingAverageFilter
from .dead_zone import DeadZone

__all__ = [
    "MovingAverageFilter",
    "DeadZone",
]
