from .min_dist import MinDist
from .linear_regression import LinearRegression

__all__ = [
    "MinDist",
    "LinearRegression",
]
