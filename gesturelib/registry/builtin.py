"""Explicit registration of the modules shipped with gesturelib."""

import logging

from .base import ModuleRegistry
from ..features import TimeseriesBuffer
from ..preprocessing import MovingAverageFilter, DeadZone
from ..predictors import MinDist, LinearRegression
from ..postprocessing import ClassLabelChangeFilter, ClassLabelFilter

_logger = logging.getLogger(__name__)


def register_builtin_modules(registry: ModuleRegistry) -> ModuleRegistry:
    """Register every built-in module into ``registry``; returns it."""
    registry.register(
        'TimeseriesBuffer',
        TimeseriesBuffer,
        aliases=['WindowStage'],
        description='Sliding window of the most recent samples, flattened oldest-first',
        tags=['windowing'],
    )
    registry.register(
        'MovingAverageFilter',
        MovingAverageFilter,
        description='Per-dimension moving average',
        tags=['filter'],
    )
    registry.register(
        'DeadZone',
        DeadZone,
        description='Zeroes values inside a dead band',
        tags=['filter'],
    )
    registry.register(
        'MinDist',
        MinDist,
        description='Nearest-centroid classifier',
    )
    registry.register(
        'LinearRegression',
        LinearRegression,
        description='Least-squares linear regression',
    )
    registry.register(
        'ClassLabelChangeFilter',
        ClassLabelChangeFilter,
        description='Emits a label only when it changes',
        tags=['debounce'],
    )
    registry.register(
        'ClassLabelFilter',
        ClassLabelFilter,
        description='Majority vote over recent labels',
        tags=['debounce'],
    )

    _logger.info(f"Registered {len(registry)} modules in {registry.name} registry")
    return registry


def create_default_registry() -> ModuleRegistry:
    """New registry holding every built-in module."""
    return register_builtin_modules(ModuleRegistry('modules'))
