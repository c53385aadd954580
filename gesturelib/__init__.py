"""
gesturelib: streaming gesture recognition pipelines.

Core modules:
    - core: module families, circular buffer, settings format, errors
    - registry: type name -> factory table for rebuilding stages
    - preprocessing / features / predictors / postprocessing: built-in stages
    - neural: feed-forward neuron
    - pipeline: chain orchestration
    - config: YAML configuration
"""

__version__ = "0.1.0"

from .core import (
    PipelineError,
    InvalidConfigurationError,
    DimensionMismatchError,
    NotInitializedError,
    NotTrainedError,
    TypeMismatchError,
    FormatError,
    CircularBuffer,
    Module,
    PreProcessing,
    FeatureExtraction,
    Predictor,
    Classifier,
    Regressor,
    PostProcessing,
)
from .registry import ModuleRegistry, register_builtin_modules, create_default_registry
from .features import TimeseriesBuffer
from .preprocessing import MovingAverageFilter, DeadZone
from .predictors import MinDist, LinearRegression
from .postprocessing import ClassLabelChangeFilter, ClassLabelFilter
from .neural import Neuron, ActivationFunction
from .pipeline import Pipeline
from .config import PipelineConfig, StageConfig, load_config, build_pipeline
from .log import setup_logging

__all__ = [
    "PipelineError",
    "InvalidConfigurationError",
    "DimensionMismatchError",
    "NotInitializedError",
    "NotTrainedError",
    "TypeMismatchError",
    "FormatError",
    "CircularBuffer",
    "Module",
    "PreProcessing",
    "FeatureExtraction",
    "Predictor",
    "Classifier",
    "Regressor",
    "PostProcessing",
    "ModuleRegistry",
    "register_builtin_modules",
    "create_default_registry",
    "TimeseriesBuffer",
    "MovingAverageFilter",
    "DeadZone",
    "MinDist",
    "LinearRegression",
    "ClassLabelChangeFilter",
    "ClassLabelFilter",
    "Neuron",
    "ActivationFunction",
    "Pipeline",
    "PipelineConfig",
    "StageConfig",
    "load_config",
    "build_pipeline",
    "setup_logging",
]
