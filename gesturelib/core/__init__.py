from .errors import (
    PipelineError,
    InvalidConfigurationError,
    DimensionMismatchError,
    NotInitializedError,
    NotTrainedError,
    TypeMismatchError,
    FormatError,
)
from .circular_buffer import CircularBuffer
from .settings import SettingsReader, SettingsWriter, MODULE_HEADER, PIPELINE_HEADER
from .base import (
    Module,
    PreProcessing,
    FeatureExtraction,
    Predictor,
    Classifier,
    Regressor,
    PostProcessing,
    stage_boundary,
)

__all__ = [
    "PipelineError",
    "InvalidConfigurationError",
    "DimensionMismatchError",
    "NotInitializedError",
    "NotTrainedError",
    "TypeMismatchError",
    "FormatError",
    "CircularBuffer",
    "SettingsReader",
    "SettingsWriter",
    "MODULE_HEADER",
    "PIPELINE_HEADER",
    "Module",
    "PreProcessing",
    "FeatureExtraction",
    "Predictor",
    "Classifier",
    "Regressor",
    "PostProcessing",
    "stage_boundary",
]
