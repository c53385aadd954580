"""Error taxonomy for pipeline modules.

Modules raise these internally; the stage boundary (see ``core.base``)
catches them, stores the instance in ``last_error`` and returns ``False``.
"""


class PipelineError(Exception):
    """Base class for every recoverable module or pipeline failure."""


class InvalidConfigurationError(PipelineError):
    """Bad init parameters, e.g. a non-positive size or dimension."""


class DimensionMismatchError(PipelineError):
    """Input vector length disagrees with the configured dimensionality."""


class NotInitializedError(PipelineError):
    """Operation attempted before ``init``."""


class NotTrainedError(PipelineError):
    """Prediction attempted before the predictor was trained."""


class TypeMismatchError(PipelineError):
    """Clone or load across incompatible concrete module types."""


class FormatError(PipelineError):
    """Corrupt or truncated persisted settings."""
