"""Module families shared by every pipeline stage.

Each concrete stage derives from one of :class:`PreProcessing`,
:class:`FeatureExtraction`, :class:`Classifier`, :class:`Regressor` or
:class:`PostProcessing`. The capability methods (``init``, ``process`` and
friends, ``reset``, ``clone``, ``save_settings``, ``load_settings``) are the
stage boundary: they return ``bool`` and never let a :class:`PipelineError`
escape. The error that caused a ``False`` is kept in ``last_error``.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional, TextIO, Tuple, Union
import functools
import logging

import numpy as np

from .errors import (
    PipelineError,
    DimensionMismatchError,
    NotInitializedError,
    NotTrainedError,
    TypeMismatchError,
    InvalidConfigurationError,
    FormatError,
)
from .settings import MODULE_HEADER, SettingsReader, SettingsWriter


def stage_boundary(method: Callable) -> Callable:
    """Turn a method that raises :class:`PipelineError` into one returning bool."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs) -> bool:
        try:
            result = method(self, *args, **kwargs)
        except PipelineError as e:
            return self._record_failure(method.__name__, e)
        self.last_error = None
        return True if result is None else bool(result)

    return wrapper


class Module(ABC):
    """Common state and lifecycle of all stages.

    Lifecycle: constructed (possibly uninitialized) -> ``init`` -> any number
    of processing calls -> ``reset`` (parameters kept, history cleared) ->
    ``clear`` (back to uninitialized).
    """

    MODULE_TYPE: str = "Module"
    FAMILY: str = "module"

    def __init__(self):
        self.initialized = False
        self.num_input_dimensions = 0
        self.num_output_dimensions = 0
        self.last_error: Optional[PipelineError] = None
        self._logger = logging.getLogger(type(self).__module__)

    # ------------------------------------------------------------------
    # Hooks for concrete modules
    # ------------------------------------------------------------------

    @abstractmethod
    def _clone_from(self, other: "Module") -> None:
        """Copy the concrete module's parameters and history from ``other``."""

    @abstractmethod
    def _reset(self) -> None:
        """Clear transient history, keeping parameters."""

    @abstractmethod
    def _write_settings(self, writer: SettingsWriter) -> None:
        """Write configuration fields after the module header."""

    @abstractmethod
    def _read_settings(self, reader: SettingsReader) -> None:
        """Parse every field first, then apply them in one step."""

    def _clear(self) -> None:
        """Release concrete state when the module is cleared."""

    def _check_can_save(self) -> None:
        self._require_initialized()

    # ------------------------------------------------------------------
    # Capability set
    # ------------------------------------------------------------------

    @stage_boundary
    def clone(self, other: "Module") -> None:
        if other is None or other.get_module_type() != self.get_module_type():
            other_type = None if other is None else other.get_module_type()
            raise TypeMismatchError(
                f"Cannot clone {other_type} into {self.get_module_type()}"
            )
        self.initialized = other.initialized
        self.num_input_dimensions = other.num_input_dimensions
        self.num_output_dimensions = other.num_output_dimensions
        self._clone_from(other)

    @stage_boundary
    def reset(self) -> None:
        self._require_initialized()
        self._reset()

    @stage_boundary
    def save_settings(self, sink: TextIO) -> None:
        self._check_can_save()
        writer = SettingsWriter(sink)
        writer.write_header(MODULE_HEADER)
        writer.write_field("ModuleType", self.get_module_type())
        self._write_settings(writer)

    @stage_boundary
    def load_settings(self, source: TextIO) -> None:
        reader = source if isinstance(source, SettingsReader) else SettingsReader(source)
        try:
            reader.expect_header(MODULE_HEADER)
            module_type = reader.read_field("ModuleType")
            if module_type != self.get_module_type():
                raise TypeMismatchError(
                    f"Settings are for {module_type}, not {self.get_module_type()}"
                )
            self._read_settings(reader)
        except PipelineError:
            self.clear()
            raise

    def save_settings_to_file(self, path: Union[str, Path]) -> bool:
        with open(path, "w") as f:
            return self.save_settings(f)

    def load_settings_from_file(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        with open(path) as f:
            return self.load_settings(f)

    def clear(self) -> None:
        self.initialized = False
        self.num_input_dimensions = 0
        self.num_output_dimensions = 0
        self._clear()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_module_type(self) -> str:
        return type(self).MODULE_TYPE

    @property
    def is_initialized(self) -> bool:
        return self.initialized

    def get_num_input_dimensions(self) -> int:
        return self.num_input_dimensions

    def get_num_output_dimensions(self) -> int:
        return self.num_output_dimensions

    def create_new_instance(self) -> "Module":
        return type(self)()

    def deep_copy(self) -> Optional["Module"]:
        copy = self.create_new_instance()
        if not copy.clone(self):
            return None
        return copy

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record_failure(self, operation: str, error: PipelineError) -> bool:
        self.last_error = error
        self._logger.warning(
            f"{self.get_module_type()}.{operation} failed: "
            f"{type(error).__name__}: {error}"
        )
        return False

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise NotInitializedError(f"{self.get_module_type()} has not been initialized")

    def _validate_input(self, x) -> np.ndarray:
        """Check ``x`` against the configured input size without side effects."""
        self._require_initialized()
        x = np.atleast_1d(np.asarray(x, dtype=np.float64))
        if x.ndim != 1 or x.shape[0] != self.num_input_dimensions:
            raise DimensionMismatchError(
                f"{self.get_module_type()} expects {self.num_input_dimensions} "
                f"input dimensions, got shape {x.shape}"
            )
        return x

    @staticmethod
    def _require_positive(**values) -> None:
        for name, value in values.items():
            if value is None or value <= 0:
                raise InvalidConfigurationError(f"{name} must be > 0, got {value}")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(initialized={self.initialized}, "
            f"inputs={self.num_input_dimensions}, outputs={self.num_output_dimensions})"
        )


class PreProcessing(Module):
    """Transforms each raw sample before feature extraction (filters etc.)."""

    FAMILY = "pre_processing"

    def __init__(self):
        super().__init__()
        self.processed_data = np.zeros(0)

    @abstractmethod
    def _process(self, x: np.ndarray) -> np.ndarray:
        """Filter one validated sample and return the output vector."""

    @stage_boundary
    def process(self, x) -> None:
        x = self._validate_input(x)
        self.processed_data = self._process(x)

    def get_processed_data(self) -> np.ndarray:
        return self.processed_data.copy()

    def _clear(self) -> None:
        self.processed_data = np.zeros(0)


class FeatureExtraction(Module):
    """Computes a feature vector from each (pre-processed) sample."""

    FAMILY = "feature_extraction"

    def __init__(self):
        super().__init__()
        self.feature_vector = np.zeros(0)

    @abstractmethod
    def _compute_features(self, x: np.ndarray) -> np.ndarray:
        """Update internal state with one validated sample; return features."""

    @stage_boundary
    def compute_features(self, x) -> None:
        x = self._validate_input(x)
        self.feature_vector = self._compute_features(x)

    def process(self, x) -> bool:
        return self.compute_features(x)

    def get_feature_vector(self) -> np.ndarray:
        return self.feature_vector.copy()

    def _clear(self) -> None:
        self.feature_vector = np.zeros(0)


class Predictor(Module):
    """Shared shape of classifiers and regressors.

    A predictor is initialized exactly when it holds a trained model, so
    ``initialized`` and ``trained`` move together.
    """

    def __init__(self):
        super().__init__()
        self.trained = False
        self.output = np.zeros(0)

    @abstractmethod
    def _train(self, X: np.ndarray, y: np.ndarray) -> None:
        """Fit the model. ``X`` is (N, D); ``y`` has N rows."""

    @abstractmethod
    def _predict(self, x: np.ndarray) -> np.ndarray:
        """Predict from one validated sample and return the output vector."""

    @abstractmethod
    def _clone_model(self, other: "Predictor") -> None:
        """Deep-copy learned parameters from ``other``."""

    @abstractmethod
    def _write_model(self, writer: SettingsWriter) -> None:
        """Write learned parameters (only called when trained)."""

    @abstractmethod
    def _read_model(
        self, reader: SettingsReader, num_inputs: int, num_outputs: int
    ) -> Callable[[], None]:
        """Parse learned parameters and return a callable that installs them."""

    @property
    def is_trained(self) -> bool:
        return self.trained

    def _after_train(self, X: np.ndarray, y: np.ndarray) -> None:
        """Record extra state from the prepared training data."""

    def _prepare_training_data(self, X, y) -> Tuple[np.ndarray, np.ndarray]:
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y)
        if X.ndim != 2 or X.shape[0] == 0 or X.shape[1] == 0:
            raise InvalidConfigurationError(
                f"Training data must be a non-empty (N, D) array, got shape {X.shape}"
            )
        if y.shape[0] != X.shape[0]:
            raise DimensionMismatchError(f"{X.shape[0]} samples but {y.shape[0]} targets")
        return X, y

    @stage_boundary
    def train(self, X, y) -> None:
        X, y = self._prepare_training_data(X, y)
        self._train(X, y)
        self._after_train(X, y)
        self.num_input_dimensions = X.shape[1]
        self.num_output_dimensions = 1 if y.ndim == 1 else y.shape[1]
        self.trained = True
        self.initialized = True
        self._reset()
        self._logger.info(
            f"Trained {self.get_module_type()} on {X.shape[0]} samples "
            f"with {X.shape[1]} dimensions"
        )

    @stage_boundary
    def predict(self, x) -> None:
        if not self.trained:
            raise NotTrainedError(f"{self.get_module_type()} has not been trained")
        x = self._validate_input(x)
        self.output = self._predict(x)

    def process(self, x) -> bool:
        return self.predict(x)

    @stage_boundary
    def reset(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.output = np.zeros(0)

    def get_output(self) -> np.ndarray:
        return self.output.copy()

    def _clone_from(self, other: "Predictor") -> None:
        self.trained = other.trained
        self.output = other.output.copy()
        self._clone_model(other)

    def _check_can_save(self) -> None:
        pass

    def _write_settings(self, writer: SettingsWriter) -> None:
        writer.write_field("Trained", self.trained)
        writer.write_field("NumInputDimensions", self.num_input_dimensions)
        writer.write_field("NumOutputDimensions", self.num_output_dimensions)
        if self.trained:
            self._write_model(writer)

    def _read_settings(self, reader: SettingsReader) -> None:
        trained = reader.read_bool("Trained")
        num_inputs = reader.read_int("NumInputDimensions")
        num_outputs = reader.read_int("NumOutputDimensions")
        install = None
        if trained:
            self._require_positive(NumInputDimensions=num_inputs, NumOutputDimensions=num_outputs)
            install = self._read_model(reader, num_inputs, num_outputs)

        self.clear()
        if install is not None:
            install()
            self.num_input_dimensions = num_inputs
            self.num_output_dimensions = num_outputs
            self.trained = True
            self.initialized = True

    def clear(self) -> None:
        super().clear()
        self.trained = False
        self.output = np.zeros(0)


class Classifier(Predictor):
    """Predictor producing a class label; output is ``[label]``.

    Label 0 is reserved for "no gesture" and is never a trained class.
    """

    FAMILY = "classifier"

    def __init__(self):
        super().__init__()
        self.class_labels = np.zeros(0, dtype=np.int64)
        self.predicted_class_label = 0

    @abstractmethod
    def _predict_label(self, x: np.ndarray) -> int:
        """Return the class label for one validated sample."""

    @property
    def num_classes(self) -> int:
        return len(self.class_labels)

    def get_predicted_class_label(self) -> int:
        return self.predicted_class_label

    def get_class_labels(self) -> np.ndarray:
        return self.class_labels.copy()

    def _prepare_training_data(self, X, y) -> Tuple[np.ndarray, np.ndarray]:
        X, y = super()._prepare_training_data(X, y)
        if y.ndim != 1 or not np.issubdtype(y.dtype, np.number):
            raise InvalidConfigurationError("Class labels must be a 1-D numeric array")
        if np.any(y <= 0) or np.any(np.mod(y, 1) != 0):
            raise InvalidConfigurationError("Class labels must be positive integers")
        return X, y.astype(np.int64)

    def _predict(self, x: np.ndarray) -> np.ndarray:
        self.predicted_class_label = int(self._predict_label(x))
        return np.array([self.predicted_class_label], dtype=np.float64)

    def _reset(self) -> None:
        super()._reset()
        self.predicted_class_label = 0

    def _clone_from(self, other: "Classifier") -> None:
        super()._clone_from(other)
        self.class_labels = other.class_labels.copy()
        self.predicted_class_label = other.predicted_class_label

    def _clear(self) -> None:
        self.class_labels = np.zeros(0, dtype=np.int64)
        self.predicted_class_label = 0


class Regressor(Predictor):
    """Predictor producing a continuous vector.

    Training records the per-dimension ``[min, max]`` of the inputs and
    targets. The ranges are persisted ahead of the concrete model so a
    loaded regressor reports the same ranges it was trained with.
    """

    FAMILY = "regressor"

    def __init__(self):
        super().__init__()
        self.regression_data = np.zeros(0)
        self.input_vector_ranges = np.zeros((0, 2))
        self.target_vector_ranges = np.zeros((0, 2))

    @abstractmethod
    def _regress(self, x: np.ndarray) -> np.ndarray:
        """Return the regression vector for one validated sample."""

    @abstractmethod
    def _write_regression_model(self, writer: SettingsWriter) -> None:
        """Write the learned parameters that follow the ranges."""

    @abstractmethod
    def _read_regression_model(
        self, reader: SettingsReader, num_inputs: int, num_outputs: int
    ) -> Callable[[], None]:
        """Parse the learned parameters and return a callable that installs them."""

    def get_regression_data(self) -> np.ndarray:
        return self.regression_data.copy()

    def get_input_ranges(self) -> np.ndarray:
        """``(num_inputs, 2)`` array of ``[min, max]`` per input dimension."""
        return self.input_vector_ranges.copy()

    def get_target_ranges(self) -> np.ndarray:
        return self.target_vector_ranges.copy()

    def _prepare_training_data(self, X, y) -> Tuple[np.ndarray, np.ndarray]:
        X, y = super()._prepare_training_data(X, y)
        y = y.astype(np.float64)
        if y.ndim == 1:
            y = y.reshape(-1, 1)
        if y.ndim != 2 or y.shape[1] == 0:
            raise InvalidConfigurationError(f"Regression targets must be (N, M), got shape {y.shape}")
        return X, y

    def _after_train(self, X: np.ndarray, y: np.ndarray) -> None:
        self.input_vector_ranges = np.column_stack([X.min(axis=0), X.max(axis=0)])
        self.target_vector_ranges = np.column_stack([y.min(axis=0), y.max(axis=0)])

    def _predict(self, x: np.ndarray) -> np.ndarray:
        self.regression_data = np.asarray(self._regress(x), dtype=np.float64).reshape(-1)
        return self.regression_data.copy()

    def _reset(self) -> None:
        super()._reset()
        self.regression_data = np.zeros(0)

    def _clone_from(self, other: "Regressor") -> None:
        super()._clone_from(other)
        self.regression_data = other.regression_data.copy()
        self.input_vector_ranges = other.input_vector_ranges.copy()
        self.target_vector_ranges = other.target_vector_ranges.copy()

    def _clear(self) -> None:
        self.regression_data = np.zeros(0)
        self.input_vector_ranges = np.zeros((0, 2))
        self.target_vector_ranges = np.zeros((0, 2))

    def _write_model(self, writer: SettingsWriter) -> None:
        writer.write_matrix("InputVectorRanges", self.input_vector_ranges)
        writer.write_matrix("TargetVectorRanges", self.target_vector_ranges)
        self._write_regression_model(writer)

    def _read_model(
        self, reader: SettingsReader, num_inputs: int, num_outputs: int
    ) -> Callable[[], None]:
        input_ranges = reader.read_matrix("InputVectorRanges")
        target_ranges = reader.read_matrix("TargetVectorRanges")
        if input_ranges.shape != (num_inputs, 2) or target_ranges.shape != (num_outputs, 2):
            raise FormatError(
                f"Range shapes {input_ranges.shape}, {target_ranges.shape} do not match "
                f"{num_inputs} inputs and {num_outputs} outputs"
            )
        install_model = self._read_regression_model(reader, num_inputs, num_outputs)

        def install() -> None:
            install_model()
            self.input_vector_ranges = input_ranges
            self.target_vector_ranges = target_ranges

        return install


class PostProcessing(Module):
    """Transforms the predictor's output stream (debouncing and the like)."""

    FAMILY = "post_processing"

    def __init__(self):
        super().__init__()
        self.processed_data = np.zeros(0)

    @abstractmethod
    def _process(self, x: np.ndarray) -> np.ndarray:
        """Process one validated predictor output; return the new output."""

    @stage_boundary
    def process(self, x) -> None:
        x = self._validate_input(x)
        self.processed_data = self._process(x)

    def get_processed_data(self) -> np.ndarray:
        return self.processed_data.copy()

    def _clear(self) -> None:
        self.processed_data = np.zeros(0)
