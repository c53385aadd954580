from pathlib import Path
from typing import Iterator, List, Optional, TextIO, Union
import logging

import numpy as np

from .core.base import (
    Module,
    PreProcessing,
    FeatureExtraction,
    Predictor,
    Classifier,
    Regressor,
    PostProcessing,
    stage_boundary,
)
from .core.errors import (
    PipelineError,
    DimensionMismatchError,
    FormatError,
    InvalidConfigurationError,
    NotInitializedError,
    NotTrainedError,
    TypeMismatchError,
)
from .core.settings import PIPELINE_HEADER, SettingsReader, SettingsWriter
from .registry import ModuleRegistry

logger = logging.getLogger(__name__)

# Settings field name for each chain position, in chain order
_SECTION_FIELDS = (
    ("pre_processing_modules", "PreProcessingModule", PreProcessing),
    ("feature_extraction_modules", "FeatureExtractionModule", FeatureExtraction),
    ("_predictors", "PredictorModule", Predictor),
    ("post_processing_modules", "PostProcessingModule", PostProcessing),
)


class Pipeline:
    """Drives samples through pre-processing, feature extraction, a predictor
    and post-processing.

    The pipeline owns its stages: ``add_stage`` and friends store a deep copy
    of the module passed in, and ``clone`` deep-copies every stage. Each
    public operation returns ``bool``; on failure the first stage error is
    available as ``last_error``.

    A pipeline instance is not safe for concurrent use; drive it from one
    thread.
    """

    def __init__(self, registry: Optional[ModuleRegistry] = None):
        self.registry = registry
        self.pre_processing_modules: List[PreProcessing] = []
        self.feature_extraction_modules: List[FeatureExtraction] = []
        self.predictor: Optional[Predictor] = None
        self.post_processing_modules: List[PostProcessing] = []
        self.output = np.zeros(0)
        self.predicted_class_label = 0
        self.unprocessed_predicted_class_label = 0
        self.regression_data = np.zeros(0)
        self.last_error: Optional[PipelineError] = None

    # ------------------------------------------------------------------
    # Building the chain
    # ------------------------------------------------------------------

    def _owned_copy(self, module: Module) -> Module:
        copy = module.deep_copy()
        if copy is None:
            raise module.last_error or TypeMismatchError(f"Could not copy {module.get_module_type()}")
        return copy

    @stage_boundary
    def add_pre_processing_module(self, module: PreProcessing, index: Optional[int] = None) -> None:
        self._insert(self.pre_processing_modules, PreProcessing, module, index)

    @stage_boundary
    def add_feature_extraction_module(self, module: FeatureExtraction, index: Optional[int] = None) -> None:
        self._insert(self.feature_extraction_modules, FeatureExtraction, module, index)

    @stage_boundary
    def add_post_processing_module(self, module: PostProcessing, index: Optional[int] = None) -> None:
        self._insert(self.post_processing_modules, PostProcessing, module, index)

    @stage_boundary
    def set_predictor(self, module: Predictor) -> None:
        if not isinstance(module, Predictor):
            raise TypeMismatchError(f"{type(module).__name__} is not a predictor")
        previous = self.predictor
        self.predictor = self._owned_copy(module)
        self._clear_output()
        if previous is not None:
            logger.debug(f"Replaced predictor {previous.get_module_type()} with {module.get_module_type()}")

    def set_classifier(self, module: Classifier) -> bool:
        if not isinstance(module, Classifier):
            return self._record_failure(
                "set_classifier", TypeMismatchError(f"{type(module).__name__} is not a classifier")
            )
        return self.set_predictor(module)

    def set_regressor(self, module: Regressor) -> bool:
        if not isinstance(module, Regressor):
            return self._record_failure(
                "set_regressor", TypeMismatchError(f"{type(module).__name__} is not a regressor")
            )
        return self.set_predictor(module)

    def add_stage(self, module: Module) -> bool:
        """Add ``module`` at the end of the chain position matching its family."""
        if isinstance(module, PreProcessing):
            return self.add_pre_processing_module(module)
        if isinstance(module, FeatureExtraction):
            return self.add_feature_extraction_module(module)
        if isinstance(module, Predictor):
            return self.set_predictor(module)
        if isinstance(module, PostProcessing):
            return self.add_post_processing_module(module)
        return self._record_failure(
            "add_stage", TypeMismatchError(f"{type(module).__name__} is not a pipeline module")
        )

    def _insert(self, modules: list, family: type, module: Module, index: Optional[int]) -> None:
        if not isinstance(module, family):
            raise TypeMismatchError(f"{type(module).__name__} is not a {family.__name__} module")
        copy = self._owned_copy(module)
        if index is None:
            modules.append(copy)
        else:
            modules.insert(index, copy)
        self._clear_output()

    def remove_predictor(self) -> None:
        self.predictor = None
        self._clear_output()

    def clear_all(self) -> None:
        self.pre_processing_modules = []
        self.feature_extraction_modules = []
        self.predictor = None
        self.post_processing_modules = []
        self._clear_output()
        self.last_error = None

    # ------------------------------------------------------------------
    # Running the chain
    # ------------------------------------------------------------------

    @stage_boundary
    def train(self, samples, targets) -> None:
        """Feed ``samples`` through pre-processing and feature extraction,
        then train the predictor on the resulting feature vectors.

        Stage history is reset before and after, so training leaves the
        streaming state clean.
        """
        if self.predictor is None:
            raise NotInitializedError("Pipeline has no predictor to train")
        for module in self._front_modules():
            module._require_initialized()

        samples = np.asarray(samples, dtype=np.float64)
        if samples.ndim == 1:
            samples = samples.reshape(-1, 1)
        if samples.ndim != 2 or samples.shape[0] == 0:
            raise InvalidConfigurationError(f"Training samples must be (N, D), got shape {samples.shape}")

        self._reset_front()
        try:
            features = np.stack([self._run_front(sample) for sample in samples])
        finally:
            self._reset_front()

        if not self.predictor.train(features, targets):
            raise self.predictor.last_error
        self._clear_output()
        logger.info(
            f"Pipeline trained {self.predictor.get_module_type()} on {samples.shape[0]} samples "
            f"({features.shape[1]} features)"
        )

    @stage_boundary
    def predict(self, sample) -> None:
        if self.predictor is not None and not self.predictor.is_trained:
            raise NotTrainedError(f"Predictor {self.predictor.get_module_type()} has not been trained")
        modules = list(self.iter_modules())
        if not modules:
            raise NotInitializedError("Pipeline has no modules")
        for module in modules:
            module._require_initialized()
        self._check_chain_dimensions(modules)

        x = np.atleast_1d(np.asarray(sample, dtype=np.float64))
        if x.ndim != 1 or x.shape[0] != self.get_num_input_dimensions():
            raise DimensionMismatchError(
                f"Pipeline expects {self.get_num_input_dimensions()} input dimensions, got shape {x.shape}"
            )

        x = self._run_front(x)
        if self.predictor is not None:
            x = self._run_module(self.predictor, x, self.predictor.get_output)
            if isinstance(self.predictor, Classifier):
                self.unprocessed_predicted_class_label = self.predictor.get_predicted_class_label()
        for module in self.post_processing_modules:
            x = self._run_module(module, x, module.get_processed_data)

        self.output = x
        if isinstance(self.predictor, Classifier):
            self.predicted_class_label = int(x[0])
        elif isinstance(self.predictor, Regressor):
            self.regression_data = x.copy()

    def _front_modules(self) -> Iterator[Module]:
        yield from self.pre_processing_modules
        yield from self.feature_extraction_modules

    def _run_front(self, x: np.ndarray) -> np.ndarray:
        for module in self.pre_processing_modules:
            x = self._run_module(module, x, module.get_processed_data)
        for module in self.feature_extraction_modules:
            x = self._run_module(module, x, module.get_feature_vector)
        return x

    @staticmethod
    def _run_module(module: Module, x: np.ndarray, result) -> np.ndarray:
        if not module.process(x):
            raise module.last_error
        y = result()
        if y.shape[0] != module.get_num_output_dimensions():
            raise DimensionMismatchError(
                f"{module.get_module_type()} produced {y.shape[0]} values, "
                f"expected {module.get_num_output_dimensions()}"
            )
        return y

    def _check_chain_dimensions(self, modules: List[Module]) -> None:
        for previous, current in zip(modules, modules[1:]):
            if previous.get_num_output_dimensions() != current.get_num_input_dimensions():
                raise DimensionMismatchError(
                    f"{previous.get_module_type()} outputs {previous.get_num_output_dimensions()} "
                    f"dimensions but {current.get_module_type()} expects "
                    f"{current.get_num_input_dimensions()}"
                )

    @stage_boundary
    def reset(self) -> None:
        """Clear stream history in every stage; learned parameters are kept."""
        first_error = None
        for module in self.iter_modules():
            if not module.reset() and first_error is None:
                first_error = module.last_error
        self._clear_output()
        if first_error is not None:
            raise first_error

    def _reset_front(self) -> None:
        for module in self._front_modules():
            module.reset()

    def _clear_output(self) -> None:
        self.output = np.zeros(0)
        self.predicted_class_label = 0
        self.unprocessed_predicted_class_label = 0
        self.regression_data = np.zeros(0)

    # ------------------------------------------------------------------
    # Copying and persistence
    # ------------------------------------------------------------------

    def clone(self) -> Optional["Pipeline"]:
        """Deep copy of this pipeline, or None if any stage fails to copy."""
        other = Pipeline(registry=self.registry)
        for module in self.iter_modules():
            if not other.add_stage(module):
                self._record_failure("clone", other.last_error)
                return None
        other.output = self.output.copy()
        other.predicted_class_label = self.predicted_class_label
        other.unprocessed_predicted_class_label = self.unprocessed_predicted_class_label
        other.regression_data = self.regression_data.copy()
        return other

    @stage_boundary
    def save_settings(self, sink: TextIO) -> None:
        writer = SettingsWriter(sink)
        writer.write_header(PIPELINE_HEADER)
        writer.write_field("Trained", self.is_trained)
        writer.write_field("NumPreProcessingModules", len(self.pre_processing_modules))
        writer.write_field("NumFeatureExtractionModules", len(self.feature_extraction_modules))
        writer.write_field("HasPredictor", self.predictor is not None)
        writer.write_field("NumPostProcessingModules", len(self.post_processing_modules))
        for attr, field, _ in _SECTION_FIELDS:
            for module in self._section(attr):
                writer.write_field(field, module.get_module_type())
                if not module.save_settings(sink):
                    raise module.last_error

    @stage_boundary
    def load_settings(self, source: TextIO) -> None:
        """Rebuild every stage from ``source`` using ``self.registry``.

        The pipeline is only modified once the whole stream has loaded.
        """
        if self.registry is None:
            raise InvalidConfigurationError("Loading settings requires a module registry")

        reader = SettingsReader(source)
        reader.expect_header(PIPELINE_HEADER)
        trained = reader.read_bool("Trained")
        counts = {
            "pre_processing_modules": reader.read_int("NumPreProcessingModules"),
            "feature_extraction_modules": reader.read_int("NumFeatureExtractionModules"),
            "_predictors": int(reader.read_bool("HasPredictor")),
            "post_processing_modules": reader.read_int("NumPostProcessingModules"),
        }
        for attr, count in counts.items():
            if count < 0:
                raise InvalidConfigurationError(f"Negative module count {count} for {attr}")

        loaded = {}
        for attr, field, family in _SECTION_FIELDS:
            loaded[attr] = [self._load_module(reader, field, family) for _ in range(counts[attr])]

        predictor = loaded["_predictors"][0] if loaded["_predictors"] else None
        predictor_trained = predictor is not None and predictor.is_trained
        if trained != predictor_trained:
            raise FormatError(
                f"Pipeline Trained flag ({int(trained)}) disagrees with its predictor "
                f"({int(predictor_trained)})"
            )

        self.pre_processing_modules = loaded["pre_processing_modules"]
        self.feature_extraction_modules = loaded["feature_extraction_modules"]
        self.predictor = predictor
        self.post_processing_modules = loaded["post_processing_modules"]
        self._clear_output()
        logger.info(f"Loaded pipeline settings: {self}")

    def _load_module(self, reader: SettingsReader, field: str, family: type) -> Module:
        module_type = reader.read_field(field)
        module = self.registry.create_instance_from_string(module_type)
        if module is None:
            raise FormatError(f"Unknown module type '{module_type}' in pipeline settings")
        if not isinstance(module, family):
            raise TypeMismatchError(f"{module_type} cannot be used as a {family.__name__} module")
        if not module.load_settings(reader):
            raise module.last_error
        return module

    def save_settings_to_file(self, path: Union[str, Path]) -> bool:
        with open(path, "w") as f:
            return self.save_settings(f)

    def load_settings_from_file(self, path: Union[str, Path]) -> bool:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Pipeline settings file not found: {path}")
        with open(path) as f:
            return self.load_settings(f)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def _section(self, attr: str) -> List[Module]:
        if attr == "_predictors":
            return [self.predictor] if self.predictor is not None else []
        return getattr(self, attr)

    def iter_modules(self) -> Iterator[Module]:
        """All stages in chain order."""
        for attr, _, _ in _SECTION_FIELDS:
            yield from self._section(attr)

    @property
    def is_trained(self) -> bool:
        return self.predictor is not None and self.predictor.is_trained

    @property
    def is_initialized(self) -> bool:
        modules = list(self.iter_modules())
        return bool(modules) and all(m.is_initialized for m in modules)

    def get_num_input_dimensions(self) -> int:
        first = next(self.iter_modules(), None)
        return 0 if first is None else first.get_num_input_dimensions()

    def get_num_output_dimensions(self) -> int:
        modules = list(self.iter_modules())
        return 0 if not modules else modules[-1].get_num_output_dimensions()

    def get_pre_processing_module(self, index: int) -> PreProcessing:
        return self.pre_processing_modules[index]

    def get_feature_extraction_module(self, index: int) -> FeatureExtraction:
        return self.feature_extraction_modules[index]

    def get_post_processing_module(self, index: int) -> PostProcessing:
        return self.post_processing_modules[index]

    def get_predictor(self) -> Optional[Predictor]:
        return self.predictor

    def get_output(self) -> np.ndarray:
        return self.output.copy()

    def get_predicted_class_label(self) -> int:
        return self.predicted_class_label

    def get_unprocessed_predicted_class_label(self) -> int:
        return self.unprocessed_predicted_class_label

    def get_regression_data(self) -> np.ndarray:
        return self.regression_data.copy()

    def _record_failure(self, operation: str, error: PipelineError) -> bool:
        self.last_error = error
        logger.warning(f"Pipeline.{operation} failed: {type(error).__name__}: {error}")
        return False

    def __repr__(self) -> str:
        stages = [m.get_module_type() for m in self.iter_modules()]
        return f"Pipeline(stages={stages}, trained={self.is_trained})"
