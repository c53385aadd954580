from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging
import os
import yaml

from ..pipeline import Pipeline
from ..registry import ModuleRegistry, create_default_registry

logger = logging.getLogger(__name__)


@dataclass
class StageConfig:
    type: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PipelineConfig:
    pre_processing: List[StageConfig] = field(default_factory=list)
    feature_extraction: List[StageConfig] = field(default_factory=list)
    predictor: Optional[StageConfig] = None
    post_processing: List[StageConfig] = field(default_factory=list)

    log_level: str = "INFO"
    log_file: Optional[str] = None
    settings_path: Optional[str] = None

    def apply_env_overrides(self) -> "PipelineConfig":
        if os.environ.get("GESTURELIB_LOG_LEVEL"):
            self.log_level = os.environ["GESTURELIB_LOG_LEVEL"]
        if os.environ.get("GESTURELIB_LOG_FILE"):
            self.log_file = os.environ["GESTURELIB_LOG_FILE"]
        if os.environ.get("GESTURELIB_SETTINGS_PATH"):
            self.settings_path = os.environ["GESTURELIB_SETTINGS_PATH"]
        return self


def _stage_from_dict(d: Any) -> StageConfig:
    if isinstance(d, str):
        return StageConfig(type=d)
    if not isinstance(d, dict) or "type" not in d:
        raise ValueError(f"Stage config must be a type name or a mapping with 'type', got {d!r}")
    return StageConfig(type=d["type"], params=dict(d.get("params") or {}))


def _dict_to_config(d: dict) -> PipelineConfig:
    predictor = d.get("predictor")
    logging_dict = d.get("logging", {}) or {}
    return PipelineConfig(
        pre_processing=[_stage_from_dict(s) for s in d.get("pre_processing", []) or []],
        feature_extraction=[_stage_from_dict(s) for s in d.get("feature_extraction", []) or []],
        predictor=_stage_from_dict(predictor) if predictor else None,
        post_processing=[_stage_from_dict(s) for s in d.get("post_processing", []) or []],
        log_level=logging_dict.get("level", "INFO"),
        log_file=logging_dict.get("file"),
        settings_path=d.get("settings_path"),
    )


def load_config(path: Optional[str] = None) -> PipelineConfig:
    if path is None:
        config_dir = Path(__file__).parent
        path = config_dir / "default.yaml"

    path = Path(path)
    if not path.exists():
        return PipelineConfig().apply_env_overrides()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    config = _dict_to_config(data)
    return config.apply_env_overrides()


def _create_stage(registry: ModuleRegistry, stage: StageConfig):
    registry.get(stage.type)  # KeyError listing the available types
    errors = registry.validate_config(stage.type, stage.params)
    if errors:
        raise ValueError(f"Invalid config for {stage.type}: {'; '.join(errors)}")

    module = registry.create_instance_from_string(stage.type)
    if stage.params and not module.init(**stage.params):
        raise ValueError(f"Could not initialize {stage.type}: {module.last_error}")
    return module


def build_pipeline(config: PipelineConfig, registry: Optional[ModuleRegistry] = None) -> Pipeline:
    """Instantiate every configured stage through ``registry``.

    If ``config.settings_path`` points at a saved pipeline, the stages are
    loaded from it instead (trained predictors included).
    """
    registry = registry or create_default_registry()
    pipeline = Pipeline(registry=registry)

    if config.settings_path and Path(config.settings_path).exists():
        if not pipeline.load_settings_from_file(config.settings_path):
            raise ValueError(f"Could not load {config.settings_path}: {pipeline.last_error}")
        return pipeline

    stages = (
        list(config.pre_processing)
        + list(config.feature_extraction)
        + ([config.predictor] if config.predictor else [])
        + list(config.post_processing)
    )
    for stage in stages:
        if not pipeline.add_stage(_create_stage(registry, stage)):
            raise ValueError(f"Could not add {stage.type}: {pipeline.last_error}")

    logger.info(f"Built {pipeline}")
    return pipeline
