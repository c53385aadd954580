from .schema import (
    PipelineConfig,
    StageConfig,
    load_config,
    build_pipeline,
)

__all__ = [
    "PipelineConfig",
    "StageConfig",
    "load_config",
    "build_pipeline",
]
