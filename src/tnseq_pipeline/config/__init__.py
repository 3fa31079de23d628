from .loader import load_config, load_config_with_overrides
from .schema import (
    BinningConfig,
    ChromosomeSpec,
    DensityConfig,
    InputFiles,
    PipelineConfig,
    SamplingMode,
    SimulationConfig,
    UnmappedPolicy,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "InputFiles",
    "ChromosomeSpec",
    "DensityConfig",
    "SimulationConfig",
    "BinningConfig",
    "SamplingMode",
    "UnmappedPolicy",
]
