"""Density estimator: per-base series and rolling-window density profiles."""

from tnseq_pipeline.density.profile import (
    ChromosomeProfile,
    build_chromosome_profiles,
    infer_lengths,
    position_series,
    rolling_density,
    strided_density,
)

__all__ = [
    "ChromosomeProfile",
    "build_chromosome_profiles",
    "infer_lengths",
    "position_series",
    "rolling_density",
    "strided_density",
]
