"""Tail-probability estimator for simulated libraries."""

from tnseq_pipeline.stats.ecdf import EssentialityStat, ecdf, zero_density_probability

__all__ = ["EssentialityStat", "ecdf", "zero_density_probability"]
