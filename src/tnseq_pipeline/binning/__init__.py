"""Binning layer: aggregates for the circular-genome visualization tracks."""

from tnseq_pipeline.binning.aggregate import (
    bin_all_chromosomes,
    bin_means,
    density_track,
    fixed_width_bins,
    gene_segments,
    gene_width_bins,
)

__all__ = [
    "bin_all_chromosomes",
    "bin_means",
    "density_track",
    "fixed_width_bins",
    "gene_segments",
    "gene_width_bins",
]
