"""Output generation: result tables and plots."""

from tnseq_pipeline.output.visualizations import (
    generate_all_plots,
    plot_essentiality_curves,
    plot_density_tracks,
    plot_insertion_track,
)
from tnseq_pipeline.output.writers import write_table_output

__all__ = [
    "write_table_output",
    "generate_all_plots",
    "plot_essentiality_curves",
    "plot_density_tracks",
    "plot_insertion_track",
]
