"""End-to-end composition of the annotation and essentiality steps."""

from dataclasses import dataclass
from typing import Optional

import polars as pl
import structlog

from tnseq_pipeline.annotation import aggregate_positions, annotate_insertions, gene_breakpoints
from tnseq_pipeline.binning import bin_all_chromosomes, density_track
from tnseq_pipeline.config.schema import PipelineConfig
from tnseq_pipeline.density import ChromosomeProfile, build_chromosome_profiles, infer_lengths
from tnseq_pipeline.simulation import SweepResult, run_simulation_sweep
from tnseq_pipeline.tables import InputTables, load_tables, summarize_gene_hits

logger = structlog.get_logger()


@dataclass
class AnnotationResult:
    """Joined insertions and the binned aggregates built from them."""

    annotated: pl.DataFrame
    positions: pl.DataFrame
    breakpoints: pl.DataFrame
    fixed_bins: pl.DataFrame
    gene_bins: pl.DataFrame
    lengths: dict[str, int]
    hit_summary: Optional[pl.DataFrame]
    dropped: dict[str, int]


@dataclass
class EssentialityResult:
    """Observed profiles and the simulation sweep run on them.

    observed_tracks holds the per-bin mean of each observed density
    profile, binned like the simulated tracks in sweep.density_tracks.
    """

    profiles: list[ChromosomeProfile]
    sweep: SweepResult
    observed_tracks: pl.DataFrame


def chromosome_lengths(config: PipelineConfig, tables: InputTables) -> dict[str, int]:
    """Genome length per canonical chromosome, in config order."""
    return infer_lengths(
        [c.name for c in config.chromosomes],
        tables.insertions,
        tables.genes,
        configured=config.chromosome_lengths(),
    )


def process_annotation(
    config: PipelineConfig,
    tables: Optional[InputTables] = None,
) -> AnnotationResult:
    """Join insertions against genes and build the visualization bins.

    Composes: load_tables -> annotate_insertions -> aggregate_positions ->
    bin_all_chromosomes (+ hit summary when a hit file is configured).
    """
    tables = tables or load_tables(config)
    lengths = chromosome_lengths(config, tables)

    annotated = annotate_insertions(tables.insertions, tables.genes, chromosomes=lengths)
    positions = aggregate_positions(annotated)
    breakpoints = gene_breakpoints(tables.genes)
    fixed_bins, gene_bins = bin_all_chromosomes(
        positions, breakpoints, lengths, config.binning.bin_width
    )

    hit_summary = None
    if tables.hits is not None:
        hit_summary = summarize_gene_hits(tables.genes, tables.hits)

    logger.info(
        "annotation_complete",
        insertions=annotated.height,
        positions=positions.height,
        unannotated=annotated.filter(pl.col("gene_begin").is_null()).height,
    )

    return AnnotationResult(
        annotated=annotated,
        positions=positions,
        breakpoints=breakpoints,
        fixed_bins=fixed_bins,
        gene_bins=gene_bins,
        lengths=lengths,
        hit_summary=hit_summary,
        dropped=tables.dropped,
    )


def process_essentiality(
    config: PipelineConfig,
    tables: Optional[InputTables] = None,
) -> EssentialityResult:
    """Build observed density profiles and run the simulation sweep.

    Composes: load_tables -> build_chromosome_profiles -> run_simulation_sweep,
    plus density_track over each observed profile
    """
    tables = tables or load_tables(config)
    lengths = chromosome_lengths(config, tables)

    profiles = build_chromosome_profiles(tables.insertions, lengths, config.density.window)
    bin_width = config.binning.bin_width
    sweep = run_simulation_sweep(profiles, config.simulation, config.density, bin_width)
    observed_tracks = pl.concat([density_track(p.density, p.name, bin_width) for p in profiles])

    return EssentialityResult(profiles=profiles, sweep=sweep, observed_tracks=observed_tracks)
