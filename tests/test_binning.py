"""Tests for fixed-width and gene-width insertion bins."""

import numpy as np
import polars as pl
import pytest

from tnseq_pipeline.binning import (
    bin_all_chromosomes,
    bin_means,
    density_track,
    fixed_width_bins,
    gene_segments,
    gene_width_bins,
)


@pytest.fixture
def annotated():
    """Raw barcode rows: two at 150, one at 600, one at 900 on Ch1."""
    return pl.DataFrame({
        "chromosome": ["Ch1", "Ch1", "Ch1", "Ch1", "Ch2"],
        "position": [150, 150, 600, 900, 20],
        "total_reads": [5, 3, 2, 1, 4],
    })


@pytest.fixture
def breakpoints():
    return pl.DataFrame({
        "chromosome": ["Ch1", "Ch1"],
        "gene_begin": [100, 500],
        "gene_end": [300, 700],
        "description": ["gene one", "gene two"],
        "locus_id": ["G1", "G2"],
    })


def test_fixed_width_bins_counts_and_reads(annotated):
    bins = fixed_width_bins(annotated, "Ch1", length=1000, bin_width=250)

    assert bins["bin_start"].to_list() == [0, 250, 500, 750, 1000]
    assert bins["bin_end"].to_list() == [249, 499, 749, 999, 1000]
    assert bins["insertion_count"].to_list() == [2, 0, 1, 1, 0]
    assert bins["total_reads"].to_list() == [8, 0, 2, 1, 0]
    assert bins["chromosome"].unique().to_list() == ["Ch1"]


def test_fixed_width_bins_conserve_totals(annotated):
    bins = fixed_width_bins(annotated, "Ch1", length=1000, bin_width=77)

    assert bins["insertion_count"].sum() == 4
    assert bins["total_reads"].sum() == 11
    assert bins["bin_end"].max() == 1000


def test_fixed_width_bins_use_aggregated_counts():
    positions = pl.DataFrame({
        "chromosome": ["Ch1", "Ch1"],
        "position": [150, 600],
        "insertion_count": [2, 1],
        "total_reads": [8, 2],
    })

    bins = fixed_width_bins(positions, "Ch1", length=1000, bin_width=500)

    assert bins["insertion_count"].to_list() == [2, 1, 0]
    assert bins["total_reads"].to_list() == [8, 2, 0]


def test_fixed_width_bins_empty_chromosome(annotated):
    bins = fixed_width_bins(annotated, "Ch3", length=99, bin_width=50)

    assert bins.height == 2
    assert bins["insertion_count"].to_list() == [0, 0]


def test_fixed_width_bins_rejects_bad_width(annotated):
    with pytest.raises(ValueError):
        fixed_width_bins(annotated, "Ch1", length=1000, bin_width=0)


def test_gene_segments_cover_genome(breakpoints):
    segments = gene_segments(breakpoints, "Ch1", length=1000)

    assert segments["bin_start"].to_list() == [0, 100, 301, 500, 701]
    assert segments["bin_end"].to_list() == [99, 300, 499, 700, 1000]
    assert segments["label"].to_list() == [
        "intergenic", "gene one", "intergenic", "gene two", "intergenic",
    ]


def test_gene_segments_gene_at_origin_and_end():
    bp = pl.DataFrame({
        "chromosome": ["Ch1"],
        "gene_begin": [0],
        "gene_end": [50],
        "description": ["whole"],
        "locus_id": ["G"],
    })

    segments = gene_segments(bp, "Ch1", length=50)

    assert segments["label"].to_list() == ["whole"]
    assert segments["bin_end"].to_list() == [50]


def test_gene_segments_without_genes(breakpoints):
    segments = gene_segments(breakpoints, "Ch2", length=300)
    assert segments.rows() == [("Ch2", 0, 300, "intergenic")]


def test_gene_width_bins(annotated, breakpoints):
    bins = gene_width_bins(annotated, breakpoints, "Ch1", length=1000)

    assert bins["insertion_count"].to_list() == [0, 2, 0, 1, 1]
    assert bins["total_reads"].to_list() == [0, 8, 0, 2, 1]


def test_bin_all_chromosomes(annotated, breakpoints):
    fixed, gene = bin_all_chromosomes(
        annotated, breakpoints, {"Ch1": 1000, "Ch2": 100}, bin_width=250
    )

    assert fixed["chromosome"].unique(maintain_order=True).to_list() == ["Ch1", "Ch2"]
    assert fixed.filter(pl.col("chromosome") == "Ch2")["insertion_count"].to_list() == [1]
    assert gene.filter(pl.col("chromosome") == "Ch2")["label"].to_list() == ["intergenic"]
    assert gene["insertion_count"].sum() == 5


def test_bins_reject_positions_past_length(annotated, breakpoints):
    # Ch1 insertions reach 900
    with pytest.raises(ValueError, match="positions must lie in"):
        fixed_width_bins(annotated, "Ch1", length=500, bin_width=250)
    with pytest.raises(ValueError, match="positions must lie in"):
        gene_width_bins(annotated, breakpoints, "Ch1", length=500)


def test_bin_means_match_fixed_bin_layout():
    values = np.arange(11, dtype=np.float64)

    starts, ends, means = bin_means(values, bin_width=4)

    assert starts.tolist() == [0, 4, 8]
    assert ends.tolist() == [3, 7, 10]
    assert means.tolist() == pytest.approx([1.5, 5.5, 9.0])


def test_density_track_columns():
    track = density_track(np.full(101, 0.5), "Ch1", bin_width=50)

    assert track.columns == ["chromosome", "bin_start", "bin_end", "mean_density"]
    assert track["bin_start"].to_list() == [0, 50, 100]
    assert track["mean_density"].to_list() == pytest.approx([0.5, 0.5, 0.5])
    assert density_track(np.empty(0), "Ch1").height == 0
