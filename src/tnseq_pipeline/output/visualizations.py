"""Plots of simulation statistics and binned insertion tracks."""

import logging
from pathlib import Path

import matplotlib
import polars as pl

# Use Agg backend (non-interactive, safe for headless/CLI use)
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402

logger = logging.getLogger(__name__)

MODE_PALETTE = {
    "biased": "#2c7fb8",
    "uniform": "#e6550d",
}


def plot_essentiality_curves(stats: pl.DataFrame, output_path: Path) -> Path:
    """
    Line plot of zero-density probability against library size.

    One panel per chromosome, one line per sampling mode. The gap between
    the uniform and biased lines at small library sizes is the apparent
    essentiality that comes from ignoring positional bias.

    Args:
        stats: Essentiality statistics (chromosome, library_size,
               sampling_mode, zero_density_probability)
        output_path: Path where PNG will be saved

    Returns:
        Path to the saved PNG file
    """
    pdf = stats.to_pandas()

    sns.set_theme(style="whitegrid", context="paper")

    grid = sns.relplot(
        data=pdf,
        x="library_size",
        y="zero_density_probability",
        hue="sampling_mode",
        palette=MODE_PALETTE,
        col="chromosome",
        kind="line",
        marker="o",
        height=4,
        aspect=1.1,
        facet_kws={"sharey": False},
    )
    grid.set_axis_labels("Library size (insertions)", "P(zero gene-scale density)")
    grid.set_titles("{col_name}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    grid.savefig(output_path, dpi=300, bbox_inches="tight")
    plt.close(grid.figure)

    logger.info(f"Saved essentiality curves to {output_path}")
    return output_path


def plot_insertion_track(bins: pl.DataFrame, chromosome: str, output_path: Path) -> Path:
    """
    Bar track of insertion counts per fixed-width bin along one chromosome.

    Args:
        bins: Fixed-width bins (chromosome, bin_start, insertion_count)
        chromosome: Chromosome to draw
        output_path: Path where PNG will be saved

    Returns:
        Path to the saved PNG file
    """
    chrom_bins = bins.filter(pl.col("chromosome") == chromosome).sort("bin_start")

    fig, ax = plt.subplots(figsize=(12, 3))
    widths = (chrom_bins["bin_end"] - chrom_bins["bin_start"] + 1).to_numpy()
    ax.bar(
        chrom_bins["bin_start"].to_numpy(),
        chrom_bins["insertion_count"].to_numpy(),
        width=widths,
        align="edge",
        color="#636363",
    )
    ax.set_xlabel(f"{chromosome} position (bp)")
    ax.set_ylabel("Insertions per bin")
    ax.set_title(f"Insertion density: {chromosome}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=300, bbox_inches="tight")
    plt.close(fig)

    logger.info(f"Saved insertion track to {output_path}")
    return output_path


def plot_density_tracks(
    observed: pl.DataFrame,
    simulated: pl.DataFrame,
    chromosome: str,
    output_path: Path,
) -> Path:
    """
    Observed binned density against simulated libraries at the largest size.

    One line for the observed profile and one per sampling mode; a biased
    library should track the observed shape while a uniform one stays flat.

    Args:
        observed: Observed density tracks (chromosome, bin_start, mean_density)
        simulated: Simulated density tracks (adds library_size, sampling_mode)
        chromosome: Chromosome to draw
        output_path: Path where PNG will be saved

    Returns:
        Path to the saved PNG file
    """
    chrom_sim = simulated.filter(pl.col("chromosome") == chromosome)
    largest = chrom_sim["library_size"].max()
    observed_rows = observed.filter(pl.col("chromosome") == chromosome).select(
        "bin_start",
        "mean_density",
        pl.lit("observed").alias("source"),
    )
    simulated_rows = chrom_sim.filter(pl.col("library_size") == largest).select(
        "bin_start",
        "mean_density",
        pl.col("sampling_mode").alias("source"),
    )
    pdf = pl.concat([observed_rows, simulated_rows]).to_pandas()

    sns.set_theme(style="whitegrid", context="paper")
    fig, ax = plt.subplots(figsize=(12, 3))
    sns.lineplot(
        data=pdf,
        x="bin_start",
        y="mean_density",
        hue="source",
        palette={"observed": "#636363", **MODE_PALETTE},
        ax=ax,
    )
    ax.set_xlabel(f"{chromosome} position (bp)")
    ax.set_ylabel("Mean insertion density")
    ax.set_title(f"Observed vs simulated density (k={largest}): {chromosome}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=300, bbox_inches="tight")
    plt.close(fig)

    logger.info(f"Saved density tracks to {output_path}")
    return output_path


def generate_all_plots(
    stats: pl.DataFrame | None,
    fixed_bins: pl.DataFrame | None,
    output_dir: Path,
    observed_tracks: pl.DataFrame | None = None,
    simulated_tracks: pl.DataFrame | None = None,
) -> dict[str, Path]:
    """
    Generate every plot whose input table is available.

    Each plot is attempted independently; a failure is logged and the
    remaining plots are still produced.

    Returns:
        Dictionary mapping plot name to file path
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    plots = {}

    if stats is not None and stats.height:
        try:
            plots["essentiality_curves"] = plot_essentiality_curves(
                stats,
                output_dir / "essentiality_curves.png",
            )
        except Exception as e:
            logger.warning(f"Failed to create essentiality curves: {e}")

    if fixed_bins is not None and fixed_bins.height:
        for chromosome in fixed_bins["chromosome"].unique(maintain_order=True).to_list():
            try:
                plots[f"track_{chromosome}"] = plot_insertion_track(
                    fixed_bins,
                    chromosome,
                    output_dir / f"insertion_track_{chromosome}.png",
                )
            except Exception as e:
                logger.warning(f"Failed to create insertion track for {chromosome}: {e}")

    if observed_tracks is not None and simulated_tracks is not None and simulated_tracks.height:
        for chromosome in simulated_tracks["chromosome"].unique(maintain_order=True).to_list():
            try:
                plots[f"density_{chromosome}"] = plot_density_tracks(
                    observed_tracks,
                    simulated_tracks,
                    chromosome,
                    output_dir / f"density_tracks_{chromosome}.png",
                )
            except Exception as e:
                logger.warning(f"Failed to create density tracks for {chromosome}: {e}")

    logger.info(f"Generated {len(plots)} plots in {output_dir}")
    return plots
