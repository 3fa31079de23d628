"""Fixed-width and gene-width bins of insertion counts and read sums."""

import numpy as np
import polars as pl
import structlog

from tnseq_pipeline.tables.models import INTERGENIC_LABEL

logger = structlog.get_logger()


def _insertion_weights(chrom_df: pl.DataFrame) -> np.ndarray:
    # Aggregated positions carry a count column; raw barcode rows count once.
    if "insertion_count" in chrom_df.columns:
        return chrom_df["insertion_count"].to_numpy().astype(np.float64)
    return np.ones(chrom_df.height, dtype=np.float64)


def _chromosome_rows(annotated: pl.DataFrame, chromosome: str, length: int) -> pl.DataFrame:
    chrom_df = annotated.filter(pl.col("chromosome") == chromosome)
    if chrom_df.height and (chrom_df["position"].min() < 0 or chrom_df["position"].max() > length):
        raise ValueError(
            f"{chromosome}: positions must lie in [0, {length}], got "
            f"[{chrom_df['position'].min()}, {chrom_df['position'].max()}]"
        )
    return chrom_df


def fixed_width_bins(
    annotated: pl.DataFrame,
    chromosome: str,
    length: int,
    bin_width: int = 20000,
) -> pl.DataFrame:
    """Insertion counts and read sums in consecutive fixed-width bins.

    Bins cover 0..length in genome order; empty bins are kept with zero
    counts. The last bin is truncated at length.

    Args:
        annotated: Annotated insertions (raw barcode rows or aggregated
                   positions with an insertion_count column)
        chromosome: Canonical chromosome name
        length: Genome length N
        bin_width: Bin width in bp

    Raises:
        ValueError: If a position lies outside [0, length]

    Returns:
        DataFrame with columns chromosome, bin_start, bin_end,
        insertion_count, total_reads
    """
    if bin_width < 1:
        raise ValueError(f"bin_width must be >= 1, got {bin_width}")

    chrom_df = _chromosome_rows(annotated, chromosome, length)
    n_bins = length // bin_width + 1
    starts = np.arange(n_bins, dtype=np.int64) * bin_width
    ends = np.minimum(starts + bin_width - 1, length)

    bin_index = chrom_df["position"].to_numpy() // bin_width
    counts = np.bincount(bin_index, weights=_insertion_weights(chrom_df), minlength=n_bins)
    reads = np.bincount(
        bin_index,
        weights=chrom_df["total_reads"].to_numpy().astype(np.float64),
        minlength=n_bins,
    )

    return pl.DataFrame({
        "chromosome": [chromosome] * n_bins,
        "bin_start": starts,
        "bin_end": ends,
        "insertion_count": counts.astype(np.int64),
        "total_reads": reads.astype(np.int64),
    })


def bin_means(values: np.ndarray, bin_width: int = 20000) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Mean of a per-base array over consecutive fixed-width bins.

    Uses the same bin layout as fixed_width_bins for an array of length
    N + 1, so the last bin is truncated at N.

    Returns:
        Tuple of (bin_start, bin_end, mean) arrays
    """
    if bin_width < 1:
        raise ValueError(f"bin_width must be >= 1, got {bin_width}")
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        empty = np.empty(0, dtype=np.int64)
        return empty, empty.copy(), np.empty(0, dtype=np.float64)

    starts = np.arange(0, values.size, bin_width, dtype=np.int64)
    ends = np.minimum(starts + bin_width - 1, values.size - 1)
    sums = np.add.reduceat(values, starts)
    return starts, ends, sums / (ends - starts + 1)


def density_track(density: np.ndarray, chromosome: str, bin_width: int = 20000) -> pl.DataFrame:
    """Per-bin mean of a fine density profile, for plotting along the genome.

    Returns:
        DataFrame with columns chromosome, bin_start, bin_end, mean_density
    """
    starts, ends, means = bin_means(density, bin_width)
    return pl.DataFrame(
        {
            "chromosome": [chromosome] * starts.size,
            "bin_start": starts,
            "bin_end": ends,
            "mean_density": means,
        },
        schema={
            "chromosome": pl.Utf8,
            "bin_start": pl.Int64,
            "bin_end": pl.Int64,
            "mean_density": pl.Float64,
        },
    )


def gene_segments(breakpoints: pl.DataFrame, chromosome: str, length: int) -> pl.DataFrame:
    """Split 0..length into contiguous gene and intergenic segments.

    Args:
        breakpoints: Output of gene_breakpoints (non-overlapping intervals)
        chromosome: Canonical chromosome name
        length: Genome length N

    Returns:
        DataFrame with columns chromosome, bin_start, bin_end, label
    """
    genes = breakpoints.filter(pl.col("chromosome") == chromosome).sort("gene_begin")

    starts, ends, labels = [], [], []
    cursor = 0
    for begin, end, description in genes.select(
        "gene_begin", "gene_end", "description"
    ).iter_rows():
        if begin > length:
            break
        if begin > cursor:
            starts.append(cursor)
            ends.append(begin - 1)
            labels.append(INTERGENIC_LABEL)
        end = min(end, length)
        starts.append(begin)
        ends.append(end)
        labels.append(description or "")
        cursor = end + 1
    if cursor <= length:
        starts.append(cursor)
        ends.append(length)
        labels.append(INTERGENIC_LABEL)

    return pl.DataFrame(
        {
            "chromosome": [chromosome] * len(starts),
            "bin_start": starts,
            "bin_end": ends,
            "label": labels,
        },
        schema={
            "chromosome": pl.Utf8,
            "bin_start": pl.Int64,
            "bin_end": pl.Int64,
            "label": pl.Utf8,
        },
    )


def gene_width_bins(
    annotated: pl.DataFrame,
    breakpoints: pl.DataFrame,
    chromosome: str,
    length: int,
) -> pl.DataFrame:
    """Insertion counts per gene or intergenic region.

    Returns:
        DataFrame with columns chromosome, bin_start, bin_end, label,
        insertion_count, total_reads; label is the gene description or
        "intergenic"
    """
    segments = gene_segments(breakpoints, chromosome, length)
    chrom_df = _chromosome_rows(annotated, chromosome, length)

    seg_index = np.searchsorted(
        segments["bin_start"].to_numpy(), chrom_df["position"].to_numpy(), side="right"
    ) - 1
    counts = np.bincount(seg_index, weights=_insertion_weights(chrom_df), minlength=segments.height)
    reads = np.bincount(
        seg_index,
        weights=chrom_df["total_reads"].to_numpy().astype(np.float64),
        minlength=segments.height,
    )

    result = segments.with_columns(
        pl.Series("insertion_count", counts.astype(np.int64)),
        pl.Series("total_reads", reads.astype(np.int64)),
    )

    logger.debug(
        "gene_width_bins_built",
        chromosome=chromosome,
        segments=result.height,
        genes=result.filter(pl.col("label") != INTERGENIC_LABEL).height,
    )

    return result


def bin_all_chromosomes(
    annotated: pl.DataFrame,
    breakpoints: pl.DataFrame,
    lengths: dict[str, int],
    bin_width: int = 20000,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Fixed-width and gene-width bins for every chromosome, in genome order.

    Returns:
        Tuple of (fixed-width bins, gene-width bins)
    """
    fixed = [fixed_width_bins(annotated, chrom, length, bin_width) for chrom, length in lengths.items()]
    gene = [gene_width_bins(annotated, breakpoints, chrom, length) for chrom, length in lengths.items()]

    logger.info(
        "binning_complete",
        chromosomes=list(lengths),
        fixed_bins=sum(df.height for df in fixed),
        gene_bins=sum(df.height for df in gene),
    )

    return pl.concat(fixed), pl.concat(gene)
