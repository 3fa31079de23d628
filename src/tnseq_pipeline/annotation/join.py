"""Interval join of insertion positions against gene coordinates."""

from collections.abc import Iterable
from typing import Optional

import numpy as np
import polars as pl
import structlog

from tnseq_pipeline.errors import UnmappedChromosome

logger = structlog.get_logger()

GENE_FIELDS = ["gene_begin", "gene_end", "description", "locus_id"]


def enforce_strict_order(breakpoints: np.ndarray) -> np.ndarray:
    """Push each breakpoint forward until the sequence is strictly increasing.

    Single pass equivalent of ``bp[i] = max(bp[i], bp[i-1] + 1)``: a
    breakpoint at or before its predecessor moves to predecessor + 1.

    Args:
        breakpoints: 1-D integer array in genome order

    Returns:
        New int64 array, strictly increasing
    """
    bp = np.asarray(breakpoints, dtype=np.int64)
    if bp.size == 0:
        return bp.copy()
    idx = np.arange(bp.size, dtype=np.int64)
    return np.maximum.accumulate(bp - idx) + idx


def gene_breakpoints(genes: pl.DataFrame) -> pl.DataFrame:
    """Build non-overlapping gene intervals per chromosome.

    Genes are ordered by their lower bound (begin/end are unordered), their
    bounds are flattened into one breakpoint sequence [lo1, hi1, lo2, hi2, ...]
    and made strictly increasing. Where genes overlap, the earlier gene keeps
    the shared positions and the later gene starts just after it.

    Args:
        genes: Gene table with chromosome, begin, end, description, locus_id

    Returns:
        DataFrame with columns chromosome, gene_begin, gene_end, description,
        locus_id, sorted by chromosome then gene_begin
    """
    ordered = (
        genes.with_columns(
            pl.min_horizontal("begin", "end").alias("_lo"),
            pl.max_horizontal("begin", "end").alias("_hi"),
        )
        .sort(["chromosome", "_lo", "_hi"], maintain_order=True)
    )

    frames = []
    for chrom_df in ordered.partition_by("chromosome", maintain_order=True):
        flat = np.column_stack(
            [chrom_df["_lo"].to_numpy(), chrom_df["_hi"].to_numpy()]
        ).ravel()
        adjusted = enforce_strict_order(flat).reshape(-1, 2)
        frames.append(
            chrom_df.select("chromosome", "description", "locus_id").with_columns(
                pl.Series("gene_begin", adjusted[:, 0], dtype=pl.Int64),
                pl.Series("gene_end", adjusted[:, 1], dtype=pl.Int64),
            )
        )

    schema = {
        "chromosome": pl.Utf8,
        "gene_begin": pl.Int64,
        "gene_end": pl.Int64,
        "description": pl.Utf8,
        "locus_id": pl.Utf8,
    }
    if not frames:
        return pl.DataFrame(schema=schema)

    return pl.concat(frames).select(list(schema))


def locate_positions(
    positions: np.ndarray,
    gene_begin: np.ndarray,
    gene_end: np.ndarray,
) -> np.ndarray:
    """Index of the interval containing each position, or -1.

    Intervals must be disjoint and sorted (output of gene_breakpoints).
    Containment is inclusive at both ends.
    """
    positions = np.asarray(positions, dtype=np.int64)
    if len(gene_begin) == 0:
        return np.full(positions.shape, -1, dtype=np.int64)
    idx = np.searchsorted(gene_begin, positions, side="right") - 1
    inside = (idx >= 0) & (positions <= gene_end[np.clip(idx, 0, None)])
    return np.where(inside, idx, -1)


def annotate_insertions(
    insertions: pl.DataFrame,
    genes: pl.DataFrame,
    chromosomes: Optional[Iterable[str]] = None,
) -> pl.DataFrame:
    """Attach the containing gene (if any) to every insertion record.

    Produces one output row per input row, in input order. Positions
    outside every gene interval get null gene fields.

    Args:
        insertions: Insertion table with chromosome, position, total_reads
        genes: Gene table (any order) with chromosome, begin, end,
               description, locus_id
        chromosomes: Canonical chromosome names; when given, an insertion
                     on any other chromosome raises UnmappedChromosome

    Returns:
        DataFrame with columns chromosome, position, total_reads,
        gene_begin, gene_end, description, locus_id
    """
    if chromosomes is not None:
        known = set(chromosomes)
        unknown = [c for c in insertions["chromosome"].unique().to_list() if c not in known]
        if unknown:
            raise UnmappedChromosome("insertions", unknown)

    breakpoints = gene_breakpoints(genes)
    by_chrom = {
        key[0] if isinstance(key, tuple) else key: frame
        for key, frame in breakpoints.partition_by(
            "chromosome", as_dict=True, maintain_order=True
        ).items()
    }

    indexed = insertions.select("chromosome", "position", "total_reads").with_row_index("_row")

    frames = []
    for chrom_df in indexed.partition_by("chromosome", maintain_order=True):
        chrom = chrom_df["chromosome"][0]
        chrom_genes = by_chrom.get(chrom, breakpoints.clear())
        begin = chrom_genes["gene_begin"].to_numpy()
        end = chrom_genes["gene_end"].to_numpy()
        hit = locate_positions(chrom_df["position"].to_numpy(), begin, end)
        found = hit >= 0
        safe = np.where(found, hit, 0)
        mask = pl.Series(found)

        gene_cols = []
        for name in GENE_FIELDS:
            missing = pl.Series(name, [None] * chrom_df.height, dtype=chrom_genes[name].dtype)
            if chrom_genes.height:
                values = chrom_genes[name].gather(safe).zip_with(mask, missing)
            else:
                values = missing
            gene_cols.append(values.alias(name))

        frames.append(chrom_df.with_columns(gene_cols))

        logger.debug(
            "annotation_join_chromosome",
            chromosome=chrom,
            insertions=chrom_df.height,
            annotated=int(found.sum()),
        )

    if not frames:
        return indexed.drop("_row").with_columns(
            [pl.lit(None, dtype=breakpoints[name].dtype).alias(name) for name in GENE_FIELDS]
        )

    result = pl.concat(frames).sort("_row").drop("_row")

    logger.info(
        "annotation_join_complete",
        insertions=result.height,
        annotated=result.filter(pl.col("gene_begin").is_not_null()).height,
    )

    return result


def aggregate_positions(annotated: pl.DataFrame) -> pl.DataFrame:
    """Collapse barcodes sharing a (chromosome, position).

    Returns:
        DataFrame with columns chromosome, position, insertion_count
        (number of barcodes), total_reads (summed), and the gene fields,
        sorted by chromosome then position
    """
    return (
        annotated.group_by(["chromosome", "position"], maintain_order=True)
        .agg(
            pl.len().cast(pl.Int64).alias("insertion_count"),
            pl.col("total_reads").sum().alias("total_reads"),
            *[pl.col(name).first() for name in GENE_FIELDS],
        )
        .sort(["chromosome", "position"])
    )
