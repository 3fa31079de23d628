"""Chromosome remapping, input-table loading and hit summaries."""

from dataclasses import dataclass, field
from typing import Optional

import polars as pl
import structlog

from tnseq_pipeline.config.schema import PipelineConfig, UnmappedPolicy
from tnseq_pipeline.errors import MalformedInputTable, UnmappedChromosome
from tnseq_pipeline.tables.parse import parse_genes_file, parse_hit_file, parse_pool_file

logger = structlog.get_logger()


@dataclass
class InputTables:
    """The three input tables after parsing and chromosome remapping."""

    insertions: pl.DataFrame
    genes: pl.DataFrame
    hits: Optional[pl.DataFrame] = None
    dropped: dict[str, int] = field(default_factory=dict)


def remap_chromosomes(
    df: pl.DataFrame,
    chromosome_map: dict[str, str],
    policy: UnmappedPolicy | str = UnmappedPolicy.DROP,
    table: str = "table",
) -> tuple[pl.DataFrame, int]:
    """Rename raw chromosome accessions to canonical names.

    Rows whose accession has no mapping are either rejected
    (UnmappedChromosome) or dropped with a warning, depending on policy.

    Args:
        df: DataFrame with a raw "chromosome" column
        chromosome_map: accession -> canonical name
        policy: "drop" or "reject"
        table: Table name for diagnostics

    Returns:
        Tuple of (remapped DataFrame, number of dropped rows)

    Raises:
        UnmappedChromosome: If policy is "reject" and any row is unmapped
    """
    policy = UnmappedPolicy(policy)
    unmapped = df.filter(~pl.col("chromosome").is_in(list(chromosome_map)))
    dropped = unmapped.height

    if dropped:
        accessions = sorted(unmapped["chromosome"].unique().to_list())
        if policy is UnmappedPolicy.REJECT:
            raise UnmappedChromosome(table, accessions)
        logger.warning(
            "chromosome_rows_dropped",
            table=table,
            dropped=dropped,
            accessions=accessions,
        )
        df = df.filter(pl.col("chromosome").is_in(list(chromosome_map)))

    df = df.with_columns(pl.col("chromosome").replace(chromosome_map))
    return df, dropped


def check_coordinates(
    df: pl.DataFrame,
    lengths: dict[str, int],
    columns: list[str],
    table: str,
) -> None:
    """Reject coordinates outside [0, length] of a chromosome with a configured length.

    Chromosomes without an entry in lengths are not checked; their length is
    inferred from the data later.

    Raises:
        MalformedInputTable: If any coordinate lies beyond its chromosome
    """
    for chrom, length in lengths.items():
        chrom_df = df.filter(pl.col("chromosome") == chrom)
        for column in columns:
            outside = chrom_df.filter((pl.col(column) < 0) | (pl.col(column) > length))
            if outside.height:
                raise MalformedInputTable(
                    table,
                    f"{outside.height} rows with {column} outside {chrom} length {length} "
                    f"(max {outside[column].max()})",
                )


def load_tables(config: PipelineConfig) -> InputTables:
    """Parse all input tables named in the config and remap chromosomes.

    Any MalformedInputTable error propagates and aborts the run, including
    a position or gene bound beyond a configured chromosome length.

    Args:
        config: PipelineConfig with input paths and chromosome map

    Returns:
        InputTables with canonical chromosome names and per-table drop counts
    """
    chromosome_map = config.chromosome_map()
    policy = config.unmapped_policy

    logger.info("load_tables_start", chromosomes=list(chromosome_map.values()))

    insertions, dropped_pool = remap_chromosomes(
        parse_pool_file(config.inputs.pool_file), chromosome_map, policy, "pool_file"
    )
    insertions = insertions.sort(["chromosome", "position"])

    genes, dropped_genes = remap_chromosomes(
        parse_genes_file(config.inputs.genes_file), chromosome_map, policy, "genes_file"
    )

    lengths = config.chromosome_lengths()
    check_coordinates(insertions, lengths, ["position"], "pool_file")
    check_coordinates(genes, lengths, ["begin", "end"], "genes_file")

    dropped = {"pool_file": dropped_pool, "genes_file": dropped_genes}

    hits = None
    if config.inputs.hit_file is not None:
        hits, dropped["hit_file"] = remap_chromosomes(
            parse_hit_file(config.inputs.hit_file), chromosome_map, policy, "hit_file"
        )

    logger.info(
        "load_tables_complete",
        insertions=insertions.height,
        genes=genes.height,
        hits=hits.height if hits is not None else None,
        dropped=dropped,
    )

    return InputTables(insertions=insertions, genes=genes, hits=hits, dropped=dropped)


def summarize_gene_hits(genes: pl.DataFrame, hits: pl.DataFrame) -> pl.DataFrame:
    """Count annotated genes and genes with central insertions per chromosome.

    observed_zero_hit_fraction is the share of annotated genes without a
    single hit strain, the observed counterpart of the simulated
    zero-density probability.

    Returns:
        DataFrame with columns chromosome, n_genes, n_genes_hit,
        observed_zero_hit_fraction, sorted by chromosome
    """
    gene_counts = genes.group_by("chromosome").agg(pl.len().alias("n_genes"))
    hit_counts = (
        hits.filter(pl.col("n_strains") > 0)
        .group_by("chromosome")
        .agg(pl.len().alias("n_genes_hit"))
    )

    return (
        gene_counts.join(hit_counts, on="chromosome", how="left")
        .with_columns(pl.col("n_genes_hit").fill_null(0).cast(pl.Int64))
        .with_columns(
            pl.max_horizontal(
                pl.lit(0.0),
                1.0 - pl.col("n_genes_hit") / pl.col("n_genes"),
            ).alias("observed_zero_hit_fraction")
        )
        .sort("chromosome")
    )
