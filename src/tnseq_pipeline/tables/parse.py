"""Parse the pool, gene annotation and hit TSV tables."""

from pathlib import Path

import polars as pl
import structlog

from tnseq_pipeline.errors import MalformedInputTable
from tnseq_pipeline.tables.models import (
    GENES_COLUMNS,
    GENES_DTYPES,
    HIT_COLUMNS,
    HIT_DTYPES,
    POOL_COLUMNS,
    POOL_DTYPES,
)

logger = structlog.get_logger()

NULL_VALUES = ["NA", ""]

# Scaffold values the barcode mapper writes for barcodes without a locus
UNMAPPED_SCAFFOLDS = ["pastEnd"]


def read_table(
    tsv_path: Path,
    columns: dict[str, str],
    dtypes: dict[str, pl.DataType],
    table: str,
    drop_null: list[str] | None = None,
) -> pl.DataFrame:
    """Read a tab-separated table, select required columns and cast strictly.

    Every column is read as text first so that a non-numeric value in a
    numeric field fails the whole table instead of turning into null.

    Args:
        tsv_path: Path to the TSV file (header row required)
        columns: Raw column name -> standardized column name
        dtypes: Standardized column name -> polars dtype
        table: Table name used in error messages and logs
        drop_null: Standardized columns whose null rows are dropped
                   before casting (rows that are legitimately absent)

    Returns:
        Materialized DataFrame with standardized column names and dtypes

    Raises:
        FileNotFoundError: If the file doesn't exist
        MalformedInputTable: On empty file, missing columns or bad values
    """
    tsv_path = Path(tsv_path)
    if not tsv_path.exists():
        raise FileNotFoundError(f"{table} not found: {tsv_path}")

    try:
        lf = pl.scan_csv(
            tsv_path,
            separator="\t",
            null_values=NULL_VALUES,
            has_header=True,
            infer_schema_length=0,
            quote_char=None,
        )
        actual_columns = lf.collect_schema().names()
    except pl.exceptions.PolarsError as e:
        raise MalformedInputTable(table, f"unreadable table ({e})") from e

    missing = [col for col in columns if col not in actual_columns]
    if missing:
        raise MalformedInputTable(
            table,
            f"missing required columns {missing}; found {actual_columns[:10]}",
        )

    logger.info(
        "table_parse_start",
        table=table,
        path=str(tsv_path),
        column_count=len(actual_columns),
    )

    lf = lf.select([pl.col(raw).alias(std) for raw, std in columns.items()])

    dropped = 0
    if drop_null:
        before = lf.select(pl.len()).collect().item()
        lf = lf.filter(pl.all_horizontal([pl.col(c).is_not_null() for c in drop_null]))
        dropped = before - lf.select(pl.len()).collect().item()

    try:
        df = lf.with_columns(
            [pl.col(name).cast(dtype, strict=True) for name, dtype in dtypes.items()]
        ).collect()
    except pl.exceptions.PolarsError as e:
        raise MalformedInputTable(table, f"unparseable field ({e})") from e

    if df.height == 0:
        raise MalformedInputTable(table, "no data rows")

    logger.info("table_parse_complete", table=table, rows=df.height, dropped_null=dropped)

    return df


def parse_pool_file(tsv_path: Path) -> pl.DataFrame:
    """Parse the barcode pool file into insertion records.

    Barcodes that never mapped (null position or a "pastEnd" scaffold)
    are not insertions and are dropped.

    Returns:
        DataFrame with columns barcode, chromosome, position, total_reads
    """
    tsv_path = Path(tsv_path)
    df = read_table(
        tsv_path,
        POOL_COLUMNS,
        POOL_DTYPES,
        table="pool_file",
        drop_null=["chromosome", "position"],
    )
    df = df.filter(~pl.col("chromosome").is_in(UNMAPPED_SCAFFOLDS))

    if df.filter(pl.col("total_reads").is_null()).height:
        raise MalformedInputTable("pool_file", "nTot has missing values")
    negative = df.filter((pl.col("position") < 0) | (pl.col("total_reads") < 0)).height
    if negative:
        raise MalformedInputTable("pool_file", f"{negative} rows with negative pos or nTot")

    return df


def parse_genes_file(tsv_path: Path) -> pl.DataFrame:
    """Parse the gene annotation table.

    Returns:
        DataFrame with columns chromosome, locus_id, begin, end, strand,
        description, gc_content, length (length = |end - begin|)
    """
    df = read_table(tsv_path, GENES_COLUMNS, GENES_DTYPES, table="genes_file")

    if df.filter(pl.col("begin").is_null() | pl.col("end").is_null()).height:
        raise MalformedInputTable("genes_file", "begin/end have missing values")

    bad_strand = df.filter(~pl.col("strand").is_in(["+", "-"]))
    if bad_strand.height:
        raise MalformedInputTable(
            "genes_file",
            f"invalid strand values {bad_strand['strand'].unique().to_list()[:5]}",
        )

    return df.with_columns(
        pl.col("description").fill_null(""),
        (pl.col("end") - pl.col("begin")).abs().alias("length"),
    )


def parse_hit_file(tsv_path: Path) -> pl.DataFrame:
    """Parse the per-gene hit table.

    Returns:
        DataFrame with columns sys_name, chromosome, description,
        n_strains, n_reads
    """
    df = read_table(tsv_path, HIT_COLUMNS, HIT_DTYPES, table="hit_file")

    negative = df.filter((pl.col("n_strains") < 0) | (pl.col("n_reads") < 0)).height
    if negative:
        raise MalformedInputTable("hit_file", f"{negative} rows with negative counts")

    return df.with_columns(pl.col("description").fill_null(""))
