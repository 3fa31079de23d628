"""Input tables: pool file, gene annotation and hit summary."""

from tnseq_pipeline.tables.models import (
    INTERGENIC_LABEL,
    AnnotatedInsertion,
    GeneAnnotation,
    HitRecord,
    InsertionRecord,
    Strand,
)
from tnseq_pipeline.tables.parse import (
    parse_genes_file,
    parse_hit_file,
    parse_pool_file,
    read_table,
)
from tnseq_pipeline.tables.transform import (
    InputTables,
    check_coordinates,
    load_tables,
    remap_chromosomes,
    summarize_gene_hits,
)

__all__ = [
    "INTERGENIC_LABEL",
    "AnnotatedInsertion",
    "GeneAnnotation",
    "HitRecord",
    "InsertionRecord",
    "Strand",
    "parse_genes_file",
    "parse_hit_file",
    "parse_pool_file",
    "read_table",
    "InputTables",
    "check_coordinates",
    "load_tables",
    "remap_chromosomes",
    "summarize_gene_hits",
]
