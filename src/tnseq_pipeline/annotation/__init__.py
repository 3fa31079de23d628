"""Annotation joiner: map insertion positions onto gene intervals."""

from tnseq_pipeline.annotation.join import (
    GENE_FIELDS,
    aggregate_positions,
    annotate_insertions,
    enforce_strict_order,
    gene_breakpoints,
    locate_positions,
)

__all__ = [
    "GENE_FIELDS",
    "aggregate_positions",
    "annotate_insertions",
    "enforce_strict_order",
    "gene_breakpoints",
    "locate_positions",
]
