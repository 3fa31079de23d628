"""Record models and column schemas for the TnSeq input tables."""

from enum import Enum
from typing import Optional

import polars as pl
from pydantic import BaseModel, Field

# Raw column -> standardized column, per table. Other columns are ignored.
POOL_COLUMNS = {
    "barcode": "barcode",
    "scaffold": "chromosome",
    "pos": "position",
    "nTot": "total_reads",
}

GENES_COLUMNS = {
    "scaffoldId": "chromosome",
    "locusId": "locus_id",
    "begin": "begin",
    "end": "end",
    "strand": "strand",
    "desc": "description",
    "GC": "gc_content",
}

HIT_COLUMNS = {
    "sysName": "sys_name",
    "scaffoldId": "chromosome",
    "desc": "description",
    "nStrains": "n_strains",
    "nReads": "n_reads",
}

# Target dtypes after standardization (strict casts; failure = malformed table)
POOL_DTYPES = {
    "barcode": pl.Utf8,
    "chromosome": pl.Utf8,
    "position": pl.Int64,
    "total_reads": pl.Int64,
}

GENES_DTYPES = {
    "chromosome": pl.Utf8,
    "locus_id": pl.Utf8,
    "begin": pl.Int64,
    "end": pl.Int64,
    "strand": pl.Utf8,
    "description": pl.Utf8,
    "gc_content": pl.Float64,
}

HIT_DTYPES = {
    "sys_name": pl.Utf8,
    "chromosome": pl.Utf8,
    "description": pl.Utf8,
    "n_strains": pl.Int64,
    "n_reads": pl.Int64,
}

# Marker for the gene-width bins that fall between genes
INTERGENIC_LABEL = "intergenic"


class Strand(str, Enum):
    PLUS = "+"
    MINUS = "-"


class InsertionRecord(BaseModel):
    """One barcode-mapped insertion locus from the pool file.

    Several barcodes may share a (chromosome, position); they are summed
    when the data is used positionally.
    """

    chromosome: str
    position: int = Field(..., ge=0)
    total_reads: int = Field(..., ge=0)


class GeneAnnotation(BaseModel):
    """One annotated gene. begin/end are unordered bounds."""

    chromosome: str
    locus_id: str
    begin: int
    end: int
    strand: Strand
    description: str = ""
    gc_content: float
    length: int = Field(..., ge=0)


class HitRecord(BaseModel):
    """Per-gene summary of central insertions."""

    sys_name: Optional[str] = None
    chromosome: str
    description: str = ""
    n_strains: int = Field(..., ge=0)
    n_reads: int = Field(..., ge=0)


class AnnotatedInsertion(BaseModel):
    """Insertion joined against the gene annotation.

    Gene fields are None when the position lies outside every gene.
    """

    chromosome: str
    position: int = Field(..., ge=0)
    total_reads: int = Field(..., ge=0)
    gene_begin: Optional[int] = None
    gene_end: Optional[int] = None
    description: Optional[str] = None
    locus_id: Optional[str] = None
