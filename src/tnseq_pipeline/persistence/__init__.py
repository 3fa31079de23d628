"""Persistence layer for result tables and provenance tracking."""

from tnseq_pipeline.persistence.duckdb_store import ResultStore
from tnseq_pipeline.persistence.provenance import ProvenanceTracker

__all__ = ["ResultStore", "ProvenanceTracker"]
