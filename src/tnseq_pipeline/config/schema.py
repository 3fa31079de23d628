"""Pydantic models for pipeline configuration."""

import hashlib
import json
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_LIBRARY_SIZES = [10000 * i for i in range(1, 11)]


class SamplingMode(str, Enum):
    """Sampling weight strategy for simulated libraries."""

    BIASED = "biased"
    UNIFORM = "uniform"


class UnmappedPolicy(str, Enum):
    """What to do with rows whose chromosome has no canonical name."""

    DROP = "drop"
    REJECT = "reject"


class InputFiles(BaseModel):
    """Paths to the three tab-separated input tables."""

    pool_file: Path = Field(
        ...,
        description="Barcode pool file (barcode, scaffold, pos, nTot)",
    )
    genes_file: Path = Field(
        ...,
        description="Gene annotation file (scaffoldId, locusId, begin, end, strand, desc, GC)",
    )
    hit_file: Optional[Path] = Field(
        default=None,
        description="Per-gene hit summary (sysName, scaffoldId, desc, nStrains, nReads)",
    )


class ChromosomeSpec(BaseModel):
    """One entry of the chromosome map."""

    accession: str = Field(..., min_length=1, description="Raw scaffold/accession identifier")
    name: str = Field(..., min_length=1, description="Canonical short name (e.g. Ch1)")
    length: Optional[int] = Field(
        default=None,
        ge=1,
        description="Genome length N; positions run 0..N. Inferred from data when omitted.",
    )


class DensityConfig(BaseModel):
    """Rolling-window widths for density profiles."""

    window: int = Field(
        default=200,
        ge=1,
        description="Fine centered rolling-mean width (bp)",
    )
    gene_window: int = Field(
        default=385,
        ge=1,
        description="Gene-scale window width (bp) for the essentiality statistic",
    )
    gene_stride: int = Field(
        default=192,
        ge=1,
        description="Gene-scale window stride (bp)",
    )


class SimulationConfig(BaseModel):
    """Library-size sweep for the essentiality simulation."""

    library_sizes: list[int] = Field(
        default_factory=lambda: list(DEFAULT_LIBRARY_SIZES),
        min_length=1,
        description="Numbers of insertions drawn per simulated library",
    )
    modes: list[SamplingMode] = Field(
        default_factory=lambda: [SamplingMode.BIASED, SamplingMode.UNIFORM],
        min_length=1,
        description="Sampling strategies to simulate",
    )
    seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Master seed; None draws fresh OS entropy",
    )
    max_workers: int = Field(
        default=1,
        ge=1,
        description="Worker processes for the sweep (1 = run in-process)",
    )

    @field_validator("library_sizes")
    @classmethod
    def sort_library_sizes(cls, v: list[int]) -> list[int]:
        """Reject non-positive sizes, deduplicate and sort ascending."""
        if any(size < 1 for size in v):
            raise ValueError(f"library sizes must be positive, got {v}")
        return sorted(set(v))

    @field_validator("modes")
    @classmethod
    def dedupe_modes(cls, v: list[SamplingMode]) -> list[SamplingMode]:
        return list(dict.fromkeys(v))


class BinningConfig(BaseModel):
    """Fixed-width bins for visualization tracks."""

    bin_width: int = Field(
        default=20000,
        ge=1,
        description="Fixed bin width (bp)",
    )


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    inputs: InputFiles = Field(
        ...,
        description="Input table paths",
    )
    chromosomes: list[ChromosomeSpec] = Field(
        ...,
        min_length=1,
        description="Chromosome map (accession -> canonical name, optional length)",
    )
    unmapped_policy: UnmappedPolicy = Field(
        default=UnmappedPolicy.DROP,
        description="drop rows on unmapped chromosomes (with a warning) or reject the run",
    )
    density: DensityConfig = Field(default_factory=DensityConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    binning: BinningConfig = Field(default_factory=BinningConfig)
    output_dir: Path = Field(
        ...,
        description="Directory for result tables and plots",
    )
    duckdb_path: Path = Field(
        ...,
        description="Path to DuckDB database file",
    )

    @field_validator("output_dir")
    @classmethod
    def create_directory(cls, v: Path) -> Path:
        """Create directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @model_validator(mode="after")
    def check_unique_chromosomes(self) -> "PipelineConfig":
        accessions = [c.accession for c in self.chromosomes]
        names = [c.name for c in self.chromosomes]
        if len(set(accessions)) != len(accessions):
            raise ValueError(f"duplicate chromosome accessions: {accessions}")
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate chromosome names: {names}")
        return self

    def chromosome_map(self) -> dict[str, str]:
        """Return the accession -> canonical name lookup."""
        return {c.accession: c.name for c in self.chromosomes}

    def chromosome_lengths(self) -> dict[str, int]:
        """Return configured lengths keyed by canonical name (known lengths only)."""
        return {c.name: c.length for c in self.chromosomes if c.length is not None}

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values that can
        change a result table. simulation.max_workers is left out: per-task
        seeds make the sweep independent of the worker count.
        """
        config_dict = self.model_dump(mode="python", exclude={"simulation": {"max_workers"}})
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
