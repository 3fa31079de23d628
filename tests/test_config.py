"""Tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from tnseq_pipeline.config import (
    PipelineConfig,
    SamplingMode,
    UnmappedPolicy,
    load_config,
    load_config_with_overrides,
)


def test_load_valid_config(config_file):
    """Test loading a valid configuration."""
    config = load_config(config_file)

    assert isinstance(config, PipelineConfig)
    assert config.chromosome_map() == {"NC_000001": "Ch1"}
    assert config.chromosome_lengths() == {"Ch1": 1000}
    assert config.unmapped_policy is UnmappedPolicy.DROP
    assert config.density.window == 200
    assert config.density.gene_window == 385
    assert config.density.gene_stride == 192
    assert config.simulation.modes == [SamplingMode.BIASED, SamplingMode.UNIFORM]
    assert config.binning.bin_width == 250


def test_library_sizes_sorted_and_deduplicated(config_file):
    """Library sizes come back ascending without duplicates."""
    config = load_config_with_overrides(
        config_file, {"simulation.library_sizes": [300, 100, 300, 200]}
    )
    assert config.simulation.library_sizes == [100, 200, 300]


def test_default_sections(tmp_path):
    """Density, simulation and binning sections fall back to defaults."""
    config_path = tmp_path / "minimal.yaml"
    config_path.write_text(f"""
inputs:
  pool_file: pool_file
  genes_file: genes.GC
chromosomes:
  - accession: NC_1
    name: Ch1
output_dir: {tmp_path / "out"}
duckdb_path: {tmp_path / "out" / "db.duckdb"}
""")
    config = load_config(config_path)

    assert config.inputs.hit_file is None
    assert config.simulation.library_sizes == [10000 * i for i in range(1, 11)]
    assert config.simulation.seed is None
    assert config.simulation.max_workers == 1
    assert config.binning.bin_width == 20000
    assert config.chromosome_lengths() == {}


def test_invalid_config_missing_field(tmp_path):
    """Test that missing required field raises ValidationError."""
    invalid_config = tmp_path / "invalid.yaml"
    invalid_config.write_text(f"""
inputs:
  pool_file: pool_file
  genes_file: genes.GC
output_dir: {tmp_path / "out"}
duckdb_path: {tmp_path / "db.duckdb"}
""")

    with pytest.raises(ValidationError) as exc_info:
        load_config(invalid_config)

    assert "chromosomes" in str(exc_info.value)


@pytest.mark.parametrize("key,value", [
    ("density.window", 0),
    ("density.gene_stride", 0),
    ("simulation.library_sizes", [100, 0]),
    ("simulation.library_sizes", []),
    ("simulation.max_workers", 0),
    ("unmapped_policy", "ignore"),
])
def test_invalid_values_rejected(config_file, key, value):
    with pytest.raises(ValidationError):
        load_config_with_overrides(config_file, {key: value})


def test_duplicate_chromosome_names_rejected(config_file):
    with pytest.raises(ValidationError) as exc_info:
        load_config_with_overrides(config_file, {"chromosomes": [
            {"accession": "NC_1", "name": "Ch1"},
            {"accession": "NC_2", "name": "Ch1"},
        ]})
    assert "duplicate chromosome names" in str(exc_info.value)


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_config_hash_deterministic(config_file):
    """Test that config hash is deterministic and changes with config."""
    config1 = load_config(config_file)
    config2 = load_config(config_file)

    assert config1.config_hash() == config2.config_hash()
    assert len(config1.config_hash()) == 64

    config3 = load_config_with_overrides(config_file, {"density.gene_stride": 100})
    assert config3.config_hash() != config1.config_hash()


def test_config_creates_output_directory(config_file, tmp_path):
    output_dir = tmp_path / "results"
    assert not output_dir.exists()

    load_config(config_file)

    assert output_dir.is_dir()


def test_config_hash_ignores_worker_count(config_file):
    serial = load_config_with_overrides(config_file, {"simulation.max_workers": 1})
    parallel = load_config_with_overrides(config_file, {"simulation.max_workers": 4})

    assert parallel.simulation.max_workers == 4
    assert serial.config_hash() == parallel.config_hash()

    reseeded = load_config_with_overrides(config_file, {"simulation.seed": 8})
    assert reseeded.config_hash() != serial.config_hash()


def test_override_sets_nested_value(config_file):
    config = load_config_with_overrides(
        config_file, {"simulation.seed": 11, "unmapped_policy": "reject"}
    )

    assert config.simulation.seed == 11
    assert config.unmapped_policy == UnmappedPolicy.REJECT


@pytest.mark.parametrize("key", ["simulation.sede", "windows.gene", "simulation.seed.value"])
def test_override_unknown_key_rejected(config_file, key):
    with pytest.raises(KeyError, match="unknown config key"):
        load_config_with_overrides(config_file, {key: 1})


def test_override_values_are_validated(config_file):
    with pytest.raises(ValidationError):
        load_config_with_overrides(config_file, {"simulation.max_workers": 0})
