"""Integration tests for the CLI commands using CliRunner."""

import polars as pl
import pytest
from click.testing import CliRunner

from tnseq_pipeline.cli.main import cli
from tnseq_pipeline.persistence import ResultStore


@pytest.fixture
def results_dir(tmp_path):
    return tmp_path / "results"


@pytest.fixture
def short_chromosome_config(tmp_path, config_file):
    """Config that also maps NC_999999 to a 100 bp plasmid (too short to simulate)."""
    text = config_file.read_text().replace(
        "    length: 1000\n",
        "    length: 1000\n  - accession: NC_999999\n    name: pShort\n    length: 100\n",
    )
    path = tmp_path / "short.yaml"
    path.write_text(text)
    return path


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])

    assert result.exit_code == 0
    assert 'annotate' in result.output
    assert 'simulate' in result.output
    assert 'info' in result.output


def test_info_shows_config(config_file):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(config_file), 'info'])

    assert result.exit_code == 0
    assert 'NC_000001 -> Ch1' in result.output
    assert 'Library sizes: [50, 100]' in result.output
    assert 'Seed: 7' in result.output


def test_annotate_writes_tables(config_file, results_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(config_file), 'annotate'])

    assert result.exit_code == 0, result.output
    assert 'Annotated 3/4 insertions' in result.output
    assert 'dropped 1 pool_file rows' in result.output
    for name in ["annotated_insertions", "fixed_bins", "gene_bins", "hit_summary"]:
        assert (results_dir / f"{name}.tsv").exists()
        assert (results_dir / f"{name}.parquet").exists()
    assert (results_dir / "annotate.provenance.json").exists()
    assert (results_dir / "plots" / "insertion_track_Ch1.png").exists()

    annotated = pl.read_csv(results_dir / "annotated_insertions.tsv", separator="\t")
    assert annotated["position"].to_list() == [150, 150, 600, 900]
    assert annotated["locus_id"].to_list() == ["G1", "G1", "G2", None]


def test_annotate_skips_existing(config_file):
    runner = CliRunner()
    runner.invoke(cli, ['--config', str(config_file), 'annotate', '--skip-plots'])
    result = runner.invoke(cli, ['--config', str(config_file), 'annotate', '--skip-plots'])

    assert result.exit_code == 0
    assert 'Skipping' in result.output

    forced = runner.invoke(cli, ['--config', str(config_file), 'annotate', '--skip-plots', '--force'])
    assert forced.exit_code == 0
    assert 'Annotation complete!' in forced.output


def test_annotate_reject_policy_fails(config_file):
    config_file.write_text(config_file.read_text().replace(
        "unmapped_policy: drop", "unmapped_policy: reject"
    ))

    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(config_file), 'annotate'])

    assert result.exit_code == 1
    assert 'NC_999999' in result.output


def test_simulate_writes_stats(config_file, results_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(config_file), 'simulate'])

    assert result.exit_code == 0, result.output
    assert 'Simulation complete!' in result.output
    assert (results_dir / "essentiality_stats.tsv").exists()
    assert (results_dir / "simulate.provenance.json").exists()
    assert (results_dir / "plots" / "essentiality_curves.png").exists()
    assert (results_dir / "plots" / "density_tracks_Ch1.png").exists()
    assert (results_dir / "observed_density_tracks.tsv").exists()
    simulated = pl.read_parquet(results_dir / "simulated_density_tracks.parquet")
    assert simulated.height == 4 * 5

    stats = pl.read_csv(results_dir / "essentiality_stats.tsv", separator="\t")
    assert stats.height == 4
    assert stats["library_size"].to_list() == [50, 50, 100, 100]
    assert stats["sampling_mode"].to_list() == ["biased", "uniform", "biased", "uniform"]


def test_simulate_seed_override_is_reproducible(config_file, results_dir):
    runner = CliRunner()
    args = ['--config', str(config_file), 'simulate', '--skip-plots', '--force', '--seed', '42']

    runner.invoke(cli, args)
    first = pl.read_parquet(results_dir / "essentiality_stats.parquet")
    runner.invoke(cli, args)
    second = pl.read_parquet(results_dir / "essentiality_stats.parquet")

    assert first.equals(second)


def test_simulate_skips_existing(config_file):
    runner = CliRunner()
    runner.invoke(cli, ['--config', str(config_file), 'simulate', '--skip-plots'])
    result = runner.invoke(cli, ['--config', str(config_file), 'simulate', '--skip-plots'])

    assert result.exit_code == 0
    assert 'Skipping' in result.output


def test_simulate_reports_failed_tasks(short_chromosome_config, results_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(short_chromosome_config), 'simulate', '--skip-plots'])

    assert result.exit_code == 1
    assert 'pShort' in result.output
    assert 'InsufficientWindows' in result.output

    # Completed statistics are still written and stored
    stats = pl.read_csv(results_dir / "essentiality_stats.tsv", separator="\t")
    assert stats["chromosome"].unique().to_list() == ["Ch1"]
    with ResultStore(results_dir / "tnseq.duckdb") as store:
        assert store.load_dataframe("essentiality_stats").height == 4


def test_missing_config_file(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(tmp_path / "nope.yaml"), 'info'])

    assert result.exit_code != 0


def test_simulate_worker_count_reuses_cached_stats(config_file):
    runner = CliRunner()
    runner.invoke(cli, ['--config', str(config_file), 'simulate', '--skip-plots'])
    result = runner.invoke(cli, ['--config', str(config_file), 'simulate', '--skip-plots', '--workers', '2'])

    assert result.exit_code == 0
    assert 'Skipping' in result.output


def test_annotate_rejects_insertion_past_chromosome_length(config_file):
    config_file.write_text(config_file.read_text().replace("length: 1000", "length: 500"))

    runner = CliRunner()
    annotate = runner.invoke(cli, ['--config', str(config_file), 'annotate', '--skip-plots'])
    simulate = runner.invoke(cli, ['--config', str(config_file), 'simulate', '--skip-plots'])

    assert annotate.exit_code == 1
    assert 'Annotation failed' in annotate.output
    assert 'pool_file' in annotate.output
    assert simulate.exit_code == 1
    assert 'Simulation failed' in simulate.output
