"""Simulate command: bias-aware and uniform essentiality sweep."""

import logging
import sys

import click

from tnseq_pipeline.config.loader import load_config_with_overrides
from tnseq_pipeline.errors import TnSeqError
from tnseq_pipeline.output import generate_all_plots, write_table_output
from tnseq_pipeline.persistence import ProvenanceTracker, ResultStore
from tnseq_pipeline.workflow import process_essentiality

logger = logging.getLogger(__name__)


@click.command('simulate')
@click.option(
    '--force',
    is_flag=True,
    help='Re-run the sweep even if statistics for this config exist'
)
@click.option(
    '--workers',
    type=click.IntRange(min=1),
    default=None,
    help='Worker processes (overrides simulation.max_workers)'
)
@click.option(
    '--seed',
    type=click.IntRange(min=0),
    default=None,
    help='Master random seed (overrides simulation.seed)'
)
@click.option(
    '--skip-plots',
    is_flag=True,
    help='Do not draw the essentiality curves or density tracks'
)
@click.pass_context
def simulate(ctx, force, workers, seed, skip_plots):
    """Estimate the zero-density probability of simulated libraries.

    For every chromosome, library size and sampling mode (biased: weighted
    by the observed density profile; uniform: no positional bias) a library
    is drawn and the fraction of gene-scale windows without insertions is
    reported.

    Statistics that complete are always written. The command exits with
    status 1 if any (chromosome, library size, mode) task failed.

    Examples:

        tnseq-pipeline simulate --seed 1 --workers 4
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Essentiality Simulation ===", bold=True))
    click.echo()

    overrides = {}
    if workers is not None:
        overrides['simulation.max_workers'] = workers
    if seed is not None:
        overrides['simulation.seed'] = seed

    store = None
    failed = False
    try:
        config = load_config_with_overrides(config_path, overrides)
        config_hash = config.config_hash()
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))

        store = ResultStore.from_config(config)
        provenance = ProvenanceTracker.from_config(config)

        if not force and store.has_table('essentiality_stats', config_hash):
            stats = store.load_dataframe('essentiality_stats')
            click.echo(click.style(
                "essentiality_stats exist for this config. Skipping (use --force to re-run).",
                fg='yellow'
            ))
            click.echo(f"  {stats.height} statistics in {config.duckdb_path}")
            return

        n_tasks = (
            len(config.chromosomes)
            * len(config.simulation.library_sizes)
            * len(config.simulation.modes)
        )
        click.echo(f"Running {n_tasks} simulations with {config.simulation.max_workers} worker(s)...")

        result = process_essentiality(config)
        sweep = result.sweep
        stats = sweep.stats

        provenance.record_step('simulate_libraries', {
            'completed': stats.height,
            'failed': len(sweep.failures),
            'library_sizes': config.simulation.library_sizes,
            'modes': [m.value for m in config.simulation.modes],
            'gene_window': config.density.gene_window,
            'gene_stride': config.density.gene_stride,
        })

        store.save_dataframe(stats, 'essentiality_stats', config_hash)
        paths = write_table_output(
            stats,
            config.output_dir,
            'essentiality_stats',
            statistics={
                'failed_tasks': len(sweep.failures),
                'gene_window': config.density.gene_window,
                'gene_stride': config.density.gene_stride,
            },
        )
        click.echo(click.style(
            f"  {stats.height} statistics -> {paths['tsv']}",
            fg='green'
        ))

        tracks = {
            'observed_density_tracks': result.observed_tracks,
            'simulated_density_tracks': sweep.density_tracks,
        }
        for name, df in tracks.items():
            store.save_dataframe(df, name, config_hash)
            paths = write_table_output(df, config.output_dir, name)
            click.echo(f"  {name}: {df.height} rows -> {paths['tsv']}")

        if not skip_plots and stats.height:
            plots = generate_all_plots(
                stats,
                None,
                config.output_dir / "plots",
                observed_tracks=result.observed_tracks,
                simulated_tracks=sweep.density_tracks,
            )
            for name, path in plots.items():
                click.echo(f"  Plot {name}: {path}")

        provenance_path = provenance.save_sidecar(config.output_dir / "simulate")
        click.echo(f"Provenance: {provenance_path}")
        click.echo()

        if sweep.failures:
            failed = True
            click.echo(click.style(
                f"{len(sweep.failures)} simulation(s) failed:",
                fg='red', bold=True
            ), err=True)
            for failure in sweep.failures:
                click.echo(click.style(f"  - {failure.describe()}", fg='red'), err=True)
        else:
            click.echo(click.style("Simulation complete!", fg='green', bold=True))

    except TnSeqError as e:
        click.echo(click.style(f"Simulation failed: {e}", fg='red'), err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"Simulate command failed: {e}", fg='red'), err=True)
        logger.exception("Simulate command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()

    if failed:
        sys.exit(1)
