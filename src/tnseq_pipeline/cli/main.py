"""Main CLI entry point for tnseq-pipeline.

Provides command group with global options and subcommands for pipeline operations.
"""

import logging
from pathlib import Path

import click

from tnseq_pipeline import __version__
from tnseq_pipeline.config.loader import load_config
from tnseq_pipeline.cli.annotate_cmd import annotate
from tnseq_pipeline.cli.simulate_cmd import simulate


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to pipeline configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """TnSeq-pipeline: insertion density and gene essentiality simulation.

    Joins insertion sites against the gene annotation, bins insertion
    counts for genome-map tracks, and estimates how many gene-scale
    windows would lack insertions by chance at each library size.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display pipeline information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"TnSeq Pipeline v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        click.echo(f"Config Hash: {config.config_hash()[:16]}...")
        click.echo()

        click.echo(click.style("Inputs:", bold=True))
        click.echo(f"  Pool file:  {config.inputs.pool_file}")
        click.echo(f"  Genes file: {config.inputs.genes_file}")
        click.echo(f"  Hit file:   {config.inputs.hit_file or '-'}")
        click.echo()

        click.echo(click.style("Chromosomes:", bold=True))
        for chrom in config.chromosomes:
            length = chrom.length if chrom.length is not None else "inferred"
            click.echo(f"  {chrom.accession} -> {chrom.name} (length: {length})")
        click.echo(f"  Unmapped policy: {config.unmapped_policy.value}")
        click.echo()

        click.echo(click.style("Simulation:", bold=True))
        click.echo(f"  Library sizes: {config.simulation.library_sizes}")
        click.echo(f"  Modes: {', '.join(m.value for m in config.simulation.modes)}")
        click.echo(f"  Seed: {config.simulation.seed}")
        click.echo(f"  Workers: {config.simulation.max_workers}")
        click.echo(
            f"  Windows: fine={config.density.window}, "
            f"gene={config.density.gene_window}/{config.density.gene_stride}"
        )
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Output Directory: {config.output_dir}")
        click.echo(f"  DuckDB Path: {config.duckdb_path}")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


cli.add_command(annotate)
cli.add_command(simulate)


if __name__ == '__main__':
    cli()
