"""Annotate command: join insertions to genes and build binned tracks."""

import logging
import sys

import click

from tnseq_pipeline.config.loader import load_config
from tnseq_pipeline.errors import TnSeqError
from tnseq_pipeline.output import generate_all_plots, write_table_output
from tnseq_pipeline.persistence import ProvenanceTracker, ResultStore
from tnseq_pipeline.workflow import process_annotation

logger = logging.getLogger(__name__)

ANNOTATION_TABLES = {
    "annotated_insertions": ["chromosome", "position"],
    "fixed_bins": ["chromosome", "bin_start"],
    "gene_bins": ["chromosome", "bin_start"],
}


@click.command('annotate')
@click.option(
    '--force',
    is_flag=True,
    help='Re-run annotation even if results for this config exist'
)
@click.option(
    '--skip-plots',
    is_flag=True,
    help='Do not draw the per-chromosome insertion tracks'
)
@click.pass_context
def annotate(ctx, force, skip_plots):
    """Join insertion sites to genes and bin insertion counts.

    Writes annotated insertions, fixed-width bins and gene-width bins as
    TSV + Parquet to the output directory and saves them to DuckDB.

    Examples:

        tnseq-pipeline annotate

        tnseq-pipeline --config my.yaml annotate --force
    """
    config_path = ctx.obj['config_path']

    click.echo(click.style("=== Insertion Annotation ===", bold=True))
    click.echo()

    store = None
    try:
        config = load_config(config_path)
        config_hash = config.config_hash()
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))

        store = ResultStore.from_config(config)
        provenance = ProvenanceTracker.from_config(config)

        if not force and all(store.has_table(t, config_hash) for t in ANNOTATION_TABLES):
            click.echo(click.style(
                "Annotation results exist for this config. Skipping (use --force to re-run).",
                fg='yellow'
            ))
            return

        click.echo("Loading tables and joining insertions to genes...")
        result = process_annotation(config)

        for table, dropped in result.dropped.items():
            if dropped:
                click.echo(click.style(
                    f"  Warning: dropped {dropped} {table} rows on unmapped chromosomes",
                    fg='yellow'
                ))

        annotated_count = result.annotated.filter(
            result.annotated['gene_begin'].is_not_null()
        ).height
        click.echo(click.style(
            f"  Annotated {annotated_count}/{result.annotated.height} insertions",
            fg='green'
        ))
        provenance.record_step('annotate_insertions', {
            'insertions': result.annotated.height,
            'annotated': annotated_count,
            'dropped': result.dropped,
            'lengths': result.lengths,
        })

        tables = {
            "annotated_insertions": result.annotated,
            "fixed_bins": result.fixed_bins,
            "gene_bins": result.gene_bins,
        }
        if result.hit_summary is not None:
            tables["hit_summary"] = result.hit_summary

        for name, df in tables.items():
            store.save_dataframe(df, name, config_hash)
            paths = write_table_output(
                df,
                config.output_dir,
                name,
                sort_by=ANNOTATION_TABLES.get(name, ["chromosome"]),
            )
            click.echo(f"  {name}: {df.height} rows -> {paths['tsv']}")

        if not skip_plots:
            plots = generate_all_plots(None, result.fixed_bins, config.output_dir / "plots")
            for name, path in plots.items():
                click.echo(f"  Plot {name}: {path}")

        provenance_path = provenance.save_sidecar(config.output_dir / "annotate")
        click.echo()
        click.echo(f"Provenance: {provenance_path}")
        click.echo(click.style("Annotation complete!", fg='green', bold=True))

    except TnSeqError as e:
        click.echo(click.style(f"Annotation failed: {e}", fg='red'), err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(click.style(f"Annotate command failed: {e}", fg='red'), err=True)
        logger.exception("Annotate command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()
