"""Shared fixtures: small synthetic TnSeq input tables."""

from pathlib import Path

import pytest

ACCESSION = "NC_000001"


def write_tsv(path: Path, header: list[str], rows: list[list]) -> Path:
    """Write a tab-separated table with a header row."""
    lines = ["\t".join(header)]
    lines.extend("\t".join(str(v) for v in row) for row in rows)
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def pool_file(tmp_path):
    """Pool file for a 1000 bp chromosome: insertions at 150, 150, 600, 900.

    Also holds one barcode on an unmapped accession and one barcode that
    never mapped (pastEnd).
    """
    header = ["barcode", "rcbarcode", "nTot", "n", "scaffold", "strand", "pos", "n2"]
    rows = [
        ["AAAA", "TTTT", 5, 5, ACCESSION, "+", 150, 0],
        ["CCCC", "GGGG", 3, 3, ACCESSION, "-", 150, 0],
        ["GGGG", "CCCC", 2, 2, ACCESSION, "+", 600, 0],
        ["TTTT", "AAAA", 1, 1, ACCESSION, "+", 900, 0],
        ["ACGT", "ACGT", 7, 7, "NC_999999", "+", 10, 0],
        ["TGCA", "TGCA", 4, 4, "pastEnd", "", "", 0],
    ]
    return write_tsv(tmp_path / "pool_file", header, rows)


@pytest.fixture
def genes_file(tmp_path):
    """Two genes on the mapped chromosome: [100, 300] and [500, 700]."""
    header = ["locusId", "sysName", "type", "scaffoldId", "begin", "end", "strand", "name", "desc", "GC", "nTA"]
    rows = [
        ["G1", "SYS_0001", 1, ACCESSION, 100, 300, "+", "geneA", "gene one", 0.61, 4],
        ["G2", "SYS_0002", 1, ACCESSION, 700, 500, "-", "geneB", "gene two", 0.58, 3],
    ]
    return write_tsv(tmp_path / "genes.GC", header, rows)


@pytest.fixture
def hit_file(tmp_path):
    header = ["locusId", "sysName", "scaffoldId", "desc", "nStrains", "nReads"]
    rows = [
        ["G1", "SYS_0001", ACCESSION, "gene one", 2, 8],
        ["G2", "SYS_0002", ACCESSION, "gene two", 0, 0],
    ]
    return write_tsv(tmp_path / "pool_file.hit", header, rows)


@pytest.fixture
def config_file(tmp_path, pool_file, genes_file, hit_file):
    """Config YAML pointing at the synthetic tables (gene window fits 1000 bp)."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"""
inputs:
  pool_file: {pool_file}
  genes_file: {genes_file}
  hit_file: {hit_file}
chromosomes:
  - accession: {ACCESSION}
    name: Ch1
    length: 1000
unmapped_policy: drop
density:
  window: 200
  gene_window: 385
  gene_stride: 192
simulation:
  library_sizes: [100, 50]
  modes: [biased, uniform]
  seed: 7
  max_workers: 1
binning:
  bin_width: 250
output_dir: {tmp_path / "results"}
duckdb_path: {tmp_path / "results" / "tnseq.duckdb"}
""")
    return config_path
