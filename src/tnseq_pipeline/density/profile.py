"""Per-base insertion series and rolling-window density profiles."""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import polars as pl
import structlog

logger = structlog.get_logger()


@dataclass(frozen=True)
class ChromosomeProfile:
    """Observed insertion counts and density for one chromosome.

    Attributes:
        name: Canonical chromosome name
        length: Genome length N; arrays cover positions 0..N
        series: Insertion count per base (int64, N + 1 entries)
        density: Centered rolling mean of series (float64, N + 1 entries)

    Both arrays are read-only so one profile can be shared by every
    simulation task for the chromosome.
    """

    name: str
    length: int
    series: np.ndarray
    density: np.ndarray

    @property
    def n_insertions(self) -> int:
        return int(self.series.sum())


def position_series(positions: np.ndarray, length: int) -> np.ndarray:
    """Count insertions at every base 0..length (zero-filled).

    Args:
        positions: Insertion positions, repeated once per barcode
        length: Genome length N

    Returns:
        int64 array with length + 1 entries

    Raises:
        ValueError: If a position is negative or beyond length
    """
    positions = np.asarray(positions, dtype=np.int64)
    if positions.size and (positions.min() < 0 or positions.max() > length):
        raise ValueError(
            f"positions must lie in [0, {length}], got [{positions.min()}, {positions.max()}]"
        )
    return np.bincount(positions, minlength=length + 1).astype(np.int64)


def rolling_density(series: np.ndarray, window: int = 200) -> np.ndarray:
    """Centered moving average with shrunk windows at both edges.

    profile[i] = mean(series[max(0, i - w//2) .. min(N, i + w//2)]),
    bounds inclusive, so the output has the same length as the input and
    no NaN or zero padding.

    Args:
        series: Per-base counts
        window: Window width w (>= 1)

    Returns:
        float64 array, same length as series
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    values = np.asarray(series, dtype=np.float64)
    n = values.size
    if n == 0:
        return values.copy()

    half = window // 2
    cumulative = np.concatenate(([0.0], np.cumsum(values)))
    idx = np.arange(n)
    lo = np.maximum(idx - half, 0)
    hi = np.minimum(idx + half, n - 1)
    return (cumulative[hi + 1] - cumulative[lo]) / (hi - lo + 1)


def strided_density(series: np.ndarray, window: int, stride: int) -> np.ndarray:
    """Mean over full windows starting at 0, stride, 2*stride, ...

    Only complete windows are kept, so a series shorter than the window
    yields an empty array.

    Args:
        series: Per-base counts
        window: Window width (>= 1)
        stride: Step between window starts (>= 1)

    Returns:
        float64 array with one mean per window
    """
    if window < 1 or stride < 1:
        raise ValueError(f"window and stride must be >= 1, got {window}, {stride}")
    values = np.asarray(series, dtype=np.float64)
    if values.size < window:
        return np.empty(0, dtype=np.float64)

    cumulative = np.concatenate(([0.0], np.cumsum(values)))
    starts = np.arange(0, values.size - window + 1, stride)
    return (cumulative[starts + window] - cumulative[starts]) / window


def infer_lengths(
    chromosomes: list[str],
    insertions: pl.DataFrame,
    genes: Optional[pl.DataFrame] = None,
    configured: Optional[dict[str, int]] = None,
) -> dict[str, int]:
    """Genome length per chromosome.

    Configured lengths win; otherwise the largest coordinate seen in the
    insertion or gene tables is used.
    """
    configured = configured or {}
    lengths = {}
    for chrom in chromosomes:
        if chrom in configured:
            lengths[chrom] = int(configured[chrom])
            continue
        observed = [0]
        chrom_ins = insertions.filter(pl.col("chromosome") == chrom)
        if chrom_ins.height:
            observed.append(int(chrom_ins["position"].max()))
        if genes is not None:
            chrom_genes = genes.filter(pl.col("chromosome") == chrom)
            if chrom_genes.height:
                observed.append(int(chrom_genes.select(pl.max_horizontal("begin", "end").max()).item()))
        lengths[chrom] = max(observed)
        logger.info("chromosome_length_inferred", chromosome=chrom, length=lengths[chrom])
    return lengths


def build_chromosome_profiles(
    insertions: pl.DataFrame,
    lengths: dict[str, int],
    window: int = 200,
) -> list[ChromosomeProfile]:
    """Build the observed series and density profile for each chromosome.

    Every insertion row counts once (barcodes at the same position add up).

    Args:
        insertions: Insertion table with chromosome and position
        lengths: Canonical chromosome name -> genome length N, in output order
        window: Fine rolling-mean width

    Returns:
        List of ChromosomeProfile in the order of lengths
    """
    profiles = []
    for chrom, length in lengths.items():
        positions = insertions.filter(pl.col("chromosome") == chrom)["position"].to_numpy()
        series = position_series(positions, length)
        density = rolling_density(series, window)
        series.setflags(write=False)
        density.setflags(write=False)

        profile = ChromosomeProfile(name=chrom, length=length, series=series, density=density)
        profiles.append(profile)

        logger.info(
            "density_profile_built",
            chromosome=chrom,
            length=length,
            insertions=profile.n_insertions,
            zero_density_bases=int((density == 0).sum()),
        )

    return profiles
