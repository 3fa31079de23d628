"""Draw simulated insertion libraries and recompute their density."""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import structlog

from tnseq_pipeline.config.schema import SamplingMode
from tnseq_pipeline.density.profile import rolling_density, strided_density
from tnseq_pipeline.simulation.strategies import SamplingStrategy

logger = structlog.get_logger()


@dataclass
class SimulatedLibrary:
    """One simulated library for a (chromosome, library size, mode).

    Attributes:
        chromosome: Canonical chromosome name
        library_size: Number of insertions drawn (k)
        mode: Sampling mode used for the draw
        samples: Simulated count per base (N + 1 entries, sums to k)
        fine_density: Centered rolling mean of samples (fine window)
        gene_scale_density: Strided full-window means (gene-scale window)
    """

    chromosome: str
    library_size: int
    mode: SamplingMode
    samples: np.ndarray
    fine_density: np.ndarray
    gene_scale_density: np.ndarray


def draw_library(
    strategy: SamplingStrategy,
    library_size: int,
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Draw library_size positions with replacement and count them per base.

    Args:
        strategy: Sampling strategy bound to a chromosome profile
        library_size: Number of draws k (>= 1)
        rng: Random generator; a fresh unseeded one when None

    Returns:
        int64 array with N + 1 entries summing to library_size

    Raises:
        DegenerateSamplingWeights: If the strategy's weights are unusable
    """
    if library_size < 1:
        raise ValueError(f"library_size must be >= 1, got {library_size}")
    rng = rng if rng is not None else np.random.default_rng()

    probabilities = strategy.probabilities()
    n_positions = probabilities.size
    draws = rng.choice(n_positions, size=library_size, replace=True, p=probabilities)
    return np.bincount(draws, minlength=n_positions).astype(np.int64)


def simulate_library(
    strategy: SamplingStrategy,
    library_size: int,
    rng: Optional[np.random.Generator] = None,
    window: int = 200,
    gene_window: int = 385,
    gene_stride: int = 192,
) -> SimulatedLibrary:
    """Simulate a library and derive its fine and gene-scale densities.

    Args:
        strategy: Sampling strategy bound to a chromosome profile
        library_size: Number of insertions drawn
        rng: Injectable random generator (fix its seed for reproducibility)
        window: Fine centered rolling-mean width (stride 1)
        gene_window: Gene-scale window width
        gene_stride: Gene-scale window stride

    Returns:
        SimulatedLibrary
    """
    samples = draw_library(strategy, library_size, rng)

    library = SimulatedLibrary(
        chromosome=strategy.profile.name,
        library_size=library_size,
        mode=strategy.mode,
        samples=samples,
        fine_density=rolling_density(samples, window),
        gene_scale_density=strided_density(samples, gene_window, gene_stride),
    )

    logger.debug(
        "library_simulated",
        chromosome=library.chromosome,
        library_size=library_size,
        mode=strategy.mode.value,
        occupied_positions=int(np.count_nonzero(samples)),
        gene_windows=library.gene_scale_density.size,
    )

    return library
