"""Empirical CDF of gene-scale density and the zero-density tail probability."""

from collections.abc import Callable

import numpy as np
from pydantic import BaseModel, Field
from scipy import stats

from tnseq_pipeline.config.schema import SamplingMode
from tnseq_pipeline.errors import InsufficientWindows


class EssentialityStat(BaseModel):
    """Zero-density probability for one simulated library.

    Values are only comparable between runs that share the same
    gene-scale window width and stride.
    """

    chromosome: str
    library_size: int = Field(..., ge=1)
    sampling_mode: SamplingMode
    zero_density_probability: float = Field(..., ge=0.0, le=1.0)


def ecdf(values: np.ndarray) -> Callable[[float], float]:
    """Build the empirical CDF F(x) = #(values <= x) / #values.

    Args:
        values: Non-empty 1-D sample

    Returns:
        Callable mapping a threshold x to F(x) as a float
    """
    sample = np.asarray(values, dtype=np.float64).ravel()
    if sample.size == 0:
        raise ValueError("ECDF needs at least one value")
    cdf = stats.ecdf(sample).cdf

    def evaluate(x: float) -> float:
        return float(cdf.evaluate(x))

    return evaluate


def zero_density_probability(
    gene_scale_density: np.ndarray,
    chromosome: str = "",
    length: int = 0,
    window: int = 0,
) -> float:
    """Fraction of gene-scale windows with zero insertion density, F(0).

    Args:
        gene_scale_density: One mean per coarse window
        chromosome, length, window: Context for the error raised when there
            are no windows

    Returns:
        F(0) in [0, 1]

    Raises:
        InsufficientWindows: If gene_scale_density is empty
    """
    density = np.asarray(gene_scale_density, dtype=np.float64)
    if density.size == 0:
        raise InsufficientWindows(chromosome, length, window)
    return ecdf(density)(0.0)
