"""Sampling-weight strategies for simulated insertion libraries."""

from abc import ABC, abstractmethod

import numpy as np

from tnseq_pipeline.config.schema import SamplingMode
from tnseq_pipeline.density.profile import ChromosomeProfile
from tnseq_pipeline.errors import DegenerateSamplingWeights


class SamplingStrategy(ABC):
    """Selection weight for every position 0..N of one chromosome."""

    mode: SamplingMode

    def __init__(self, profile: ChromosomeProfile):
        self.profile = profile

    @abstractmethod
    def weights(self) -> np.ndarray:
        """Unnormalized weight per position (N + 1 entries)."""

    def weight(self, position: int) -> float:
        """Unnormalized selection weight of a single position."""
        return float(self.weights()[position])

    def probabilities(self) -> np.ndarray:
        """Normalized selection probabilities.

        Raises:
            DegenerateSamplingWeights: If weights are negative, non-finite,
                or sum to zero
        """
        w = np.asarray(self.weights(), dtype=np.float64)
        if not np.all(np.isfinite(w)) or np.any(w < 0):
            raise DegenerateSamplingWeights(
                self.profile.name, "sampling weights must be finite and non-negative"
            )
        total = w.sum()
        if total <= 0:
            raise DegenerateSamplingWeights(self.profile.name)
        return w / total


class BiasedSampling(SamplingStrategy):
    """Weights proportional to the observed density profile.

    Positions with zero observed density can never be drawn.
    """

    mode = SamplingMode.BIASED

    def weights(self) -> np.ndarray:
        return self.profile.density


class UniformSampling(SamplingStrategy):
    """Equal weight at every position, ignoring the observed profile."""

    mode = SamplingMode.UNIFORM

    def weights(self) -> np.ndarray:
        return np.ones(self.profile.length + 1, dtype=np.float64)

    def weight(self, position: int) -> float:
        return 1.0


STRATEGIES: dict[SamplingMode, type[SamplingStrategy]] = {
    SamplingMode.BIASED: BiasedSampling,
    SamplingMode.UNIFORM: UniformSampling,
}


def strategy_for(mode: SamplingMode | str, profile: ChromosomeProfile) -> SamplingStrategy:
    """Instantiate the strategy registered for a sampling mode."""
    return STRATEGIES[SamplingMode(mode)](profile)
