"""Parallel (chromosome x library size x mode) essentiality sweep."""

import multiprocessing as mp
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import polars as pl
import structlog

from tnseq_pipeline.binning.aggregate import density_track
from tnseq_pipeline.config.schema import DensityConfig, SamplingMode, SimulationConfig
from tnseq_pipeline.density.profile import ChromosomeProfile
from tnseq_pipeline.errors import InsufficientWindows, TnSeqError
from tnseq_pipeline.simulation.simulator import simulate_library
from tnseq_pipeline.simulation.strategies import strategy_for
from tnseq_pipeline.stats.ecdf import EssentialityStat, zero_density_probability

logger = structlog.get_logger()

STATS_SCHEMA = {
    "chromosome": pl.Utf8,
    "library_size": pl.Int64,
    "sampling_mode": pl.Utf8,
    "zero_density_probability": pl.Float64,
}

TRACKS_SCHEMA = {
    "chromosome": pl.Utf8,
    "library_size": pl.Int64,
    "sampling_mode": pl.Utf8,
    "bin_start": pl.Int64,
    "bin_end": pl.Int64,
    "mean_density": pl.Float64,
}


@dataclass(frozen=True)
class SimulationTask:
    """One independent simulation; carries everything a worker needs."""

    key: tuple[int, int, int]
    profile: ChromosomeProfile
    library_size: int
    mode: SamplingMode
    seed: np.random.SeedSequence
    density: DensityConfig
    bin_width: int = 20000


@dataclass
class TaskResult:
    """Statistic of one simulated library plus its binned fine density."""

    stat: EssentialityStat
    track: pl.DataFrame


@dataclass
class SimulationFailure:
    """A task that raised a pipeline error instead of producing a statistic."""

    chromosome: str
    library_size: int
    mode: SamplingMode
    error: str
    message: str

    def describe(self) -> str:
        return (
            f"{self.chromosome} k={self.library_size} {self.mode.value}: "
            f"{self.error}: {self.message}"
        )


@dataclass
class SweepResult:
    """Statistics table, simulated density tracks and any per-task failures.

    density_tracks holds the per-bin mean of each simulated library's fine
    density, for comparison with the observed profile.
    """

    stats: pl.DataFrame
    failures: list[SimulationFailure] = field(default_factory=list)
    density_tracks: pl.DataFrame = field(default_factory=lambda: pl.DataFrame(schema=TRACKS_SCHEMA))

    @property
    def ok(self) -> bool:
        return not self.failures


def plan_tasks(
    profiles: list[ChromosomeProfile],
    simulation: SimulationConfig,
    density: DensityConfig,
    bin_width: int = 20000,
) -> list[SimulationTask]:
    """Enumerate tasks in output order with independent seed streams.

    Each task's SeedSequence is spawned from the master seed with a key of
    (chromosome index, library size index, mode index), so a fixed master
    seed gives the same libraries regardless of worker scheduling.
    """
    root = np.random.SeedSequence(simulation.seed)
    tasks = []
    for ci, profile in enumerate(profiles):
        for li, size in enumerate(simulation.library_sizes):
            for mi, mode in enumerate(simulation.modes):
                key = (ci, li, mi)
                tasks.append(
                    SimulationTask(
                        key=key,
                        profile=profile,
                        library_size=size,
                        mode=SamplingMode(mode),
                        seed=np.random.SeedSequence(root.entropy, spawn_key=key),
                        density=density,
                        bin_width=bin_width,
                    )
                )
    return tasks


def run_task(task: SimulationTask) -> TaskResult:
    """Simulate one library; report its zero-density probability and binned fine density."""
    profile = task.profile
    gene_window = task.density.gene_window
    if profile.length + 1 < gene_window:
        raise InsufficientWindows(profile.name, profile.length + 1, gene_window)

    library = simulate_library(
        strategy_for(task.mode, profile),
        task.library_size,
        rng=np.random.default_rng(task.seed),
        window=task.density.window,
        gene_window=gene_window,
        gene_stride=task.density.gene_stride,
    )
    probability = zero_density_probability(
        library.gene_scale_density,
        chromosome=profile.name,
        length=profile.length + 1,
        window=gene_window,
    )
    stat = EssentialityStat(
        chromosome=profile.name,
        library_size=task.library_size,
        sampling_mode=task.mode,
        zero_density_probability=probability,
    )
    track = density_track(library.fine_density, profile.name, task.bin_width).with_columns(
        pl.lit(task.library_size, dtype=pl.Int64).alias("library_size"),
        pl.lit(task.mode.value).alias("sampling_mode"),
    )
    return TaskResult(stat=stat, track=track.select(list(TRACKS_SCHEMA)))


def _record_failure(task: SimulationTask, error: TnSeqError) -> SimulationFailure:
    failure = SimulationFailure(
        chromosome=task.profile.name,
        library_size=task.library_size,
        mode=task.mode,
        error=type(error).__name__,
        message=str(error),
    )
    logger.warning(
        "simulation_task_failed",
        chromosome=failure.chromosome,
        library_size=failure.library_size,
        mode=failure.mode.value,
        error=failure.error,
        message=failure.message,
    )
    return failure


def run_simulation_sweep(
    profiles: list[ChromosomeProfile],
    simulation: Optional[SimulationConfig] = None,
    density: Optional[DensityConfig] = None,
    bin_width: int = 20000,
) -> SweepResult:
    """Run every (chromosome, library size, mode) simulation.

    Tasks share the read-only chromosome profiles. A TnSeqError in one task
    is recorded as a SimulationFailure and the rest of the sweep continues;
    any other exception propagates.

    Args:
        profiles: Observed chromosome profiles
        simulation: Library sizes, modes, seed and worker count
        density: Window widths and stride
        bin_width: Bin width for the simulated density tracks

    Returns:
        SweepResult with stats and density tracks sorted by chromosome
        (profile order), library size ascending, then mode (configured order)
    """
    simulation = simulation or SimulationConfig()
    density = density or DensityConfig()
    tasks = plan_tasks(profiles, simulation, density, bin_width)

    logger.info(
        "simulation_sweep_start",
        tasks=len(tasks),
        chromosomes=[p.name for p in profiles],
        library_sizes=simulation.library_sizes,
        modes=[SamplingMode(m).value for m in simulation.modes],
        max_workers=simulation.max_workers,
    )

    results: dict[tuple[int, int, int], TaskResult] = {}
    failures: dict[tuple[int, int, int], SimulationFailure] = {}

    if simulation.max_workers == 1 or len(tasks) <= 1:
        for task in tasks:
            try:
                results[task.key] = run_task(task)
            except TnSeqError as e:
                failures[task.key] = _record_failure(task, e)
    else:
        # Workers must not inherit the parent's polars thread pool via fork
        context = mp.get_context("spawn")
        with ProcessPoolExecutor(max_workers=simulation.max_workers, mp_context=context) as executor:
            futures = {executor.submit(run_task, task): task for task in tasks}
            for done, future in enumerate(as_completed(futures), 1):
                task = futures[future]
                try:
                    results[task.key] = future.result()
                except TnSeqError as e:
                    failures[task.key] = _record_failure(task, e)
                if done % 10 == 0 or done == len(tasks):
                    logger.info("simulation_sweep_progress", done=done, total=len(tasks))

    ordered = [results[key] for key in sorted(results)]
    rows = [r.stat.model_dump(mode="json") for r in ordered]
    stats = pl.DataFrame(rows, schema=STATS_SCHEMA) if rows else pl.DataFrame(schema=STATS_SCHEMA)
    tracks = (
        pl.concat([r.track for r in ordered]) if ordered else pl.DataFrame(schema=TRACKS_SCHEMA)
    )

    logger.info(
        "simulation_sweep_complete",
        completed=len(results),
        failed=len(failures),
    )

    return SweepResult(
        stats=stats,
        failures=[failures[key] for key in sorted(failures)],
        density_tracks=tracks,
    )
