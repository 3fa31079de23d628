"""Bias-aware and uniform insertion-library simulation."""

from tnseq_pipeline.simulation.simulator import SimulatedLibrary, draw_library, simulate_library
from tnseq_pipeline.simulation.strategies import (
    STRATEGIES,
    BiasedSampling,
    SamplingStrategy,
    UniformSampling,
    strategy_for,
)
from tnseq_pipeline.simulation.sweep import (
    STATS_SCHEMA,
    TRACKS_SCHEMA,
    SimulationFailure,
    SimulationTask,
    SweepResult,
    TaskResult,
    plan_tasks,
    run_simulation_sweep,
    run_task,
)

__all__ = [
    "SimulatedLibrary",
    "draw_library",
    "simulate_library",
    "STRATEGIES",
    "BiasedSampling",
    "SamplingStrategy",
    "UniformSampling",
    "strategy_for",
    "STATS_SCHEMA",
    "TRACKS_SCHEMA",
    "SimulationFailure",
    "SimulationTask",
    "SweepResult",
    "TaskResult",
    "plan_tasks",
    "run_simulation_sweep",
    "run_task",
]
