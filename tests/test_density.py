"""Tests for per-base insertion series and density profiles."""

import numpy as np
import polars as pl
import pytest

from tnseq_pipeline.density import (
    build_chromosome_profiles,
    infer_lengths,
    position_series,
    rolling_density,
    strided_density,
)


def test_position_series_counts_repeats():
    series = position_series(np.array([0, 3, 3, 5]), length=5)

    assert series.tolist() == [1, 0, 0, 2, 0, 1]
    assert series.dtype == np.int64


def test_position_series_zero_filled_when_empty():
    series = position_series(np.array([], dtype=np.int64), length=4)
    assert series.tolist() == [0, 0, 0, 0, 0]


def test_position_series_rejects_out_of_range():
    with pytest.raises(ValueError):
        position_series(np.array([7]), length=5)
    with pytest.raises(ValueError):
        position_series(np.array([-1]), length=5)


def test_rolling_density_shrinks_at_edges():
    series = np.array([0, 0, 3, 0, 0])

    density = rolling_density(series, window=2)

    # window 2 -> half 1: means over [i-1, i+1], clipped at both ends
    assert density.shape == (5,)
    assert density.tolist() == pytest.approx([0.0, 1.0, 1.0, 1.0, 0.0])


def test_rolling_density_preserves_length_and_has_no_nan():
    rng = np.random.default_rng(0)
    series = rng.integers(0, 3, size=1001)

    density = rolling_density(series, window=200)

    assert density.shape == series.shape
    assert not np.isnan(density).any()
    assert density.min() >= 0


def test_rolling_density_constant_series():
    density = rolling_density(np.full(50, 2), window=10)
    assert np.allclose(density, 2.0)


def test_rolling_density_window_one_is_identity():
    series = np.array([4, 0, 1, 7])
    assert rolling_density(series, window=1).tolist() == [4.0, 0.0, 1.0, 7.0]


def test_rolling_density_rejects_bad_window():
    with pytest.raises(ValueError):
        rolling_density(np.zeros(5), window=0)


def test_strided_density_full_windows_only():
    series = np.arange(10)

    density = strided_density(series, window=4, stride=3)

    # windows start at 0, 3, 6; a window at 9 would be partial
    assert density.tolist() == pytest.approx([1.5, 4.5, 7.5])


def test_strided_density_short_series_is_empty():
    assert strided_density(np.ones(100), window=385, stride=192).size == 0


def test_strided_density_exact_fit():
    assert strided_density(np.ones(385), window=385, stride=192).tolist() == [1.0]


def test_infer_lengths_prefers_configured():
    insertions = pl.DataFrame({"chromosome": ["Ch1", "Ch2"], "position": [50, 80]})
    genes = pl.DataFrame({"chromosome": ["Ch2"], "begin": [120], "end": [90]})

    lengths = infer_lengths(["Ch1", "Ch2", "Ch3"], insertions, genes, configured={"Ch1": 1000})

    assert lengths == {"Ch1": 1000, "Ch2": 120, "Ch3": 0}
    assert list(lengths) == ["Ch1", "Ch2", "Ch3"]


def test_build_chromosome_profiles():
    insertions = pl.DataFrame({
        "chromosome": ["Ch1", "Ch1", "Ch1", "Ch2"],
        "position": [10, 10, 40, 5],
    })

    profiles = build_chromosome_profiles(insertions, {"Ch2": 20, "Ch1": 50}, window=4)

    assert [p.name for p in profiles] == ["Ch2", "Ch1"]
    ch1 = profiles[1]
    assert ch1.length == 50
    assert ch1.series.size == 51
    assert ch1.n_insertions == 3
    assert ch1.series[10] == 2
    assert ch1.density.size == 51
    assert ch1.density[10] == pytest.approx(2 / 5)


def test_profiles_are_read_only():
    insertions = pl.DataFrame({"chromosome": ["Ch1"], "position": [3]})

    profile = build_chromosome_profiles(insertions, {"Ch1": 10})[0]

    with pytest.raises(ValueError):
        profile.density[0] = 1.0
    with pytest.raises(ValueError):
        profile.series[0] = 1


def test_rolling_density_of_empty_series_is_zero():
    assert not rolling_density(np.zeros(300), window=200).any()


def test_rolling_density_preserves_mass_away_from_edges():
    series = np.zeros(2001)
    series[1000] = 10

    density = rolling_density(series, window=200)

    # a single interior spike spreads over w + 1 bases
    assert density.sum() == pytest.approx(10)
