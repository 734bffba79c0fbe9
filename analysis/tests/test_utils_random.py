"""
Tests for random source management.
"""

import numpy as np

from rs_assoc.utils.random import draw_seeds, get_partition_seed, make_rng


class TestGetPartitionSeed:
    """Deterministic per-(signature, fraction) seeds."""

    def test_formula(self):
        assert get_partition_seed(0, 0) == 0
        assert get_partition_seed(10, 2) == 12
        assert get_partition_seed(10, 2, signature_idx=3) == 3012

    def test_distinct_across_signatures_and_fractions(self):
        seeds = {get_partition_seed(0, f, s) for f in range(6) for s in range(5)}
        assert len(seeds) == 30


class TestMakeRng:
    """Explicit Generator handling."""

    def test_passes_generator_through(self):
        rng = np.random.default_rng(0)
        assert make_rng(rng) is rng

    def test_seeded_reproducible(self):
        assert make_rng(5).integers(0, 1000) == make_rng(5).integers(0, 1000)

    def test_does_not_touch_global_state(self):
        np.random.seed(123)
        expected = np.random.rand()
        np.random.seed(123)
        draw_seeds(make_rng(0), 10)
        assert np.random.rand() == expected


class TestDrawSeeds:
    def test_count_and_type(self):
        seeds = draw_seeds(np.random.default_rng(1), 4)
        assert len(seeds) == 4
        assert all(isinstance(s, int) for s in seeds)
        assert all(0 <= s < 2**32 for s in seeds)
