"""
Random source management for reproducibility.

Every partition draw receives an explicit ``numpy.random.Generator``; no
module touches numpy's or Python's global RNG state.
"""

import numpy as np


def get_partition_seed(base_seed: int, fraction_idx: int, signature_idx: int = 0) -> int:
    """
    Generate deterministic seed for one (signature, train fraction) partition set.

    Args:
        base_seed: Base random seed
        fraction_idx: Train fraction index (0-based)
        signature_idx: Signature index (0-based)

    Returns:
        Deterministic seed for this signature/fraction combination
    """
    return base_seed + (signature_idx * 1000) + fraction_idx


def make_rng(seed: int | np.random.Generator | None) -> np.random.Generator:
    """Return ``seed`` unchanged if it is already a Generator, else seed a new one."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def draw_seeds(rng: np.random.Generator, n: int) -> list[int]:
    """Draw ``n`` integer seeds (for sklearn ``random_state``) from ``rng``."""
    return [int(s) for s in rng.integers(0, 2**32 - 1, size=n)]
