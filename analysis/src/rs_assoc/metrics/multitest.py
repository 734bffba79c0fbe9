"""Multiple-testing correction."""

import numpy as np
from statsmodels.stats.multitest import multipletests


def fdr_bh(pvalues, method: str = "fdr_bh") -> np.ndarray:
    """
    Adjusted p-values, Benjamini-Hochberg unless another statsmodels
    ``multipletests`` method is named.

    Non-finite p-values are treated as 1.0. An empty input returns an empty
    array.

    Example:
        >>> fdr_bh([0.01, 0.04, 0.03])
        array([0.03, 0.04, 0.04])
    """
    p = np.asarray(pvalues, dtype=float)
    if p.size == 0:
        return p
    p = np.where(np.isfinite(p), p, 1.0)
    _, q, _, _ = multipletests(p, alpha=0.05, method=method)
    return q
