"""Statistical helpers."""

from .multitest import fdr_bh

__all__ = ["fdr_bh"]
