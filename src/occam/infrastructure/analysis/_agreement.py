"""
Embedding quality measures.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np


def nearest_neighbor_agreement(vectors: Any, labels: Sequence[Any]) -> float:
    """
    Fraction of rows whose nearest other row carries the same label.

    Distances are Euclidean; complex vectors use their magnitudes. Ties are
    broken by the lowest row index.

    Parameters
    ----------
    vectors : array_like
        `(n, d)` embeddings, one row per sample.
    labels : Sequence
        `n` labels.

    Returns
    -------
    float
        Agreement in [0, 1].

    Raises
    ------
    ValueError
        If fewer than two rows are given or the label count differs.
    """
    x = np.asarray(vectors)
    if np.iscomplexobj(x):
        x = np.abs(x)
    x = x.astype(np.float64).reshape(len(x), -1)
    labels = list(labels)
    if len(x) < 2:
        raise ValueError("At least two vectors are required")
    if len(labels) != len(x):
        raise ValueError(f"Got {len(labels)} labels for {len(x)} vectors")

    sq = np.sum(x * x, axis=1)
    dist = sq[:, None] + sq[None, :] - 2.0 * (x @ x.T)
    np.fill_diagonal(dist, np.inf)
    nearest = np.argmin(dist, axis=1)

    hits = sum(1 for i, j in enumerate(nearest) if labels[i] == labels[int(j)])
    return hits / len(x)
