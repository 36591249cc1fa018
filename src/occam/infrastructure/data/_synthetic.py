"""
Synthetic clustered datasets.

Stand-in for the small labeled datasets the attention networks are studied
on: `classes` well-separated Gaussian blobs in `width` dimensions.
"""

from __future__ import annotations

from typing import List

import numpy as np

from ..training._config import Sample


def cluster_centers(classes: int, width: int, scale: float) -> np.ndarray:
    """
    Return `(classes, width)` centers, one per class.

    Center `k` is `scale` times the `k`-th standard basis vector (wrapping
    and alternating sign when there are more classes than dimensions), so
    centers are pairwise at least `scale` apart.
    """
    if classes > 2 * width:
        raise ValueError(
            f"At most {2 * width} separated classes fit in width {width}, got {classes}"
        )
    centers = np.zeros((classes, width), dtype=np.float64)
    for k in range(classes):
        centers[k, k % width] = scale if k < width else -scale
    return centers


def make_clusters(
    rng: np.random.Generator,
    *,
    classes: int = 3,
    per_class: int = 16,
    width: int = 4,
    scale: float = 5.0,
    noise: float = 0.1,
) -> List[Sample]:
    """
    Draw a labeled clustered dataset.

    Parameters
    ----------
    rng : numpy.random.Generator
        Source of the noise draws.
    classes : int
        Number of clusters; labels are ``0 .. classes - 1``.
    per_class : int
        Samples per cluster.
    width : int
        Feature dimension.
    scale : float
        Distance of each center from the origin.
    noise : float
        Standard deviation of the isotropic noise around each center.

    Returns
    -------
    list[Sample]
        Samples grouped by class, `float32` features.
    """
    if classes <= 0 or per_class <= 0 or width <= 0:
        raise ValueError("classes, per_class and width must be positive")
    if noise < 0:
        raise ValueError(f"noise must be >= 0, got {noise}")

    centers = cluster_centers(classes, width, scale)
    samples = []
    for label, center in enumerate(centers):
        points = center + noise * rng.standard_normal((per_class, width))
        samples.extend(Sample(p.astype(np.float32), label) for p in points)
    return samples
