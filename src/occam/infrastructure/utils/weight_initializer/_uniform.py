"""
Uniform weight initializer.

Registers ``uniform``, which fills a tensor with independent draws from
U[-1, 1). This is the initialization used for free-floating attention points,
which have no meaningful fan-in.
"""

import numpy as np

from ._base import WeightInitializer
from ...tensor._tensor import Tensor


@WeightInitializer.register_initializer("uniform")
def uniform(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    """
    Fill `tensor` in-place with values drawn from U[-1, 1).

    Returns
    -------
    Tensor
        The initialized tensor (same object).
    """
    w = 2.0 * rng.random(tensor.shape) - 1.0
    tensor.copy_from_numpy(w.astype(tensor.dtype))
    return tensor
