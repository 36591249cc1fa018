"""
Kaiming (He) weight initializer.

This module provides the Kaiming normal initialization and registers it into
the global `WeightInitializer` registry under ``kaiming``:

    w ~ N(0, 1) * sqrt(2 / fan_in)

Notes
-----
- Fan-in is the tensor width (the number of features each row combines), see
  ``_calculate_fan_in``.
- Complex tensors receive the same draws on their real part.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ...tensor._tensor import Tensor
from ....domain.utils._weight_initialization import _calculate_fan_in


@WeightInitializer.register_initializer("kaiming")
def kaiming(tensor: Tensor, rng: np.random.Generator) -> Tensor:
    """
    Apply Kaiming normal initialization.

    Parameters
    ----------
    tensor:
        The tensor to initialize in-place.
    rng:
        Generator supplying one normal draw per element, in row-major order.

    Returns
    -------
    Tensor
        The initialized tensor (same object).
    """
    fan_in = _calculate_fan_in(tuple(tensor.shape))
    scale = math.sqrt(2.0 / float(fan_in))

    w = rng.standard_normal(tensor.shape) * scale
    tensor.copy_from_numpy(w.astype(tensor.dtype))
    return tensor
