"""
Constant weight initializers.

Provided initializers
---------------------
- ``zeros``:
    Initialize a tensor with all elements set to zero. Used for bias-like
    parameters.
"""

from typing import Any

from ._base import WeightInitializer
from ...tensor._tensor import Tensor


@WeightInitializer.register_initializer("zeros")
def zeros(tensor: Tensor, rng: Any = None) -> Tensor:
    """
    Initialize a tensor with all elements set to zero.

    The generator argument is accepted for a uniform initializer signature
    and is not drawn from.
    """
    tensor.fill(0)
    return tensor
