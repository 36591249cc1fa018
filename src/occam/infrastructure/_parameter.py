"""
Concrete trainable parameter implementation.

This module defines `Parameter`, an infrastructure-level implementation of the
domain contract `IParameter`. A `Parameter` is a `Tensor` intended to be
optimized by training algorithms. Next to the value and gradient buffers it
carries the first and second moment buffers used by Adam.

Design notes
------------
- `Parameter` subclasses `Tensor` to reuse storage, shape and dtype handling.
- Moment buffers are allocated together with the parameter so that the
  optimizer never has to create state lazily; pure inputs are plain `Tensor`
  objects and therefore carry no such state.
- The `requires_grad` flag enables freezing a parameter without removing it
  from its set.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from ..domain._parameter import IParameter
from .tensor._tensor import Tensor


class Parameter(Tensor, IParameter):
    """
    Trainable tensor with optimizer state.

    Parameters
    ----------
    shape : Sequence[int]
        Parameter shape.
    dtype : numpy dtype, optional
        Element type. Defaults to float32.
    name : str, optional
        Parameter name.
    requires_grad : bool, optional
        Whether optimizers should update this parameter. Defaults to True.
    """

    def __init__(
        self,
        shape: Sequence[int],
        *,
        dtype: Any = np.float32,
        name: Optional[str] = None,
        requires_grad: bool = True,
    ) -> None:
        super().__init__(shape, dtype=dtype, name=name)
        self._requires_grad: bool = bool(requires_grad)
        self._m = np.zeros(self.shape, dtype=self.dtype)
        self._v = np.zeros(self.shape, dtype=self.dtype)

    @property
    def requires_grad(self) -> bool:
        """
        Indicate whether optimizers update this parameter.

        Returns
        -------
        bool
            True if trainable, False if frozen.
        """
        return self._requires_grad

    @requires_grad.setter
    def requires_grad(self, value: bool) -> None:
        self._requires_grad = bool(value)

    @property
    def m(self) -> np.ndarray:
        """First moment estimate (same shape as the parameter)."""
        return self._m

    @property
    def v(self) -> np.ndarray:
        """Second moment estimate (same shape as the parameter)."""
        return self._v

    def reset_state(self) -> None:
        """
        Zero both moment estimates.

        Notes
        -----
        Optimizer state is never persisted, so loading weights calls this to
        restart the moment estimates.
        """
        self._m.fill(0)
        self._v.fill(0)
