"""
Concrete Tensor implementation (NumPy backend).

This module provides the `Tensor` value used throughout occam: a named,
fixed-shape NumPy buffer paired with an equally-shaped gradient buffer.

Design notes
------------
- Storage is allocated once, zero-filled, at construction. Values are then
  populated by an initializer or by external assignment (`copy_from_numpy`),
  and the gradient buffer is reset explicitly with `zero_grad()`.
- Shapes are row-major `(count, width)` tuples: row `i` of a rank-2 tensor is
  one feature vector and occupies flat offsets `[i * width, (i + 1) * width)`.
- The gradient buffer is always present and owned by the tensor. The only
  sanctioned aliasing is through `flat_data()` / `flat_grad()` views, which
  slicing and partial optimizer updates use to address a sub-range.
- Element types are `float32` by default; `float64` and `complex128` are
  accepted for higher precision checks and the complex-valued experiments.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

import numpy as np

from ...domain._tensor import ITensor
from ...domain._errors import ShapeMismatchError

SUPPORTED_DTYPES = (np.dtype(np.float32), np.dtype(np.float64), np.dtype(np.complex128))


def _normalize_shape(shape: Sequence[int]) -> tuple[int, ...]:
    if isinstance(shape, (int, np.integer)):
        shape = (int(shape),)
    out = tuple(int(d) for d in shape)
    for d in out:
        if d <= 0:
            raise ValueError(f"Tensor dimensions must be positive, got shape={out}")
    return out


class Tensor(ITensor):
    """
    Named tensor value with an accumulated gradient buffer.

    Parameters
    ----------
    shape : Sequence[int]
        Tensor shape. Every dimension must be positive.
    dtype : numpy dtype, optional
        Element type. One of float32 (default), float64, complex128.
    name : str, optional
        Identifier used by parameter sets and persistence.

    Notes
    -----
    - `data.size == grad.size == prod(shape)` holds for the whole lifetime of
      the tensor.
    - Buffers are never reallocated; writers copy into them in place so that
      references held by graph nodes stay valid.
    """

    def __init__(
        self,
        shape: Sequence[int],
        *,
        dtype: Any = np.float32,
        name: Optional[str] = None,
    ) -> None:
        self._shape = _normalize_shape(shape)
        self._dtype = np.dtype(dtype)
        if self._dtype not in SUPPORTED_DTYPES:
            raise TypeError(
                f"Unsupported dtype {self._dtype}; expected one of "
                f"{[str(d) for d in SUPPORTED_DTYPES]}"
            )
        self._name = name
        self._data = np.zeros(self._shape, dtype=self._dtype)
        self._grad = np.zeros(self._shape, dtype=self._dtype)

    @classmethod
    def create(
        cls,
        shape: Sequence[int],
        *,
        dtype: Any = np.float32,
        name: Optional[str] = None,
    ) -> "Tensor":
        """
        Allocate a tensor with zero-filled value and gradient buffers.

        Parameters
        ----------
        shape : Sequence[int]
            Tensor shape.
        dtype : numpy dtype, optional
            Element type.
        name : str, optional
            Tensor name.

        Returns
        -------
        Tensor
            Newly allocated tensor.
        """
        return cls(shape, dtype=dtype, name=name)

    @classmethod
    def from_numpy(
        cls,
        arr: Any,
        *,
        dtype: Any = None,
        name: Optional[str] = None,
    ) -> "Tensor":
        """
        Allocate a tensor shaped like `arr` and copy its values.

        A rank-1 array becomes a single row `(1, n)`.
        """
        a = np.asarray(arr)
        if a.ndim == 1:
            a = a.reshape(1, -1)
        if dtype is None:
            if np.iscomplexobj(a):
                dtype = np.complex128
            else:
                dtype = a.dtype if a.dtype in SUPPORTED_DTYPES else np.float32
        t = cls(a.shape, dtype=dtype, name=name)
        t.copy_from_numpy(a)
        return t

    def __repr__(self) -> str:
        label = f"name={self._name!r}, " if self._name is not None else ""
        return f"Tensor({label}shape={self._shape}, dtype={self._dtype})"

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def shape(self) -> tuple[int, ...]:
        return self._shape

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def data(self) -> np.ndarray:
        """
        Return the value buffer.

        Returns
        -------
        numpy.ndarray
            The live buffer (not a copy). Writes must keep its shape.
        """
        return self._data

    @property
    def grad(self) -> np.ndarray:
        """
        Return the gradient buffer.

        Returns
        -------
        numpy.ndarray
            The live gradient buffer accumulated by backward passes.
        """
        return self._grad

    @property
    def numel(self) -> int:
        return int(math.prod(self._shape))

    @property
    def width(self) -> int:
        """Number of features per row (last dimension)."""
        return self._shape[-1]

    @property
    def count(self) -> int:
        """Number of rows (first dimension of a rank-2 tensor, else 1)."""
        return self._shape[0] if len(self._shape) > 1 else 1

    def is_complex(self) -> bool:
        return np.iscomplexobj(self._data)

    def zero_grad(self) -> None:
        """
        Reset the gradient buffer to zero in place.

        Notes
        -----
        Gradients accumulate across backward passes until this is called.
        """
        self._grad.fill(0)

    def flat_data(self) -> np.ndarray:
        """Return a flat view of the value buffer."""
        return self._data.reshape(-1)

    def flat_grad(self) -> np.ndarray:
        """Return a flat view of the gradient buffer."""
        return self._grad.reshape(-1)

    def to_numpy(self) -> np.ndarray:
        return self._data.copy()

    def copy_from_numpy(self, arr: Any) -> None:
        """
        Overwrite the values of this tensor from an array.

        Parameters
        ----------
        arr : array_like
            Either an array of exactly `shape`, or a flat sequence with `numel`
            elements (e.g. one data-loader sample), which is laid out row-major.

        Raises
        ------
        ShapeMismatchError
            If the array size or shape does not match this tensor.
        """
        a = np.asarray(arr)
        if a.shape != self._shape:
            if a.ndim == 1 and a.size == self.numel:
                a = a.reshape(self._shape)
            else:
                raise ShapeMismatchError(
                    "copy_from_numpy", (self._shape, a.shape), "size mismatch"
                )
        if np.iscomplexobj(a) and not self.is_complex():
            raise TypeError("Cannot copy complex values into a real tensor")
        self._data[...] = a

    def fill(self, value: Any) -> None:
        self._data.fill(value)
