"""
Tensor interface definitions.

This module defines the domain-level interface for tensor values using
structural typing. A tensor value is a named, fixed-shape buffer of elements
paired with an equally-shaped buffer of accumulated gradients.

Notes
-----
The protocol is intentionally small: it captures what the expression graph,
optimizer and persistence code need, and nothing about how the storage is
implemented.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class ITensor(Protocol):
    """
    Tensor value interface.

    Notes
    -----
    - `data` and `grad` always have the same number of elements, equal to the
      product of `shape`.
    - Gradients accumulate until `zero_grad()` is called explicitly.
    """

    @property
    def name(self) -> Optional[str]:
        """
        Return the optional identifier of this tensor.

        Returns
        -------
        Optional[str]
            Name used by parameter sets and persistence, or None.
        """
        ...

    @property
    def shape(self) -> tuple[int, ...]:
        """
        Return the shape of the tensor.

        Returns
        -------
        tuple[int, ...]
            The tensor's shape, `(count, width)` for rank-2 tensors.
        """
        ...

    @property
    def data(self) -> Any:
        """Return the backend-native value buffer."""
        ...

    @property
    def grad(self) -> Any:
        """Return the backend-native gradient buffer."""
        ...

    @property
    def numel(self) -> int:
        """Return the number of elements."""
        ...

    def zero_grad(self) -> None:
        """
        Reset the gradient buffer to the additive identity.

        Notes
        -----
        Training loops call this once per iteration, after the optimizer step
        and before the next forward pass.
        """
        ...

    def to_numpy(self) -> Any:
        """Return a copy of the values as a NumPy array."""
        ...

    def copy_from_numpy(self, arr: Any) -> None:
        """Overwrite the values from a NumPy array of matching size."""
        ...
