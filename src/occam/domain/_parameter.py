"""
Trainable parameter interface definitions.

This module defines the domain-level interface for trainable parameters used
by optimization algorithms. Next to the value and gradient buffers of a
tensor, a parameter carries the optimizer's auxiliary state.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ._tensor import ITensor


@runtime_checkable
class IParameter(ITensor, Protocol):
    """
    Domain-level interface for trainable parameters.

    Notes
    -----
    - Parameters may be frozen or unfrozen via the `requires_grad` flag; frozen
      parameters are skipped by optimizers.
    - `m` and `v` are the first and second moment estimates of an adaptive
      optimizer. They are allocated together with the parameter and have the
      same number of elements.
    """

    @property
    def requires_grad(self) -> bool:
        """
        Indicate whether this parameter is updated by optimizers.

        Returns
        -------
        bool
            True if trainable, False if frozen.
        """
        ...

    @property
    def m(self) -> Any:
        """First moment estimate buffer."""
        ...

    @property
    def v(self) -> Any:
        """Second moment estimate buffer."""
        ...

    def reset_state(self) -> None:
        """Zero the optimizer state buffers."""
        ...
