"""
Domain-level optimizer contracts for occam.

This module defines the `IOptimizer` protocol, which specifies the minimal
interface required for optimizer implementations (e.g., Adam).

Notes
-----
- Domain contracts are backend-agnostic and must not depend on NumPy or
  infrastructure implementations.
- Optimizers update trainable parameters based on their accumulated
  gradients. Gradient computation itself belongs to the expression graph.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class IOptimizer(Protocol):
    """
    Optimizer interface contract.

    Required methods
    ----------------
    - `step()` applies one optimization update to managed parameters,
      optionally restricted to flat index ranges for some of them.
    - `zero_grad()` clears gradients for managed parameters.
    """

    def step(self, ranges: Optional[Mapping[str, Tuple[int, int]]] = None) -> None:
        """
        Apply one optimization step.

        Parameters
        ----------
        ranges : Mapping[str, tuple[int, int]], optional
            Parameter name to flat `[begin, end)` range. Parameters listed here
            are only updated inside their range.
        """
        ...

    def zero_grad(self) -> None:
        """
        Clear gradients for all managed parameters.
        """
        ...

    @property
    def params(self) -> Iterable[object]:
        """
        Return the parameters managed by this optimizer.
        """
        ...
