"""
Adam optimizer implementation.

This module provides the Adam optimizer used to train occam parameter sets.
The optimizer updates `Parameter` instances in-place using their accumulated
gradients; the first and second moment buffers live on the parameters
themselves (see `Parameter.m` / `Parameter.v`).

Design notes
------------
- The step counter `t` is shared by all managed parameters and is advanced
  once per `step()`, so bias correction is identical across a set.
- A `step()` may be restricted to flat index ranges for some parameters.
  Elements outside the range keep their value and moment estimates, which
  lets a lookup table (one slice selected per iteration) train only the row
  that took part in the forward pass.
- Bias-correction powers that underflow or overflow are replaced by zero, so
  a very long run degrades to the uncorrected estimates instead of injecting
  NaN into the weights.
- Complex parameters use the same rule with complex arithmetic, including a
  complex square root of the second moment.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .._parameter import Parameter
from .._parameter_set import ParameterSet

ParametersLike = Union[ParameterSet, Iterable[Parameter]]


def bias_power(beta: float, t: int) -> float:
    """
    Return `beta ** t`, or 0.0 when the power is not a finite number.

    Parameters
    ----------
    beta : float
        Decay rate.
    t : int
        Step count.
    """
    try:
        value = math.pow(beta, t)
    except (OverflowError, ValueError):
        return 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def _collect(parameters: ParametersLike) -> List[Tuple[str, Parameter]]:
    if isinstance(parameters, ParameterSet):
        return list(parameters.trainable())
    out = []
    for i, p in enumerate(parameters):
        if not isinstance(p, Parameter):
            raise TypeError(f"Adam manages Parameter objects, got {type(p)!r}")
        out.append((p.name if p.name is not None else f"param{i}", p))
    return out


@dataclass
class Adam:
    """
    Adam optimizer.

    Update rule
    -----------
    Let ``g`` be the gradient at step ``t`` (1-based):

        m = beta1 * m + (1 - beta1) * g
        v = beta2 * v + (1 - beta2) * g * g

        m_hat = m / (1 - beta1^t)
        v_hat = v / (1 - beta2^t)

        p <- p - lr * m_hat / (sqrt(v_hat) + eps)

    Parameters
    ----------
    parameters : ParameterSet or Iterable[Parameter]
        Parameters to optimize. For a set, only trainable tensors are managed
        and pure inputs are skipped.
    lr : float, optional
        Learning rate. Must be positive. Defaults to 1e-3.
    betas : tuple[float, float], optional
        Exponential decay rates for the first and second moments, each in
        (0, 1). Defaults to (0.9, 0.999).
    eps : float, optional
        Denominator epsilon. Must be positive. Defaults to 1e-8.
    """

    params: Sequence[Parameter]
    lr: float = 1e-3
    betas: Tuple[float, float] = (0.9, 0.999)
    eps: float = 1e-8
    t: int = 0

    def __init__(
        self,
        parameters: ParametersLike,
        *,
        lr: float = 1e-3,
        betas: Tuple[float, float] = (0.9, 0.999),
        eps: float = 1e-8,
    ) -> None:
        self._named = _collect(parameters)
        self._set = parameters if isinstance(parameters, ParameterSet) else None
        self.params = [p for _, p in self._named]
        self.lr = float(lr)
        self.betas = (float(betas[0]), float(betas[1]))
        self.eps = float(eps)
        self.t = 0

        b1, b2 = self.betas
        if self.lr <= 0.0:
            raise ValueError(f"lr must be > 0, got {self.lr}")
        if not (0.0 < b1 < 1.0) or not (0.0 < b2 < 1.0):
            raise ValueError(f"betas must be in (0,1), got {self.betas}")
        if self.eps <= 0.0:
            raise ValueError(f"eps must be > 0, got {self.eps}")

    def bias_correction(self, t: Optional[int] = None) -> Tuple[float, float]:
        """
        Return the denominators `(1 - beta1^t, 1 - beta2^t)`.

        Parameters
        ----------
        t : int, optional
            Step count; defaults to the current counter.
        """
        t = self.t if t is None else int(t)
        b1, b2 = self.betas
        return 1.0 - bias_power(b1, t), 1.0 - bias_power(b2, t)

    def zero_grad(self) -> None:
        """
        Clear gradients for every tensor the optimizer was built from.

        Notes
        -----
        When built from a `ParameterSet` this also zeroes non-trainable
        tensors of the set, since they receive gradients too.
        """
        if self._set is not None:
            self._set.zero()
            return
        for p in self.params:
            p.zero_grad()

    def step(self, ranges: Optional[Mapping[str, Tuple[int, int]]] = None) -> None:
        """
        Apply one Adam update step.

        Parameters
        ----------
        ranges : Mapping[str, tuple[int, int]], optional
            Parameter name to flat `[begin, end)` range. Listed parameters are
            updated only inside their range.

        Raises
        ------
        KeyError
            If `ranges` names a parameter this optimizer does not manage.
        ValueError
            If a range falls outside its parameter.
        """
        ranges = dict(ranges or {})
        names = {name for name, _ in self._named}
        unknown = set(ranges) - names
        if unknown:
            raise KeyError(f"Unknown parameters in ranges: {sorted(unknown)}")

        self.t += 1
        c1, c2 = self.bias_correction(self.t)
        b1, b2 = self.betas

        with np.errstate(all="ignore"):
            for name, p in self._named:
                x, g = p.flat_data(), p.flat_grad()
                m, v = p.m.reshape(-1), p.v.reshape(-1)

                if name in ranges:
                    begin, end = (int(r) for r in ranges[name])
                    if begin < 0 or end > p.numel or begin >= end:
                        raise ValueError(
                            f"Range ({begin}, {end}) invalid for {name!r} "
                            f"with {p.numel} elements"
                        )
                    x, g = x[begin:end], g[begin:end]
                    m, v = m[begin:end], v[begin:end]

                m[...] = b1 * m + (1.0 - b1) * g
                v[...] = b2 * v + (1.0 - b2) * g * g
                m_hat = m / c1
                v_hat = v / c2
                x -= (self.lr * m_hat / (np.sqrt(v_hat) + self.eps)).astype(
                    p.dtype, copy=False
                )
