"""
Entropy costs and reductions.

This module implements the cost side of the attention networks:

- `entropy(p)`: self-entropy `-sum(p log p)` of every row
- `cross_entropy(p, t)`: `-sum(t log p)` of every row
- `sum_(a)` / `avg(a)`: collapse a tensor to a `(1, 1)` scalar

Per-row costs are returned as a single row `(1, count)` so that a network
fed one sample produces a one-element cost that can be differentiated
directly, and a batch of rows can be reduced with `avg`.

Notes
-----
`log(0)` yields `-inf` and `0 * -inf` yields NaN. These are not trapped; the
training loop detects non-finite costs and stops.
"""

from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ..domain._function import Function
from ..domain._errors import ShapeMismatchError
from .graph._expression import Apply, ExpressionLike, as_expression


class EntropyFn(Function):
    """
    Row self-entropy.

    Implements:

        out[0, r] = -sum_k p[r, k] * log(p[r, k])

    Backward:

        dp[r, k] = -grad_out[0, r] * (log(p[r, k]) + 1)
    """

    name = "entropy"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        (shape,) = shapes
        if len(shape) != 2:
            raise ShapeMismatchError("entropy", shapes, "operand must be rank 2")
        return (1, shape[0])

    @staticmethod
    def forward(ctx, p: np.ndarray, options: Any = None) -> np.ndarray:
        log_p = np.log(p)
        ctx.save_for_backward(log_p)
        return -(p * log_p).sum(axis=1).reshape(1, -1)

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray]:
        (log_p,) = ctx.saved_tensors
        return (-grad_out.reshape(-1, 1) * (log_p + 1),)


class CrossEntropyFn(Function):
    """
    Row cross-entropy against a target distribution.

    Implements:

        out[0, r] = -sum_k t[r, k] * log(p[r, k])

    Backward:

        dp = -grad_out[0, r] * t / p
        dt = -grad_out[0, r] * log(p)
    """

    name = "cross_entropy"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        sp, st = shapes
        if len(sp) != 2 or sp != st:
            raise ShapeMismatchError(
                "cross_entropy", shapes, "prediction and target must share a rank-2 shape"
            )
        return (1, sp[0])

    @staticmethod
    def forward(ctx, p: np.ndarray, t: np.ndarray, options: Any = None) -> np.ndarray:
        log_p = np.log(p)
        ctx.save_for_backward(p.copy(), t.copy(), log_p)
        return -(t * log_p).sum(axis=1).reshape(1, -1)

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        p, t, log_p = ctx.saved_tensors
        g = grad_out.reshape(-1, 1)
        return -g * t / p, -g * log_p


class SumFn(Function):
    """
    Sum of all elements.

    Backward: the scalar incoming gradient is broadcast to every element.
    """

    name = "sum"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        return (1, 1)

    @staticmethod
    def forward(ctx, a: np.ndarray, options: Any = None) -> np.ndarray:
        ctx.saved_meta["shape"] = a.shape
        return a.sum().reshape(1, 1)

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray]:
        shape = ctx.saved_meta["shape"]
        return (np.full(shape, grad_out.reshape(-1)[0], dtype=grad_out.dtype),)


class AvgFn(Function):
    """
    Arithmetic mean of all elements.

    Backward: the scalar incoming gradient divided by the element count is
    broadcast to every element.
    """

    name = "avg"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        return (1, 1)

    @staticmethod
    def forward(ctx, a: np.ndarray, options: Any = None) -> np.ndarray:
        ctx.saved_meta["shape"] = a.shape
        return a.mean().reshape(1, 1)

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray]:
        shape = ctx.saved_meta["shape"]
        n = int(np.prod(shape))
        return (np.full(shape, grad_out.reshape(-1)[0] / n, dtype=grad_out.dtype),)


def entropy(p: ExpressionLike, *, name: Optional[str] = None) -> Apply:
    """Row self-entropy node, shape `(1, count)`."""
    return Apply(EntropyFn, [as_expression(p)], name=name)


def cross_entropy(
    p: ExpressionLike, target: ExpressionLike, *, name: Optional[str] = None
) -> Apply:
    """Row cross-entropy node, shape `(1, count)`."""
    return Apply(CrossEntropyFn, [as_expression(p), as_expression(target)], name=name)


def sum_(a: ExpressionLike, *, name: Optional[str] = None) -> Apply:
    """Sum reduction node, shape `(1, 1)`."""
    return Apply(SumFn, [as_expression(a)], name=name)


def avg(a: ExpressionLike, *, name: Optional[str] = None) -> Apply:
    """Mean reduction node, shape `(1, 1)`."""
    return Apply(AvgFn, [as_expression(a)], name=name)
