"""
Linear and elementwise operators.

This module implements the matrix product, transpose, addition and Hadamard
product as `Function` subclasses, together with functional wrappers that
build the corresponding graph nodes.

Row convention
--------------
Tensors are `(count, width)`: a list of `count` row vectors. `mul(a, b)`
takes the dot product of every row of `b` with every row of `a`, which is
what an attention score between a set of points and a set of queries needs:

    mul(a, b)[j, i] = <b[j], a[i]>        i.e.  mul(a, b) = b @ a.T

so `a` and `b` must share their width and the result is `(b.count, a.count)`.
"""

from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ..domain._function import Function
from ..domain._errors import ShapeMismatchError
from .graph._expression import Apply, ExpressionLike, as_expression


def _require_rank2(op: str, shapes: Sequence[tuple[int, ...]]) -> None:
    for s in shapes:
        if len(s) != 2:
            raise ShapeMismatchError(op, shapes, "operands must be rank 2")


class MulFn(Function):
    """
    Row-wise matrix product.

    Implements:

        out = b @ a.T

    Backward:

        dA = grad_out.T @ b
        dB = grad_out @ a
    """

    name = "mul"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        _require_rank2("mul", shapes)
        (ra, wa), (rb, wb) = shapes
        if wa != wb:
            raise ShapeMismatchError("mul", shapes, "operands must share their width")
        return (rb, ra)

    @staticmethod
    def forward(ctx, a: np.ndarray, b: np.ndarray, options: Any = None) -> np.ndarray:
        ctx.save_for_backward(a.copy(), b.copy())
        return b @ a.T

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        a, b = ctx.saved_tensors
        return grad_out.T @ b, grad_out @ a


class TransposeFn(Function):
    """
    Swap the two dimensions of a rank-2 tensor.

    The backward rule transposes the incoming gradient the same way.
    """

    name = "transpose"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        _require_rank2("transpose", shapes)
        (r, w), = shapes
        return (w, r)

    @staticmethod
    def forward(ctx, a: np.ndarray, options: Any = None) -> np.ndarray:
        return a.T

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray]:
        return (grad_out.T,)


class AddFn(Function):
    """
    Elementwise sum.

    `b` either matches `a` exactly or is a single row of the same width
    (a bias row), which is then added to every row of `a`. No other shape
    combination is accepted.

    Backward:

        dA = grad_out
        dB = grad_out            (summed over rows for a bias row)
    """

    name = "add"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        _require_rank2("add", shapes)
        sa, sb = shapes
        if sa == sb:
            return sa
        if sb[0] == 1 and sb[1] == sa[1]:
            return sa
        raise ShapeMismatchError(
            "add", shapes, "b must match a or be a single row of the same width"
        )

    @staticmethod
    def forward(ctx, a: np.ndarray, b: np.ndarray, options: Any = None) -> np.ndarray:
        ctx.saved_meta["bias_row"] = a.shape != b.shape
        return a + b

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        if ctx.saved_meta["bias_row"]:
            return grad_out, grad_out.sum(axis=0, keepdims=True)
        return grad_out, grad_out


class HadamardFn(Function):
    """
    Elementwise product of two identically-shaped tensors.

    Backward:

        dA = grad_out * b
        dB = grad_out * a
    """

    name = "hadamard"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        sa, sb = shapes
        if sa != sb:
            raise ShapeMismatchError("hadamard", shapes, "shapes must be identical")
        return sa

    @staticmethod
    def forward(ctx, a: np.ndarray, b: np.ndarray, options: Any = None) -> np.ndarray:
        ctx.save_for_backward(a.copy(), b.copy())
        return a * b

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        a, b = ctx.saved_tensors
        return grad_out * b, grad_out * a


def mul(a: ExpressionLike, b: ExpressionLike, *, name: Optional[str] = None) -> Apply:
    """
    Row-wise matrix product node, `b @ a.T`.

    Raises
    ------
    ShapeMismatchError
        If `a` and `b` do not share their width.
    """
    return Apply(MulFn, [as_expression(a), as_expression(b)], name=name)


def transpose(a: ExpressionLike, *, name: Optional[str] = None) -> Apply:
    """Transpose node."""
    return Apply(TransposeFn, [as_expression(a)], name=name)


T = transpose


def add(a: ExpressionLike, b: ExpressionLike, *, name: Optional[str] = None) -> Apply:
    """Elementwise (or bias-row) addition node."""
    return Apply(AddFn, [as_expression(a), as_expression(b)], name=name)


def hadamard(a: ExpressionLike, b: ExpressionLike, *, name: Optional[str] = None) -> Apply:
    """Elementwise product node."""
    return Apply(HadamardFn, [as_expression(a), as_expression(b)], name=name)
