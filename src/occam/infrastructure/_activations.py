"""
Softmax-family activations.

This module implements the normalizations used by the attention networks:

- `softmax`: exponential softmax with row-maximum subtraction
- `spherical_softmax`: square-based normalization without exponentials,
  for real and complex tensors (https://arxiv.org/abs/1511.05042)

Both operate on each row of a `(count, width)` tensor independently.

Gradient notes
--------------
Both backward rules apply only the diagonal of the Jacobian: the gradient of
output element `i` is routed to input element `i` and the cross terms between
elements of the same row are dropped. Training results of the attention
experiments depend on this exact rule, so it is kept as is.
"""

from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ..domain._function import Function
from ..domain._errors import ShapeMismatchError
from .graph._expression import Apply, ExpressionLike, as_expression
from .graph._options import SphericalOptions

# Scaling applied to the row maximum before it is subtracted.
S = 1.0 - 1e-300


def _require_rank2(op: str, shapes: Sequence[tuple[int, ...]]) -> None:
    for s in shapes:
        if len(s) != 2:
            raise ShapeMismatchError(op, shapes, "operands must be rank 2")


class SoftmaxFn(Function):
    """
    Numerically stable row softmax.

    Implements, per row `x`:

        out = exp(x - S * max(x)) / sum(exp(x - S * max(x)))

    Exponentials are computed in float64 and the result is cast back to the
    input dtype.

    Backward (diagonal):

        grad_in = grad_out * (out - out^2)
    """

    name = "softmax"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        _require_rank2("softmax", shapes)
        (shape,) = shapes
        return shape

    @staticmethod
    def forward(ctx, a: np.ndarray, options: Any = None) -> np.ndarray:
        x = a.astype(np.float64)
        s = x.max(axis=1, keepdims=True) * S
        values = np.exp(x - s)
        out = (values / values.sum(axis=1, keepdims=True)).astype(a.dtype)
        ctx.save_for_backward(out)
        return out

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray]:
        (out,) = ctx.saved_tensors
        return (grad_out * (out - out * out),)


class SphericalSoftmaxFn(Function):
    """
    Spherical softmax, real or complex.

    Implements, per row `x`:

        out = (x^2 + eps) / sum(x^2 + eps)

    Backward (diagonal), with `s = sum(x^2 + eps)` of the row:

        grad_in = grad_out * 2 x (s - (x^2 + eps)) / s^2

    Notes
    -----
    For complex tensors `x^2` is the complex square (not `|x|^2`), so the
    derivative above is the holomorphic one.
    """

    name = "spherical_softmax"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        _require_rank2("spherical_softmax", shapes)
        (shape,) = shapes
        return shape

    @staticmethod
    def forward(ctx, a: np.ndarray, options: Optional[SphericalOptions] = None) -> np.ndarray:
        eps = options.eps if options is not None else 0.0
        values = a * a + eps
        sums = values.sum(axis=1, keepdims=True)
        ctx.save_for_backward(a.copy(), sums)
        ctx.saved_meta["eps"] = eps
        return values / sums

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray]:
        a, sums = ctx.saved_tensors
        eps = ctx.saved_meta["eps"]
        return (grad_out * (2 * a * (sums - (a * a + eps))) / (sums * sums),)


def softmax(a: ExpressionLike, *, name: Optional[str] = None) -> Apply:
    """
    Row softmax node.

    Raises
    ------
    TypeError
        If `a` is complex-valued; use `spherical_softmax` for complex tensors.
    """
    a = as_expression(a)
    if np.issubdtype(a.value.dtype, np.complexfloating):
        raise TypeError("softmax is defined for real tensors only")
    return Apply(SoftmaxFn, [a], name=name)


def spherical_softmax(
    a: ExpressionLike, *, eps: float = 0.0, name: Optional[str] = None
) -> Apply:
    """Row spherical softmax node; `eps` offsets every squared element."""
    return Apply(
        SphericalSoftmaxFn,
        [as_expression(a)],
        options=SphericalOptions(eps=float(eps)),
        name=name,
    )
