"""
Structural operators: concatenation and slicing.

`concat` stacks two operands with the same number of rows along the feature
axis. `slice_` extracts a contiguous range of a tensor's flat storage as a
single row; its bounds can be re-bound on every forward call (see
`SliceBounds`), which is how a different position embedding is selected per
training sample while the graph topology stays fixed.
"""

import math
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ..domain._function import Function
from ..domain._errors import ShapeMismatchError, SliceBoundsError
from .graph._expression import Apply, ExpressionLike, as_expression
from .graph._options import SliceBounds, SliceOptions


class ConcatFn(Function):
    """
    Row-wise concatenation of two tensors.

    Implements:

        out[r] = a[r] ++ b[r]

    Backward: the incoming gradient is split at `a.width` and each part is
    routed to its source operand.
    """

    name = "concat"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        sa, sb = shapes
        if len(sa) != 2 or len(sb) != 2:
            raise ShapeMismatchError("concat", shapes, "operands must be rank 2")
        if sa[0] != sb[0]:
            raise ShapeMismatchError("concat", shapes, "operands must have the same row count")
        return (sa[0], sa[1] + sb[1])

    @staticmethod
    def forward(ctx, a: np.ndarray, b: np.ndarray, options: Any = None) -> np.ndarray:
        ctx.saved_meta["split"] = a.shape[1]
        return np.concatenate([a, b], axis=1)

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        split = ctx.saved_meta["split"]
        return grad_out[:, :split], grad_out[:, split:]


class SliceFn(Function):
    """
    Flat-range slice.

    Implements:

        out = flat(a)[begin:end]            shape (1, end - begin)

    Backward: the incoming gradient is scattered into `[begin, end)` of the
    source gradient; every other element receives zero.

    Notes
    -----
    The bounds used are the ones bound for the current evaluation. They are
    stored in the context so that backward addresses the same range.
    """

    name = "slice"

    @staticmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        if not isinstance(options, SliceOptions):
            raise TypeError("slice requires SliceOptions")
        (shape,) = shapes
        numel = int(math.prod(shape))
        if options.width > numel:
            raise ShapeMismatchError(
                "slice", shapes, f"cannot extract {options.width} of {numel} elements"
            )
        if options.bounds.end > numel:
            raise SliceBoundsError(
                options.bounds.begin, options.bounds.end, f"source has {numel} elements"
            )
        return (1, options.width)

    @staticmethod
    def forward(ctx, a: np.ndarray, options: Optional[SliceOptions] = None) -> np.ndarray:
        bounds = options.bounds
        if bounds.size != options.width:
            raise SliceBoundsError(
                bounds.begin, bounds.end, f"slice '{options.key}' extracts exactly {options.width} elements"
            )
        if bounds.end > a.size:
            raise SliceBoundsError(bounds.begin, bounds.end, f"source has {a.size} elements")
        ctx.saved_meta["bounds"] = bounds
        ctx.saved_meta["shape"] = a.shape
        return a.reshape(-1)[bounds.begin : bounds.end].reshape(1, -1)

    @staticmethod
    def backward(ctx, grad_out: np.ndarray) -> Tuple[np.ndarray]:
        bounds = ctx.saved_meta["bounds"]
        grad = np.zeros(ctx.saved_meta["shape"], dtype=grad_out.dtype)
        grad.reshape(-1)[bounds.begin : bounds.end] = grad_out.reshape(-1)
        return (grad,)


def concat(a: ExpressionLike, b: ExpressionLike, *, name: Optional[str] = None) -> Apply:
    """
    Row-wise concatenation node.

    Raises
    ------
    ShapeMismatchError
        If the operands have different row counts.
    """
    return Apply(ConcatFn, [as_expression(a), as_expression(b)], name=name)


def slice_(
    a: ExpressionLike,
    width: int,
    *,
    key: str = "slice",
    begin: int = 0,
    name: Optional[str] = None,
) -> Apply:
    """
    Flat-range slice node extracting `width` elements.

    Parameters
    ----------
    a : Expression or Tensor
        Source.
    width : int
        Number of elements extracted; fixed for the lifetime of the node.
    key : str, optional
        Key under which per-evaluation bounds are supplied to `forward`.
    begin : int, optional
        Start offset used when no bounds are supplied. Defaults to 0.
    """
    options = SliceOptions(
        key=key, width=int(width), bounds=SliceBounds(int(begin), int(begin) + int(width))
    )
    return Apply(SliceFn, [as_expression(a)], options=options, name=name or key)
