"""
Structural and availability errors for occam.

This module defines the exceptions raised when an expression graph cannot be
assembled (incompatible operand shapes, invalid slice bounds) or when training
is requested without a usable parameter set.

Numeric divergence (NaN / Infinity appearing in a loss or gradient) is *not*
represented here. It propagates silently through the graph and is detected by
the training loop, which stops and reports it instead of raising.
"""

from __future__ import annotations

from typing import Sequence


class ShapeMismatchError(ValueError):
    """
    Raised when an operator is applied to incompatibly-shaped operands.

    The error is raised while the expression graph is being constructed, so a
    badly wired model fails before any training iteration runs.

    Attributes
    ----------
    op : str
        Name of the operator that rejected its operands (e.g. "mul", "concat").
    shapes : tuple[tuple[int, ...], ...]
        Shapes of the offending operands, in operand order.
    """

    def __init__(self, op: str, shapes: Sequence[tuple[int, ...]], detail: str = "") -> None:
        """
        Initialize the ShapeMismatchError.

        Parameters
        ----------
        op : str
            Operator name.
        shapes : Sequence[tuple[int, ...]]
            Operand shapes.
        detail : str, optional
            Extra explanation appended to the message.
        """
        shapes = tuple(tuple(int(d) for d in s) for s in shapes)
        msg = f"{op}: incompatible operand shapes {list(shapes)}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
        self.op = op
        self.shapes = shapes


class SliceBoundsError(ValueError):
    """
    Raised when slice bounds bound for an evaluation do not fit the slice node.

    Attributes
    ----------
    begin : int
        Requested inclusive start offset into the flat source storage.
    end : int
        Requested exclusive end offset.
    """

    def __init__(self, begin: int, end: int, reason: str) -> None:
        super().__init__(f"Invalid slice bounds [{begin}, {end}): {reason}")
        self.begin = begin
        self.end = end


class ParameterSetUnavailableError(RuntimeError):
    """
    Raised when no valid parameter set is available to train or evaluate.

    This covers both a failed load (missing or corrupt weight file) and a
    training request on an empty / absent parameter set.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(f"No valid parameter set available: {reason}")
        self.reason = reason
