"""
Typed operator options.

Operators that need parameters beyond their operands receive them as small
frozen dataclasses, one type per operator kind, validated when the graph node
is built rather than looked up by key at evaluation time.

Slice bounds are the one option that changes between iterations. They are
passed by value into each `forward` call, keyed by the slice node's `key`,
and recorded in that evaluation's context so the matching backward pass
scatters into the same range.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ...domain._errors import SliceBoundsError


@dataclass(frozen=True)
class SliceBounds:
    """
    Half-open `[begin, end)` range over a tensor's flat storage.

    Attributes
    ----------
    begin : int
        Inclusive start offset.
    end : int
        Exclusive end offset.
    """

    begin: int
    end: int

    def __post_init__(self) -> None:
        if int(self.begin) < 0:
            raise SliceBoundsError(self.begin, self.end, "begin must be >= 0")
        if int(self.end) <= int(self.begin):
            raise SliceBoundsError(self.begin, self.end, "end must be > begin")

    @property
    def size(self) -> int:
        return int(self.end) - int(self.begin)

    @classmethod
    def at(cls, index: int, width: int) -> "SliceBounds":
        """Bounds selecting row `index` of a tensor with rows of `width` values."""
        begin = int(index) * int(width)
        return cls(begin, begin + int(width))


@dataclass(frozen=True)
class SliceOptions:
    """
    Options of a slice node.

    Attributes
    ----------
    key : str
        Name under which bounds are supplied to `forward(..., slices=...)`.
    width : int
        Number of elements extracted. Fixed when the node is built.
    bounds : SliceBounds
        Bounds used when a forward call does not supply any for `key`.
    """

    key: str
    width: int
    bounds: SliceBounds

    def __post_init__(self) -> None:
        if self.bounds.size != self.width:
            raise SliceBoundsError(
                self.bounds.begin,
                self.bounds.end,
                f"slice '{self.key}' extracts exactly {self.width} elements",
            )

    def bind(self, bounds: SliceBounds) -> "SliceOptions":
        """Return a copy of these options using `bounds` for one evaluation."""
        return replace(self, bounds=bounds)


@dataclass(frozen=True)
class SphericalOptions:
    """
    Options of the spherical softmax.

    Attributes
    ----------
    eps : float
        Offset added to every squared element before normalization.
    """

    eps: float = 0.0

    def __post_init__(self) -> None:
        if self.eps < 0:
            raise ValueError(f"eps must be >= 0, got {self.eps}")
