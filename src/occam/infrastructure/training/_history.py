"""
Training history.

`History` records the scalar loss of every completed iteration, in order,
together with the iteration index it belongs to. It is the value returned
in `TrainingResult.history` and is deliberately passive: the training loop
appends, callers inspect.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple


@dataclass
class History:
    """
    Ordered per-iteration loss record.

    Attributes
    ----------
    iteration : List[int]
        Zero-based iteration indices, in the order they ran.
    loss : List[float]
        Loss value of each recorded iteration.

    Notes
    -----
    Values are stored as Python `float`; a diverged iteration is recorded
    with its non-finite loss.
    """

    iteration: List[int] = field(default_factory=list)
    loss: List[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.iteration)

    def __iter__(self) -> Iterator[Tuple[int, float]]:
        return iter(zip(self.iteration, self.loss))

    def append(self, iteration: int, loss: float) -> None:
        """Record the loss of a completed iteration."""
        self.iteration.append(int(iteration))
        self.loss.append(float(loss))

    def last(self) -> Optional[float]:
        """Return the most recent loss, or None if nothing was recorded."""
        return self.loss[-1] if self.loss else None

    def best(self) -> Optional[float]:
        """Return the lowest recorded loss, or None if nothing was recorded."""
        return min(self.loss) if self.loss else None

    def mean(self, last: Optional[int] = None) -> Optional[float]:
        """
        Return the mean loss, optionally over the `last` recorded iterations.
        """
        if last is not None and int(last) <= 0:
            return None
        values = self.loss if last is None else self.loss[-int(last):]
        if not values:
            return None
        return float(sum(values) / len(values))
