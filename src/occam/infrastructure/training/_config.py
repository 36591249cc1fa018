"""
Training configuration and per-iteration records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np

from ..graph._options import SliceBounds

SAMPLING_MODES = ("random", "sweep")


class TrainingState(Enum):
    """
    Lifecycle of a training run.

    RUNNING
        Iterations are being executed.
    EXHAUSTED
        The iteration budget was reached (or the data ran out).
    DIVERGED
        A loss or gradient became NaN or infinite; the run stopped without
        applying that iteration's update.
    """

    RUNNING = "running"
    EXHAUSTED = "exhausted"
    DIVERGED = "diverged"


@dataclass(frozen=True)
class TrainingConfig:
    """
    Hyperparameters of the training loop.

    Parameters
    ----------
    iterations : int
        Maximum number of iterations. Must be positive.
    sampling : str
        ``"random"`` draws one sample uniformly with replacement per
        iteration; ``"sweep"`` visits the samples in shuffled full passes.
    verbose : int
        If non-zero, prints one progress line per iteration.
    """

    iterations: int = 1024
    sampling: str = "random"
    verbose: int = 0

    def __post_init__(self) -> None:
        if int(self.iterations) <= 0:
            raise ValueError(f"iterations must be > 0, got {self.iterations}")
        if self.sampling not in SAMPLING_MODES:
            raise ValueError(
                f"sampling must be one of {SAMPLING_MODES}, got {self.sampling!r}"
            )


@dataclass(frozen=True)
class Sample:
    """
    One data-loader record.

    Attributes
    ----------
    features : numpy.ndarray
        Flat feature vector copied into the input tensor.
    label : Any, optional
        Ground-truth label; unused by training, kept for analysis.
    """

    features: np.ndarray
    label: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "features", np.asarray(self.features).reshape(-1))


@dataclass
class IterationPlan:
    """
    Per-iteration instructions produced while loading a sample.

    Attributes
    ----------
    slices : Dict[str, SliceBounds]
        Slice bounds for this iteration's forward pass, keyed by slice key.
    ranges : Dict[str, tuple[int, int]]
        Partial optimizer update ranges, keyed by parameter name.
    """

    slices: Dict[str, SliceBounds] = field(default_factory=dict)
    ranges: Dict[str, Tuple[int, int]] = field(default_factory=dict)


@dataclass
class TrainingResult:
    """
    Outcome of `Trainer.fit`.

    Attributes
    ----------
    state : TrainingState
        ``EXHAUSTED`` or ``DIVERGED``.
    iterations : int
        Number of iterations executed, including a diverged one.
    history : History
        Per-iteration losses.
    last_loss : float, optional
        Loss of the last executed iteration.
    """

    state: TrainingState
    iterations: int
    history: Any
    last_loss: Optional[float] = None

    @property
    def diverged(self) -> bool:
        return self.state is TrainingState.DIVERGED
