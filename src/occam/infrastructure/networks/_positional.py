"""
Attention network with learned position embeddings.

Each input is a symbol vector paired with a position. The symbol vector is
loaded into a non-trainable input; the position selects one row of a
trainable `positions` table through a slice node. The two are concatenated
and attended over a point table:

    x    = concat(symbols, slice(positions, position))
    l1   = softmax(mul(points, x))
    l2   = softmax(mul(T(points), l1))
    cost = entropy(l2)

Only the selected row of `positions` takes part in an iteration, so the
optimizer updates `positions` inside that row's range only.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from ..graph._options import SliceBounds
from .._activations import softmax
from .._linear_algebra import T, mul
from .._losses import entropy
from .._parameter_set import ParameterSet
from .._structural import concat, slice_
from ..optimizers._adam import Adam
from ..tensor._tensor import Tensor
from ..training._config import IterationPlan, Sample, TrainingConfig, TrainingResult
from ..training._trainer import Trainer

POSITION_KEY = "position"


class PositionalAttentionNetwork:
    """
    Attention over symbol vectors extended with a learned position embedding.

    Parameters
    ----------
    symbol_width : int
        Width of a symbol vector.
    position_width : int
        Width of a position embedding.
    points : int
        Number of attention points.
    positions : int
        Number of distinct positions.
    rng : numpy.random.Generator
        Generator used for initialization and sampling.
    lr : float, optional
        Adam learning rate.

    Notes
    -----
    Samples fed to `fit` carry the symbol vector as `features` and the
    position index as `label`.
    """

    def __init__(
        self,
        symbol_width: int,
        position_width: int,
        points: int,
        positions: int,
        *,
        rng: np.random.Generator,
        lr: float = 1e-3,
    ) -> None:
        self.rng = rng
        self.position_width = int(position_width)

        self.inputs = ParameterSet()
        symbols = self.inputs.set("symbols", (1, symbol_width), trainable=False)

        self.parameters = ParameterSet()
        p = self.parameters.set("points", (points, symbol_width + position_width))
        pos = self.parameters.set("positions", (positions, position_width))
        self.parameters.initialize(rng)

        x = concat(symbols, slice_(pos, position_width, key=POSITION_KEY))
        self.l1 = softmax(mul(p, x), name="l1")
        self.l2 = softmax(mul(T(p), self.l1), name="l2")
        self.cost = entropy(self.l2, name="cost")

        self.optimizer = Adam(self.parameters, lr=lr)
        self.trainer = self._trainer(None)

    def _trainer(self, config: Optional[TrainingConfig]) -> Trainer:
        return Trainer(
            self.cost,
            self.parameters,
            self.optimizer,
            inputs=self.symbols,
            rng=self.rng,
            config=config,
            feed=self.feed,
        )

    @property
    def symbols(self) -> Tensor:
        return self.inputs.by_name["symbols"]

    @property
    def positions(self) -> Tensor:
        return self.parameters.by_name["positions"]

    def plan(self, position: int) -> IterationPlan:
        """Slice bounds and update range selecting row `position`."""
        if not 0 <= int(position) < self.positions.count:
            raise IndexError(
                f"position {position} out of range [0, {self.positions.count})"
            )
        bounds = SliceBounds.at(int(position), self.position_width)
        return IterationPlan(
            slices={POSITION_KEY: bounds},
            ranges={"positions": (bounds.begin, bounds.end)},
        )

    def feed(self, sample: Optional[Sample], rng: np.random.Generator) -> IterationPlan:
        if sample is None:
            raise ValueError("PositionalAttentionNetwork needs a sample per iteration")
        self.symbols.copy_from_numpy(sample.features)
        return self.plan(int(sample.label))

    def iterate(self, symbol: Any, position: int) -> float:
        """Run one training iteration on a symbol vector at `position`."""
        return self.trainer.step(Sample(np.asarray(symbol), position))

    def fit(
        self,
        samples: Sequence[Sample],
        config: Optional[TrainingConfig] = None,
    ) -> TrainingResult:
        self.trainer = self._trainer(config)
        return self.trainer.fit(samples)
