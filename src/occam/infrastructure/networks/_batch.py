"""
Full-batch attention clustering network.

Every sample is held at once in a fixed, non-trainable `inputs` matrix and
the points attend over all of them in one pass:

    l1   = norm(mul(points, inputs))         # (n, length)
    l2   = norm(T(mul(l1, T(points))))       # (n, width)
    cost = avg(entropy(l2))

Each iteration is one deterministic gradient step over the whole dataset, so
there is no per-sample feed. By default the points start as a copy of the
data. With ``kind="spherical"`` the network runs on complex tensors too, and
the attended rows `l2` can be handed to `AttentionClassifier` as features
(their magnitudes are used).
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np

from ..graph._engine import forward
from .._linear_algebra import T, mul
from .._losses import avg, entropy
from .._parameter_set import ParameterSet
from ..optimizers._adam import Adam
from ..tensor._tensor import Tensor
from ..training._config import TrainingConfig, TrainingResult
from ..training._trainer import Trainer, loss_value
from ._attention import normalization


class BatchAttentionNetwork:
    """
    Entropy-minimizing attention over a whole dataset at once.

    Parameters
    ----------
    data : array_like
        `(n, width)` matrix of samples, one per row.
    rng : numpy.random.Generator
        Generator used when the points are not taken from the data.
    length : int, optional
        Number of points. If omitted the points are a copy of `data`;
        otherwise `length` points are drawn with `initializer`.
    kind : str, optional
        ``"softmax"`` (default) or ``"spherical"``.
    lr : float, optional
        Adam learning rate.
    dtype : numpy dtype, optional
        Element type of points and inputs.
    initializer : str, optional
        Initialization policy used when `length` is given.
    """

    def __init__(
        self,
        data: Any,
        *,
        rng: np.random.Generator,
        length: Optional[int] = None,
        kind: str = "softmax",
        lr: float = 1e-3,
        dtype: Any = np.float32,
        initializer: str = "uniform",
    ) -> None:
        data = np.asarray(data)
        if data.ndim != 2:
            raise ValueError(f"data must be a (samples, width) matrix, got shape={data.shape}")
        norm = normalization(kind)
        self.kind = kind
        self.rng = rng

        rows, width = data.shape
        self.inputs = ParameterSet()
        inputs = self.inputs.set("inputs", (rows, width), trainable=False, dtype=dtype)
        self.inputs.by_name["inputs"].copy_from_numpy(data)

        self.parameters = ParameterSet()
        points = self.parameters.set(
            "points", (rows if length is None else length, width), dtype=dtype
        )
        if length is None:
            self.points.copy_from_numpy(data)
        else:
            self.parameters.initialize(rng, policy=initializer)

        self.l1 = norm(mul(points, inputs), name="l1")
        self.l2 = norm(T(mul(self.l1, T(points))), name="l2")
        self.entropy = entropy(self.l2, name="entropy")
        self.cost = avg(self.entropy, name="cost")

        self.optimizer = Adam(self.parameters, lr=lr)
        self.trainer = self._trainer(None)

    def _trainer(self, config: Optional[TrainingConfig]) -> Trainer:
        return Trainer(
            self.cost,
            self.parameters,
            self.optimizer,
            inputs=self.inputs,
            rng=self.rng,
            config=config,
        )

    @property
    def points(self) -> Tensor:
        return self.parameters.by_name["points"]

    @property
    def data(self) -> Tensor:
        return self.inputs.by_name["inputs"]

    def iterate(self) -> float:
        """Run one full-batch training iteration and return its loss."""
        return self.trainer.step()

    def fit(self, config: Optional[TrainingConfig] = None) -> TrainingResult:
        self.trainer = self._trainer(config)
        return self.trainer.fit()

    def loss(self) -> float:
        """Inference-only batch cost."""
        return loss_value(forward(self.cost))

    def entropies(self) -> np.ndarray:
        """Per-sample entropy of the attended rows, shape `(n,)`."""
        return forward(self.entropy).to_numpy().reshape(-1)

    def ranking(self) -> np.ndarray:
        """Sample indices ordered from lowest to highest entropy magnitude."""
        return np.argsort(np.abs(self.entropies()), kind="stable")

    def vectors(self) -> np.ndarray:
        """Attended rows `l2`, shape `(n, width)`."""
        return forward(self.l2).to_numpy()
