"""
Attention clustering network.

The network learns a table of `length` points of dimension `width` so that
any input is well described by a sparse mixture of points:

    l1   = norm(mul(points, input))          # (1, length) attention weights
    l2   = norm(T(mul(l1, T(points))))       # (1, width)  attended vector
    cost = entropy(l2)

Minimizing the entropy of the attended vector pulls points toward the data
and sharpens the attention weights. After training, the `l1` row of an input
is its embedding: inputs of the same cluster attend to the same points.

With `self_attention=True` the points attend over themselves instead of an
external input and the cost is the mean per-row entropy.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Sequence

import numpy as np

from ..graph._engine import forward
from ..graph._expression import Apply, Expression
from .._activations import softmax, spherical_softmax
from .._linear_algebra import T, mul
from .._losses import avg, entropy
from .._parameter_set import ParameterSet
from ..optimizers._adam import Adam
from ..tensor._tensor import Tensor
from ..training._config import Sample, TrainingConfig, TrainingResult
from ..training._trainer import Trainer, loss_value

KINDS = ("softmax", "spherical")


def normalization(kind: str) -> Callable[[Expression], Apply]:
    """Return the row normalization node builder for `kind`."""
    if kind == "softmax":
        return softmax
    if kind == "spherical":
        return spherical_softmax
    raise ValueError(f"kind must be one of {KINDS}, got {kind!r}")


def _features(sample: Any) -> np.ndarray:
    return sample.features if isinstance(sample, Sample) else np.asarray(sample)


class AttentionNetwork:
    """
    Entropy-minimizing attention over a learned point table.

    Parameters
    ----------
    width : int
        Feature dimension of inputs and points.
    length : int
        Number of points.
    rng : numpy.random.Generator
        Generator used for initialization and sampling.
    kind : str, optional
        ``"softmax"`` (default) or ``"spherical"``. Complex dtypes require
        ``"spherical"``.
    self_attention : bool, optional
        Attend the points over themselves. No input tensor is used.
    lr : float, optional
        Adam learning rate.
    dtype : numpy dtype, optional
        Element type of points and input.
    initializer : str, optional
        Initialization policy for the points (``"uniform"`` or ``"kaiming"``).
    """

    def __init__(
        self,
        width: int,
        length: int,
        *,
        rng: np.random.Generator,
        kind: str = "softmax",
        self_attention: bool = False,
        lr: float = 1e-3,
        dtype: Any = np.float32,
        initializer: str = "uniform",
    ) -> None:
        norm = normalization(kind)
        self.kind = kind
        self.self_attention = bool(self_attention)
        self.rng = rng

        self.parameters = ParameterSet()
        points = self.parameters.set("points", (length, width), dtype=dtype)
        self.parameters.initialize(rng, policy=initializer)

        self.inputs = ParameterSet()
        if self.self_attention:
            source: Expression = points
        else:
            source = self.inputs.set("input", (1, width), trainable=False, dtype=dtype)

        self.l1 = norm(mul(points, source), name="l1")
        self.l2 = norm(T(mul(self.l1, T(points))), name="l2")
        if self.self_attention:
            self.cost = avg(entropy(self.l2), name="cost")
        else:
            self.cost = entropy(self.l2, name="cost")

        self.optimizer = Adam(self.parameters, lr=lr)
        self.trainer = Trainer(
            self.cost,
            self.parameters,
            self.optimizer,
            inputs=self.input,
            rng=rng,
        )

    @property
    def points(self) -> Tensor:
        return self.parameters.by_name["points"]

    @property
    def input(self) -> Optional[Tensor]:
        return self.inputs.by_name.get("input")

    @property
    def width(self) -> int:
        return self.points.width

    @property
    def length(self) -> int:
        return self.points.count

    def load(self, features: Any) -> None:
        """Copy one feature vector into the input tensor."""
        if self.input is None:
            raise ValueError("A self-attention network has no input to load")
        self.input.copy_from_numpy(np.asarray(features).reshape(-1))

    def set_points(self, matrix: Any) -> None:
        """Overwrite the point table, e.g. to start from the data itself."""
        self.points.copy_from_numpy(np.asarray(matrix))
        self.points.reset_state()

    def iterate(self, features: Any = None) -> float:
        """
        Run one training iteration, optionally on `features`.

        Returns
        -------
        float
            The iteration's loss.
        """
        sample = None if features is None else Sample(_features(features))
        return self.trainer.step(sample)

    def fit(
        self,
        samples: Optional[Sequence[Sample]] = None,
        config: Optional[TrainingConfig] = None,
    ) -> TrainingResult:
        """Train with a fresh `Trainer` sharing this network's optimizer."""
        self.trainer = Trainer(
            self.cost,
            self.parameters,
            self.optimizer,
            inputs=self.input,
            rng=self.rng,
            config=config,
        )
        return self.trainer.fit(samples)

    def entropies(self, samples: Optional[Iterable[Any]] = None) -> np.ndarray:
        """
        Inference-only cost of each sample (or of the point table alone).

        Returns
        -------
        numpy.ndarray
            One loss per sample, shape `(n,)`.
        """
        if self.self_attention or samples is None:
            return np.array([loss_value(forward(self.cost))])
        out = []
        for s in samples:
            self.load(_features(s))
            out.append(loss_value(forward(self.cost)))
        return np.array(out)

    def vectors(self, samples: Optional[Iterable[Any]] = None) -> np.ndarray:
        """
        Inference-only attention weights (`l1`) of each sample.

        Returns
        -------
        numpy.ndarray
            Shape `(n, length)`; for self-attention the `(length, length)`
            weights of the points over themselves.
        """
        if self.self_attention or samples is None:
            forward(self.l1)
            return self.l1.value.to_numpy()
        rows = []
        for s in samples:
            self.load(_features(s))
            rows.append(forward(self.l1).to_numpy().reshape(-1))
        return np.stack(rows)
