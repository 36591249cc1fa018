"""
Supervised spherical-softmax head.

A single affine layer followed by a spherical softmax, trained full-batch
against one-hot targets:

    l1   = spherical_softmax(add(mul(weights, inputs), bias))   # (n, classes)
    cost = avg(cross_entropy(l1, targets))

`weights` use Kaiming initialization and `bias` starts at zero. The head is
used to read class structure out of attention features, e.g. the attended
rows of a `BatchAttentionNetwork`. Complex features are replaced by their
magnitudes.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from ..graph._engine import forward
from .._activations import spherical_softmax
from .._linear_algebra import add, mul
from .._losses import avg, cross_entropy
from .._parameter_set import ParameterSet
from ..optimizers._adam import Adam
from ..training._config import TrainingConfig, TrainingResult
from ..training._trainer import Trainer


def one_hot(labels: Sequence[int], classes: int, dtype: Any = np.float32) -> np.ndarray:
    """Return the `(len(labels), classes)` one-hot matrix of integer labels."""
    idx = np.asarray(labels, dtype=np.int64).reshape(-1)
    if idx.size and (idx.min() < 0 or idx.max() >= classes):
        raise ValueError(f"labels must lie in [0, {classes}), got {idx.min()}..{idx.max()}")
    out = np.zeros((idx.size, classes), dtype=dtype)
    out[np.arange(idx.size), idx] = 1
    return out


def _real_features(features: Any) -> np.ndarray:
    a = np.asarray(features)
    if np.iscomplexobj(a):
        a = np.abs(a)
    if a.ndim != 2:
        raise ValueError(f"features must be a (samples, width) matrix, got shape={a.shape}")
    return a


class AttentionClassifier:
    """
    Full-batch classifier over fixed features.

    Parameters
    ----------
    features : array_like
        `(n, width)` feature matrix. Complex values are replaced by their
        magnitudes.
    labels : Sequence[int]
        One integer class per row.
    classes : int, optional
        Number of classes; defaults to ``max(labels) + 1``.
    rng : numpy.random.Generator
        Generator for the Kaiming draws.
    lr : float, optional
        Adam learning rate.
    dtype : numpy dtype, optional
        Real element type of the layer.
    """

    def __init__(
        self,
        features: Any,
        labels: Sequence[int],
        classes: Optional[int] = None,
        *,
        rng: np.random.Generator,
        lr: float = 1e-3,
        dtype: Any = np.float32,
    ) -> None:
        x = _real_features(features)
        self.labels = np.asarray(labels, dtype=np.int64).reshape(-1)
        if self.labels.size != x.shape[0]:
            raise ValueError(
                f"{x.shape[0]} feature rows but {self.labels.size} labels"
            )
        self.classes = int(classes) if classes is not None else int(self.labels.max()) + 1
        self.rng = rng

        rows, width = x.shape
        self.inputs = ParameterSet()
        inputs = self.inputs.set("inputs", (rows, width), trainable=False, dtype=dtype)
        targets = self.inputs.set("targets", (rows, self.classes), trainable=False, dtype=dtype)
        self.load(x, self.labels)

        self.parameters = ParameterSet()
        weights = self.parameters.set("weights", (self.classes, width), dtype=dtype)
        bias = self.parameters.set("bias", (1, self.classes), dtype=dtype)
        self.parameters.initialize(rng, policy="kaiming")

        self.l1 = spherical_softmax(add(mul(weights, inputs), bias), name="l1")
        self.cost = avg(cross_entropy(self.l1, targets), name="cost")

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

    def load(self, features: Any, labels: Sequence[int]) -> None:
        """Replace the batch with new features and labels of the same shape."""
        x = _real_features(features)
        targets = self.inputs.by_name["targets"]
        self.inputs.by_name["inputs"].copy_from_numpy(x)
        targets.copy_from_numpy(one_hot(labels, self.classes, targets.dtype))
        self.labels = np.asarray(labels, dtype=np.int64).reshape(-1)

    def iterate(self) -> float:
        return self.trainer.step()

    def fit(self, config: Optional[TrainingConfig] = None) -> TrainingResult:
        self.trainer = self._trainer(config)
        return self.trainer.fit()

    def probabilities(self) -> np.ndarray:
        """Class distribution of every row, shape `(n, classes)`."""
        return forward(self.l1).to_numpy()

    def predict(self) -> np.ndarray:
        return np.argmax(self.probabilities(), axis=1)

    def accuracy(self) -> float:
        """Fraction of rows whose most probable class is the label."""
        return float(np.mean(self.predict() == self.labels))
