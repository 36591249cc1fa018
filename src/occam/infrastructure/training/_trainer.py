"""
Stochastic training loop.

`Trainer` drives an expression graph with a scalar cost through repeated
iterations of:

1. select a sample (uniformly at random, or by shuffled sweeps) and load it
   into the input tensor;
2. forward and backward over the cost;
3. check the loss and every gradient of the parameter set for NaN or
   Infinity;
4. apply the optimizer, restricted to the iteration's update ranges;
5. zero the gradients of the parameter set and the input tensor.

A non-finite loss or gradient stops the run with `TrainingState.DIVERGED`
before the optimizer runs, so the parameters keep the last finite values they
had. Divergence is reported through the returned result and a warning log
record, never raised.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable, Iterator, Optional, Sequence, Union

import numpy as np

from ...domain._errors import ParameterSetUnavailableError
from .._parameter_set import ParameterSet
from ..graph._engine import gradient
from ..graph._expression import Expression
from ..optimizers._adam import Adam
from ..tensor._tensor import Tensor
from ._config import (
    IterationPlan,
    Sample,
    TrainingConfig,
    TrainingResult,
    TrainingState,
)
from ._history import History

logger = logging.getLogger(__name__)

FeedFn = Callable[[Optional[Sample], np.random.Generator], Optional[IterationPlan]]


def loss_value(cost: Tensor) -> float:
    """Scalar loss of a `(1, 1)` cost tensor; complex costs report magnitude."""
    v = cost.data.reshape(-1)[0]
    if np.iscomplexobj(v):
        if np.isnan(v.real) or np.isnan(v.imag):
            return float("nan")
        return float(abs(v))
    return float(v)


def all_finite(parameters: ParameterSet) -> bool:
    """Return True if every gradient buffer of `parameters` is finite."""
    return all(bool(np.isfinite(t.grad).all()) for t in parameters)


class Trainer:
    """
    Training loop over one cost expression.

    Parameters
    ----------
    cost : Expression
        Scalar (single-element) cost expression.
    parameters : ParameterSet
        Set holding the tensors the cost depends on.
    optimizer : Adam, optional
        Optimizer over `parameters`. A default `Adam(parameters)` is created
        if omitted.
    inputs : Tensor or ParameterSet, optional
        Input buffer the default feed copies each sample's features into, or a
        set of fixed full-batch inputs whose gradients are cleared each step.
    rng : numpy.random.Generator
        Source of every sampling decision.
    config : TrainingConfig, optional
        Loop settings.
    feed : callable, optional
        ``feed(sample, rng) -> IterationPlan | None`` loading a sample and
        returning slice bounds and update ranges for the iteration. Replaces
        the default feed.

    Raises
    ------
    ParameterSetUnavailableError
        If `parameters` is None or has no trainable tensors.
    ValueError
        If `cost` does not hold exactly one element.
    """

    def __init__(
        self,
        cost: Expression,
        parameters: Optional[ParameterSet],
        optimizer: Optional[Adam] = None,
        *,
        inputs: Union[Tensor, ParameterSet, None] = None,
        rng: np.random.Generator,
        config: Optional[TrainingConfig] = None,
        feed: Optional[FeedFn] = None,
    ) -> None:
        if parameters is None:
            raise ParameterSetUnavailableError("parameter set is None")
        if not any(True for _ in parameters.trainable()):
            raise ParameterSetUnavailableError("parameter set has no trainable tensors")
        if cost.value.numel != 1:
            raise ValueError(f"cost must be a single element, got shape={cost.shape}")

        self.cost = cost
        self.parameters = parameters
        self.optimizer = optimizer if optimizer is not None else Adam(parameters)
        self.inputs = inputs
        self.rng = rng
        self.config = config if config is not None else TrainingConfig()
        self.feed = feed
        self.state = TrainingState.RUNNING
        self.history = History()
        self.iteration = 0

    def _load(self, sample: Optional[Sample]) -> IterationPlan:
        if self.feed is not None:
            plan = self.feed(sample, self.rng)
            return plan if plan is not None else IterationPlan()
        if sample is not None:
            if not isinstance(self.inputs, Tensor):
                raise ValueError("Trainer has no input tensor to load samples into")
            self.inputs.copy_from_numpy(sample.features)
        return IterationPlan()

    def _zero(self) -> None:
        self.parameters.zero()
        if isinstance(self.inputs, ParameterSet):
            self.inputs.zero()
        elif self.inputs is not None:
            self.inputs.zero_grad()

    def step(self, sample: Optional[Sample] = None) -> float:
        """
        Run one training iteration.

        Parameters
        ----------
        sample : Sample, optional
            Record to load. May be omitted when the graph has no data input.

        Returns
        -------
        float
            The iteration's loss. If it (or any gradient) is not finite the
            optimizer is not applied and `state` becomes ``DIVERGED``. Once diverged, further calls
            change nothing and return NaN until `fit` starts a new run.
        """
        if self.state is TrainingState.DIVERGED:
            return float("nan")

        plan = self._load(sample)
        loss = loss_value(gradient(self.cost, slices=plan.slices))

        if not math.isfinite(loss) or not all_finite(self.parameters):
            logger.warning(
                "Training diverged at iteration %d: loss=%s", self.iteration, loss
            )
            self.state = TrainingState.DIVERGED
        else:
            self.optimizer.step(plan.ranges)

        self._zero()
        self.history.append(self.iteration, loss)
        self.iteration += 1
        return loss

    def _samples(self, samples: Sequence[Sample]) -> Iterator[Sample]:
        if self.config.sampling == "random":
            while True:
                yield samples[int(self.rng.integers(len(samples)))]
        else:
            while True:
                for i in self.rng.permutation(len(samples)):
                    yield samples[int(i)]

    def fit(self, samples: Optional[Sequence[Sample]] = None) -> TrainingResult:
        """
        Train until the iteration budget is spent or the run diverges.

        Parameters
        ----------
        samples : Sequence[Sample], optional
            Training records. If omitted, every iteration runs without loading
            a sample (e.g. self-attention over the parameters alone).

        Returns
        -------
        TrainingResult
            Final state, number of iterations run, history and last loss.
        """
        if samples is not None and len(samples) == 0:
            raise ValueError("samples must not be empty")

        stream = self._samples(samples) if samples is not None else None
        budget = int(self.config.iterations)
        self.state = TrainingState.RUNNING
        logger.info("Training for up to %d iterations", budget)

        ran = 0
        loss: Optional[float] = None
        for _ in range(budget):
            start = time.perf_counter()
            loss = self.step(next(stream) if stream is not None else None)
            ran += 1

            if self.config.verbose:
                elapsed = time.perf_counter() - start
                print(
                    f"Iteration {self.iteration}/{budget} - loss: {loss:.6f} "
                    f"- elapsed: {elapsed * 1000.0:.3f}ms"
                )

            if self.state is TrainingState.DIVERGED:
                break
        else:
            self.state = TrainingState.EXHAUSTED

        logger.info("Training stopped: state=%s iterations=%d", self.state.value, ran)
        return TrainingResult(self.state, ran, self.history, loss)
