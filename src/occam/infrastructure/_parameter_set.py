"""
Ordered parameter sets.

A `ParameterSet` is the registry of named tensors a model is built from. It
plays two roles:

- for trainable tensors it owns `Parameter` objects, whose Adam moment
  buffers are allocated at registration time;
- for pure inputs (non-trainable tensors such as the buffer a data loader
  writes a sample into) it owns plain `Tensor` objects with no optimizer
  state.

The set hands out graph handles (`Variable` nodes) for its tensors, zeroes
their gradients between iterations and defines the declaration order used
by persistence.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from ._parameter import Parameter
from .graph._expression import Variable
from .tensor._tensor import Tensor
from .utils.weight_initializer import WeightInitializer

# Parameters whose name starts with this prefix are treated as biases.
BIAS_PREFIX = "b"


class ParameterSet:
    """
    Ordered mapping from name to tensor.

    Notes
    -----
    - Iteration order is declaration order.
    - `get(name)` always returns the same `Variable` for a name, so each
      tensor is a single leaf of any graph built from the set.
    """

    def __init__(self) -> None:
        self.by_name: Dict[str, Tensor] = {}
        self._variables: Dict[str, Variable] = {}

    def __len__(self) -> int:
        return len(self.by_name)

    def __iter__(self) -> Iterator[Tensor]:
        return iter(self.by_name.values())

    def __contains__(self, name: object) -> bool:
        return name in self.by_name

    def __repr__(self) -> str:
        body = ", ".join(f"{n}{t.shape}" for n, t in self.by_name.items())
        return f"ParameterSet({body})"

    def add(
        self,
        name: str,
        shape: Sequence[int],
        *,
        trainable: bool = True,
        dtype: Any = np.float32,
        initializer: Optional[str] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> Tensor:
        """
        Register a new named tensor.

        Parameters
        ----------
        name : str
            Unique name within the set.
        shape : Sequence[int]
            Tensor shape, `(count, width)`.
        trainable : bool, optional
            If True (default) a `Parameter` with optimizer state is created,
            otherwise a plain input `Tensor`.
        dtype : numpy dtype, optional
            Element type.
        initializer : str, optional
            Registered initializer name applied immediately. Requires `rng`
            unless it is ``zeros``.
        rng : numpy.random.Generator, optional
            Generator used by the initializer.

        Returns
        -------
        Tensor
            The registered tensor (a `Parameter` if trainable).

        Raises
        ------
        ValueError
            If `name` is already registered or an initializer needs `rng`.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Parameter name must be a non-empty string")
        if name in self.by_name:
            raise ValueError(f"Parameter already registered: {name!r}")

        if trainable:
            tensor: Tensor = Parameter(shape, dtype=dtype, name=name)
        else:
            tensor = Tensor(shape, dtype=dtype, name=name)

        if initializer is not None:
            if rng is None and initializer != "zeros":
                raise ValueError(f"Initializer {initializer!r} requires an rng")
            WeightInitializer(initializer)(tensor, rng)

        self.by_name[name] = tensor
        return tensor

    def set(self, name: str, shape: Sequence[int], **kwargs: Any) -> Variable:
        """Register a tensor like `add` and return its graph handle."""
        self.add(name, shape, **kwargs)
        return self.get(name)

    def get(self, name: str) -> Variable:
        """
        Return the graph handle of a registered tensor.

        Raises
        ------
        KeyError
            If no tensor is registered under `name`.
        """
        if name not in self.by_name:
            raise KeyError(f"Unknown parameter: {name!r}")
        var = self._variables.get(name)
        if var is None:
            var = Variable(self.by_name[name], name=name)
            self._variables[name] = var
        return var

    def names(self) -> Tuple[str, ...]:
        return tuple(self.by_name)

    def named_parameters(self) -> Iterator[Tuple[str, Tensor]]:
        """Yield `(name, tensor)` pairs in declaration order."""
        yield from self.by_name.items()

    def trainable(self) -> Iterator[Tuple[str, Parameter]]:
        """Yield `(name, parameter)` for tensors updated by optimizers."""
        for name, t in self.by_name.items():
            if isinstance(t, Parameter) and t.requires_grad:
                yield name, t

    def initialize(self, rng: np.random.Generator, *, policy: str = "uniform") -> None:
        """
        Initialize every trainable tensor.

        Bias-like parameters (names starting with ``b``) are zeroed; every
        other trainable tensor is filled by the `policy` initializer, in
        declaration order.

        Parameters
        ----------
        rng : numpy.random.Generator
            Generator shared by all draws.
        policy : str, optional
            Registered initializer name, ``uniform`` (default) or ``kaiming``.
        """
        init = WeightInitializer(policy)
        zeros = WeightInitializer("zeros")
        for name, p in self.trainable():
            if name.startswith(BIAS_PREFIX):
                zeros(p, rng)
            else:
                init(p, rng)

    def zero(self) -> None:
        """Reset every gradient buffer in the set to zero."""
        for t in self.by_name.values():
            t.zero_grad()

    def reset_state(self) -> None:
        """Zero the optimizer moment buffers of every parameter."""
        for t in self.by_name.values():
            if isinstance(t, Parameter):
                t.reset_state()


ParameterSetLike = Union[ParameterSet, None]
