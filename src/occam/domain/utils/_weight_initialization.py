"""
Abstract interfaces and utilities for weight initialization.

This module defines the abstract base class for weight initializers along
with the shared helper computing fan-in from a tensor shape.

The concrete registry and the initialization policies live in the
infrastructure layer. This module exists in the domain layer to define the
contract and the shared arithmetic without binding to a backend.
"""

from typing import Any, Callable, Dict, TypeVar
from abc import ABC

from .._tensor import ITensor


T = TypeVar("T", bound=Callable[..., ITensor])


class _WeightInitializer(ABC):
    """
    Abstract base class for weight initializer dispatchers.

    Design notes
    ------------
    - Initializers are identified by string names.
    - Each initializer is a callable `(tensor, rng) -> tensor` that mutates the
      tensor in-place. The random generator is always passed explicitly; there
      is no process-wide random state.
    """

    INITIALIZERS: Dict[str, Callable] = {}

    def __init__(self, initializer_name: str) -> None:
        """
        Construct a weight initializer dispatcher.

        Parameters
        ----------
        initializer_name:
            The string key identifying a registered initializer.
        """
        ...

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[T], T]:
        """
        Register a weight initializer under a given name.

        Returns
        -------
        Callable
            A decorator that registers the initializer function.
        """
        ...

    @classmethod
    def available(cls) -> tuple[str, ...]:
        """Return the names of all registered initializers."""
        ...

    def __call__(self, tensor: ITensor, rng: Any, *args, **kwargs) -> ITensor:
        """
        Apply the initializer to a tensor.

        Parameters
        ----------
        tensor:
            The tensor to be initialized.
        rng:
            Random generator owned by the caller.

        Returns
        -------
        ITensor
            The initialized tensor.
        """
        ...


def _calculate_fan_in(shape: tuple[int, ...]) -> int:
    """
    Compute the fan-in value for a tensor shape.

    Tensors are laid out as `(count, width)`: each row is one vector of
    `width` inputs, so the fan-in of a rank-2 tensor is its width.

    Parameters
    ----------
    shape:
        Shape of the weight tensor.

    Returns
    -------
    int
        The computed fan-in value.
    """
    if len(shape) == 0:
        return 1  # scalar
    return max(1, int(shape[-1]))
