"""
Autograd function interface definitions.

This module defines the abstract base class for differentiable operators used
by the expression graph. Concrete subclasses of `Function` implement shape
inference, the forward computation and its corresponding backward (gradient)
computation as a single unit, so that composing operators composes their
gradients.

Operators work on backend-native arrays; the expression graph owns the
tensors, copies operator results into their fixed buffers and accumulates
the returned gradients into operand gradient buffers.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence


class Function(ABC):
    """
    Abstract base class for differentiable operators.

    A `Function` describes one kind of node in the expression graph and
    encapsulates:
    - the output shape for given operand shapes (checked at construction time)
    - the forward computation
    - the backward (gradient) computation

    Notes
    -----
    - Methods are static to avoid implicit state on the function object; any
      intermediate values needed by `backward` are stored on the per-evaluation
      `ctx` object.
    - `options` is an operator-specific, typed value (or None). It is given to
      `infer_shape` and `forward`; `forward` records whatever `backward` needs.
    """

    name: str = "function"

    @staticmethod
    @abstractmethod
    def infer_shape(shapes: Sequence[tuple[int, ...]], options: Any = None) -> tuple[int, ...]:
        """
        Compute the output shape from the operand shapes.

        Parameters
        ----------
        shapes : Sequence[tuple[int, ...]]
            Operand shapes in operand order.
        options : Any, optional
            Operator-specific options.

        Returns
        -------
        tuple[int, ...]
            Shape of the operator output.

        Raises
        ------
        ShapeMismatchError
            If the operands cannot be combined by this operator.
        """
        ...

    @staticmethod
    @abstractmethod
    def forward(ctx, *inputs: Any, options: Any = None) -> Any:
        """
        Perform the forward computation.

        Parameters
        ----------
        ctx : Context
            A mutable context used to store values required for backward.
        *inputs : array
            Operand values.
        options : Any, optional
            Operator-specific options for this evaluation.

        Returns
        -------
        array
            The operator result, with the shape given by `infer_shape`.
        """
        ...

    @staticmethod
    @abstractmethod
    def backward(ctx, grad_out: Any) -> Sequence[Optional[Any]]:
        """
        Compute gradient contributions for each operand.

        Parameters
        ----------
        ctx : Context
            The context populated during the forward pass.
        grad_out : array
            Gradient of the final cost with respect to this operator's output.

        Returns
        -------
        Sequence[array | None]
            One entry per operand. Entries may be None for operands that receive
            no gradient.
        """
        ...
