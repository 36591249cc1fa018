"""
Expression graph nodes.

An expression graph is a DAG whose leaves are `Variable` nodes (wrapping the
tensors of a parameter set or an input buffer) and whose inner nodes are
`Apply` nodes, one per operator application.

Design notes
------------
- The topology is assembled once, before training. Every node owns a fixed
  output tensor whose shape is inferred (and checked) at construction, so a
  shape mismatch aborts graph construction rather than a training iteration.
- Nodes are re-evaluated on every `forward` call; nothing is cached across
  iterations except the output buffers themselves, which are overwritten.
- A `Variable`'s output tensor *is* the wrapped tensor, so gradients reaching
  a leaf accumulate directly into the parameter's gradient buffer.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Type, Union

import numpy as np

from ...domain._function import Function
from ..tensor._tensor import Tensor
from ..tensor._tensor_context import Context


class Expression:
    """
    Base class of all graph nodes.

    Parameters
    ----------
    value : Tensor
        Output tensor of the node.
    operands : Sequence[Expression]
        Input nodes, in operand order.
    name : str, optional
        Node name (used for debugging and by `repr`).
    """

    def __init__(
        self,
        value: Tensor,
        operands: Sequence["Expression"] = (),
        *,
        name: Optional[str] = None,
    ) -> None:
        self._value = value
        self._operands = tuple(operands)
        self._name = name

    @property
    def value(self) -> Tensor:
        """Output tensor, overwritten by every forward evaluation."""
        return self._value

    @property
    def operands(self) -> tuple["Expression", ...]:
        return self._operands

    @property
    def shape(self) -> tuple[int, ...]:
        return self._value.shape

    @property
    def name(self) -> Optional[str]:
        return self._name

    def forward(self, *, slices: Optional[Mapping[str, Any]] = None) -> Tensor:
        """Evaluate this expression. See `occam.infrastructure.graph.forward`."""
        from ._engine import forward

        return forward(self, slices=slices)

    def backward(self, seed: Any = None) -> None:
        """Propagate gradients from this expression. See `graph.backward`."""
        from ._engine import backward

        backward(self, seed)

    def gradient(self, *, slices: Optional[Mapping[str, Any]] = None) -> Tensor:
        """Forward then backward; returns the evaluated output tensor."""
        from ._engine import gradient

        return gradient(self, slices=slices)


class Variable(Expression):
    """
    Leaf node wrapping an existing tensor.

    Notes
    -----
    A variable has no operator; evaluating it is a no-op and its value is
    whatever was last written into the tensor (by an initializer, a data
    loader or an optimizer).
    """

    def __init__(self, tensor: Tensor, *, name: Optional[str] = None) -> None:
        if not isinstance(tensor, Tensor):
            raise TypeError(f"Variable expects a Tensor, got {type(tensor)!r}")
        super().__init__(tensor, (), name=name if name is not None else tensor.name)

    def __repr__(self) -> str:
        return f"Variable({self.name!r}, shape={self.shape})"


class Apply(Expression):
    """
    Inner node: one application of a `Function` to operand nodes.

    Parameters
    ----------
    fn : type[Function]
        Operator class.
    operands : Sequence[Expression]
        Operand nodes.
    options : Any, optional
        Typed operator options.
    name : str, optional
        Node name.

    Raises
    ------
    ShapeMismatchError
        If `fn.infer_shape` rejects the operand shapes.
    """

    def __init__(
        self,
        fn: Type[Function],
        operands: Sequence[Expression],
        *,
        options: Any = None,
        name: Optional[str] = None,
    ) -> None:
        shape = fn.infer_shape([o.shape for o in operands], options)
        dtype = np.result_type(*[o.value.dtype for o in operands])
        super().__init__(
            Tensor(shape, dtype=dtype, name=name or fn.name),
            operands,
            name=name or fn.name,
        )
        self._fn = fn
        self._options = options
        self._ctx: Optional[Context] = None

    def __repr__(self) -> str:
        return f"Apply({self._fn.name}, shape={self.shape})"

    @property
    def fn(self) -> Type[Function]:
        return self._fn

    @property
    def options(self) -> Any:
        return self._options

    @property
    def ctx(self) -> Optional[Context]:
        """Context of the most recent evaluation, or None before any."""
        return self._ctx

    def evaluate(self, options: Any = None) -> None:
        """
        Run the operator's forward rule and store the result.

        Parameters
        ----------
        options : Any, optional
            Options for this evaluation; defaults to the construction options.
        """
        ctx = Context()
        inputs = [o.value.data for o in self._operands]
        out = self._fn.forward(
            ctx, *inputs, options=self._options if options is None else options
        )
        self._value.data[...] = out
        self._value.zero_grad()
        self._ctx = ctx


ExpressionLike = Union[Expression, Tensor]


def as_expression(x: ExpressionLike) -> Expression:
    """Wrap a bare `Tensor` in a `Variable`; pass expressions through."""
    if isinstance(x, Expression):
        return x
    if isinstance(x, Tensor):
        return Variable(x)
    raise TypeError(f"Expected an Expression or Tensor, got {type(x)!r}")


def apply(
    fn: Type[Function],
    *operands: ExpressionLike,
    options: Any = None,
    name: Optional[str] = None,
) -> Apply:
    """
    Build a graph node applying `fn` to `operands`.

    This is the extension point for operators defined outside occam: any
    `Function` subclass implementing `infer_shape`, `forward` and `backward`
    can be wired into a graph with it.
    """
    if not (isinstance(fn, type) and issubclass(fn, Function)):
        raise TypeError(f"apply expects a Function subclass, got {fn!r}")
    return Apply(fn, [as_expression(o) for o in operands], options=options, name=name)
