from ._expression import Apply, Expression, Variable, apply, as_expression
from ._engine import backward, evaluate, forward, gradient, topological_order
from ._options import SliceBounds, SliceOptions, SphericalOptions

__all__ = [
    Apply.__name__,
    Expression.__name__,
    Variable.__name__,
    SliceBounds.__name__,
    SliceOptions.__name__,
    SphericalOptions.__name__,
    "apply",
    "as_expression",
    "backward",
    "evaluate",
    "forward",
    "gradient",
    "topological_order",
]
