"""
Backend-agnostic contracts of occam.

The domain layer holds the protocols implemented by the NumPy backend
(`ITensor`, `IParameter`, `IOptimizer`), the `Function` operator contract and
the exceptions raised while assembling or training expression graphs.
"""

from ._errors import ParameterSetUnavailableError, ShapeMismatchError, SliceBoundsError
from ._function import Function
from ._optimizers import IOptimizer
from ._parameter import IParameter
from ._tensor import ITensor

__all__ = [
    Function.__name__,
    IOptimizer.__name__,
    IParameter.__name__,
    ITensor.__name__,
    ParameterSetUnavailableError.__name__,
    ShapeMismatchError.__name__,
    SliceBoundsError.__name__,
]
