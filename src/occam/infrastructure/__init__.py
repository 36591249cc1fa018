"""
NumPy implementations of the occam contracts.

Importing this package registers the built-in weight initializers.
"""

from ._activations import softmax, spherical_softmax
from ._linear_algebra import T, add, hadamard, mul, transpose
from ._losses import avg, cross_entropy, entropy, sum_
from ._parameter import Parameter
from ._parameter_set import ParameterSet
from ._structural import concat, slice_
from .graph import (
    Apply,
    Expression,
    SliceBounds,
    SliceOptions,
    SphericalOptions,
    Variable,
    apply,
    backward,
    evaluate,
    forward,
    gradient,
)
from .optimizers import Adam, bias_power
from .tensor import Context, Tensor
from .utils.weight_initializer import WeightInitializer

__all__ = [
    "Adam",
    "Apply",
    "Context",
    "Expression",
    "Parameter",
    "ParameterSet",
    "SliceBounds",
    "SliceOptions",
    "SphericalOptions",
    "T",
    "Tensor",
    "Variable",
    "WeightInitializer",
    "add",
    "apply",
    "avg",
    "backward",
    "bias_power",
    "concat",
    "cross_entropy",
    "entropy",
    "evaluate",
    "forward",
    "gradient",
    "hadamard",
    "mul",
    "slice_",
    "softmax",
    "spherical_softmax",
    "sum_",
    "transpose",
]
