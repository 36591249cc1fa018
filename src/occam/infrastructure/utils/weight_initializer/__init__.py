"""
Weight initialization public API.

Importing this module registers the built-in initializers (``zeros``,
``uniform``, ``kaiming``) into the `WeightInitializer` registry via import
side effects.

Exports
-------
- WeightInitializer:
    The registry-backed initializer dispatcher.
"""

from ._constants import *
from ._uniform import *
from ._kaiming import *
from ._base import WeightInitializer

__all__ = [
    WeightInitializer.__name__,
]
