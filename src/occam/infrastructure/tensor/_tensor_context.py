from typing import Any
from dataclasses import dataclass, field


@dataclass
class Context:
    """
    Backward context recorded for one operator evaluation.

    A `Context` records the information required to compute gradients for an
    operator during backpropagation. A fresh context is created every time a
    graph node is evaluated, so contexts never leak between iterations.

    Attributes
    ----------
    saved_tensors : list[Any]
        Arrays explicitly saved during the forward pass for use in backward
        (operands, outputs, cached intermediates).
    saved_meta : dict[str, Any]
        Non-array metadata required for backward (e.g., shapes, slice bounds).
    """

    saved_tensors: list[Any] = field(default_factory=list)
    saved_meta: dict[str, Any] = field(default_factory=dict)

    def save_for_backward(self, *tensors: Any) -> None:
        """
        Save arrays for use during the backward computation.

        Parameters
        ----------
        *tensors : array
            Any number of arrays to be stored in `saved_tensors`.
        """
        self.saved_tensors.extend(tensors)
