"""
Weight initializer registry and dispatch utilities.

This module defines the concrete `WeightInitializer` used to apply registered
initialization policies (zeros, uniform, Kaiming) to `Tensor` instances.

Design
------
- Initializers are registered by string name via a decorator-based registry.
- Each initializer is a callable `(tensor, rng) -> tensor` that mutates the
  tensor *in-place* and returns it.
- The random generator is always supplied by the caller, so two training runs
  in one process draw from independent, reproducible streams.

Usage example
-------------
Registering an initializer:

    @WeightInitializer.register_initializer("uniform")
    def uniform(tensor: Tensor, rng: np.random.Generator) -> Tensor:
        ...

Applying an initializer:

    init = WeightInitializer("kaiming")
    init(points, rng)
"""

from __future__ import annotations

from typing import Any, Callable, ClassVar, Dict, TypeVar

from ....domain.utils._weight_initialization import _WeightInitializer
from ...tensor._tensor import Tensor

T = TypeVar("T", bound=Callable[..., Tensor])


class WeightInitializer(_WeightInitializer):
    """
    Registry-backed weight initializer dispatcher.

    Usage
    -----
    Register:
        @WeightInitializer.register_initializer("kaiming")
        def kaiming(tensor: Tensor, rng) -> Tensor: ...

    Dispatch:
        init = WeightInitializer("kaiming")
        init(tensor, rng)
    """

    INITIALIZERS: ClassVar[Dict[str, Callable[..., Tensor]]] = {}

    def __init__(self, initializer_name: str) -> None:
        try:
            self._initializer: Callable[..., Tensor] = self.INITIALIZERS[
                initializer_name
            ]
        except KeyError as e:
            available = ", ".join(sorted(self.INITIALIZERS)) or "<none>"
            raise ValueError(
                f"Unsupported initializer name: {initializer_name!r}. "
                f"Available: {available}"
            ) from e
        self.name = initializer_name

    @classmethod
    def register_initializer(
        cls, name: str, *, overwrite: bool = False
    ) -> Callable[[T], T]:
        """
        Decorator to register a weight initializer under `name`.

        Parameters
        ----------
        name:
            Registry key used to retrieve the initializer later.
        overwrite:
            If False (default), raises if `name` is already registered.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Initializer name must be a non-empty string")

        def decorator(func: T) -> T:
            if not overwrite and name in cls.INITIALIZERS:
                raise ValueError(f"Initializer already registered: {name!r}")
            cls.INITIALIZERS[name] = func
            return func

        return decorator

    @classmethod
    def available(cls) -> tuple[str, ...]:
        """Return registered initializer names (sorted)."""
        return tuple(sorted(cls.INITIALIZERS))

    def __call__(self, tensor: Tensor, rng: Any, *args: Any, **kwargs: Any) -> Tensor:
        return self._initializer(tensor, rng, *args, **kwargs)
