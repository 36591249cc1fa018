"""
Reverse-mode evaluation engine.

The engine exposes an explicit two-phase API over expression graphs:

- `forward(root)` evaluates every operator node reachable from `root` in
  dependency order and returns the root's output tensor.
- `backward(root, seed)` seeds the root gradient and walks the graph in
  reverse dependency order, invoking each operator's backward rule and
  accumulating the results into operand gradient buffers.

Callers that only need inference run `forward` and stop. `evaluate` keeps the
continuation-style entry point (the continuation decides whether the backward
phase runs) and `gradient` is the forward-then-backward convenience used by
training loops.

Numeric policy
--------------
Non-finite values are never raised here. Floating point warnings are
suppressed while operators run, NaN and Infinity propagate through later
arithmetic, and the training loop checks for them at its boundary.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

import numpy as np

from ..tensor._tensor import Tensor
from ._expression import Apply, Expression
from ._options import SliceBounds, SliceOptions


def topological_order(root: Expression) -> list[Expression]:
    """
    Return every node reachable from `root`, operands before their users.

    Each node appears exactly once even when it feeds several operators.
    """
    topo: list[Expression] = []
    visited: set[int] = set()

    def dfs(node: Expression) -> None:
        nid = id(node)
        if nid in visited:
            return
        visited.add(nid)
        for operand in node.operands:
            dfs(operand)
        topo.append(node)

    dfs(root)
    return topo


def _coerce_bounds(key: str, bounds: Any) -> SliceBounds:
    if isinstance(bounds, SliceBounds):
        return bounds
    if isinstance(bounds, tuple) and len(bounds) == 2:
        return SliceBounds(int(bounds[0]), int(bounds[1]))
    raise TypeError(f"Bounds for slice '{key}' must be SliceBounds, got {bounds!r}")


def forward(root: Expression, *, slices: Optional[Mapping[str, Any]] = None) -> Tensor:
    """
    Evaluate `root` and everything it depends on.

    Parameters
    ----------
    root : Expression
        Expression to evaluate.
    slices : Mapping[str, SliceBounds], optional
        Bounds for slice nodes, keyed by slice key, for this evaluation only.
        Slice nodes not listed use the bounds they were built with.

    Returns
    -------
    Tensor
        The root's output tensor (live buffer, not a copy).

    Raises
    ------
    KeyError
        If `slices` names a key that no slice node in the graph uses.
    """
    order = topological_order(root)
    slices = dict(slices or {})

    slice_keys = {
        node.options.key
        for node in order
        if isinstance(node, Apply) and isinstance(node.options, SliceOptions)
    }
    unknown = set(slices) - slice_keys
    if unknown:
        raise KeyError(f"Unknown slice keys {sorted(unknown)}; graph has {sorted(slice_keys)}")

    with np.errstate(all="ignore"):
        for node in order:
            if not isinstance(node, Apply):
                continue
            options = node.options
            if isinstance(options, SliceOptions) and options.key in slices:
                options = options.bind(_coerce_bounds(options.key, slices[options.key]))
            node.evaluate(options)

    return root.value


def backward(root: Expression, seed: Any = None) -> None:
    """
    Backpropagate gradients from `root` to every reachable leaf.

    Parameters
    ----------
    root : Expression
        Expression previously evaluated with `forward`.
    seed : array_like, optional
        Gradient of the cost with respect to `root`. If omitted, `root` must
        hold a single element and the seed is 1.

    Raises
    ------
    ValueError
        If `seed` is omitted for a multi-element root, or has the wrong size.
    RuntimeError
        If an operator node has not been evaluated, or a backward rule returns
        the wrong number or shape of gradients.

    Notes
    -----
    - Gradient buffers of operator nodes are transient and reset here.
    - Leaf gradient buffers accumulate; callers zero them explicitly between
      iterations.
    """
    out = root.value
    if seed is None:
        if out.numel != 1:
            raise ValueError(
                "seed must be provided for non-scalar expressions. "
                f"Got shape={out.shape}."
            )
        seed_arr = np.ones(out.shape, dtype=out.dtype)
    else:
        seed_arr = np.asarray(seed)
        if seed_arr.shape != out.shape:
            if seed_arr.size != out.numel:
                raise ValueError(
                    f"seed shape mismatch: expected {out.shape}, got {seed_arr.shape}"
                )
            seed_arr = seed_arr.reshape(out.shape)

    order = topological_order(root)
    for node in order:
        if isinstance(node, Apply):
            if node.ctx is None:
                raise RuntimeError(f"{node!r} has not been evaluated; call forward first")
            node.value.zero_grad()

    with np.errstate(all="ignore"):
        out.grad[...] += seed_arr

        # Traverse in reverse topo order (from outputs back to leaves)
        for node in reversed(order):
            if not isinstance(node, Apply):
                continue

            grads = node.fn.backward(node.ctx, node.value.grad)
            if len(grads) != len(node.operands):
                raise RuntimeError(
                    "backward must return one grad per operand. "
                    f"Got {len(grads)} grads for {len(node.operands)} operands."
                )

            for operand, g in zip(node.operands, grads):
                if g is None:
                    continue
                g = np.asarray(g)
                if g.shape != operand.shape:
                    raise RuntimeError(
                        f"{node.fn.name}: gradient shape {g.shape} does not match "
                        f"operand shape {operand.shape}"
                    )
                operand.value.grad[...] += g


def evaluate(
    root: Expression,
    continuation: Optional[Callable[[Tensor], bool]] = None,
    *,
    slices: Optional[Mapping[str, Any]] = None,
) -> Tensor:
    """
    Forward-evaluate `root`, then backpropagate unless told to stop.

    Parameters
    ----------
    root : Expression
        Expression to evaluate.
    continuation : Callable[[Tensor], bool], optional
        Called with the forward result. A true return value stops before the
        backward phase (inference only).
    slices : Mapping[str, SliceBounds], optional
        Slice bounds for this evaluation.

    Returns
    -------
    Tensor
        The root's output tensor.
    """
    result = forward(root, slices=slices)
    if continuation is not None and continuation(result):
        return result
    backward(root)
    return result


def gradient(cost: Expression, *, slices: Optional[Mapping[str, Any]] = None) -> Tensor:
    """
    Evaluate a scalar cost and populate every leaf gradient.

    Returns
    -------
    Tensor
        The evaluated cost tensor.
    """
    result = forward(cost, slices=slices)
    backward(cost)
    return result
