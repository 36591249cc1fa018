"""
Parameter set persistence.

A weight file is a single JSON document:

    {
      "format": "occam.json.weights.v1",
      "parameters": [
        {"name": "points", "shape": [64, 4], "dtype": "<f4",
         "trainable": true, "b64": "..."},
        ...
      ]
    }

Entries are written in declaration order, so loading a file reproduces the
set's order as well as its names, shapes and values. Optimizer state is not
stored; every load leaves the Adam moment estimates at zero.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import numpy as np

from ...domain._errors import ParameterSetUnavailableError, ShapeMismatchError
from .._parameter import Parameter
from .._parameter_set import ParameterSet
from ..encoding._b64 import ndarray_to_payload, payload_to_ndarray

FORMAT = "occam.json.weights.v1"


def extract_entries(parameter_set: ParameterSet) -> List[Dict[str, Any]]:
    """Return one JSON-safe entry per tensor, in declaration order."""
    entries = []
    for name, t in parameter_set.named_parameters():
        payload = ndarray_to_payload(t.data)
        entries.append(
            {
                "name": name,
                "shape": payload["shape"],
                "dtype": payload["dtype"],
                "trainable": isinstance(t, Parameter),
                "b64": payload["b64"],
            }
        )
    return entries


def save_parameters(parameter_set: ParameterSet, path: str | Path) -> None:
    """
    Write every tensor of `parameter_set` to a JSON weight file.

    Parameters
    ----------
    parameter_set : ParameterSet
        Set to save.
    path : str | Path
        Output file; parent directories are created.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    doc = {"format": FORMAT, "parameters": extract_entries(parameter_set)}
    p.write_text(json.dumps(doc, indent=2), encoding="utf-8")


def _read_entries(path: str | Path) -> List[Dict[str, Any]]:
    p = Path(path)
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ParameterSetUnavailableError(f"weight file not found: {p}") from e
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParameterSetUnavailableError(f"cannot read weight file {p}: {e}") from e

    if not isinstance(doc, dict) or doc.get("format") != FORMAT:
        raise ParameterSetUnavailableError(f"unsupported weight file format in {p}")
    entries = doc.get("parameters")
    if not isinstance(entries, list):
        raise ParameterSetUnavailableError(f"weight file {p} has no parameter list")
    return entries


def _entry_array(entry: Dict[str, Any], path: str | Path) -> np.ndarray:
    try:
        return payload_to_ndarray(entry)
    except ValueError as e:
        name = entry.get("name", "<unnamed>") if isinstance(entry, dict) else "<unnamed>"
        raise ParameterSetUnavailableError(
            f"corrupt entry {name!r} in {path}: {e}"
        ) from e


def load_parameters(path: str | Path) -> ParameterSet:
    """
    Rebuild a parameter set from a weight file.

    Returns
    -------
    ParameterSet
        A new set with the saved names, shapes, dtypes and values, in saved
        order. Adam moment estimates are zero.

    Raises
    ------
    ParameterSetUnavailableError
        If the file is missing, unreadable or corrupt.
    """
    out = ParameterSet()
    for entry in _read_entries(path):
        arr = _entry_array(entry, path)
        try:
            t = out.add(
                str(entry["name"]),
                arr.shape,
                trainable=bool(entry.get("trainable", True)),
                dtype=arr.dtype.newbyteorder("="),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ParameterSetUnavailableError(f"corrupt entry in {path}: {e}") from e
        t.copy_from_numpy(arr)
    return out


def load_parameters_(parameter_set: ParameterSet, path: str | Path) -> None:
    """
    In-place load of a weight file into an existing set.

    Every tensor of `parameter_set` must be present in the file with the same
    shape. Values are copied into the existing buffers, so graphs built on
    the set stay valid; Adam state is reset.

    Raises
    ------
    ParameterSetUnavailableError
        If the file is missing, unreadable or corrupt, or lacks a tensor.
    ShapeMismatchError
        If a saved shape differs from the set's.
    """
    entries = {str(e.get("name")): e for e in _read_entries(path) if isinstance(e, dict)}
    for name, t in parameter_set.named_parameters():
        if name not in entries:
            raise ParameterSetUnavailableError(f"{path} has no entry for {name!r}")
        arr = _entry_array(entries[name], path)
        if tuple(arr.shape) != tuple(t.shape):
            raise ShapeMismatchError("load_parameters_", (t.shape, arr.shape), name)
        t.copy_from_numpy(arr)
    parameter_set.reset_state()
