"""
Base64 array payloads.

Weight files store raw tensor values as base64 text inside JSON, so that a
checkpoint is a single human-inspectable document with no pickle involved.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Dict

import numpy as np


def bytes_to_b64_str(b: bytes) -> str:
    """
    Encode raw bytes into a base64 ASCII string (JSON-safe).
    """
    return base64.b64encode(b).decode("ascii")


def b64_str_to_bytes(s: str) -> bytes:
    """
    Decode a base64 ASCII string back into raw bytes.

    Raises
    ------
    ValueError
        If `s` is not valid base64.
    """
    try:
        return base64.b64decode(s.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def ndarray_to_payload(arr: np.ndarray) -> Dict[str, Any]:
    """
    Serialize an array into a JSON-safe payload.

    Returns
    -------
    dict
        ``{"b64": <base64 of C-order bytes>, "dtype": <dtype str>, "shape": [...]}``
    """
    a = np.ascontiguousarray(arr)
    return {
        "b64": bytes_to_b64_str(a.tobytes(order="C")),
        "dtype": a.dtype.str,
        "shape": list(a.shape),
    }


def payload_to_ndarray(payload: Dict[str, Any]) -> np.ndarray:
    """
    Deserialize a payload produced by `ndarray_to_payload`.

    Raises
    ------
    ValueError
        If the payload is incomplete or its byte count does not match the
        declared dtype and shape.
    """
    try:
        raw = b64_str_to_bytes(str(payload["b64"]))
        dtype = np.dtype(str(payload["dtype"]))
        shape = tuple(int(x) for x in payload["shape"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed array payload: {e!r}") from e

    expected = int(np.prod(shape)) * dtype.itemsize
    if len(raw) != expected:
        raise ValueError(
            f"Payload holds {len(raw)} bytes, expected {expected} for "
            f"shape={shape} dtype={dtype}"
        )
    return np.frombuffer(raw, dtype=dtype).reshape(shape).copy()
