from ._b64 import ndarray_to_payload, payload_to_ndarray

__all__ = [
    ndarray_to_payload.__name__,
    payload_to_ndarray.__name__,
]
