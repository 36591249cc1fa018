from ._serialization_weights import load_parameters, load_parameters_, save_parameters

__all__ = [
    save_parameters.__name__,
    load_parameters.__name__,
    load_parameters_.__name__,
]
