from ._adam import Adam, bias_power

__all__ = [
    Adam.__name__,
    bias_power.__name__,
]
