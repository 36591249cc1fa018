from ._agreement import nearest_neighbor_agreement

__all__ = [
    "nearest_neighbor_agreement",
]
