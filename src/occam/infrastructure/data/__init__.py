from ._synthetic import cluster_centers, make_clusters

__all__ = [
    "cluster_centers",
    "make_clusters",
]
