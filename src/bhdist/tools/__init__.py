from .pairwise_distances import compute_distance_matrix

__all__ = [
    "compute_distance_matrix",
]
