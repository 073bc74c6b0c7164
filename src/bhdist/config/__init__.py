from .distance_config import DistanceConfig

__all__ = [
    "DistanceConfig",
]
