"""
Point-cloud state consumed by the exporters.

Clouds store one row per point: features hold the positions (N x 2 or N x 3)
and descriptors map a name to an (N x span) matrix. Descriptor order is the
registration order, which the exporters rely on for reproducible files.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Protocol, Sequence

import numpy as np


@dataclass
class DataPoints:
    """Point positions plus named per-point descriptors."""
    features: np.ndarray  # (N, D) positions, D is 2 or 3
    descriptors: Dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self):
        features = np.asarray(self.features, dtype=np.float64)
        if features.ndim == 1:
            # A flat array is a single point, an empty one is an empty 3-D cloud
            features = features.reshape(1, -1) if features.size else features.reshape(0, 3)
        self.features = features
        registered = self.descriptors
        self.descriptors = {}
        for name, values in registered.items():
            self.add_descriptor(name, values)

    @property
    def point_count(self) -> int:
        return self.features.shape[0]

    @property
    def dimension(self) -> int:
        return self.features.shape[1]

    def add_descriptor(self, name: str, values: np.ndarray) -> None:
        """
        Register a descriptor, a 1-D array being a one-component descriptor.

        Raises:
            ValueError: If values do not have one row per point
        """
        values = np.asarray(values, dtype=np.float64)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if values.shape[0] != self.point_count:
            raise ValueError(
                f"Descriptor '{name}' has {values.shape[0]} rows, expected {self.point_count}"
            )
        self.descriptors[name] = values

    def descriptor_exists(self, name: str) -> bool:
        return name in self.descriptors

    def get_descriptor(self, name: str) -> np.ndarray:
        return self.descriptors[name]

    def descriptor_names(self) -> List[str]:
        return list(self.descriptors)

    @classmethod
    def from_open3d(cls, pcd) -> "DataPoints":
        """
        Build a cloud from an open3d.geometry.PointCloud.

        Normals and colors are registered as the 'normals' and 'color'
        descriptors when present.
        """
        import open3d as o3d  # optional dependency

        if not isinstance(pcd, o3d.geometry.PointCloud):
            raise TypeError(f"Expected open3d.geometry.PointCloud, got {type(pcd).__name__}")

        cloud = cls(np.asarray(pcd.points).reshape(-1, 3))
        if pcd.has_normals():
            cloud.add_descriptor("normals", np.asarray(pcd.normals))
        if pcd.has_colors():
            cloud.add_descriptor("color", np.asarray(pcd.colors))
        return cloud


@dataclass
class Matches:
    """Reference indices matched to each reading point.

    ids[i, k] is the k-th reference neighbour of reading point i; a negative
    id marks an invalid match.
    """
    ids: np.ndarray  # (N_reading, knn) int
    dists: np.ndarray  # (N_reading, knn) float

    def __post_init__(self):
        self.ids = np.asarray(self.ids, dtype=np.int64)
        if self.ids.ndim == 1:
            self.ids = self.ids.reshape(-1, 1)
        self.dists = np.asarray(self.dists, dtype=np.float64).reshape(self.ids.shape)

    @property
    def knn(self) -> int:
        return self.ids.shape[1]


class TransformationChecker(Protocol):
    """Convergence checker state written with each iteration."""
    value_names: Sequence[str]
    limit_names: Sequence[str]
    values: Sequence[float]
    limits: Sequence[float]
