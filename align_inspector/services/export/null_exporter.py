"""NullExporter - No-op implementation for inspectors that export nothing."""

from typing import Optional, Sequence

import numpy as np

from .types import DataPoints, Matches, TransformationChecker


class NullExporter:
    """No-op exporter, every call returns immediately without I/O."""

    def init(self) -> None:
        pass

    def dump_data_points(self, cloud: DataPoints, label: str) -> None:
        pass

    def dump_mesh_nodes(self, cloud: DataPoints, label: str) -> None:
        pass

    def dump_iteration(
        self,
        iteration: int,
        transform_parameters: np.ndarray,
        filtered_reference: DataPoints,
        reading: DataPoints,
        matches: Matches,
        feature_outlier_weights: np.ndarray,
        descriptor_outlier_weights: Optional[np.ndarray],
        transformation_checkers: Sequence[TransformationChecker],
    ) -> None:
        pass

    def finish(self, iteration: int) -> None:
        pass
