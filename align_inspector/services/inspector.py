"""Inspector - statistics collector and exporter driven by the alignment loop.

An Inspector composes an IStatCollector and an IExporter. The three standard
kinds only differ in the parts they plug in:

    NullInspector         NullStatCollector + NullExporter
    PerformanceInspector  StatCollector     + NullExporter
    VTKFileInspector      StatCollector     + VTKExporter(FileSinkProvider)

Usage:
    with create_inspector("VTKFileInspector", {"base_file_name": "out/run"}) as inspector:
        inspector.init()
        for i in range(iterations):
            inspector.stats.stat_overlap_ratio(overlap)
            inspector.dump_iteration(i, T, reference, reading, matches, weights, None, checkers)
        inspector.finish(i)
"""

from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from align_inspector.core.config import InspectorParams
from align_inspector.core.errors import ConfigError
from align_inspector.core.logging_config import get_logger
from align_inspector.services.export import (
    DataPoints, FileSinkProvider, IExporter, Matches, NullExporter,
    TransformationChecker, VTKExporter,
)
from align_inspector.services.metrics import (
    HistogramStats, IStatCollector, NullStatCollector, StatCollector,
)

logger = get_logger(__name__)

INSPECTOR_KINDS = ("NullInspector", "PerformanceInspector", "VTKFileInspector")


class Inspector:
    """
    Records run-time statistics and exports alignment state.

    close() finalizes the statistics explicitly; it is also called when a
    ``with`` block exits normally.
    """

    def __init__(self, stats: IStatCollector, exporter: IExporter, kind: str = "Inspector"):
        self.stats = stats
        self.exporter = exporter
        self.kind = kind
        self.closed = False

    def init(self) -> None:
        self.exporter.init()

    def dump_data_points(self, cloud: DataPoints, label: str) -> None:
        self.exporter.dump_data_points(cloud, label)

    def dump_mesh_nodes(self, cloud: DataPoints, label: str) -> None:
        self.exporter.dump_mesh_nodes(cloud, label)

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
        self.exporter.dump_iteration(
            iteration, transform_parameters, filtered_reference, reading, matches,
            feature_outlier_weights, descriptor_outlier_weights, transformation_checkers,
        )

    def finish(self, iteration: int) -> None:
        self.exporter.finish(iteration)

    def close(self) -> Dict[str, HistogramStats]:
        """
        Finalize every statistic histogram.

        Returns:
            Statistics by histogram name (empty for a disabled collector)

        Raises:
            RuntimeError: If the inspector was already closed
            OSError: If a statistics file cannot be written
        """
        if self.closed:
            raise RuntimeError(f"{self.kind} is already closed")
        self.closed = True
        return self.stats.flush()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None and not self.closed:
            self.close()


def create_inspector(kind: Optional[str] = None,
                     params: Union[InspectorParams, Dict[str, Any], None] = None) -> Inspector:
    """
    Build one of the standard inspectors.

    Args:
        kind: One of INSPECTOR_KINDS (default: settings.INSPECTOR_KIND)
        params: InspectorParams or a plain dict of them (default: from settings)

    Raises:
        ConfigError: If kind is unknown or params are invalid
    """
    if kind is None:
        from align_inspector.core.config import settings
        kind = settings.INSPECTOR_KIND
    if params is None:
        params = InspectorParams.from_settings()
    elif isinstance(params, dict):
        params = InspectorParams.from_dict(params)

    if kind not in INSPECTOR_KINDS:
        raise ConfigError(f"Unknown inspector '{kind}', expected one of {', '.join(INSPECTOR_KINDS)}")

    if kind == "NullInspector":
        inspector = Inspector(NullStatCollector(), NullExporter(), kind)
    else:
        stats = StatCollector(params.bin_count, params.stats_file_prefix, params.dump_perf_on_exit)
        if kind == "PerformanceInspector":
            exporter = NullExporter()
        else:
            exporter = VTKExporter(FileSinkProvider(params.base_file_name), params.dump_iteration_info)
        inspector = Inspector(stats, exporter, kind)

    logger.info(f"Created {kind} (stats {'enabled' if inspector.stats.is_enabled() else 'disabled'})")
    return inspector
