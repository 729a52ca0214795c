"""NullStatCollector - No-op implementation for disabled statistics.

Null object used by the NullInspector so the alignment loop can record
statistics unconditionally.
"""

from typing import Dict

from .models import HistogramStats


class NullStatCollector:
    """No-op statistics collector.

    All record methods are no-ops; flush() returns an empty mapping.
    """

    def stat_key_frame_duration(self, duration: float) -> None:
        pass

    def stat_convergence_duration(self, duration: float) -> None:
        pass

    def stat_iterations_count(self, count: int) -> None:
        pass

    def stat_point_count_in(self, count: int) -> None:
        pass

    def stat_point_count_reading(self, count: int) -> None:
        pass

    def stat_point_count_key_frame(self, count: int) -> None:
        pass

    def stat_point_count_touched(self, count: int) -> None:
        pass

    def stat_overlap_ratio(self, ratio: float) -> None:
        pass

    def flush(self) -> Dict[str, HistogramStats]:
        return {}

    def is_enabled(self) -> bool:
        """Always returns False for null collector."""
        return False
