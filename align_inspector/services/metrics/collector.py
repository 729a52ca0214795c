"""IStatCollector Protocol and the histogram-backed StatCollector.

The alignment loop records one value per statistic and per run through the
stat_* operations. Each statistic owns its Histogram; flush() finalizes all
of them explicitly at the end of the run.
"""

from typing import Dict, List, Protocol

import numpy as np

from align_inspector.core.logging_config import get_logger
from .histogram import Histogram
from .models import HistogramStats

logger = get_logger(__name__)

# (histogram name, sample dtype), in reporting order
STAT_HISTOGRAMS = (
    ("key_frame_duration", np.float64),
    ("convergence_duration", np.float64),
    ("iterations_count", np.uint32),
    ("point_count_in", np.uint32),
    ("point_count_reading", np.uint32),
    ("point_count_key_frame", np.uint32),
    ("point_count_touched", np.uint32),
    ("overlap_ratio", np.float64),
)


class IStatCollector(Protocol):
    """Protocol defining the statistics recorded by the alignment loop.

    Arguments are not range-checked, callers are trusted.
    """

    def stat_key_frame_duration(self, duration: float) -> None:
        """Record the time spent creating a key frame, in seconds."""
        ...

    def stat_convergence_duration(self, duration: float) -> None:
        """Record the time spent until convergence, in seconds."""
        ...

    def stat_iterations_count(self, count: int) -> None:
        """Record the number of iterations of one alignment."""
        ...

    def stat_point_count_in(self, count: int) -> None:
        """Record the number of input points."""
        ...

    def stat_point_count_reading(self, count: int) -> None:
        """Record the number of reading points after filtering."""
        ...

    def stat_point_count_key_frame(self, count: int) -> None:
        """Record the number of key-frame points."""
        ...

    def stat_point_count_touched(self, count: int) -> None:
        """Record the number of reference points touched by matching."""
        ...

    def stat_overlap_ratio(self, ratio: float) -> None:
        """Record the estimated overlap between reading and reference (0-1)."""
        ...

    def flush(self) -> Dict[str, HistogramStats]:
        """Finalize every statistic and return its summary by name."""
        ...

    def is_enabled(self) -> bool:
        """Check if statistics collection is enabled."""
        ...


class StatCollector:
    """Histogram-backed statistics collector.

    All histograms share the same bin count, file prefix and dump flag.
    """

    def __init__(self, bin_count: int = 16, file_prefix: str = "", dump_on_exit: bool = False):
        """
        Create the eight statistic histograms.

        Args:
            bin_count: Number of bins of every histogram
            file_prefix: Raw-sample file prefix (empty disables sample files)
            dump_on_exit: Write the diagnostic report of every histogram on flush()

        Raises:
            ConfigError: If bin_count is not positive
        """
        self._histograms: Dict[str, Histogram] = {
            name: Histogram(bin_count, name, file_prefix, dump_on_exit, dtype=dtype)
            for name, dtype in STAT_HISTOGRAMS
        }

    @property
    def histograms(self) -> List[Histogram]:
        return list(self._histograms.values())

    def __getitem__(self, name: str) -> Histogram:
        return self._histograms[name]

    def stat_key_frame_duration(self, duration: float) -> None:
        self._histograms["key_frame_duration"].append(duration)

    def stat_convergence_duration(self, duration: float) -> None:
        self._histograms["convergence_duration"].append(duration)

    def stat_iterations_count(self, count: int) -> None:
        self._histograms["iterations_count"].append(count)

    def stat_point_count_in(self, count: int) -> None:
        self._histograms["point_count_in"].append(count)

    def stat_point_count_reading(self, count: int) -> None:
        self._histograms["point_count_reading"].append(count)

    def stat_point_count_key_frame(self, count: int) -> None:
        self._histograms["point_count_key_frame"].append(count)

    def stat_point_count_touched(self, count: int) -> None:
        self._histograms["point_count_touched"].append(count)

    def stat_overlap_ratio(self, ratio: float) -> None:
        self._histograms["overlap_ratio"].append(ratio)

    def flush(self) -> Dict[str, HistogramStats]:
        """
        Finalize every histogram independently, in reporting order.

        A histogram whose dump fails does not stop the others.

        Raises:
            OSError: The first dump failure, once every histogram was finalized
        """
        results: Dict[str, HistogramStats] = {}
        errors: List[OSError] = []
        for name, hist in self._histograms.items():
            try:
                results[name] = hist.finalize()
            except OSError as e:
                logger.error(f"Failed to finalize histogram '{name}': {e}")
                errors.append(e)

        if errors:
            raise errors[0]
        logger.debug(f"Flushed {len(results)} statistic histograms")
        return results

    def is_enabled(self) -> bool:
        return True
