"""Running-sample histogram with descriptive statistics.

A Histogram accumulates scalar samples of a fixed numeric dtype and, when
finalized, computes mean, variance, median, quartiles, extrema and per-bin
counts. Finalization is explicit (finalize() or leaving a ``with`` block):
sample files and diagnostic reports are only written from there, so I/O
failures reach the caller.

Usage:
    with Histogram(16, "convergence_duration", dump_stats=True) as hist:
        for duration in durations:
            hist.append(duration)
"""
import sys
from pathlib import Path
from typing import Any, List, Optional, TextIO

import numpy as np

from align_inspector.core.errors import ConfigError
from align_inspector.core.logging_config import get_logger
from .models import HistogramStats, format_value

logger = get_logger(__name__)

# Width of the '*' bar drawn for the fullest bin of the diagnostic report
BAR_WIDTH = 60


class Histogram:
    """
    Accumulates samples and reports their distribution.

    Samples keep their append order: quantiles are selected on a private copy,
    so finalize() may be called more than once and later appends are safe.
    """

    def __init__(
        self,
        bin_count: int,
        name: str,
        file_prefix: str = "",
        dump_stats: bool = False,
        dtype: Any = np.float64,
        diagnostic_stream: Optional[TextIO] = None,
    ):
        """
        Initialize an empty histogram.

        Args:
            bin_count: Number of bins, must be positive
            name: Human-readable name, also the raw-sample file suffix
            file_prefix: When non-empty, finalize() writes every sample to
                file_prefix + name
            dump_stats: When True, finalize() writes the diagnostic report
            dtype: Numeric type of the samples (unsigned int, float32, float64)
            diagnostic_stream: Destination of the diagnostic report
                (default: sys.stderr at finalize time)

        Raises:
            ConfigError: If bin_count is not positive
        """
        if bin_count <= 0:
            raise ConfigError(f"Histogram '{name}' needs a positive bin count, got {bin_count}")

        self.bin_count = int(bin_count)
        self.name = name
        self.file_prefix = file_prefix
        self.dump_stats = dump_stats
        self.dtype = np.dtype(dtype)
        self.diagnostic_stream = diagnostic_stream
        self._samples: List[Any] = []

    def append(self, value) -> None:
        self._samples.append(value)

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def samples(self) -> np.ndarray:
        """Copy of the samples in append order."""
        return np.asarray(self._samples, dtype=self.dtype)

    @property
    def file_path(self) -> Optional[Path]:
        if not self.file_prefix:
            return None
        return Path(self.file_prefix + self.name)

    def compute_stats(self) -> HistogramStats:
        """
        Compute the statistics of the current samples.

        Median and quartiles are the order statistics at ranks n/2, n/4 and
        3n/4, found by successive partial selections without interpolation.
        Integer histograms compute mean, variance and binning in float64.
        NaN and infinite samples are left out of every statistic.

        Returns:
            HistogramStats (NaN statistics when no finite sample exists)
        """
        values = self.samples
        if np.issubdtype(self.dtype, np.floating):
            finite = np.isfinite(values)
            if not finite.all():
                logger.warning(f"Histogram '{self.name}' ignores {int((~finite).sum())} non-finite samples")
                values = values[finite]
        count = len(values)
        if count == 0:
            nan = float("nan")
            return HistogramStats(
                mean=nan, variance=nan, median=nan, low_quartile=nan,
                high_quartile=nan, min=nan, max=nan,
                bins=[0] * self.bin_count, max_bin_count=0,
            )

        work_dtype = self.dtype if np.issubdtype(self.dtype, np.floating) else np.dtype(np.float64)
        work = values.astype(work_dtype)

        mean = work.mean(dtype=work_dtype)
        min_v = values.min()
        max_v = values.max()

        if min_v == max_v:
            # Degenerate range: no binning, no spread
            return HistogramStats(
                mean=mean.item(), variance=0.0, median=min_v.item(),
                low_quartile=min_v.item(), high_quartile=min_v.item(),
                min=min_v.item(), max=max_v.item(),
                bins=[0] * self.bin_count, max_bin_count=0,
            )

        deviations = work - mean
        with np.errstate(over="ignore"):
            variance = (deviations * deviations).sum(dtype=work_dtype) / work_dtype.type(count)

        # Halved bounds keep the range finite up to the dtype maximum,
        # the epsilon stretch keeps max_v inside the last bin
        low = work_dtype.type(min_v) / 2
        high = work_dtype.type(max_v) / 2
        stretch = work_dtype.type(1) + np.finfo(work_dtype).eps * 10
        positions = (work / 2 - low) / (high - low) * (self.bin_count / stretch)
        indices = np.clip(np.floor(positions).astype(np.int64), 0, self.bin_count - 1)
        bins = np.bincount(indices, minlength=self.bin_count)

        # In-place selections on the private copy, append order is untouched
        median_rank, low_rank, high_rank = count // 2, count // 4, (3 * count) // 4
        values.partition(median_rank)
        median = values[median_rank]
        values.partition(low_rank)
        low_quartile = values[low_rank]
        values.partition(high_rank)
        high_quartile = values[high_rank]

        return HistogramStats(
            mean=mean.item(),
            variance=variance.item(),
            median=median.item(),
            low_quartile=low_quartile.item(),
            high_quartile=high_quartile.item(),
            min=min_v.item(),
            max=max_v.item(),
            bins=[int(c) for c in bins],
            max_bin_count=int(bins.max()),
        )

    def report(self, stream: TextIO) -> HistogramStats:
        """Write the machine-readable statistics line to stream."""
        stats = self.compute_stats()
        stream.write(stats.to_report_line(self.dtype))
        return stats

    def finalize(self) -> HistogramStats:
        """
        Compute statistics and emit the configured dumps.

        Writes the diagnostic report when dump_stats is set, then the
        raw-sample file when a file prefix is set.

        Returns:
            The computed HistogramStats

        Raises:
            OSError: If the raw-sample file cannot be written
        """
        stats = self.compute_stats()

        if self.dump_stats:
            stream = self.diagnostic_stream if self.diagnostic_stream is not None else sys.stderr
            self._write_diagnostic(stats, stream)

        path = self.file_path
        if path is not None:
            self._write_samples(path)

        return stats

    def _write_samples(self, path: Path) -> None:
        logger.info(f"writing to {path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for value in self._samples:
                f.write(format_value(self.dtype.type(value).item(), self.dtype))
                f.write("\n")

    def _write_diagnostic(self, stats: HistogramStats, stream: TextIO) -> None:
        count = len(self._samples)
        lines = [
            f"Histogram {self.name}:",
            f"  count: {count}, mean: {stats.mean:.4g}",
        ]
        # A single sample has no spread to draw
        if count > 1:
            integer = np.issubdtype(self.dtype, np.integer)
            for i, bin_value in enumerate(stats.bins):
                # Lower bin edge, truncated for integer samples
                if integer:
                    edge = stats.min + i * (stats.max - stats.min) // self.bin_count
                else:
                    edge = stats.min + i * (stats.max - stats.min) / self.bin_count
                bar_len = (bin_value * BAR_WIDTH) // stats.max_bin_count if stats.max_bin_count else 0
                lines.append(f"  {edge:<10.4g} ({bin_value:<6}) : {'*' * bar_len}")
        stream.write("\n".join(lines) + "\n")
        stream.flush()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.finalize()
