"""Pydantic V2 models for histogram statistics.

HistogramStats is the derived, never-stored summary of a Histogram. It can be
rebuilt from the single-line machine-readable report written by
Histogram.report().
"""

from typing import List, Union

import numpy as np
from pydantic import BaseModel, ConfigDict

Number = Union[int, float]


def format_value(value: Number, dtype: np.dtype) -> str:
    """Render a statistic in the shortest decimal form that round-trips in dtype."""
    if isinstance(value, float) and np.isnan(value):
        return "nan"
    if np.issubdtype(dtype, np.integer) and isinstance(value, int):
        return str(value)
    if np.issubdtype(dtype, np.floating):
        return str(dtype.type(value))
    return str(np.float64(value))


def parse_value(token: str, dtype: np.dtype) -> Number:
    if token == "nan":
        return float("nan")
    if np.issubdtype(dtype, np.integer) and token.lstrip("-").isdigit():
        return int(token)
    if np.issubdtype(dtype, np.floating):
        return float(dtype.type(token))
    return float(token)


class HistogramStats(BaseModel):
    """Descriptive statistics of a histogram sample set.

    All scalar statistics are NaN and max_bin_count is 0 when the sample set
    is empty.
    """
    model_config = ConfigDict(frozen=True)

    mean: float
    variance: float
    median: Number
    low_quartile: Number
    high_quartile: Number
    min: Number
    max: Number
    bins: List[int]
    max_bin_count: int

    @property
    def bin_count(self) -> int:
        return len(self.bins)

    def to_report_line(self, dtype=np.float64) -> str:
        """Space-separated `mean variance median lowQ highQ min max binCount bins... maxBinCount`."""
        dtype = np.dtype(dtype)
        head = [
            format_value(self.mean, dtype),
            format_value(self.variance, dtype),
            format_value(self.median, dtype),
            format_value(self.low_quartile, dtype),
            format_value(self.high_quartile, dtype),
            format_value(self.min, dtype),
            format_value(self.max, dtype),
            str(self.bin_count),
        ]
        tail = [str(count) for count in self.bins] + [str(self.max_bin_count)]
        return " ".join(head + tail)

    @classmethod
    def parse_report_line(cls, line: str, dtype=np.float64) -> "HistogramStats":
        """Rebuild statistics from a line produced by to_report_line()."""
        dtype = np.dtype(dtype)
        tokens = line.split()
        if len(tokens) < 9:
            raise ValueError(f"Report line too short: {line!r}")

        bin_count = int(tokens[7])
        if len(tokens) != 9 + bin_count:
            raise ValueError(
                f"Report line declares {bin_count} bins but has {len(tokens) - 9} bin values"
            )

        # Mean and variance of integer histograms are computed in float64
        mean_dtype = dtype if np.issubdtype(dtype, np.floating) else np.dtype(np.float64)
        return cls(
            mean=parse_value(tokens[0], mean_dtype),
            variance=parse_value(tokens[1], mean_dtype),
            median=parse_value(tokens[2], dtype),
            low_quartile=parse_value(tokens[3], dtype),
            high_quartile=parse_value(tokens[4], dtype),
            min=parse_value(tokens[5], dtype),
            max=parse_value(tokens[6], dtype),
            bins=[int(t) for t in tokens[8:8 + bin_count]],
            max_bin_count=int(tokens[-1]),
        )
