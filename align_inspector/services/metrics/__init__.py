"""Run-time statistics of the alignment loop.

Histograms accumulate samples during the run; collectors group the fixed set
of alignment statistics and finalize them explicitly at the end of the run.
"""

from .histogram import Histogram
from .models import HistogramStats
from .collector import IStatCollector, StatCollector, STAT_HISTOGRAMS
from .null_collector import NullStatCollector
from .timer import timed

__all__ = [
    "Histogram",
    "HistogramStats",
    "IStatCollector",
    "StatCollector",
    "STAT_HISTOGRAMS",
    "NullStatCollector",
    "timed",
]
