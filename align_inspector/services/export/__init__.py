"""Export of alignment state for offline visual inspection.

Exporters write point clouds, match links and per-point attribute blocks as
VTK legacy files through a sink provider.
"""

from .types import DataPoints, Matches, TransformationChecker
from .blocks import AttributeBlock, pad_with_zeros
from .sinks import ISinkProvider, FileSinkProvider, open_sink_scope
from .builder import IExporter, VTKExporter
from .null_exporter import NullExporter

__all__ = [
    "DataPoints",
    "Matches",
    "TransformationChecker",
    "AttributeBlock",
    "pad_with_zeros",
    "ISinkProvider",
    "FileSinkProvider",
    "open_sink_scope",
    "IExporter",
    "VTKExporter",
    "NullExporter",
]
