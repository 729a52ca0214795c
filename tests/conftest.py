import io

import numpy as np
import pytest

from align_inspector.services.export import DataPoints, Matches


class MemorySinkProvider:
    """Sink provider keeping every closed sink's text by (role, iteration)."""

    def __init__(self):
        self.contents = {}
        self.open_streams = {}

    def open_sink(self, role, iteration=None):
        stream = io.StringIO()
        self.open_streams[id(stream)] = (role, iteration)
        return stream

    def close_sink(self, stream):
        key = self.open_streams.pop(id(stream))
        self.contents[key] = stream.getvalue()
        stream.close()


@pytest.fixture
def memory_sinks():
    return MemorySinkProvider()


@pytest.fixture
def reference_cloud():
    cloud = DataPoints(np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
    ]))
    cloud.add_descriptor("normals", np.array([[0.0, 0.0, 1.0]] * 3))
    return cloud


@pytest.fixture
def reading_cloud():
    cloud = DataPoints(np.array([
        [0.1, 0.0, 0.0],
        [0.1, 1.0, 0.0],
    ]))
    cloud.add_descriptor("normals", np.array([[0.0, 1.0, 0.0]] * 2))
    cloud.add_descriptor("densities", np.array([0.5, 2.0]))
    return cloud


@pytest.fixture
def matches():
    return Matches(ids=np.array([[0], [2]]), dists=np.array([[0.1], [0.1]]))
