"""
Unit tests for VTKExporter and NullExporter.
"""
from types import SimpleNamespace

import numpy as np
import pytest

from align_inspector.core.errors import ShapeError
from align_inspector.services.export.builder import VTKExporter, ITERATION_INFO_ROLE
from align_inspector.services.export.null_exporter import NullExporter
from align_inspector.services.export.sinks import FileSinkProvider
from align_inspector.services.export.types import DataPoints, Matches

HEADER = "# vtk DataFile Version 3.0\nFile created by align_inspector\nASCII\nDATASET POLYDATA\n"


def make_checker(value, limit):
    return SimpleNamespace(
        value_names=["meanTranslationDiff"], limit_names=["minDiffTransErr"],
        values=[value], limits=[limit],
    )


def dump_default_iteration(exporter, reference, reading, matches, iteration=0, **overrides):
    args = dict(
        transform_parameters=np.eye(4),
        feature_outlier_weights=np.array([[1.0], [0.5]]),
        descriptor_outlier_weights=None,
        transformation_checkers=[make_checker(0.01, 0.001)],
    )
    args.update(overrides)
    exporter.dump_iteration(
        iteration, args["transform_parameters"], reference, reading, matches,
        args["feature_outlier_weights"], args["descriptor_outlier_weights"],
        args["transformation_checkers"],
    )


class TestDumpDataPoints:
    """Tests for VTKExporter.dump_data_points()"""

    def test_points_padded_and_descriptors_written(self, memory_sinks):
        """Test that 2-D points gain a zero z and every descriptor gets a block"""
        cloud = DataPoints(np.array([[1.0, 2.0], [3.0, 4.0]]))
        cloud.add_descriptor("densities", np.array([0.5, 0.25]))
        cloud.add_descriptor("observationDirections", np.array([[1.0, 0.0], [0.0, 1.0]]))

        VTKExporter(memory_sinks).dump_data_points(cloud, "reference")

        assert memory_sinks.contents[("reference", None)] == HEADER + (
            "POINTS 2 float\n"
            "1 2 0\n"
            "3 4 0\n"
            "VERTICES 2 4\n"
            "1 0\n"
            "1 1\n"
            "POINT_DATA 2\n"
            "SCALARS densities float 1\n"
            "LOOKUP_TABLE default\n"
            "0.5\n"
            "0.25\n"
            "VECTORS observationDirections float\n"
            "1 0 0\n"
            "0 1 0\n"
        )

    def test_unsupported_descriptor_skipped(self, memory_sinks, caplog):
        """Test that descriptors without a VTK kind are skipped with a warning"""
        cloud = DataPoints(np.zeros((2, 3)))
        cloud.add_descriptor("signature", np.ones((2, 5)))

        VTKExporter(memory_sinks).dump_data_points(cloud, "reading")

        assert "signature" not in memory_sinks.contents[("reading", None)]
        assert "Could not export descriptor 'signature'" in caplog.text

    def test_input_cloud_not_modified(self, memory_sinks, reading_cloud):
        features = reading_cloud.features.copy()
        names = reading_cloud.descriptor_names()

        VTKExporter(memory_sinks).dump_data_points(reading_cloud, "reading")

        np.testing.assert_array_equal(reading_cloud.features, features)
        assert reading_cloud.descriptor_names() == names
        assert reading_cloud.features.shape == (2, 3)

    def test_oversized_tensor_fails_before_writing(self, memory_sinks):
        """Test that a ShapeError leaves no sink open or written"""
        cloud = DataPoints(np.zeros((1, 3)))
        cloud.add_descriptor("eigVectors", np.ones((1, 16)))

        with pytest.raises(ShapeError):
            VTKExporter(memory_sinks).dump_data_points(cloud, "reference")

        assert memory_sinks.contents == {}
        assert memory_sinks.open_streams == {}


def test_dump_mesh_nodes_has_no_point_data(memory_sinks, reading_cloud):
    """Test that mesh nodes are exported without descriptor blocks"""
    VTKExporter(memory_sinks).dump_mesh_nodes(reading_cloud, "nodes")

    text = memory_sinks.contents[("nodes", None)]
    assert text == HEADER + "POINTS 2 float\n0.1 0 0\n0.1 1 0\nVERTICES 2 4\n1 0\n1 1\n"


class TestDumpIteration:
    """Tests for VTKExporter.dump_iteration()"""

    def test_iteration_file_layout(self, memory_sinks, reference_cloud, reading_cloud, matches):
        """Test points, links, weights, field data and paired blocks"""
        dump_default_iteration(VTKExporter(memory_sinks), reference_cloud, reading_cloud, matches,
                               iteration=3)

        assert memory_sinks.contents[("iteration", 3)] == HEADER + (
            "FIELD FieldData 3\n"
            "transformation 16 1 float\n"
            "1 0 0 0 0 1 0 0 0 0 1 0 0 0 0 1\n"
            "meanTranslationDiff 1 1 float\n"
            "0.01\n"
            "minDiffTransErr 1 1 float\n"
            "0.001\n"
            "POINTS 5 float\n"
            "0 0 0\n"
            "1 0 0\n"
            "0 1 0\n"
            "0.1 0 0\n"
            "0.1 1 0\n"
            "LINES 2 6\n"
            "2 3 0\n"
            "2 4 2\n"
            "CELL_DATA 2\n"
            "SCALARS outlier float 1\n"
            "LOOKUP_TABLE default\n"
            "1\n"
            "0.5\n"
            "POINT_DATA 5\n"
            "NORMALS normals float\n"
            "0 0 1\n"
            "0 0 1\n"
            "0 0 1\n"
            "0 1 0\n"
            "0 1 0\n"
            "SCALARS densities float 1\n"
            "LOOKUP_TABLE default\n"
            "0\n"
            "0\n"
            "0\n"
            "0.5\n"
            "2\n"
        )

    def test_links_follow_neighbour_rank_then_point(self, memory_sinks, reference_cloud, reading_cloud):
        """Test link order with two neighbours and an invalid match"""
        matches = Matches(ids=np.array([[0, 1], [2, -1]]), dists=np.zeros((2, 2)))
        weights = np.array([[1.0, 0.2], [0.5, 0.9]])

        dump_default_iteration(VTKExporter(memory_sinks), reference_cloud, reading_cloud, matches,
                               feature_outlier_weights=weights,
                               descriptor_outlier_weights=np.full((2, 2), 0.7))

        text = memory_sinks.contents[("iteration", 0)]
        assert "LINES 3 9\n2 3 0\n2 4 2\n2 3 1\n" in text
        assert "SCALARS outlier float 1\nLOOKUP_TABLE default\n1\n0.5\n0.2\n" in text
        assert "SCALARS descriptor_outlier float 1\nLOOKUP_TABLE default\n0.7\n0.7\n0.7\n" in text

    def test_weight_shape_mismatch(self, memory_sinks, reference_cloud, reading_cloud, matches):
        """Test that weights not shaped like the matches are rejected"""
        with pytest.raises(ShapeError):
            dump_default_iteration(VTKExporter(memory_sinks), reference_cloud, reading_cloud, matches,
                                   feature_outlier_weights=np.ones((3, 1)))

        assert memory_sinks.contents == {}

    def test_flat_weights_single_neighbour(self, memory_sinks, reference_cloud, reading_cloud):
        """Test that 1-D weights pair with 1-D match ids"""
        matches = Matches(ids=np.array([0, 2]), dists=np.array([0.1, 0.1]))

        dump_default_iteration(VTKExporter(memory_sinks), reference_cloud, reading_cloud, matches,
                               feature_outlier_weights=np.array([1.0, 0.5]),
                               descriptor_outlier_weights=np.array([0.3, 0.4]))

        text = memory_sinks.contents[("iteration", 0)]
        assert "LINES 2 6\n2 3 0\n2 4 2\n" in text
        assert "SCALARS outlier float 1\nLOOKUP_TABLE default\n1\n0.5\n" in text
        assert "SCALARS descriptor_outlier float 1\nLOOKUP_TABLE default\n0.3\n0.4\n" in text

    def test_reference_only_descriptor(self, memory_sinks, reading_cloud, matches):
        """Test that a reference-only descriptor zero-fills the reading rows"""
        reference = DataPoints(np.zeros((3, 3)))
        reference.add_descriptor("curvature", np.array([1.0, 2.0, 3.0]))

        dump_default_iteration(VTKExporter(memory_sinks), reference, reading_cloud, matches)

        text = memory_sinks.contents[("iteration", 0)]
        assert "SCALARS curvature float 1\nLOOKUP_TABLE default\n1\n2\n3\n0\n0\n" in text
        # Reference-only descriptors precede reading-only ones
        assert text.index("curvature") < text.index("NORMALS normals") < text.index("densities")

    def test_identical_inputs_identical_files(self, tmp_path, reference_cloud, reading_cloud, matches):
        """Test that exports are reproducible byte for byte"""
        for run in ("a", "b"):
            exporter = VTKExporter(FileSinkProvider(tmp_path / run))
            dump_default_iteration(exporter, reference_cloud, reading_cloud, matches, iteration=1)

        assert (tmp_path / "a-iteration-1.vtk").read_bytes() == (tmp_path / "b-iteration-1.vtk").read_bytes()


class TestFinish:
    """Tests for the end-of-run iteration summary"""

    def test_iteration_info_written_on_finish(self, memory_sinks, reference_cloud, reading_cloud, matches):
        exporter = VTKExporter(memory_sinks, dump_iteration_info=True)
        exporter.init()
        for i, diff in enumerate([0.5, 0.01]):
            dump_default_iteration(exporter, reference_cloud, reading_cloud, matches, iteration=i,
                                   transformation_checkers=[make_checker(diff, 0.001)])

        assert (ITERATION_INFO_ROLE, None) not in memory_sinks.contents
        exporter.finish(1)

        assert memory_sinks.contents[(ITERATION_INFO_ROLE, None)] == (
            "iteration, minDiffTransErr, meanTranslationDiff\n"
            "0, 0.001, 0.5\n"
            "1, 0.001, 0.01\n"
        )

    def test_no_summary_without_iteration_info(self, memory_sinks, reference_cloud, reading_cloud, matches):
        exporter = VTKExporter(memory_sinks)
        dump_default_iteration(exporter, reference_cloud, reading_cloud, matches)

        exporter.finish(0)

        assert list(memory_sinks.contents) == [("iteration", 0)]

    def test_summary_file_path(self, tmp_path, reference_cloud, reading_cloud, matches):
        exporter = VTKExporter(FileSinkProvider(tmp_path / "run"), dump_iteration_info=True)
        dump_default_iteration(exporter, reference_cloud, reading_cloud, matches)

        exporter.finish(0)

        assert (tmp_path / "run-iterationInfo.csv").read_text().startswith("iteration, ")
        assert (tmp_path / "run-iteration-0.vtk").exists()


def test_null_exporter_writes_nothing(tmp_path, monkeypatch, reference_cloud, reading_cloud, matches):
    """Test that every NullExporter call is a no-op"""
    monkeypatch.chdir(tmp_path)
    exporter = NullExporter()

    exporter.init()
    exporter.dump_data_points(reference_cloud, "reference")
    exporter.dump_mesh_nodes(reference_cloud, "nodes")
    dump_default_iteration(exporter, reference_cloud, reading_cloud, matches)
    exporter.finish(0)

    assert list(tmp_path.iterdir()) == []
