"""IExporter Protocol and the VTK legacy ASCII exporter.

The exporter turns alignment state into one VTK POLYDATA file per call:

    dump_data_points : <base>-<label>.vtk, points + every descriptor
    dump_mesh_nodes  : <base>-<label>.vtk, points only
    dump_iteration   : <base>-iteration-<n>.vtk, reference + reading points,
                       match links with outlier weights, paired descriptors,
                       transformation and checker values as field data
    finish           : <base>-iterationInfo.csv, checker values per iteration

Input clouds are never modified. Every block is built before its sink is
opened, so a shape failure does not truncate a previous export.
"""

from typing import List, Optional, Protocol, Sequence, TextIO, Tuple

import numpy as np

from align_inspector.core.errors import ShapeError
from align_inspector.core.logging_config import get_logger
from .blocks import (
    SCALARS, AttributeBlock, build_block, pad_components, paired_block,
    render_block, single_cloud_block, write_matrix, NUMBER_FORMAT,
)
from .sinks import ISinkProvider, open_sink_scope
from .types import DataPoints, Matches, TransformationChecker

logger = get_logger(__name__)

ITERATION_ROLE = "iteration"
ITERATION_INFO_ROLE = "iterationInfo.csv"
DEFAULT_COMMENT = "File created by align_inspector"


class IExporter(Protocol):
    """Protocol for exporting alignment state for offline inspection."""

    def init(self) -> None:
        """Prepare a new alignment run."""
        ...

    def dump_data_points(self, cloud: DataPoints, label: str) -> None:
        """Export a cloud with all of its descriptors."""
        ...

    def dump_mesh_nodes(self, cloud: DataPoints, label: str) -> None:
        """Export the node positions of a cloud, without descriptors."""
        ...

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
        """Export the state of one alignment iteration."""
        ...

    def finish(self, iteration: int) -> None:
        """Emit the end-of-run summary and release resources."""
        ...


class VTKExporter:
    """
    Exports alignment state as VTK legacy ASCII files.

    Descriptor blocks follow the clouds' registration order so identical
    inputs give identical files.
    """

    def __init__(self, sink_provider: ISinkProvider, dump_iteration_info: bool = False,
                 comment: str = DEFAULT_COMMENT):
        """
        Initialize the exporter.

        Args:
            sink_provider: Opens and closes the output sinks
            dump_iteration_info: Keep checker values of every iteration and
                write them as a CSV table in finish()
            comment: Second header line of every VTK file
        """
        self.sink_provider = sink_provider
        self.dump_iteration_info = dump_iteration_info
        self.comment = comment
        self._info_header: Optional[List[str]] = None
        self._info_rows: List[Tuple[int, List[float]]] = []

    def init(self) -> None:
        self._info_header = None
        self._info_rows = []

    def dump_data_points(self, cloud: DataPoints, label: str) -> None:
        blocks = self._cloud_blocks(cloud)
        with open_sink_scope(self.sink_provider, label) as stream:
            self._write_header(stream)
            self._write_points(stream, pad_components(cloud.features))
            self._write_vertices(stream, cloud.point_count)
            self._write_point_data(stream, cloud.point_count, blocks)

    def dump_mesh_nodes(self, cloud: DataPoints, label: str) -> None:
        with open_sink_scope(self.sink_provider, label) as stream:
            self._write_header(stream)
            self._write_points(stream, pad_components(cloud.features))
            self._write_vertices(stream, cloud.point_count)

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
        """
        Write the iteration file and buffer the checker values.

        Raises:
            ShapeError: If weights do not match the matches or a descriptor
                cannot be padded to its block shape
            OSError: If the iteration file cannot be written
        """
        ref_count = filtered_reference.point_count
        points = np.vstack([
            pad_components(filtered_reference.features),
            pad_components(reading.features),
        ])
        links, cell_blocks = self._link_cells(ref_count, matches, feature_outlier_weights,
                                              descriptor_outlier_weights)
        point_blocks = self._iteration_blocks(filtered_reference, reading)
        field_arrays = self._field_arrays(transform_parameters, transformation_checkers)

        with open_sink_scope(self.sink_provider, ITERATION_ROLE, iteration) as stream:
            self._write_header(stream)
            self._write_field_data(stream, field_arrays)
            self._write_points(stream, points)
            if len(links):
                stream.write(f"LINES {len(links)} {len(links) * 3}\n")
                np.savetxt(stream, links, fmt="%d")
                stream.write(f"CELL_DATA {len(links)}\n")
                for block in cell_blocks:
                    render_block(stream, block)
            self._write_point_data(stream, points.shape[0], point_blocks)

        if self.dump_iteration_info:
            self._record_iteration_info(iteration, transformation_checkers)

    def finish(self, iteration: int) -> None:
        if self._info_rows:
            with open_sink_scope(self.sink_provider, ITERATION_INFO_ROLE) as stream:
                stream.write(", ".join(self._info_header) + "\n")
                for number, row in self._info_rows:
                    cells = [str(number)] + [NUMBER_FORMAT % v for v in row]
                    stream.write(", ".join(cells) + "\n")
            logger.info(f"Wrote iteration info for {len(self._info_rows)} iterations")
        self._info_header = None
        self._info_rows = []
        logger.info(f"Export finished after iteration {iteration}")

    def _cloud_blocks(self, cloud: DataPoints) -> List[AttributeBlock]:
        blocks = []
        for name in cloud.descriptor_names():
            values = cloud.get_descriptor(name)
            block = build_block(name, values)
            if block is None:
                self._warn_skipped(name, values)
                continue
            blocks.append(block)
        return blocks

    def _iteration_blocks(self, ref: DataPoints, reading: DataPoints) -> List[AttributeBlock]:
        """Paired blocks for shared descriptors, then reference-only, then reading-only."""
        ref_count, reading_count = ref.point_count, reading.point_count
        candidates = []
        for name in ref.descriptor_names():
            if reading.descriptor_exists(name):
                candidates.append((name, ref.get_descriptor(name),
                                   paired_block(name, ref.get_descriptor(name), reading.get_descriptor(name))))
        for name in ref.descriptor_names():
            if not reading.descriptor_exists(name):
                values = ref.get_descriptor(name)
                candidates.append((name, values,
                                   single_cloud_block(name, values, ref_count, reading_count, on_reference=True)))
        for name in reading.descriptor_names():
            if not ref.descriptor_exists(name):
                values = reading.get_descriptor(name)
                candidates.append((name, values,
                                   single_cloud_block(name, values, ref_count, reading_count, on_reference=False)))

        blocks = []
        for name, values, block in candidates:
            if block is None:
                self._warn_skipped(name, values)
                continue
            blocks.append(block)
        return blocks

    @staticmethod
    def _link_cells(ref_count: int, matches: Matches, feature_outlier_weights: np.ndarray,
                    descriptor_outlier_weights: Optional[np.ndarray]) -> Tuple[np.ndarray, List[AttributeBlock]]:
        """
        Build one line cell per valid match and the per-link weight blocks.

        Links run from reading point ref_count + i to reference point ids[i, k],
        neighbour rank k being the outer loop.
        """
        ids = matches.ids
        reading_count, knn = ids.shape

        def by_link(weights: np.ndarray, name: str) -> np.ndarray:
            weights = np.asarray(weights, dtype=np.float64)
            if weights.ndim == 1 and weights.size == ids.size:
                weights = weights.reshape(ids.shape)
            if weights.shape != ids.shape:
                raise ShapeError(f"{name} shape {weights.shape} does not match matches {ids.shape}")
            return weights.T.ravel()

        ref_ids = ids.T.ravel()
        reading_ids = np.tile(np.arange(reading_count), knn) + ref_count
        valid = ref_ids >= 0

        links = np.column_stack([
            np.full(int(valid.sum()), 2, dtype=np.int64),
            reading_ids[valid],
            ref_ids[valid],
        ])
        blocks = [AttributeBlock(SCALARS, "outlier",
                                 by_link(feature_outlier_weights, "Feature outlier weights")[valid].reshape(-1, 1))]
        if descriptor_outlier_weights is not None and np.size(descriptor_outlier_weights) > 0:
            descriptor_weights = by_link(descriptor_outlier_weights, "Descriptor outlier weights")
            blocks.append(AttributeBlock(SCALARS, "descriptor_outlier", descriptor_weights[valid].reshape(-1, 1)))
        return links, blocks

    @staticmethod
    def _field_arrays(transform_parameters: np.ndarray,
                      checkers: Sequence[TransformationChecker]) -> List[Tuple[str, np.ndarray]]:
        arrays = [("transformation", np.asarray(transform_parameters, dtype=np.float64).ravel())]
        for checker in checkers:
            for name, value in zip(checker.value_names, checker.values):
                arrays.append((name, np.array([value], dtype=np.float64)))
            for name, limit in zip(checker.limit_names, checker.limits):
                arrays.append((name, np.array([limit], dtype=np.float64)))
        return arrays

    def _record_iteration_info(self, iteration: int, checkers: Sequence[TransformationChecker]) -> None:
        if self._info_header is None:
            header = ["iteration"]
            for checker in checkers:
                header.extend(checker.limit_names)
                header.extend(checker.value_names)
            self._info_header = header

        row: List[float] = []
        for checker in checkers:
            row.extend(float(v) for v in checker.limits)
            row.extend(float(v) for v in checker.values)
        self._info_rows.append((iteration, row))

    def _write_header(self, stream: TextIO) -> None:
        stream.write("# vtk DataFile Version 3.0\n")
        stream.write(f"{self.comment}\n")
        stream.write("ASCII\n")
        stream.write("DATASET POLYDATA\n")

    @staticmethod
    def _write_field_data(stream: TextIO, arrays: List[Tuple[str, np.ndarray]]) -> None:
        stream.write(f"FIELD FieldData {len(arrays)}\n")
        for name, values in arrays:
            stream.write(f"{name} {values.size} 1 float\n")
            write_matrix(stream, values.reshape(1, -1))

    @staticmethod
    def _write_points(stream: TextIO, points: np.ndarray) -> None:
        stream.write(f"POINTS {points.shape[0]} float\n")
        write_matrix(stream, points)

    @staticmethod
    def _write_vertices(stream: TextIO, count: int) -> None:
        stream.write(f"VERTICES {count} {count * 2}\n")
        for i in range(count):
            stream.write(f"1 {i}\n")

    @staticmethod
    def _write_point_data(stream: TextIO, count: int, blocks: List[AttributeBlock]) -> None:
        if not blocks:
            return
        stream.write(f"POINT_DATA {count}\n")
        for block in blocks:
            render_block(stream, block)

    @staticmethod
    def _warn_skipped(name: str, values: np.ndarray) -> None:
        logger.warning(f"Could not export descriptor '{name}' (dim={values.shape[1]})")
