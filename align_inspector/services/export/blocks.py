"""
Per-point attribute blocks of the VTK export.

A block is one POINT_DATA section: a kind (SCALARS, VECTORS, NORMALS,
COLOR_SCALARS, TENSORS), a name and one row of values per point. Builders
normalize the stored descriptor dimensions:

    scalar      : exactly 1 component
    vector      : zero-padded to at least 3 components, never truncated
    normal      : same rule as vector
    color       : 3 (RGB) or 4 (RGBA) components
    tensor      : r*r components reshaped to r x r and zero-padded to the
                  expected shape, input values at (0, 0)
"""
import math
from dataclasses import dataclass
from typing import Optional, TextIO

import numpy as np

from align_inspector.core.errors import ShapeError

SCALARS = "SCALARS"
VECTORS = "VECTORS"
NORMALS = "NORMALS"
COLOR_SCALARS = "COLOR_SCALARS"
TENSORS = "TENSORS"

MIN_VECTOR_DIM = 3
TENSOR_SHAPE = (3, 3)
NUMBER_FORMAT = "%.9g"

# Descriptor names rendered with a dedicated block kind
NORMAL_DESCRIPTORS = ("normals",)
COLOR_DESCRIPTORS = ("color",)
TENSOR_DESCRIPTORS = ("eigVectors",)


@dataclass
class AttributeBlock:
    kind: str
    name: str
    values: np.ndarray  # (N, components)

    @property
    def components(self) -> int:
        return self.values.shape[1]


def pad_with_zeros(m: np.ndarray, expected_rows: int, expected_cols: int) -> np.ndarray:
    """
    Return a copy of m grown to expected_rows x expected_cols with zeros.

    Raises:
        ShapeError: If m is larger than the expected shape in either direction
    """
    m = np.asarray(m, dtype=np.float64)
    rows, cols = m.shape
    if rows > expected_rows or cols > expected_cols:
        raise ShapeError(
            f"Cannot pad a {rows}x{cols} matrix to {expected_rows}x{expected_cols}"
        )
    padded = np.zeros((expected_rows, expected_cols), dtype=np.float64)
    padded[:rows, :cols] = m
    return padded


def pad_components(values: np.ndarray, min_dim: int = MIN_VECTOR_DIM) -> np.ndarray:
    """Zero-pad each row to at least min_dim components."""
    if values.shape[1] >= min_dim:
        return values
    return pad_with_zeros(values, values.shape[0], min_dim)


def scalar_block(name: str, values: np.ndarray) -> AttributeBlock:
    if values.shape[1] != 1:
        raise ShapeError(f"Scalar attribute '{name}' has {values.shape[1]} components")
    return AttributeBlock(SCALARS, name, values)


def vector_block(name: str, values: np.ndarray) -> AttributeBlock:
    return AttributeBlock(VECTORS, name, pad_components(values))


def normal_block(name: str, values: np.ndarray) -> AttributeBlock:
    return AttributeBlock(NORMALS, name, pad_components(values))


def color_block(name: str, values: np.ndarray) -> AttributeBlock:
    if values.shape[1] not in (3, 4):
        raise ShapeError(f"Color attribute '{name}' needs 3 or 4 components, got {values.shape[1]}")
    return AttributeBlock(COLOR_SCALARS, name, values)


def tensor_block(name: str, values: np.ndarray,
                 expected_rows: int = TENSOR_SHAPE[0],
                 expected_cols: int = TENSOR_SHAPE[1]) -> AttributeBlock:
    """
    Build a TENSORS block, one row-major expected_rows x expected_cols tensor per point.

    Raises:
        ShapeError: If the component count is not a square or the stored
            tensor is larger than the expected shape
    """
    count, span = values.shape
    side = math.isqrt(span)
    if side * side != span:
        raise ShapeError(f"Tensor attribute '{name}' has {span} components, not a square matrix")
    if side > expected_rows or side > expected_cols:
        raise ShapeError(
            f"Tensor attribute '{name}' is {side}x{side}, larger than {expected_rows}x{expected_cols}"
        )

    padded = np.zeros((count, expected_rows, expected_cols), dtype=np.float64)
    padded[:, :side, :side] = values.reshape(count, side, side)
    return AttributeBlock(TENSORS, name, padded.reshape(count, expected_rows * expected_cols))


def build_block(name: str, values: np.ndarray) -> Optional[AttributeBlock]:
    """
    Pick the block kind of a descriptor from its name and span.

    Returns:
        The block, or None when no VTK attribute kind fits the descriptor
    """
    span = values.shape[1]
    if name in TENSOR_DESCRIPTORS:
        return tensor_block(name, values)
    if name in NORMAL_DESCRIPTORS and span <= MIN_VECTOR_DIM:
        return normal_block(name, values)
    if name in COLOR_DESCRIPTORS and span in (3, 4):
        return color_block(name, values)
    if span == 1:
        return scalar_block(name, values)
    if span in (2, 3):
        return vector_block(name, values)
    return None


def paired_block(name: str, ref_values: np.ndarray, reading_values: np.ndarray) -> Optional[AttributeBlock]:
    """Block of a descriptor present in both clouds: reference rows, then reading rows."""
    ref_block = build_block(name, ref_values)
    reading_block = build_block(name, reading_values)
    if ref_block is None or reading_block is None:
        return None
    if ref_block.kind != reading_block.kind or ref_block.components != reading_block.components:
        raise ShapeError(
            f"Attribute '{name}' differs between clouds: "
            f"{ref_block.kind}[{ref_block.components}] vs {reading_block.kind}[{reading_block.components}]"
        )
    return AttributeBlock(ref_block.kind, name, np.vstack([ref_block.values, reading_block.values]))


def single_cloud_block(name: str, values: np.ndarray, ref_count: int, reading_count: int,
                       on_reference: bool) -> Optional[AttributeBlock]:
    """Block of a descriptor present in one cloud only, the other cloud's rows zero-filled."""
    block = build_block(name, values)
    if block is None:
        return None
    missing = np.zeros((reading_count if on_reference else ref_count, block.components))
    stacked = [block.values, missing] if on_reference else [missing, block.values]
    return AttributeBlock(block.kind, name, np.vstack(stacked))


def write_matrix(stream: TextIO, m: np.ndarray) -> None:
    np.savetxt(stream, np.asarray(m, dtype=np.float64), fmt=NUMBER_FORMAT)


def render_block(stream: TextIO, block: AttributeBlock) -> None:
    """Write a block as a VTK legacy attribute section."""
    if block.kind == SCALARS:
        stream.write(f"SCALARS {block.name} float 1\n")
        stream.write("LOOKUP_TABLE default\n")
    elif block.kind == COLOR_SCALARS:
        stream.write(f"COLOR_SCALARS {block.name} {block.components}\n")
    else:
        stream.write(f"{block.kind} {block.name} float\n")
    write_matrix(stream, block.values)
