"""Triangle index merging.

Every mesh's local indices are re-based onto the shared vertex buffer by
adding a running *vertex base*. The base advances by each mesh's vertex
count, never by its index count; the same bases are handed to the
skeleton aggregator so skin weights land on the same merged vertices.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from ..logging import get_logger
from ..reporting import get_reporter
from ..scene.models import Mesh
from .constants import INDEX_DTYPES, INDEX_FORMATS, TRIANGLE_ARITY, max_index_value
from .errors import EmptyMeshError, IndexOverflowError, MalformedGroupError


@dataclass(frozen=True, slots=True)
class DrawRange:
    index_offset: int
    index_count: int


@dataclass(frozen=True, slots=True, eq=False)
class IndexMergeResult:
    indices: np.ndarray
    draw_ranges: Tuple[DrawRange, ...]
    vertex_count: int
    index_format: str


def compute_vertex_bases(meshes: Sequence[Mesh]) -> Tuple[int, ...]:
    bases: List[int] = []
    base = 0
    for mesh in meshes:
        bases.append(base)
        base += mesh.vertex_count
    return tuple(bases)


def _local_triangles(mesh: Mesh, context: dict) -> np.ndarray:
    if mesh.face_count == 0:
        raise EmptyMeshError(f"Mesh '{mesh.name}' has no faces", context)
    if any(len(face) != TRIANGLE_ARITY for face in mesh.faces):
        raise MalformedGroupError(
            f"Mesh '{mesh.name}' contains non-triangle faces", context
        )
    local = np.asarray(mesh.faces, dtype=np.int64).reshape(-1, TRIANGLE_ARITY)
    if local.min() < 0 or local.max() >= mesh.vertex_count:
        raise MalformedGroupError(
            f"Mesh '{mesh.name}' face references a vertex outside 0..{mesh.vertex_count - 1}",
            {**context, "max_local_index": int(local.max())},
        )
    return local


def merge_index_buffer(
    meshes: Sequence[Mesh],
    vertex_bases: Sequence[int] | None = None,
    index_width: int = 32,
    *,
    group: str = "",
) -> IndexMergeResult:
    logger = get_logger()
    rep = get_reporter()
    limit = max_index_value(index_width)
    if vertex_bases is None:
        vertex_bases = compute_vertex_bases(meshes)
    if len(vertex_bases) != len(meshes):
        raise ValueError("vertex_bases must have one entry per mesh")

    chunks: List[np.ndarray] = []
    draw_ranges: List[DrawRange] = []
    index_cursor = 0
    for idx, (mesh, base) in enumerate(zip(meshes, vertex_bases)):
        context = {"group": group, "mesh": mesh.name, "mesh_index": idx}
        merged = _local_triangles(mesh, context).reshape(-1) + base
        highest = int(merged.max())
        if highest > limit:
            raise IndexOverflowError(
                f"Mesh '{mesh.name}' index {highest} exceeds the {index_width}-bit limit {limit}",
                {**context, "index": highest, "limit": limit, "vertex_base": base},
            )
        draw_ranges.append(DrawRange(index_offset=index_cursor, index_count=merged.size))
        index_cursor += merged.size
        chunks.append(merged)
        rep.advance("geometry.indices", current_item=mesh.name)

    dtype = INDEX_DTYPES[index_width]
    indices = (
        np.concatenate(chunks).astype(dtype) if chunks else np.zeros(0, dtype=dtype)
    )
    vertex_count = sum(m.vertex_count for m in meshes)
    logger.debug(
        "Merged %d indices over %d vertices (%s)",
        indices.size,
        vertex_count,
        INDEX_FORMATS[index_width],
    )
    return IndexMergeResult(
        indices=indices,
        draw_ranges=tuple(draw_ranges),
        vertex_count=vertex_count,
        index_format=INDEX_FORMATS[index_width],
    )


__all__ = [
    "DrawRange",
    "IndexMergeResult",
    "compute_vertex_bases",
    "merge_index_buffer",
]
