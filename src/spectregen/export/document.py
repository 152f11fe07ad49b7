"""Document assembly: gather every export pass into one output tree."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

from ..scene.models import Matrix4, Mesh, Vector3
from .animation import AnimationRecord
from .constants import PRIMITIVE_TRIANGLES
from .errors import EmptyMeshError
from .indices import DrawRange, IndexMergeResult
from .layout import VertexLayout
from .skeleton import BoneRecord


@dataclass(frozen=True, slots=True)
class SubmeshRecord:
    name: str
    draw_range: DrawRange
    first_vertex: int
    vertex_count: int
    aabb_min: Vector3
    aabb_max: Vector3


@dataclass(frozen=True, slots=True, eq=False)
class MeshDocument:
    group: str
    layout: VertexLayout
    vertices: np.ndarray
    indices: np.ndarray
    index_format: str
    submeshes: Tuple[SubmeshRecord, ...]
    bones: Tuple[BoneRecord, ...]
    animations: Tuple[AnimationRecord, ...]
    primitive: str = PRIMITIVE_TRIANGLES

    @property
    def vertex_count(self) -> int:
        return self.vertices.size // self.layout.floats_per_vertex


def compute_bounds(mesh: Mesh) -> Tuple[Vector3, Vector3]:
    """Axis-aligned bounds of one mesh's own positions."""
    if not mesh.has_positions or mesh.vertex_count <= 0:
        raise EmptyMeshError(
            f"Mesh '{mesh.name}' has no positions to bound", {"mesh": mesh.name}
        )
    pos = np.asarray(mesh.positions, dtype=np.float64).reshape(-1, 3)
    return tuple(pos.min(axis=0).tolist()), tuple(pos.max(axis=0).tolist())


def assemble_document(
    group: str,
    layout: VertexLayout,
    vertices: np.ndarray,
    merged: IndexMergeResult,
    meshes: Sequence[Mesh],
    vertex_bases: Sequence[int],
    bones: Tuple[BoneRecord, ...],
    animations: Tuple[AnimationRecord, ...],
) -> MeshDocument:
    submeshes: List[SubmeshRecord] = []
    for mesh, draw_range, base in zip(meshes, merged.draw_ranges, vertex_bases):
        aabb_min, aabb_max = compute_bounds(mesh)
        submeshes.append(
            SubmeshRecord(
                name=mesh.name,
                draw_range=draw_range,
                first_vertex=base,
                vertex_count=mesh.vertex_count,
                aabb_min=aabb_min,
                aabb_max=aabb_max,
            )
        )
    return MeshDocument(
        group=group,
        layout=layout,
        vertices=vertices,
        indices=merged.indices,
        index_format=merged.index_format,
        submeshes=tuple(submeshes),
        bones=bones,
        animations=animations,
    )


def _flat(matrix: Matrix4) -> List[float]:
    return [float(v) for row in matrix for v in row]


def to_document_dict(doc: MeshDocument) -> Dict[str, Any]:  # lightweight serializer
    """JSON-ready tree handed to the external encoder.

    Matrices are flattened row-major; rotation keys are (w, x, y, z).
    """

    def attribute(a):
        return {
            "name": a.semantic,
            "offset": a.byte_offset,
            "stride": doc.layout.stride,
            "format": a.element_format,
        }

    def submesh(s: SubmeshRecord):
        return {
            "name": s.name,
            "offset": s.draw_range.index_offset,
            "count": s.draw_range.index_count,
            "aabbMin": list(s.aabb_min),
            "aabbMax": list(s.aabb_max),
        }

    def bone(b: BoneRecord):
        return {
            "name": b.name,
            "transform": _flat(b.transform),
            "offsetTransform": _flat(b.offset_matrix),
            "vertices": list(b.vertex_ids),
            "weights": list(b.weights),
            "children": list(b.children),
        }

    def track(keys):
        return [{"time": t, "value": list(v)} for t, v in keys]

    def animation(a: AnimationRecord):
        return {
            "name": a.name,
            "ticksPerSecond": a.ticks_per_second,
            "duration": a.duration_ticks,
            "channels": [
                {
                    "node": c.target_node_name,
                    "positionKeys": track(c.position_track),
                    "rotationKeys": track(c.rotation_track),
                    "scaleKeys": track(c.scale_track),
                }
                for c in a.channels
            ],
        }

    return {
        "group": doc.group,
        "attributes": [attribute(a) for a in doc.layout.attributes],
        "meshes": [submesh(s) for s in doc.submeshes],
        "primitive": doc.primitive,
        "indexFormat": doc.index_format,
        "vertices": doc.vertices.tolist(),
        "indices": doc.indices.tolist(),
        "bones": [bone(b) for b in doc.bones],
        "animations": [animation(a) for a in doc.animations],
    }


__all__ = [
    "SubmeshRecord",
    "MeshDocument",
    "compute_bounds",
    "assemble_document",
    "to_document_dict",
]
