"""Read-back helpers for assembled documents."""

from __future__ import annotations
from typing import Any, Dict, List

import numpy as np

from .document import MeshDocument
from .layout import VertexLayout


def decode_vertex_buffer(
    vertices: np.ndarray, layout: VertexLayout
) -> Dict[str, np.ndarray]:
    """Split an interleaved buffer back into per-attribute arrays.

    Each array has shape ``(vertex_count, component_count)``; padding slots
    are dropped.
    """
    width = layout.floats_per_vertex
    if width == 0 or vertices.size % width:
        raise ValueError(
            f"Buffer of {vertices.size} floats is not a whole number of {width}-float records"
        )
    records = vertices.reshape(-1, width)
    out: Dict[str, np.ndarray] = {}
    for attr in layout.attributes:
        start = attr.float_offset
        out[attr.semantic] = records[:, start : start + attr.component_count]
    return out


def inspect_document(doc: MeshDocument) -> Dict[str, Any]:
    return {
        "group": doc.group,
        "stride": doc.layout.stride,
        "padded": doc.layout.padded,
        "attributes": [a.semantic for a in doc.layout.attributes],
        "vertex_floats": int(doc.vertices.size),
        "vertex_count": doc.vertex_count,
        "index_count": int(doc.indices.size),
        "index_format": doc.index_format,
        "max_index": int(doc.indices.max()) if doc.indices.size else None,
        "submeshes": [
            {
                "name": s.name,
                "index_offset": s.draw_range.index_offset,
                "index_count": s.draw_range.index_count,
                "first_vertex": s.first_vertex,
                "vertex_count": s.vertex_count,
            }
            for s in doc.submeshes
        ],
        "bone_count": len(doc.bones),
        "skinned_bones": sum(1 for b in doc.bones if b.vertex_ids),
        "animation_count": len(doc.animations),
    }


def validate_document(doc: MeshDocument) -> List[str]:
    issues: List[str] = []
    width = doc.layout.floats_per_vertex
    if width == 0 or doc.vertices.size % width:
        issues.append("Vertex buffer length is not a multiple of the stride")
    total_vertices = doc.vertex_count
    declared = sum(s.vertex_count for s in doc.submeshes)
    if declared != total_vertices:
        issues.append(
            f"Submesh vertex counts sum to {declared}, buffer holds {total_vertices}"
        )
    if doc.indices.size and int(doc.indices.max()) >= total_vertices:
        issues.append("Index buffer references a vertex beyond the buffer")

    cursor = 0
    vertex_cursor = 0
    for s in doc.submeshes:
        if s.draw_range.index_offset != cursor:
            issues.append(f"Submesh {s.name} draw range is not contiguous")
        if s.first_vertex != vertex_cursor:
            issues.append(f"Submesh {s.name} vertex base is not contiguous")
        cursor = s.draw_range.index_offset + s.draw_range.index_count
        vertex_cursor = s.first_vertex + s.vertex_count
    if cursor != doc.indices.size:
        issues.append("Draw ranges do not cover the index buffer")

    position = {b.name: i for i, b in enumerate(doc.bones)}
    for i, b in enumerate(doc.bones):
        for child in b.children:
            if position.get(child, -1) <= i:
                issues.append(f"Bone {child} does not follow its parent {b.name}")
        if len(b.vertex_ids) != len(b.weights):
            issues.append(f"Bone {b.name} vertex/weight count mismatch")
        if any(v < 0 or v >= total_vertices for v in b.vertex_ids):
            issues.append(f"Bone {b.name} weights a vertex beyond the buffer")
    return issues


__all__ = ["decode_vertex_buffer", "inspect_document", "validate_document"]
