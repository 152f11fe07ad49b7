"""Interleaved vertex buffer construction."""

from __future__ import annotations
from typing import Dict, Optional, Sequence

import numpy as np

from ..logging import get_logger
from ..reporting import get_reporter
from ..scene.models import Mesh
from .constants import VERTEX_DTYPE
from .errors import AttributeMismatchError, EmptyMeshError, MalformedGroupError
from .layout import VertexLayout, capabilities_of


def _attribute_sources(mesh: Mesh) -> Dict[str, Optional[Sequence]]:
    sources: Dict[str, Optional[Sequence]] = {
        "POSITION": mesh.positions,
        "NORMAL": mesh.normals,
        "TANGENT": mesh.tangents,
        "BITANGENT": mesh.bitangents,
    }
    for channel, uv in enumerate(mesh.uv_channels):
        sources[f"TEXCOORD{channel}"] = uv.coords
    for channel, colors in enumerate(mesh.color_channels):
        sources[f"COLOR{channel}"] = colors
    return sources


def interleave_mesh(
    mesh: Mesh, layout: VertexLayout, *, group: str = "", mesh_index: int = 0
) -> np.ndarray:
    """Return a ``(vertex_count, floats_per_vertex)`` block for one mesh."""
    context = {"group": group, "mesh": mesh.name, "mesh_index": mesh_index}
    caps = capabilities_of(mesh)
    if caps != layout.capabilities:
        raise AttributeMismatchError(
            f"Mesh '{mesh.name}' does not match the group vertex layout",
            {
                **context,
                "expected": layout.capabilities.describe(),
                "actual": caps.describe(),
            },
        )
    if mesh.vertex_count <= 0:
        raise EmptyMeshError(f"Mesh '{mesh.name}' has no vertices", context)

    count = mesh.vertex_count
    records = np.zeros((count, layout.floats_per_vertex), dtype=VERTEX_DTYPE)
    sources = _attribute_sources(mesh)
    for attr in layout.attributes:
        values = np.asarray(sources.get(attr.semantic), dtype=VERTEX_DTYPE)
        if (
            values.ndim != 2
            or values.shape[0] != count
            or values.shape[1] < attr.component_count
        ):
            raise MalformedGroupError(
                f"Mesh '{mesh.name}' {attr.semantic} data does not cover "
                f"{count} vertices x {attr.component_count} components",
                {**context, "semantic": attr.semantic, "shape": list(values.shape)},
            )
        start = attr.float_offset
        natural_end = start + attr.component_count
        records[:, start:natural_end] = values[:, : attr.component_count]
        if attr.slot_count > attr.component_count and attr.fill_value:
            records[:, natural_end : start + attr.slot_count] = attr.fill_value
    return records


def build_vertex_buffer(
    meshes: Sequence[Mesh], layout: VertexLayout, *, group: str = ""
) -> np.ndarray:
    """Concatenate every mesh's interleaved records, in input order.

    The result is a flat float32 array of ``total_vertices *
    layout.floats_per_vertex`` values.
    """
    logger = get_logger()
    rep = get_reporter()
    blocks = []
    for idx, mesh in enumerate(meshes):
        blocks.append(interleave_mesh(mesh, layout, group=group, mesh_index=idx))
        rep.advance("geometry.vertices", current_item=mesh.name)
    if not blocks:
        return np.zeros(0, dtype=VERTEX_DTYPE)
    buffer = np.concatenate(blocks).reshape(-1)
    logger.debug(
        "Interleaved %d meshes into %d floats (stride=%d bytes)",
        len(blocks),
        buffer.size,
        layout.stride,
    )
    return buffer


__all__ = ["interleave_mesh", "build_vertex_buffer"]
