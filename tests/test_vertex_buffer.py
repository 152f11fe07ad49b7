from __future__ import annotations

"""Interleaved vertex buffer tests.

Covers:
- Buffer length equals total vertices x stride
- Padding slots (position w = 1.0, UV zero fill)
- Bit-exact round trip through the planner's own descriptors
- Attribute mismatch and empty mesh failures
"""

from dataclasses import replace

import numpy as np
import pytest

from spectregen.export.errors import (
    AttributeMismatchError,
    EmptyMeshError,
    MalformedGroupError,
)
from spectregen.export.inspector import decode_vertex_buffer
from spectregen.export.layout import plan_group_layout, plan_vertex_layout
from spectregen.export.vertices import build_vertex_buffer, interleave_mesh
from scene_helpers import make_mesh, scenario_a_meshes


def _source_values(mesh, semantic):
    if semantic == "POSITION":
        return mesh.positions
    if semantic == "NORMAL":
        return mesh.normals
    if semantic == "TANGENT":
        return mesh.tangents
    if semantic == "BITANGENT":
        return mesh.bitangents
    if semantic.startswith("TEXCOORD"):
        return mesh.uv_channels[int(semantic[len("TEXCOORD"):])].coords
    return mesh.color_channels[int(semantic[len("COLOR"):])]


@pytest.mark.parametrize("padded", [True, False])
def test_buffer_length_matches_vertex_total(padded):  # noqa: N802
    meshes = scenario_a_meshes(normals=True, uv_components=(2,), colors=1)
    layout = plan_group_layout(meshes, padded=padded)
    buffer = build_vertex_buffer(meshes, layout)
    assert buffer.dtype == np.float32
    assert buffer.size // layout.floats_per_vertex == sum(
        m.vertex_count for m in meshes
    )
    assert buffer.size % layout.floats_per_vertex == 0


def test_padded_slots_are_filled():  # noqa: N802
    mesh = make_mesh("c", 3, [(0, 1, 2)], normals=True, uv_components=(2,))
    layout = plan_vertex_layout(mesh, padded=True)
    records = build_vertex_buffer([mesh], layout).reshape(-1, 12)
    # position xyz + w
    assert records[1, 0:3].tolist() == [1.0, 0.5, -0.25]
    assert records[:, 3].tolist() == [1.0, 1.0, 1.0]
    # normal w
    assert records[:, 7].tolist() == [0.0, 0.0, 0.0]
    # uv: two real values followed by two zeros
    assert records[2, 8:12].tolist() == [0.25, 0.375, 0.0, 0.0]


def test_packed_records_have_no_padding():  # noqa: N802
    mesh = make_mesh("p", 2, [(0, 1, 1)], uv_components=(2,))
    layout = plan_vertex_layout(mesh, padded=False)
    buffer = build_vertex_buffer([mesh], layout)
    assert buffer.tolist() == [
        0.0, 0.0, 0.0, 0.0, 0.125,
        1.0, 0.5, -0.25, 0.125, 0.25,
    ]


@pytest.mark.parametrize("padded", [True, False])
def test_round_trip_reconstructs_every_attribute(padded):  # noqa: N802
    meshes = scenario_a_meshes(
        normals=True, tangents=True, uv_components=(2, 1), colors=2
    )
    layout = plan_group_layout(meshes, padded=padded)
    decoded = decode_vertex_buffer(build_vertex_buffer(meshes, layout), layout)
    for attr in layout.attributes:
        expected = np.concatenate(
            [
                np.asarray(_source_values(m, attr.semantic), dtype=np.float32)[
                    :, : attr.component_count
                ]
                for m in meshes
            ]
        )
        assert decoded[attr.semantic].shape == expected.shape
        assert decoded[attr.semantic].tobytes() == expected.tobytes()


def test_mesh_order_is_preserved():  # noqa: N802
    mesh_a, mesh_b = scenario_a_meshes()
    layout = plan_group_layout([mesh_a, mesh_b], padded=False)
    positions = build_vertex_buffer([mesh_a, mesh_b], layout).reshape(-1, 3)
    assert positions[4].tolist() == [10.0, 0.0, 0.0]
    assert positions[6].tolist() == [12.0, 1.0, -0.5]


def test_attribute_mismatch_rejected():  # noqa: N802
    a = make_mesh("a", 3, [(0, 1, 2)], normals=True)
    b = make_mesh("b", 3, [(0, 1, 2)])
    layout = plan_vertex_layout(a, padded=True)
    with pytest.raises(AttributeMismatchError) as exc:
        build_vertex_buffer([a, b], layout, group="Body")
    assert exc.value.context["mesh_index"] == 1


def test_reverse_attribute_mismatch_rejected():  # noqa: N802
    a = make_mesh("a", 3, [(0, 1, 2)])
    b = make_mesh("b", 3, [(0, 1, 2)], colors=1)
    layout = plan_vertex_layout(a, padded=False)
    with pytest.raises(MalformedGroupError):
        build_vertex_buffer([a, b], layout)


def test_short_attribute_array_rejected():  # noqa: N802
    mesh = make_mesh("short", 3, [(0, 1, 2)], normals=True)
    mesh = replace(mesh, normals=mesh.normals[:2])
    layout = plan_vertex_layout(mesh, padded=True)
    with pytest.raises(MalformedGroupError) as exc:
        interleave_mesh(mesh, layout)
    assert exc.value.context["semantic"] == "NORMAL"


def test_zero_vertex_mesh_rejected():  # noqa: N802
    mesh = replace(make_mesh("empty", 0, []), positions=[])
    layout = plan_vertex_layout(mesh, padded=True)
    with pytest.raises(EmptyMeshError):
        build_vertex_buffer([mesh], layout)
