from __future__ import annotations

"""Document assembly and inspection tests.

Covers:
- Per-submesh bounds computed from each mesh's own positions
- Serialized document keys and values
- Validator accepts assembled documents and flags tampered ones
"""

from dataclasses import replace
import json

import numpy as np
import pytest

from spectregen.export.animation import encode_animations
from spectregen.export.document import (
    assemble_document,
    compute_bounds,
    to_document_dict,
)
from spectregen.export.errors import EmptyMeshError
from spectregen.export.indices import compute_vertex_bases, merge_index_buffer
from spectregen.export.inspector import inspect_document, validate_document
from spectregen.export.layout import plan_group_layout
from spectregen.export.skeleton import aggregate_skeleton
from spectregen.export.vertices import build_vertex_buffer
from spectregen.scene.models import Mesh
from scene_helpers import scenario_b_scene


def _assemble(padded: bool = False):
    scene = scenario_b_scene()
    meshes = scene.group_meshes(scene.find_node("Body"))
    layout = plan_group_layout(meshes, padded, "Body")
    bases = compute_vertex_bases(meshes)
    vertices = build_vertex_buffer(meshes, layout)
    merged = merge_index_buffer(meshes, bases)
    bones = aggregate_skeleton(meshes, bases, scene.find_node("R"))
    animations = encode_animations(scene.animations)
    return assemble_document(
        "Body", layout, vertices, merged, meshes, bases, bones, animations
    )


def test_bounds_per_submesh():  # noqa: N802
    doc = _assemble()
    a, b = doc.submeshes
    assert a.aabb_min == (0.0, 0.0, -0.75)
    assert a.aabb_max == (3.0, 1.5, 0.0)
    assert b.aabb_min == (10.0, 0.0, -0.5)
    assert b.aabb_max == (12.0, 1.0, 0.0)
    assert (a.first_vertex, a.vertex_count) == (0, 4)
    assert (b.first_vertex, b.vertex_count) == (4, 3)


def test_bounds_use_each_axis_maximum():  # noqa: N802
    mesh = Mesh(
        name="tilted",
        vertex_count=3,
        faces=[(0, 1, 2)],
        positions=[(-1.0, 5.0, 2.0), (4.0, -3.0, 0.5), (0.0, 1.0, -6.0)],
    )
    low, high = compute_bounds(mesh)
    assert low == (-1.0, -3.0, -6.0)
    assert high == (4.0, 5.0, 2.0)


def test_bounds_require_positions():  # noqa: N802
    with pytest.raises(EmptyMeshError):
        compute_bounds(Mesh(name="void", vertex_count=0, positions=[]))


def test_document_dict_shape():  # noqa: N802
    tree = to_document_dict(_assemble())
    assert set(tree) == {
        "group",
        "attributes",
        "meshes",
        "primitive",
        "indexFormat",
        "vertices",
        "indices",
        "bones",
        "animations",
    }
    assert tree["primitive"] == "triangles"
    assert tree["indexFormat"] == "uint32"
    assert tree["attributes"] == [
        {"name": "POSITION", "offset": 0, "stride": 12, "format": "float3"}
    ]
    assert [(m["offset"], m["count"]) for m in tree["meshes"]] == [(0, 6), (6, 3)]
    assert tree["indices"] == [0, 1, 2, 0, 2, 3, 4, 5, 6]
    assert len(tree["vertices"]) == 7 * 3
    # must be plain JSON
    json.dumps(tree)


def test_document_dict_bones_and_animation():  # noqa: N802
    tree = to_document_dict(_assemble())
    root, child = tree["bones"]
    assert root["name"] == "R"
    assert root["children"] == ["C"]
    assert root["vertices"] == []
    assert len(root["offsetTransform"]) == 16
    assert child["vertices"] == [0, 1, 6]
    assert child["weights"] == [1.0, 0.5, 0.25]
    # row-major: translation sits at index 7 of the flattened row list
    assert child["offsetTransform"][7] == -1.0
    (walk,) = tree["animations"]
    assert walk["ticksPerSecond"] == 24.0
    channel = walk["channels"][0]
    assert channel["node"] == "C"
    assert channel["rotationKeys"] == [{"time": 0.0, "value": [1.0, 0.0, 0.0, 0.0]}]
    assert len(channel["positionKeys"]) == 3


def test_padded_attribute_descriptors():  # noqa: N802
    tree = to_document_dict(_assemble(padded=True))
    assert tree["attributes"] == [
        {"name": "POSITION", "offset": 0, "stride": 16, "format": "float3"}
    ]
    assert tree["vertices"][3] == 1.0


def test_assembled_document_validates():  # noqa: N802
    doc = _assemble()
    assert validate_document(doc) == []
    summary = inspect_document(doc)
    assert summary["vertex_count"] == 7
    assert summary["index_count"] == 9
    assert summary["max_index"] == 6
    assert summary["bone_count"] == 2
    assert summary["skinned_bones"] == 1
    assert summary["animation_count"] == 1


def test_validator_flags_tampered_documents():  # noqa: N802
    doc = _assemble()
    bad_indices = replace(doc, indices=np.array([0, 1, 2, 0, 2, 3, 4, 5, 9], dtype=np.uint32))
    assert any("beyond the buffer" in i for i in validate_document(bad_indices))

    shifted = replace(
        doc.submeshes[1], draw_range=replace(doc.submeshes[1].draw_range, index_offset=5)
    )
    gap = replace(doc, submeshes=(doc.submeshes[0], shifted))
    assert any("not contiguous" in i for i in validate_document(gap))

    reversed_bones = replace(doc, bones=tuple(reversed(doc.bones)))
    assert any("does not follow" in i for i in validate_document(reversed_bones))
