from __future__ import annotations

"""Scene description loader tests (JSON and YAML)."""

from pathlib import Path
import json

import pytest
import yaml

from spectregen import ExportOptions, export_scene
from spectregen.reporting import SilentReporter, set_reporter
from spectregen.scene.loader import load_scene, scene_from_dict
from spectregen.scene.models import IDENTITY


def _scene_dict() -> dict:
    return {
        "root": {
            "name": "Scene",
            "children": [
                {"name": "Body", "meshes": [0]},
                {
                    "name": "Root",
                    "transform": [
                        [1, 0, 0, 0],
                        [0, 1, 0, 0],
                        [0, 0, 1, 3],
                        [0, 0, 0, 1],
                    ],
                    "children": [{"name": "Tip"}],
                },
            ],
        },
        "meshes": [
            {
                "name": "tri",
                "positions": [[0, 0, 0], [1, 0, 0], [0, 1, 0]],
                "normals": [[0, 0, 1], [0, 0, 1], [0, 0, 1]],
                "faces": [[0, 1, 2]],
                "uv_channels": [
                    {"components": 2, "coords": [[0, 0], [1, 0], [0, 1]]}
                ],
                "bones": [{"name": "Tip", "weights": [[0, 1.0], [2, 0.5]]}],
            }
        ],
        "animations": [
            {
                "name": "wave",
                "ticks_per_second": 30,
                "duration": 10,
                "channels": [
                    {
                        "node": "Tip",
                        "position_keys": [[0, [0, 0, 0]], [10, [0, 1, 0]]],
                        "rotation_keys": [[0, [1, 0, 0, 0]]],
                    }
                ],
            }
        ],
    }


def test_load_json(tmp_path: Path):  # noqa: N802
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(_scene_dict()), encoding="utf-8")
    scene = load_scene(path)
    assert [n.name for n in scene.iter_nodes()] == ["Scene", "Body", "Root", "Tip"]
    mesh = scene.meshes[0]
    assert mesh.vertex_count == 3
    assert mesh.faces == [(0, 1, 2)]
    assert mesh.uv_channels[0].components == 2
    assert mesh.bones[0].offset_matrix == IDENTITY
    assert mesh.bones[0].weights[1].vertex_id == 2
    assert scene.find_node("Root").transform[2][3] == 3.0
    (wave,) = scene.animations
    assert wave.channels[0].rotation_keys[0].value == (1.0, 0.0, 0.0, 0.0)
    assert wave.channels[0].scale_keys == ()


def test_load_yaml_matches_json(tmp_path: Path):  # noqa: N802
    yaml_path = tmp_path / "scene.yaml"
    yaml_path.write_text(yaml.safe_dump(_scene_dict()), encoding="utf-8")
    json_path = tmp_path / "scene.json"
    json_path.write_text(json.dumps(_scene_dict()), encoding="utf-8")
    assert load_scene(yaml_path) == load_scene(json_path)


def test_loaded_scene_exports(tmp_path: Path):  # noqa: N802
    set_reporter(SilentReporter())
    path = tmp_path / "scene.yml"
    path.write_text(yaml.safe_dump(_scene_dict()), encoding="utf-8")
    doc = export_scene(load_scene(path), ExportOptions(skeleton_root="Root")).document
    assert doc.layout.stride == 48
    assert [b.name for b in doc.bones] == ["Root", "Tip"]
    assert doc.bones[1].vertex_ids == (0, 2)


def test_missing_file(tmp_path: Path):  # noqa: N802
    with pytest.raises(FileNotFoundError):
        load_scene(tmp_path / "absent.json")


def test_root_must_be_object(tmp_path: Path):  # noqa: N802
    path = tmp_path / "list.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_scene(path)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("root"),
        lambda d: d["root"]["children"][0].update(meshes=[4]),
        lambda d: d["meshes"][0].update(faces=[[0, 1, 2, 0]]),
        lambda d: d["meshes"][0].update(normals=[[0, 0]]),
        lambda d: d["root"]["children"][1].update(transform=[[1, 0, 0]]),
        lambda d: d["meshes"][0]["uv_channels"][0].update(components=5),
    ],
)
def test_malformed_descriptions_rejected(mutate):  # noqa: N802
    data = _scene_dict()
    mutate(data)
    with pytest.raises(ValueError):
        scene_from_dict(data)
