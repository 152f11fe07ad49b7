"""Scene description loading (JSON/YAML) for fixtures and tooling.

The description mirrors the scene models one-to-one; it is not an asset
importer. Matrices are four rows of four floats, row-major.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List
import json

import yaml

from .models import (
    IDENTITY,
    Animation,
    Bone,
    Matrix4,
    Mesh,
    Node,
    NodeAnimation,
    QuatKey,
    Scene,
    UVChannel,
    VectorKey,
    VertexWeight,
)


def load_scene(path: str | Path) -> Scene:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Root of scene description must be an object")
    return scene_from_dict(data)


def scene_from_dict(data: Dict[str, Any]) -> Scene:
    if not isinstance(data.get("root"), dict):
        raise ValueError("Scene description requires a 'root' node object")
    meshes = tuple(
        _parse_mesh(m, f"meshes[{i}]")
        for i, m in enumerate(data.get("meshes") or [])
    )
    animations = tuple(
        _parse_animation(a, f"animations[{i}]")
        for i, a in enumerate(data.get("animations") or [])
    )
    root = _parse_node(data["root"], "root")
    for node in root.iter_preorder():
        for idx in node.meshes:
            if not 0 <= idx < len(meshes):
                raise ValueError(
                    f"Node '{node.name}' references missing mesh {idx}"
                )
    return Scene(root=root, meshes=meshes, animations=animations)


def _matrix(value: Any, path: str) -> Matrix4:
    if value is None:
        return IDENTITY
    rows = [tuple(float(c) for c in row) for row in value]
    if len(rows) != 4 or any(len(r) != 4 for r in rows):
        raise ValueError(f"{path}: matrix must be 4x4")
    return tuple(rows)  # type: ignore[return-value]


def _vectors(value: Any, width: int, path: str) -> List[tuple]:
    out = []
    for i, v in enumerate(value):
        if len(v) != width:
            raise ValueError(f"{path}[{i}]: expected {width} components")
        out.append(tuple(float(c) for c in v))
    return out


def _parse_node(entry: Any, path: str) -> Node:
    if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
        raise ValueError(f"{path}: node must be an object with a name")
    children = tuple(
        _parse_node(c, f"{path}.children[{i}]")
        for i, c in enumerate(entry.get("children") or [])
    )
    return Node(
        name=entry["name"],
        transform=_matrix(entry.get("transform"), f"{path}.transform"),
        children=children,
        meshes=tuple(int(i) for i in entry.get("meshes") or []),
    )


def _parse_mesh(entry: Any, path: str) -> Mesh:
    if not isinstance(entry, dict):
        raise ValueError(f"{path}: mesh must be an object")
    optional = {}
    for key in ("positions", "normals", "tangents", "bitangents"):
        if entry.get(key) is not None:
            optional[key] = _vectors(entry[key], 3, f"{path}.{key}")
    faces = []
    for i, face in enumerate(entry.get("faces") or []):
        if len(face) != 3:
            raise ValueError(f"{path}.faces[{i}]: only triangles are supported")
        faces.append(tuple(int(v) for v in face))
    uv_channels = []
    for i, ch in enumerate(entry.get("uv_channels") or []):
        components = int(ch.get("components", 2))
        if not 1 <= components <= 4:
            raise ValueError(f"{path}.uv_channels[{i}]: components must be 1-4")
        coords = [tuple(float(c) for c in uv) for uv in ch.get("coords") or []]
        uv_channels.append(UVChannel(components=components, coords=coords))
    colors = tuple(
        _vectors(ch, 4, f"{path}.colors[{i}]")
        for i, ch in enumerate(entry.get("colors") or [])
    )
    bones = tuple(
        Bone(
            name=b["name"],
            offset_matrix=_matrix(
                b.get("offset_matrix"), f"{path}.bones[{i}].offset_matrix"
            ),
            weights=tuple(
                VertexWeight(int(vid), float(w)) for vid, w in b.get("weights") or []
            ),
        )
        for i, b in enumerate(entry.get("bones") or [])
    )
    positions = optional.get("positions")
    vertex_count = entry.get("vertex_count")
    if vertex_count is None:
        vertex_count = len(positions) if positions is not None else 0
    return Mesh(
        name=str(entry.get("name", path)),
        vertex_count=int(vertex_count),
        faces=faces,
        uv_channels=tuple(uv_channels),
        color_channels=colors,
        bones=bones,
        **optional,
    )


def _parse_animation(entry: Any, path: str) -> Animation:
    if not isinstance(entry, dict):
        raise ValueError(f"{path}: animation must be an object")
    channels = []
    for i, ch in enumerate(entry.get("channels") or []):
        cpath = f"{path}.channels[{i}]"
        channels.append(
            NodeAnimation(
                node_name=ch["node"],
                position_keys=tuple(
                    VectorKey(float(t), _vectors([v], 3, cpath)[0])
                    for t, v in ch.get("position_keys") or []
                ),
                rotation_keys=tuple(
                    QuatKey(float(t), _vectors([v], 4, cpath)[0])
                    for t, v in ch.get("rotation_keys") or []
                ),
                scale_keys=tuple(
                    VectorKey(float(t), _vectors([v], 3, cpath)[0])
                    for t, v in ch.get("scale_keys") or []
                ),
            )
        )
    return Animation(
        name=str(entry.get("name", "")),
        ticks_per_second=float(entry.get("ticks_per_second", 0.0)),
        duration=float(entry.get("duration", 0.0)),
        channels=tuple(channels),
    )


__all__ = ["load_scene", "scene_from_dict"]
