"""Skeleton weight aggregation.

The skinning hierarchy is a transform-only node tree; bones live on the
meshes and refer to hierarchy nodes by name. The tree is flattened into an
arena (pre-order, parent/children stored as indices, one name lookup table)
and every mesh bone is resolved to an arena slot before any weights are
collected. Records are then emitted in arena order, which is pre-order, so
a parent always precedes its children.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..logging import get_logger
from ..scene.models import IDENTITY, Bone, Matrix4, Mesh, Node
from .errors import (
    E_DUPLICATE_NODE,
    E_SINGULAR_TRANSFORM,
    ExportError,
    MalformedGroupError,
    UnresolvedBoneReferenceError,
)


@dataclass(slots=True)
class ArenaNode:
    name: str
    transform: Matrix4
    parent: int
    depth: int
    children: List[int] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class BoneRecord:
    name: str
    transform: Matrix4
    children: Tuple[str, ...]
    offset_matrix: Matrix4
    vertex_ids: Tuple[int, ...]
    weights: Tuple[float, ...]
    parent: Optional[str] = None
    depth: int = 0


class HierarchyArena:
    ROOT = 0

    def __init__(self, nodes: List[ArenaNode]):
        self.nodes = nodes
        self._index: Dict[str, int] = {}
        for idx, node in enumerate(nodes):
            if node.name in self._index:
                raise ExportError(
                    E_DUPLICATE_NODE,
                    f"Hierarchy node name '{node.name}' is not unique",
                    {"node": node.name, "first": self._index[node.name], "second": idx},
                )
            self._index[node.name] = idx

    @classmethod
    def from_root(cls, root: Node) -> "HierarchyArena":
        nodes: List[ArenaNode] = []
        stack: List[Tuple[Node, int, int]] = [(root, -1, 0)]
        while stack:
            node, parent, depth = stack.pop()
            idx = len(nodes)
            nodes.append(ArenaNode(node.name, _as_matrix(node.transform), parent, depth))
            if parent >= 0:
                nodes[parent].children.append(idx)
            for child in reversed(node.children):
                stack.append((child, idx, depth + 1))
        return cls(nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def index_of(self, name: str) -> Optional[int]:
        return self._index.get(name)

    def child_names(self, idx: int) -> Tuple[str, ...]:
        return tuple(self.nodes[c].name for c in self.nodes[idx].children)


# Per arena slot: (mesh index, bone) pairs in mesh order, then bone order.
BoneBindings = List[List[Tuple[int, Bone]]]


def _as_matrix(value: Iterable[Iterable[float]]) -> Matrix4:
    return tuple(tuple(float(v) for v in row) for row in value)  # type: ignore[return-value]


def _inverse(transform: Matrix4, node: str) -> Matrix4:
    try:
        inv = np.linalg.inv(np.asarray(transform, dtype=np.float64))
    except np.linalg.LinAlgError as exc:
        raise ExportError(
            E_SINGULAR_TRANSFORM,
            f"Skeleton root '{node}' transform is not invertible",
            {"node": node},
        ) from exc
    return _as_matrix(inv.tolist())


def resolve_bone_bindings(
    meshes: Sequence[Mesh], arena: HierarchyArena, *, group: str = ""
) -> BoneBindings:
    bindings: BoneBindings = [[] for _ in range(len(arena))]
    for mesh_index, mesh in enumerate(meshes):
        for bone in mesh.bones:
            slot = arena.index_of(bone.name)
            if slot is None:
                raise UnresolvedBoneReferenceError(
                    f"Bone '{bone.name}' of mesh '{mesh.name}' matches no hierarchy node",
                    {
                        "group": group,
                        "mesh": mesh.name,
                        "mesh_index": mesh_index,
                        "bone": bone.name,
                        "hierarchy_root": arena.nodes[HierarchyArena.ROOT].name,
                    },
                )
            bindings[slot].append((mesh_index, bone))
    return bindings


def aggregate_skeleton(
    meshes: Sequence[Mesh],
    vertex_bases: Sequence[int],
    root: Union[Node, HierarchyArena],
    *,
    group: str = "",
) -> Tuple[BoneRecord, ...]:
    """Collect skin weights per hierarchy node, in pre-order.

    Vertex ids are translated into merged-buffer space with
    ``vertex_bases``, which must be the bases used by the index merger.
    The root's offset matrix is the inverse of its own local transform; any
    other node takes the offset of its first matching bone, or identity
    when no mesh binds it.
    """
    logger = get_logger()
    if len(vertex_bases) != len(meshes):
        raise ValueError("vertex_bases must have one entry per mesh")
    arena = root if isinstance(root, HierarchyArena) else HierarchyArena.from_root(root)
    bindings = resolve_bone_bindings(meshes, arena, group=group)

    records: List[BoneRecord] = []
    for idx, node in enumerate(arena.nodes):
        vertex_ids: List[int] = []
        weights: List[float] = []
        seen_meshes = set()
        for mesh_index, bone in bindings[idx]:
            if mesh_index in seen_meshes:
                logger.warning(
                    "Mesh '%s' binds hierarchy node '%s' more than once",
                    meshes[mesh_index].name,
                    node.name,
                )
            seen_meshes.add(mesh_index)
            base = vertex_bases[mesh_index]
            owner = meshes[mesh_index]
            for w in bone.weights:
                if not 0 <= w.vertex_id < owner.vertex_count:
                    raise MalformedGroupError(
                        f"Bone '{bone.name}' of mesh '{owner.name}' weights vertex "
                        f"{w.vertex_id} outside 0..{owner.vertex_count - 1}",
                        {
                            "group": group,
                            "mesh": owner.name,
                            "mesh_index": mesh_index,
                            "bone": bone.name,
                            "vertex_id": w.vertex_id,
                            "vertex_count": owner.vertex_count,
                        },
                    )
                vertex_ids.append(w.vertex_id + base)
                weights.append(float(w.weight))

        if idx == HierarchyArena.ROOT:
            offset = _inverse(node.transform, node.name)
        elif bindings[idx]:
            offset = _as_matrix(bindings[idx][0][1].offset_matrix)
        else:
            offset = IDENTITY

        records.append(
            BoneRecord(
                name=node.name,
                transform=node.transform,
                children=arena.child_names(idx),
                offset_matrix=offset,
                vertex_ids=tuple(vertex_ids),
                weights=tuple(weights),
                parent=arena.nodes[node.parent].name if node.parent >= 0 else None,
                depth=node.depth,
            )
        )
    logger.debug(
        "Aggregated %d bone records (%d skinned)",
        len(records),
        sum(1 for r in records if r.vertex_ids),
    )
    return tuple(records)


def _node_paths(scene_root: Node) -> Dict[str, Tuple[Node, ...]]:
    # First occurrence in pre-order wins for names repeated across the scene.
    paths: Dict[str, Tuple[Node, ...]] = {}
    stack: List[Tuple[Node, ...]] = [(scene_root,)]
    while stack:
        current = stack.pop()
        paths.setdefault(current[-1].name, current)
        for child in reversed(current[-1].children):
            stack.append(current + (child,))
    return paths


# Path depth of the shallowest node that may serve as a default skeleton
# origin: the scene root (0) and its top-level containers (1) are excluded.
_MIN_ORIGIN_DEPTH = 2


def find_skeleton_root(scene_root: Node, meshes: Sequence[Mesh]) -> Optional[Node]:
    """Pick the hierarchy root for a merge group when none is configured.

    Takes the lowest common ancestor of every node named by a bone of the
    group, then climbs through transform-only ancestors (no mesh
    references) so an unskinned origin above the bones is included. The
    climb stops below the scene's top-level containers. Returns None for a
    group without bones.
    """
    names: List[str] = []
    for mesh in meshes:
        for bone in mesh.bones:
            if bone.name not in names:
                names.append(bone.name)
    if not names:
        return None

    paths = _node_paths(scene_root)
    bone_paths = []
    for name in names:
        if name not in paths:
            raise UnresolvedBoneReferenceError(
                f"Bone '{name}' matches no node in the scene",
                {"bone": name, "scene_root": scene_root.name},
            )
        bone_paths.append(paths[name])

    common = 0
    shortest = min(len(p) for p in bone_paths)
    while common < shortest and all(
        p[common] is bone_paths[0][common] for p in bone_paths
    ):
        common += 1
    path = bone_paths[0]
    depth = common - 1
    while depth - 1 >= _MIN_ORIGIN_DEPTH and not path[depth - 1].meshes:
        depth -= 1
    return path[depth]


__all__ = [
    "ArenaNode",
    "BoneRecord",
    "HierarchyArena",
    "resolve_bone_bindings",
    "aggregate_skeleton",
    "find_skeleton_root",
]
