"""Read-only scene graph consumed by the exporter.

Instances are produced once by an importer (or the fixture loader) and are
never mutated during an export.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Tuple

Vector3 = Tuple[float, float, float]
Vector4 = Tuple[float, float, float, float]
Matrix4 = Tuple[
    Tuple[float, float, float, float],
    Tuple[float, float, float, float],
    Tuple[float, float, float, float],
    Tuple[float, float, float, float],
]

IDENTITY: Matrix4 = (
    (1.0, 0.0, 0.0, 0.0),
    (0.0, 1.0, 0.0, 0.0),
    (0.0, 0.0, 1.0, 0.0),
    (0.0, 0.0, 0.0, 1.0),
)


@dataclass(frozen=True, slots=True)
class VertexWeight:
    vertex_id: int  # mesh-local
    weight: float


@dataclass(frozen=True, slots=True)
class Bone:
    name: str
    offset_matrix: Matrix4 = IDENTITY
    weights: Tuple[VertexWeight, ...] = ()


@dataclass(frozen=True, slots=True)
class UVChannel:
    components: int
    coords: Sequence[Sequence[float]]


@dataclass(frozen=True, slots=True)
class Mesh:
    name: str
    vertex_count: int
    faces: Sequence[Tuple[int, int, int]] = ()
    positions: Optional[Sequence[Vector3]] = None
    normals: Optional[Sequence[Vector3]] = None
    tangents: Optional[Sequence[Vector3]] = None
    bitangents: Optional[Sequence[Vector3]] = None
    uv_channels: Tuple[UVChannel, ...] = ()
    color_channels: Tuple[Sequence[Vector4], ...] = ()
    bones: Tuple[Bone, ...] = ()

    @property
    def has_positions(self) -> bool:
        return self.positions is not None

    @property
    def has_normals(self) -> bool:
        return self.normals is not None

    @property
    def has_tangents_and_bitangents(self) -> bool:
        return self.tangents is not None and self.bitangents is not None

    @property
    def uv_channel_count(self) -> int:
        return len(self.uv_channels)

    @property
    def color_channel_count(self) -> int:
        return len(self.color_channels)

    @property
    def face_count(self) -> int:
        return len(self.faces)


@dataclass(frozen=True, slots=True)
class Node:
    name: str
    transform: Matrix4 = IDENTITY
    children: Tuple["Node", ...] = ()
    meshes: Tuple[int, ...] = ()

    def iter_preorder(self) -> Iterator["Node"]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass(frozen=True, slots=True)
class VectorKey:
    time: float
    value: Vector3


@dataclass(frozen=True, slots=True)
class QuatKey:
    time: float
    value: Vector4  # (w, x, y, z)


@dataclass(frozen=True, slots=True)
class NodeAnimation:
    node_name: str
    position_keys: Tuple[VectorKey, ...] = ()
    rotation_keys: Tuple[QuatKey, ...] = ()
    scale_keys: Tuple[VectorKey, ...] = ()


@dataclass(frozen=True, slots=True)
class Animation:
    name: str
    ticks_per_second: float = 0.0
    duration: float = 0.0
    channels: Tuple[NodeAnimation, ...] = ()


@dataclass(frozen=True, slots=True)
class Scene:
    root: Node
    meshes: Tuple[Mesh, ...] = ()
    animations: Tuple[Animation, ...] = field(default_factory=tuple)

    def iter_nodes(self) -> Iterator[Node]:
        return self.root.iter_preorder()

    def find_node(self, name: str) -> Optional[Node]:
        for node in self.iter_nodes():
            if node.name == name:
                return node
        return None

    def group_meshes(self, node: Node) -> Tuple[Mesh, ...]:
        """Meshes referenced by ``node``, in the node's declared order."""
        return tuple(self.meshes[i] for i in node.meshes)


__all__ = [
    "IDENTITY",
    "Matrix4",
    "Vector3",
    "Vector4",
    "VertexWeight",
    "Bone",
    "UVChannel",
    "Mesh",
    "Node",
    "VectorKey",
    "QuatKey",
    "NodeAnimation",
    "Animation",
    "Scene",
]
