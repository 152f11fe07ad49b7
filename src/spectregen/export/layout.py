"""Vertex layout planning.

Decides which per-vertex attributes a merge group carries and where each
one lives inside an interleaved vertex record. Attribute order is fixed:
position, normal, tangent + bitangent, UV channels, color channels.

Two modes exist. *Packed* gives every attribute its natural width (colors
are always four wide). *Padded* widens every attribute to four floats so
records have a fixed 16-byte granularity; the unused trailing slots hold
0.0, except position's fourth slot which holds 1.0.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Flag, auto
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from ..scene.models import Mesh
from .constants import (
    COLOR_COMPONENTS,
    ELEMENT_TYPE,
    FLOAT_SIZE,
    PAD_VALUE,
    PADDED_COMPONENTS,
    POSITION_W,
    VECTOR_COMPONENTS,
)
from .errors import MalformedGroupError


class VertexFeature(Flag):
    NONE = 0
    POSITION = auto()
    NORMAL = auto()
    TANGENT_FRAME = auto()
    TEXCOORD = auto()
    COLOR = auto()


@dataclass(frozen=True, slots=True)
class VertexCapabilities:
    features: VertexFeature
    uv_components: Tuple[int, ...] = ()
    color_channels: int = 0

    def has(self, feature: VertexFeature) -> bool:
        return feature in self.features

    def describe(self) -> Dict[str, Any]:
        return {
            "features": sorted(
                f.name for f in VertexFeature if f.name != "NONE" and f in self.features
            ),
            "uv_components": list(self.uv_components),
            "color_channels": self.color_channels,
        }


@dataclass(frozen=True, slots=True)
class VertexAttribute:
    semantic: str
    component_count: int
    slot_count: int
    byte_offset: int
    element_format: str
    fill_value: float = PAD_VALUE

    @property
    def float_offset(self) -> int:
        return self.byte_offset // FLOAT_SIZE


@dataclass(frozen=True, slots=True)
class VertexLayout:
    attributes: Tuple[VertexAttribute, ...]
    stride: int  # bytes
    padded: bool
    capabilities: VertexCapabilities

    @property
    def floats_per_vertex(self) -> int:
        return self.stride // FLOAT_SIZE

    def attribute(self, semantic: str) -> Optional[VertexAttribute]:
        for attr in self.attributes:
            if attr.semantic == semantic:
                return attr
        return None


def capabilities_of(mesh: Mesh) -> VertexCapabilities:
    features = VertexFeature.NONE
    if mesh.has_positions:
        features |= VertexFeature.POSITION
    if mesh.has_normals:
        features |= VertexFeature.NORMAL
    if mesh.has_tangents_and_bitangents:
        features |= VertexFeature.TANGENT_FRAME
    if mesh.uv_channel_count:
        features |= VertexFeature.TEXCOORD
    if mesh.color_channel_count:
        features |= VertexFeature.COLOR
    return VertexCapabilities(
        features=features,
        uv_components=tuple(ch.components for ch in mesh.uv_channels),
        color_channels=mesh.color_channel_count,
    )


def plan_vertex_layout(
    source: Union[Mesh, VertexCapabilities], padded: bool = True
) -> VertexLayout:
    caps = (
        source
        if isinstance(source, VertexCapabilities)
        else capabilities_of(source)
    )
    attributes = []
    offset = 0

    def add(semantic: str, components: int, fill: float = PAD_VALUE) -> None:
        nonlocal offset
        slots = PADDED_COMPONENTS if padded else components
        attributes.append(
            VertexAttribute(
                semantic=semantic,
                component_count=components,
                slot_count=slots,
                byte_offset=offset,
                element_format=f"{ELEMENT_TYPE}{components}",
                fill_value=fill,
            )
        )
        offset += slots * FLOAT_SIZE

    add("POSITION", VECTOR_COMPONENTS, POSITION_W)
    if caps.has(VertexFeature.NORMAL):
        add("NORMAL", VECTOR_COMPONENTS)
    if caps.has(VertexFeature.TANGENT_FRAME):
        add("TANGENT", VECTOR_COMPONENTS)
        add("BITANGENT", VECTOR_COMPONENTS)
    for channel, components in enumerate(caps.uv_components):
        add(f"TEXCOORD{channel}", components)
    for channel in range(caps.color_channels):
        add(f"COLOR{channel}", COLOR_COMPONENTS)

    return VertexLayout(
        attributes=tuple(attributes),
        stride=offset,
        padded=padded,
        capabilities=caps,
    )


def check_group_homogeneity(
    meshes: Sequence[Mesh], group: str = ""
) -> VertexCapabilities:
    """Return the group's shared capabilities or raise MalformedGroupError.

    Every mesh must present exactly the attribute set of the first mesh,
    including UV component counts and color channel count.
    """
    if not meshes:
        raise MalformedGroupError(
            "Merge group has no meshes", {"group": group}
        )
    first = meshes[0]
    expected = capabilities_of(first)
    if not expected.has(VertexFeature.POSITION):
        raise MalformedGroupError(
            f"Mesh '{first.name}' has no positions",
            {"group": group, "mesh": first.name, "mesh_index": 0},
        )
    for idx, mesh in enumerate(meshes[1:], start=1):
        caps = capabilities_of(mesh)
        if caps != expected:
            raise MalformedGroupError(
                f"Mesh '{mesh.name}' attributes differ from '{first.name}'",
                {
                    "group": group,
                    "mesh": mesh.name,
                    "mesh_index": idx,
                    "expected": expected.describe(),
                    "actual": caps.describe(),
                },
            )
    return expected


def plan_group_layout(
    meshes: Sequence[Mesh], padded: bool = True, group: str = ""
) -> VertexLayout:
    return plan_vertex_layout(check_group_homogeneity(meshes, group), padded)


__all__ = [
    "VertexFeature",
    "VertexCapabilities",
    "VertexAttribute",
    "VertexLayout",
    "capabilities_of",
    "plan_vertex_layout",
    "check_group_homogeneity",
    "plan_group_layout",
]
