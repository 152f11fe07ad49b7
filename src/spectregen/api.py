"""High-level export API for SpectreGen.

One export call flattens one merge group (the meshes referenced by a single
node) into a :class:`MeshDocument`. Passes run sequentially; any failure
propagates and no partial document is returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Optional, Tuple

from .logging import section, step
from .reporting import get_reporter, task
from .scene.models import Mesh, Node, Scene
from .export.animation import encode_animations
from .export.constants import max_index_value
from .export.document import MeshDocument, assemble_document, to_document_dict
from .export.errors import internal_error
from .export.indices import compute_vertex_bases, merge_index_buffer
from .export.inspector import inspect_document, validate_document
from .export.layout import VertexLayout, plan_group_layout
from .export.skeleton import aggregate_skeleton, find_skeleton_root
from .export.vertices import build_vertex_buffer

__all__ = [
    "ExportOptions",
    "ExportResult",
    "export_scene",
    "export_all_groups",
    "plan_layout",
    "to_document_dict",
]


@dataclass(slots=True)
class ExportOptions:
    # Widen every attribute to four floats (fixed-stride GPU upload)
    padded: bool = True
    # 16 or 32; merged indices above 2**width - 1 fail the export
    index_width: int = 32
    # Node whose mesh list forms the merge group; first meshed node if unset
    mesh_node: str | None = None
    # Hierarchy root for skin weights; derived from the group's bones if unset
    skeleton_root: str | None = None
    # Re-check the assembled document before handing it out
    validate: bool = True


@dataclass(slots=True)
class ExportResult:
    document: MeshDocument
    summary: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return to_document_dict(self.document)


def _select_group(scene: Scene, options: ExportOptions) -> Node:
    if options.mesh_node is not None:
        node = scene.find_node(options.mesh_node)
        if node is None:
            raise ValueError(f"Mesh node '{options.mesh_node}' not found in scene")
        if not node.meshes:
            raise ValueError(f"Node '{options.mesh_node}' references no meshes")
        return node
    for node in scene.iter_nodes():
        if node.meshes:
            return node
    raise ValueError("Scene has no node referencing meshes")


def _select_skeleton_root(
    scene: Scene, node: Node, options: ExportOptions
) -> Optional[Node]:
    if options.skeleton_root is not None:
        root = scene.find_node(options.skeleton_root)
        if root is None:
            raise ValueError(
                f"Skeleton root '{options.skeleton_root}' not found in scene"
            )
        return root
    return find_skeleton_root(scene.root, scene.group_meshes(node))


def _export_group(scene: Scene, node: Node, options: ExportOptions) -> ExportResult:
    max_index_value(options.index_width)
    group = node.name
    meshes = scene.group_meshes(node)
    with section(f"Export {group}") as logger:
        return _run_stages(scene, node, meshes, options, logger)


def _run_stages(
    scene: Scene,
    node: Node,
    meshes: Tuple[Mesh, ...],
    options: ExportOptions,
    logger: logging.Logger,
) -> ExportResult:
    rep = get_reporter()
    group = node.name

    with task("layout.plan", f"Plan vertex layout ({group})") as stats:
        layout = plan_group_layout(meshes, options.padded, group)
        stats["meshes"] = len(meshes)
    rep.status(
        "Layout summary: "
        + f"group={group} attributes={len(layout.attributes)} stride={layout.stride} padded={layout.padded}"
    )

    vertex_bases = compute_vertex_bases(meshes)
    step(f"vertex bases {list(vertex_bases)}")
    with task(
        "geometry.vertices", "Interleave vertices", total=len(meshes)
    ) as stats:
        vertices = build_vertex_buffer(meshes, layout, group=group)
        stats["vertices"] = vertices.size // layout.floats_per_vertex
        stats["bytes"] = int(vertices.nbytes)
    with task("geometry.indices", "Merge indices", total=len(meshes)) as stats:
        merged = merge_index_buffer(
            meshes, vertex_bases, options.index_width, group=group
        )
        stats["indices"] = int(merged.indices.size)
    rep.status(
        "Geometry summary: "
        + f"group={group} vertices={merged.vertex_count} indices={merged.indices.size} format={merged.index_format}"
    )

    with task("skeleton.aggregate", "Aggregate skin weights") as stats:
        skeleton_root = _select_skeleton_root(scene, node, options)
        step(f"skeleton root {skeleton_root.name if skeleton_root else '-'}")
        if skeleton_root is None:
            bones = ()
        else:
            bones = aggregate_skeleton(meshes, vertex_bases, skeleton_root, group=group)
        stats["bones"] = len(bones)
    rep.status(
        "Skeleton summary: "
        + f"group={group} root={skeleton_root.name if skeleton_root else '-'} bones={len(bones)} "
        + f"skinned={sum(1 for b in bones if b.vertex_ids)}"
    )

    with task("animation.encode", "Encode animation channels") as stats:
        animations = encode_animations(scene.animations)
        stats["channels"] = sum(len(a.channels) for a in animations)
    if animations:
        rep.status(
            "Animation summary: "
            + f"animations={len(animations)} channels={sum(len(a.channels) for a in animations)}"
        )

    document = assemble_document(
        group, layout, vertices, merged, meshes, vertex_bases, bones, animations
    )
    if options.validate:
        issues = validate_document(document)
        if issues:
            raise internal_error(
                "Assembled document failed validation",
                {"group": group, "issues": issues},
            )
    summary = inspect_document(document)
    logger.info(
        "Exported group %s (%d vertices, %d indices, %d bones)",
        group,
        summary["vertex_count"],
        summary["index_count"],
        summary["bone_count"],
    )
    rep.status(
        "Export summary: "
        + f"group={group} submeshes={len(document.submeshes)} vertex_bytes={vertices.nbytes} "
        + f"index_bytes={document.indices.nbytes}"
    )
    return ExportResult(document=document, summary=summary)


def export_scene(scene: Scene, options: ExportOptions | None = None) -> ExportResult:
    options = options or ExportOptions()
    return _export_group(scene, _select_group(scene, options), options)


def export_all_groups(
    scene: Scene, options: ExportOptions | None = None
) -> Dict[str, ExportResult]:
    """Export every node that references meshes, keyed by node name.

    ``options.mesh_node`` is ignored; every other option applies to each group.
    """
    options = options or ExportOptions()
    results: Dict[str, ExportResult] = {}
    for node in scene.iter_nodes():
        if node.meshes:
            results[node.name] = _export_group(scene, node, options)
    return results


def plan_layout(scene: Scene, options: ExportOptions | None = None) -> VertexLayout:
    """Dry run: plan the selected group's vertex layout without building buffers."""
    options = options or ExportOptions()
    node = _select_group(scene, options)
    return plan_group_layout(scene.group_meshes(node), options.padded, node.name)
