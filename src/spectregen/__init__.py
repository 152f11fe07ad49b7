"""SpectreGen package

Flattens an already-parsed scene graph (meshes, bone hierarchy, animation)
into a GPU-ready Spectre mesh document: one interleaved vertex buffer, one
merged index buffer, a submesh table with bounds, a skeleton table with
skin weights and animation tracks.

Prefer :func:`spectregen.api.export_scene`; the individual passes live in
:mod:`spectregen.export`.
"""

__version__ = "0.3.0"

from .api import (  # noqa: E402
    ExportOptions,
    ExportResult,
    export_all_groups,
    export_scene,
    plan_layout,
    to_document_dict,
)

__all__ = [
    "__version__",
    "ExportOptions",
    "ExportResult",
    "export_scene",
    "export_all_groups",
    "plan_layout",
    "to_document_dict",
]
