"""Error definitions for SpectreGen exports."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_MALFORMED_GROUP = "E_MALFORMED_GROUP"
E_EMPTY_MESH = "E_EMPTY_MESH"
E_UNRESOLVED_BONE = "E_UNRESOLVED_BONE"
E_INDEX_OVERFLOW = "E_INDEX_OVERFLOW"
E_DUPLICATE_NODE = "E_DUPLICATE_NODE"
E_SINGULAR_TRANSFORM = "E_SINGULAR_TRANSFORM"
E_INTERNAL = "E_INTERNAL"


@dataclass
class ExportError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class MalformedGroupError(ExportError):
    """Meshes of one merge group disagree on attribute presence or shape."""

    def __init__(
        self, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(E_MALFORMED_GROUP, message, context)


# Raised by the buffer builder; same condition seen from the vertex side.
AttributeMismatchError = MalformedGroupError


class EmptyMeshError(ExportError):
    def __init__(
        self, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(E_EMPTY_MESH, message, context)


class UnresolvedBoneReferenceError(ExportError):
    def __init__(
        self, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(E_UNRESOLVED_BONE, message, context)


class IndexOverflowError(ExportError):
    def __init__(
        self, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(E_INDEX_OVERFLOW, message, context)


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> ExportError:
    return ExportError(code=E_INTERNAL, message=message, context=context)


__all__ = [
    "ExportError",
    "MalformedGroupError",
    "AttributeMismatchError",
    "EmptyMeshError",
    "UnresolvedBoneReferenceError",
    "IndexOverflowError",
    "internal_error",
    "E_MALFORMED_GROUP",
    "E_EMPTY_MESH",
    "E_UNRESOLVED_BONE",
    "E_INDEX_OVERFLOW",
    "E_DUPLICATE_NODE",
    "E_SINGULAR_TRANSFORM",
    "E_INTERNAL",
]
