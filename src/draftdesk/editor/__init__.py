"""Outline document model, notes drawers and word counts."""

from .document_model import BlockRef, DocumentPosition, HeadingRef, OutlineDocument
from .drawers import DrawerHandle, DrawerManager

__all__ = [
    "BlockRef",
    "DocumentPosition",
    "HeadingRef",
    "OutlineDocument",
    "DrawerHandle",
    "DrawerManager",
]
