"""Storage backends for audit runs and report artifacts.

This module provides:
- RunStore: Abstract base class for run/progress/result persistence
- FileManager: File-based run store
- ArtifactStore: Abstract base class for artifact uploads
- LocalArtifactStore: Filesystem artifact store
"""

from storefront_audit.storage.artifact_store import LocalArtifactStore
from storefront_audit.storage.base import ArtifactStore, RunStore
from storefront_audit.storage.file_manager import FileManager

__all__ = [
    "ArtifactStore",
    "FileManager",
    "LocalArtifactStore",
    "RunStore",
]
