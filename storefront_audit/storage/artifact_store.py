"""Local filesystem artifact store."""

import logging
from pathlib import Path

from storefront_audit.storage.base import ArtifactStore

logger = logging.getLogger(__name__)


class LocalArtifactStore(ArtifactStore):
    """Writes artifacts below a root directory and returns their paths."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise ValueError(f"Artifact path escapes store root: {path}")

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info(f"Stored artifact {path} ({len(data)} bytes, {content_type})")
        return str(target)
