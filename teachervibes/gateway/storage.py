"""
Object storage for artifact screenshots.

v0: local filesystem bucket served under ``public_base_url``.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath

from ..catalog.errors import GatewayError
from .base import ObjectStore

logger = logging.getLogger(__name__)


class FileObjectStore(ObjectStore):
    """Filesystem-backed bucket.

    Structure:
        {root}/{bucket}/
        ├── 3f2a...e1.png
        └── 9b0c...77.jpg
    """

    def __init__(self, root: Path, bucket: str, public_base_url: str):
        """Initialize with the storage root and bucket name.

        Args:
            root: Directory holding all buckets
            bucket: Bucket (sub-directory) name
            public_base_url: URL prefix under which the root is served
        """
        self.bucket = bucket
        self.base_path = Path(root) / bucket
        self.public_base_url = public_base_url.rstrip("/")

    def _path_for(self, name: str) -> Path:
        if not name or PurePosixPath(name).name != name or name in (".", ".."):
            raise GatewayError("upload", self.bucket, f"invalid object name '{name}'")
        return self.base_path / name

    async def upload(self, name: str, data: bytes) -> str:
        """Write raw bytes to the bucket. Existing objects are not overwritten."""
        path = self._path_for(name)
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            with open(path, "xb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Upload of {name} to {self.bucket} failed: {e}")
            raise GatewayError("upload", self.bucket, str(e)) from e
        return name

    def get_public_url(self, name: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{name}"
