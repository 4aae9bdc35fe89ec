"""Local content-addressed evidence store.

Files are written under ``<directory>/<sha256 hex>``; the hex digest is the
reference handed back to callers and stored on projects. Retrieval URLs are
built against a configurable gateway so references stay portable to an IPFS
pinning service.
"""

from __future__ import annotations

import asyncio
import hashlib
import os
import tempfile
from pathlib import Path

from blue_carbon_registry.domain.exceptions import ValidationError
from blue_carbon_registry.domain.ports import EvidenceRef
from blue_carbon_registry.logging_config import get_logger

logger = get_logger(__name__)


class LocalEvidenceStore:
    """EvidenceStore backed by a directory on the local filesystem."""

    def __init__(self, directory: str | Path, gateway_url: str = "https://ipfs.io/ipfs/") -> None:
        self._directory = Path(directory)
        self._gateway_url = gateway_url if gateway_url.endswith("/") else gateway_url + "/"

    async def put(self, content: bytes, filename: str | None = None) -> EvidenceRef:
        if not content:
            raise ValidationError("Evidence content is empty")

        ref = hashlib.sha256(content).hexdigest()
        path = self._directory / ref
        if not path.exists():
            await asyncio.to_thread(self._write, path, content)
            logger.info("evidence.stored", ref=ref, size=len(content), filename=filename)
        else:
            logger.debug("evidence.already_stored", ref=ref)

        return EvidenceRef(ref=ref, url=self.url_for(ref), size=len(content), filename=filename)

    def url_for(self, ref: str) -> str:
        return f"{self._gateway_url}{ref}"

    def path_for(self, ref: str) -> Path:
        """Return the on-disk location of a stored reference."""
        return self._directory / ref

    def _write(self, path: Path, content: bytes) -> None:
        """Write through a temp file so ``path`` only ever holds complete content."""
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".upload-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
