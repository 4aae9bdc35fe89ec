"""Evidence Service — uploads of field evidence and site boundaries.

Raw uploads are checked against the configured size limit and content-type
allowlist before they reach the evidence store. GeoJSON site boundaries are
wrapped in a small metadata document and stored as JSON.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from blue_carbon_registry.config import get_settings
from blue_carbon_registry.domain.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    InvalidGeoJSONError,
)
from blue_carbon_registry.logging_config import get_logger

if TYPE_CHECKING:
    from blue_carbon_registry.config import Settings
    from blue_carbon_registry.domain.ports import EvidenceRef, EvidenceStore, Principal

logger = get_logger(__name__)

DEFAULT_GEOJSON_PROJECT_NAME = "Blue Carbon Project"


def media_type(content_type: str | None) -> str | None:
    """Strip parameters such as ``charset`` from a Content-Type value."""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


class EvidenceService:
    """Validates and stores evidence uploads."""

    def __init__(self, evidence_store: EvidenceStore, settings: Settings | None = None) -> None:
        self._store = evidence_store
        self._settings = settings or get_settings()

    @property
    def max_bytes(self) -> int:
        return self._settings.evidence_max_bytes

    def check_content_type(self, content_type: str | None) -> str:
        """Return the bare media type, or raise InvalidFileTypeError."""
        mime = media_type(content_type)
        if mime is None or mime not in self._settings.evidence_allowed_types:
            raise InvalidFileTypeError(mime)
        return mime

    def check_size(self, size: int) -> None:
        if size > self.max_bytes:
            raise FileTooLargeError(self.max_bytes)

    async def upload(
        self,
        actor: Principal,
        content: bytes,
        content_type: str | None,
        filename: str | None = None,
    ) -> EvidenceRef:
        """Store one evidence file after the type and size checks."""
        mime = self.check_content_type(content_type)
        self.check_size(len(content))
        ref = await self._store.put(content, filename=filename)
        logger.info(
            "evidence.uploaded",
            ref=ref.ref,
            size=ref.size,
            content_type=mime,
            principal_id=actor.id,
        )
        return ref

    async def upload_geojson(
        self,
        actor: Principal,
        geo_json: Any,
        project_name: str | None = None,
    ) -> EvidenceRef:
        """Store a site boundary document.

        ``geo_json`` may be a parsed object or a JSON string; either way it
        must decode to an object carrying a GeoJSON ``type``.
        """
        if isinstance(geo_json, str):
            try:
                geo_json = json.loads(geo_json)
            except json.JSONDecodeError as exc:
                raise InvalidGeoJSONError("not valid JSON") from exc
        if not isinstance(geo_json, dict):
            raise InvalidGeoJSONError("expected a JSON object")
        if not isinstance(geo_json.get("type"), str):
            raise InvalidGeoJSONError("missing 'type' member")

        document = {
            "type": "GeoJSON",
            "projectName": project_name or DEFAULT_GEOJSON_PROJECT_NAME,
            "uploadedBy": actor.id,
            "uploadTimestamp": datetime.now(UTC).isoformat(),
            "data": geo_json,
        }
        content = json.dumps(document, sort_keys=True).encode()
        self.check_size(len(content))
        ref = await self._store.put(content, filename="boundary.geojson")
        logger.info(
            "evidence.geojson_uploaded",
            ref=ref.ref,
            geometry=geo_json["type"],
            principal_id=actor.id,
        )
        return ref
