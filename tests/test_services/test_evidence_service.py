"""Tests for EvidenceService: upload limits and GeoJSON boundaries."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from blue_carbon_registry.config import Settings
from blue_carbon_registry.domain.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    InvalidGeoJSONError,
)
from blue_carbon_registry.domain.ports import Principal
from blue_carbon_registry.infrastructure.evidence_store import LocalEvidenceStore
from blue_carbon_registry.services.evidence_service import (
    DEFAULT_GEOJSON_PROJECT_NAME,
    EvidenceService,
    media_type,
)


@pytest.fixture
def store(tmp_path: Path) -> LocalEvidenceStore:
    return LocalEvidenceStore(tmp_path)


@pytest.fixture
def service(store: LocalEvidenceStore, settings: Settings) -> EvidenceService:
    return EvidenceService(store, settings.model_copy(update={"evidence_max_bytes": 64}))


class TestUpload:
    def test_media_type_strips_parameters(self) -> None:
        assert media_type("Text/Plain; charset=utf-8") == "text/plain"
        assert media_type("") is None
        assert media_type(None) is None

    @pytest.mark.asyncio
    async def test_allowed_type_stored(
        self, service: EvidenceService, store: LocalEvidenceStore, community: Principal
    ) -> None:
        ref = await service.upload(community, b"%PDF-1.7 survey", "application/pdf", "survey.pdf")
        assert store.path_for(ref.ref).read_bytes() == b"%PDF-1.7 survey"
        assert ref.filename == "survey.pdf"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content_type", [None, "application/zip", "text/html"])
    async def test_disallowed_type(
        self,
        service: EvidenceService,
        community: Principal,
        tmp_path: Path,
        content_type: str | None,
    ) -> None:
        with pytest.raises(InvalidFileTypeError) as exc_info:
            await service.upload(community, b"payload", content_type)
        assert exc_info.value.code == "INVALID_FILE_TYPE"
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_size_limit(
        self, service: EvidenceService, community: Principal, tmp_path: Path
    ) -> None:
        await service.upload(community, b"x" * 64, "text/plain")
        with pytest.raises(FileTooLargeError) as exc_info:
            await service.upload(community, b"y" * 65, "text/plain")
        assert exc_info.value.limit_bytes == 64
        assert len(list(tmp_path.iterdir())) == 1

    def test_default_limit_is_ten_megabytes(self, settings: Settings) -> None:
        assert settings.evidence_max_bytes == 10 * 1024 * 1024


class TestGeoJSON:
    @pytest.mark.asyncio
    async def test_document_wraps_boundary(
        self, store: LocalEvidenceStore, settings: Settings, community: Principal
    ) -> None:
        boundary = {"type": "Point", "coordinates": [89.1, 21.9]}
        ref = await EvidenceService(store, settings).upload_geojson(community, boundary)

        document = json.loads(store.path_for(ref.ref).read_bytes())
        assert document["type"] == "GeoJSON"
        assert document["projectName"] == DEFAULT_GEOJSON_PROJECT_NAME
        assert document["uploadedBy"] == community.id
        assert document["data"] == boundary

    @pytest.mark.asyncio
    @pytest.mark.parametrize("geo_json", ["{broken", "42", {"coordinates": [1, 2]}])
    async def test_rejects_malformed(
        self, store: LocalEvidenceStore, settings: Settings, community: Principal, geo_json
    ) -> None:
        with pytest.raises(InvalidGeoJSONError) as exc_info:
            await EvidenceService(store, settings).upload_geojson(community, geo_json)
        assert exc_info.value.code == "INVALID_GEOJSON"
