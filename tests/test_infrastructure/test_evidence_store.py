"""Tests for the local content-addressed evidence store."""

from __future__ import annotations

import hashlib
from pathlib import Path
from unittest.mock import patch

import pytest

from blue_carbon_registry.domain.exceptions import ValidationError
from blue_carbon_registry.domain.ports import EvidenceStore
from blue_carbon_registry.infrastructure.evidence_store import LocalEvidenceStore


class TestLocalEvidenceStore:
    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        assert isinstance(LocalEvidenceStore(tmp_path), EvidenceStore)

    @pytest.mark.asyncio
    async def test_put_is_content_addressed(self, tmp_path: Path) -> None:
        store = LocalEvidenceStore(tmp_path / "evidence", gateway_url="https://gw.example/ipfs")
        content = b"plot,species,survival\n1,Rhizophora,0.82\n"

        ref = await store.put(content, filename="survival.csv")

        digest = hashlib.sha256(content).hexdigest()
        assert ref.ref == digest
        assert ref.url == f"https://gw.example/ipfs/{digest}"
        assert ref.size == len(content)
        assert ref.filename == "survival.csv"
        assert store.path_for(digest).read_bytes() == content

    @pytest.mark.asyncio
    async def test_same_content_same_ref(self, tmp_path: Path) -> None:
        store = LocalEvidenceStore(tmp_path)
        first = await store.put(b"drone survey")
        second = await store.put(b"drone survey", filename="copy.tif")
        assert first.ref == second.ref
        assert len(list(tmp_path.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            await LocalEvidenceStore(tmp_path).put(b"")

    @pytest.mark.asyncio
    async def test_interrupted_write_leaves_nothing_behind(self, tmp_path: Path) -> None:
        store = LocalEvidenceStore(tmp_path)
        content = b"sediment core results"
        digest = hashlib.sha256(content).hexdigest()

        with patch(
            "blue_carbon_registry.infrastructure.evidence_store.os.replace",
            side_effect=OSError("disk full"),
        ), pytest.raises(OSError):
            await store.put(content)

        assert not store.path_for(digest).exists()
        assert list(tmp_path.iterdir()) == []

        ref = await store.put(content)
        assert store.path_for(ref.ref).read_bytes() == content
