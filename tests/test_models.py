"""Tests for FileInfo."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone

import pytest

from blobvfs._models import FileInfo
from blobvfs._name import FileName

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestFileInfo:
    def test_fields(self) -> None:
        info = FileInfo(name=FileName("file", "/a.txt"), size=3, last_modified=NOW, content_type="text/plain")
        assert info.size == 3
        assert info.content_type == "text/plain"
        assert info.etag is None

    def test_frozen(self) -> None:
        info = FileInfo(name=FileName("file", "/a"), size=0, last_modified=NOW)
        with pytest.raises(dataclasses.FrozenInstanceError):
            info.size = 1  # type: ignore[misc]

    def test_equality_by_name(self) -> None:
        a = FileInfo(name=FileName("file", "/a"), size=1, last_modified=NOW)
        b = FileInfo(name=FileName("file", "/a"), size=2, last_modified=NOW, etag="x")
        assert a == b
        assert hash(a) == hash(b)
        assert a != FileInfo(name=FileName("file", "/b"), size=1, last_modified=NOW)
