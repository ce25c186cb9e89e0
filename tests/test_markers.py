"""Tests for completion marker storage."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from awxclient.errors import MarkerStoreError
from awxclient.markers import FileMarkerStore, marker_name


class TestMarkerName:
    """Tests for marker_name."""

    def test_host_and_template(self) -> None:
        assert marker_name("web01.example.com", "Breakglass") == (
            "web01.example.com-Breakglass.success"
        )

    def test_path_separators_are_replaced(self) -> None:
        assert marker_name("web01", "Ops/Baseline") == "web01-Ops_Baseline.success"


class TestFileMarkerStore:
    """Tests for FileMarkerStore."""

    def test_create_then_exists(self, tmp_path: Path) -> None:
        store = FileMarkerStore(tmp_path)
        assert not store.exists("web01.example.com", "Breakglass")

        store.create("web01.example.com", "Breakglass")

        assert store.exists("web01.example.com", "Breakglass")
        assert (tmp_path / "web01.example.com-Breakglass.success").is_file()
        assert not store.exists("web01.example.com", "Baseline")

    def test_create_is_idempotent(self, tmp_path: Path) -> None:
        store = FileMarkerStore(tmp_path)

        store.create("web01.example.com", "Breakglass")
        store.create("web01.example.com", "Breakglass")

        assert [path.name for path in tmp_path.iterdir()] == [
            "web01.example.com-Breakglass.success"
        ]

    def test_uninspectable_directory(self, tmp_path: Path) -> None:
        store = FileMarkerStore(tmp_path)

        with (
            patch.object(Path, "exists", side_effect=PermissionError(13, "Permission denied")),
            pytest.raises(MarkerStoreError, match="Can't check completion marker"),
        ):
            store.exists("web01.example.com", "Breakglass")

    def test_unwritable_directory(self, tmp_path: Path) -> None:
        store = FileMarkerStore(tmp_path / "missing")

        with pytest.raises(MarkerStoreError, match="Can't write completion marker"):
            store.create("web01.example.com", "Breakglass")
