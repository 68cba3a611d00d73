# Tests for sitepub.publish.actions
# Fingerprint-driven sync planning

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sitepub.errors import PlanError, ScanError, StorageError
from sitepub.publish.actions import ActionType, ObjectSyncPlanner, SyncPlan, determine_action, plan_sync
from sitepub.publish.asset import Asset, build_assets, load_asset
from sitepub.publish.content_types import ContentTypeResolver
from sitepub.storage.base import RemoteObject, StorageService
from sitepub.utils.hashing import content_hash


def _asset(rel: str, content: bytes = b"x", content_type: str = "text/html") -> Asset:
    return Asset(
        relative_path=rel,
        path=Path("/nonexistent") / rel,
        content_type=content_type,
        fingerprint=content_hash(content),
        size=len(content),
    )


class TestAssets:
    """Tests for asset loading."""

    def test_load_asset(self, site_dir: Path):
        """Test loading one asset."""
        asset = load_asset(site_dir, "img/logo.png", ContentTypeResolver())
        assert asset.content_type == "image/png"
        assert asset.fingerprint == content_hash((site_dir / "img" / "logo.png").read_bytes())
        assert asset.size == (site_dir / "img" / "logo.png").stat().st_size

    def test_build_assets_keeps_order(self, site_dir: Path):
        """Test parallel building keeps path order."""
        paths = ["error.html", "img/logo.png", "index.html"]
        assets = build_assets(site_dir, paths, workers=3)
        assert [a.relative_path for a in assets] == paths

    def test_vanished_file(self, site_dir: Path):
        """Test a file removed after scanning."""
        with pytest.raises(ScanError):
            load_asset(site_dir, "gone.html", ContentTypeResolver())


class TestDetermineAction:
    """Tests for determine_action."""

    def test_create_when_no_remote(self):
        """Test determining create action."""
        action = determine_action(_asset("index.html"), None, "index.html")
        assert action.action_type == ActionType.CREATE
        assert action.is_upload

    def test_skip_when_identical(self):
        """Test determining skip action."""
        asset = _asset("index.html")
        remote = RemoteObject("index.html", "text/html", asset.fingerprint)
        action = determine_action(asset, remote, "index.html")
        assert action.action_type == ActionType.SKIP
        assert not action.is_upload

    def test_update_on_fingerprint_change(self):
        """Test determining update on a new fingerprint."""
        asset = _asset("index.html", b"new")
        remote = RemoteObject("index.html", "text/html", content_hash(b"old"))
        assert determine_action(asset, remote, "index.html").action_type == ActionType.UPDATE

    def test_update_on_missing_fingerprint(self):
        """Test determining update when no fingerprint is stored."""
        action = determine_action(_asset("index.html"), RemoteObject("index.html", "text/html"), "index.html")
        assert action.action_type == ActionType.UPDATE
        assert "No stored fingerprint" in action.reason

    def test_update_on_content_type_change(self):
        """Test determining update on a new content type."""
        asset = _asset("index.html")
        remote = RemoteObject("index.html", "application/octet-stream", asset.fingerprint)
        action = determine_action(asset, remote, "index.html")
        assert action.action_type == ActionType.UPDATE
        assert "Content type" in action.reason

    def test_same_mtime_changed_content(self, temp_dir: Path):
        """A changed file with an unchanged mtime must still be updated."""
        old = temp_dir / "old.html"
        new = temp_dir / "index.html"
        old.write_text("version 1", encoding="utf-8")
        new.write_text("version 2", encoding="utf-8")
        os.utime(new, (1_700_000_000, 1_700_000_000))
        os.utime(old, (1_700_000_000, 1_700_000_000))

        asset = load_asset(temp_dir, "index.html", ContentTypeResolver())
        stale = load_asset(temp_dir, "old.html", ContentTypeResolver())
        remote = RemoteObject("index.html", "text/html", stale.fingerprint, size=asset.size)

        assert determine_action(asset, remote, "index.html").action_type == ActionType.UPDATE


class TestPlanSync:
    """Tests for plan_sync."""

    def test_mixed_plan(self):
        """Test a plan with every action type."""
        index = _asset("index.html", b"new")
        error = _asset("error.html", b"same")
        logo = _asset("img/logo.png", b"png", "image/png")
        remote = [
            RemoteObject("index.html", "text/html", content_hash(b"old")),
            RemoteObject("error.html", "text/html", error.fingerprint),
        ]

        plan = plan_sync([error, logo, index], remote)

        assert [(a.key, a.action_type) for a in plan.actions] == [
            ("error.html", ActionType.SKIP),
            ("img/logo.png", ActionType.CREATE),
            ("index.html", ActionType.UPDATE),
        ]
        assert [a.key for a in plan.uploads] == ["img/logo.png", "index.html"]
        assert plan.has_changes

    def test_prefix_applied_to_keys(self):
        """Test the prefix is applied to keys."""
        plan = plan_sync([_asset("index.html")], [], prefix="preview")
        assert plan.actions[0].key == "preview/index.html"
        assert plan.actions[0].relative_path == "index.html"

    def test_prune_candidates_reported(self):
        """Test remote-only keys become prune candidates."""
        asset = _asset("index.html")
        remote = [
            RemoteObject("index.html", "text/html", asset.fingerprint),
            RemoteObject("old/page.html", "text/html", "abc"),
            RemoteObject("about.html", "text/html", "def"),
        ]

        plan = plan_sync([asset], remote)

        assert [a.key for a in plan.prune_candidates] == ["about.html", "old/page.html"]
        assert all(a.action_type == ActionType.PRUNE for a in plan.prune_candidates)
        assert plan.count(ActionType.PRUNE) == 2
        assert not plan.has_changes

    def test_counts(self):
        """Test action counts."""
        plan = plan_sync([_asset("a.html"), _asset("b.html")], [])
        assert plan.count(ActionType.CREATE) == 2
        assert plan.count(ActionType.SKIP) == 0

    def test_empty(self):
        """Test an empty plan."""
        plan = plan_sync([], [])
        assert plan == SyncPlan()


class TestObjectSyncPlanner:
    """Tests for ObjectSyncPlanner."""

    def test_lists_under_prefix(self):
        """Test the listing uses the normalized prefix."""
        storage = MagicMock(spec=StorageService)
        storage.list.return_value = []

        plan = ObjectSyncPlanner(storage, "/preview").plan([_asset("index.html")])

        storage.list.assert_called_once_with("preview/")
        assert plan.actions[0].key == "preview/index.html"

    def test_listing_failure(self):
        """Test a storage listing error becomes a PlanError."""
        storage = MagicMock(spec=StorageService)
        storage.list.side_effect = StorageError("endpoint unreachable")

        with pytest.raises(PlanError, match="endpoint unreachable"):
            ObjectSyncPlanner(storage).plan([_asset("index.html")])

    def test_unexpected_listing_error(self):
        """Test a listing error outside the storage hierarchy still becomes a PlanError."""
        storage = MagicMock(spec=StorageService)
        storage.list.side_effect = ConnectionError("socket reset")

        with pytest.raises(PlanError, match="socket reset"):
            ObjectSyncPlanner(storage).plan([_asset("index.html")])
