"""Unit tests for profile resolution (manifest.profiles -> artifact selection)."""

from __future__ import annotations

from sitepack.core.package_validator import resolve_profile
from sitepack.models.documents import Manifest

CATALOG_IDS = {"a", "b", "c"}


def _manifest(**extra) -> Manifest:
    return Manifest.from_document({"artifacts": ["a", "b"], **extra})


class TestNoProfile:
    def test_everything_selected(self):
        selection = resolve_profile(_manifest(), CATALOG_IDS, None)
        assert selection.selected is None
        assert selection.includes("c")
        assert selection.messages == []

    def test_empty_profile_name_means_no_profile(self):
        assert resolve_profile(_manifest(), CATALOG_IDS, "").selected is None


class TestProfileErrors:
    def test_no_manifest(self):
        selection = resolve_profile(None, CATALOG_IDS, "core")
        assert [m.code for m in selection.messages] == ["PROFILE_NO_MANIFEST"]
        # Without a manifest nothing is filtered.
        assert selection.selected is None

    def test_profiles_not_declared(self):
        selection = resolve_profile(_manifest(), CATALOG_IDS, "core")
        assert [m.code for m in selection.messages] == ["PROFILE_FIELD_MISSING"]
        assert selection.selected == frozenset({"a", "b"})

    def test_invalid_profiles_type(self):
        selection = resolve_profile(_manifest(profiles=5), CATALOG_IDS, "core")
        assert [m.code for m in selection.messages] == ["PROFILE_FIELD_INVALID"]
        assert not selection.includes("c")


class TestProfileList:
    """A flat list only gates membership; the manifest artifacts stay selected."""

    def test_declared(self):
        selection = resolve_profile(_manifest(profiles=["core"]), CATALOG_IDS, "core")
        assert selection.messages == []
        assert selection.selected == frozenset({"a", "b"})
        assert not selection.includes("c")

    def test_not_declared(self):
        selection = resolve_profile(_manifest(profiles=["core"]), CATALOG_IDS, "full")
        assert [m.code for m in selection.messages] == ["PROFILE_NOT_DECLARED"]
        assert selection.selected == frozenset({"a", "b"})


class TestProfileMap:
    def test_selects_listed_ids(self):
        selection = resolve_profile(
            _manifest(profiles={"lite": ["c"]}), CATALOG_IDS, "lite"
        )
        assert selection.messages == []
        assert selection.selected == frozenset({"c"})
        assert selection.includes("c")
        assert not selection.includes("a")

    def test_unknown_key(self):
        selection = resolve_profile(
            _manifest(profiles={"lite": ["c"]}), CATALOG_IDS, "full"
        )
        assert [m.code for m in selection.messages] == ["PROFILE_NOT_DECLARED"]

    def test_value_not_an_array(self):
        selection = resolve_profile(
            _manifest(profiles={"lite": "c"}), CATALOG_IDS, "lite"
        )
        assert [m.code for m in selection.messages] == ["PROFILE_MAP_INVALID"]

    def test_ids_missing_from_catalog(self):
        selection = resolve_profile(
            _manifest(profiles={"lite": ["a", "ghost", "ghost"]}), CATALOG_IDS, "lite"
        )
        assert selection.absent_ids == ["ghost"]
        assert [m.code for m in selection.messages] == ["PROFILE_ARTIFACT_MISSING"]
        assert selection.messages[0].context == {"artifactId": "ghost", "profile": "lite"}

    def test_includes_rejects_missing_id(self):
        selection = resolve_profile(
            _manifest(profiles={"lite": ["a"]}), CATALOG_IDS, "lite"
        )
        assert not selection.includes(None)
