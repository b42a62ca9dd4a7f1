"""
Tests for CatalogStore - loading, editing, releasing and saving a source.
"""

import json
from datetime import datetime, timezone

import pytest

from altsource.catalog import CatalogStore
from altsource.models import AppEntry
from common.exceptions import (
    AppNotFoundError, CatalogNotFoundError, CatalogParseError,
    CatalogValidationError, DuplicateAppError,
)


def _new_app(bundle_id="com.example.Fresh") -> AppEntry:
    return AppEntry(
        name="Fresh",
        bundle_identifier=bundle_id,
        developer_name="Example Dev",
        version="1.0",
        version_date="2025-03-01",
        download_url="https://downloads.example.com/Fresh.ipa",
        localized_description="A fresh app.",
        icon_url="https://downloads.example.com/fresh.png",
        size=2048,
    )


class TestLoad:
    """Loading from disk."""

    @pytest.mark.unit
    def test_load(self, source_file):
        store = CatalogStore(source_file)
        catalog = store.load()

        assert catalog.name == "Flycast-iOS26"
        assert len(store.all()) == 2
        assert store.report.ok

    @pytest.mark.unit
    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogNotFoundError):
            CatalogStore(tmp_path / "nope.json").load()

    @pytest.mark.unit
    def test_bad_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ not json", encoding="utf-8")

        with pytest.raises(CatalogParseError) as excinfo:
            CatalogStore(path).load()
        assert excinfo.value.code == "CATALOG_PARSE_FAILED"

    @pytest.mark.unit
    def test_strict_load_rejects_invalid(self, write_source, flycast_source):
        flycast_source["apps"][0]["tintColor"] = "purple"
        path = write_source(flycast_source)

        with pytest.raises(CatalogValidationError) as excinfo:
            CatalogStore(path).load()
        assert excinfo.value.report.issues[0].path == "/apps/0/tintColor"

    @pytest.mark.unit
    def test_lenient_load_keeps_report(self, write_source, flycast_source):
        flycast_source["apps"][0]["tintColor"] = "purple"
        path = write_source(flycast_source)

        store = CatalogStore(path)
        store.load(strict=False)

        assert store.get("com.chachirie.FlycastiOS") is not None
        assert not store.report.ok

    @pytest.mark.unit
    def test_lenient_load_of_wrong_shape(self, write_source):
        path = write_source({"name": "x", "identifier": "a.b", "apps": "none"})

        with pytest.raises(CatalogParseError):
            CatalogStore(path).load(strict=False)

    @pytest.mark.unit
    def test_catalog_before_load(self, tmp_path):
        store = CatalogStore(tmp_path / "source.json")
        with pytest.raises(RuntimeError):
            store.catalog


class TestLookup:
    """get / search."""

    @pytest.mark.unit
    def test_get(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        assert store.get("com.example.NotesLab").name == "Notes Lab"
        assert store.get("com.example.Missing") is None

    @pytest.mark.unit
    def test_require_missing(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        with pytest.raises(AppNotFoundError):
            store.require("com.example.Missing")

    @pytest.mark.unit
    def test_search_by_subtitle(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        results = store.search("dreamcast")
        assert [a.bundle_identifier for a in results] == ["com.chachirie.FlycastiOS"]

    @pytest.mark.unit
    def test_search_by_developer(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        assert len(store.search("example dev")) == 1

    @pytest.mark.unit
    def test_search_excluding_beta(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        assert len(store.search()) == 2
        assert [a.name for a in store.search(include_beta=False)] == ["Flycast"]


class TestEdits:
    """add / remove / replace."""

    @pytest.mark.unit
    def test_add(self, source_file):
        store = CatalogStore(source_file)
        store.load()
        store.add(_new_app())

        assert store.all()[-1].bundle_identifier == "com.example.Fresh"

    @pytest.mark.unit
    def test_add_duplicate(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        with pytest.raises(DuplicateAppError):
            store.add(_new_app("com.example.NotesLab"))

    @pytest.mark.unit
    def test_remove(self, source_file):
        store = CatalogStore(source_file)
        store.load()
        removed = store.remove("com.example.NotesLab")

        assert removed.name == "Notes Lab"
        assert store.get("com.example.NotesLab") is None

    @pytest.mark.unit
    def test_remove_missing(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        with pytest.raises(AppNotFoundError):
            store.remove("com.example.Missing")

    @pytest.mark.unit
    def test_edits_leave_old_snapshot_alone(self, source_file):
        store = CatalogStore(source_file)
        before = store.load()
        store.remove("com.example.NotesLab")

        assert len(before.apps) == 2
        assert len(store.catalog.apps) == 1


class TestPublishRelease:
    """publish_release."""

    @pytest.mark.unit
    def test_release_updates_fields(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        release = store.publish_release(
            "com.chachirie.FlycastiOS",
            version="v1.1",
            download_url="https://github.com/chachillie/Flycast-iOS/releases/download/v1.1/FlycastiOS.ipa",
            version_date="2025-02-10",
            description="Bug fixes",
            size=8800000,
        )

        assert release.version == "v1.1"
        assert release.version_date == "2025-02-10"
        assert release.version_description == "Bug fixes"
        assert release.size == 8800000
        assert release.subtitle == "Dreamcast, Naomi and Atomiswave emulator."
        assert store.all()[0] is release

    @pytest.mark.unit
    def test_previous_entry_untouched(self, source_file):
        store = CatalogStore(source_file)
        store.load()
        previous = store.get("com.chachirie.FlycastiOS")

        store.publish_release(
            "com.chachirie.FlycastiOS", "v2.0", "https://example.com/v2.ipa",
        )

        assert previous.version == "v1.0"
        assert previous.download_url.endswith("v1.0-beta.1/FlycastiOS.ipa")

    @pytest.mark.unit
    def test_defaults(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        release = store.publish_release(
            "com.example.NotesLab", "0.4.0", "https://downloads.example.com/NotesLab-0.4.0.ipa",
        )

        assert release.version_date == datetime.now(timezone.utc).date().isoformat()
        assert release.size == 1024
        assert release.beta is True
        assert release.version_description is None

    @pytest.mark.unit
    def test_promote_out_of_beta(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        release = store.publish_release(
            "com.example.NotesLab", "1.0.0", "https://downloads.example.com/NotesLab-1.0.0.ipa",
            beta=False,
        )
        assert release.beta is False

    @pytest.mark.unit
    def test_unknown_app(self, source_file):
        store = CatalogStore(source_file)
        store.load()

        with pytest.raises(AppNotFoundError):
            store.publish_release("com.example.Missing", "1", "https://example.com/x.ipa")


class TestSave:
    """Saving snapshots."""

    @pytest.mark.unit
    def test_round_trip_is_byte_stable(self, tmp_path, two_app_source):
        path = tmp_path / "source.json"
        path.write_text(json.dumps(two_app_source, indent=2, ensure_ascii=False) + "\n",
                        encoding="utf-8")
        original = path.read_text(encoding="utf-8")

        store = CatalogStore(path)
        store.load()
        store.save()

        assert path.read_text(encoding="utf-8") == original

    @pytest.mark.unit
    def test_save_after_release(self, source_file):
        store = CatalogStore(source_file)
        store.load()
        store.publish_release(
            "com.chachirie.FlycastiOS", "v1.1", "https://example.com/v1.1.ipa",
            version_date="2025-02-10",
        )
        store.save()

        data = json.loads(source_file.read_text(encoding="utf-8"))
        assert data["apps"][0]["version"] == "v1.1"
        assert data["apps"][0]["downloadURL"] == "https://example.com/v1.1.ipa"

    @pytest.mark.unit
    def test_invalid_catalog_not_written(self, source_file):
        original = source_file.read_text(encoding="utf-8")
        store = CatalogStore(source_file)
        store.load()
        store.publish_release(
            "com.chachirie.FlycastiOS", "v1.1", "relative/path.ipa",
        )

        with pytest.raises(CatalogValidationError):
            store.save()
        assert source_file.read_text(encoding="utf-8") == original

    @pytest.mark.unit
    def test_backup(self, source_file):
        original = source_file.read_text(encoding="utf-8")
        store = CatalogStore(source_file)
        store.load()
        store.remove("com.example.NotesLab")
        store.save(backup=True)

        backup = source_file.with_name(source_file.name + ".bak")
        assert backup.read_text(encoding="utf-8") == original
        assert len(json.loads(source_file.read_text())["apps"]) == 1

    @pytest.mark.unit
    def test_create_new_source(self, tmp_path):
        path = tmp_path / "new" / "source.json"
        store = CatalogStore.create(path, name="My Source", identifier="com.example.source")
        store.add(_new_app())
        store.save()

        reloaded = CatalogStore(path)
        reloaded.load()
        assert reloaded.catalog.name == "My Source"
        assert reloaded.get("com.example.Fresh").size == 2048
