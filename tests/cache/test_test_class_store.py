"""Tests for the per-org test class index."""

from pathlib import Path

from logbridge.cache.test_classes import TestClassStore


class TestTestClassStore:
    def test_unknown_alias_is_empty(self, tmp_path: Path) -> None:
        assert TestClassStore(tmp_path).get("dev") == []

    def test_put_replaces_listing(self, tmp_path: Path) -> None:
        store = TestClassStore(tmp_path)
        store.put("dev", [{"id": "01p1", "name": "OldTest"}])

        store.put("dev", [{"id": "01p2", "name": "NewTest"}])

        assert store.get("dev") == [{"id": "01p2", "name": "NewTest"}]

    def test_invalid_entry_is_empty(self, tmp_path: Path) -> None:
        store = TestClassStore(tmp_path)
        (tmp_path / "test-classes.json").write_text('{"dev": {"classes": "AccountTest"}}')

        assert store.get("dev") == []

    def test_save_methods_on_cached_class(self, tmp_path: Path) -> None:
        store = TestClassStore(tmp_path)
        store.put("dev", [{"id": "01p1", "name": "AccountTest"}])

        assert store.save_methods("dev", "AccountTest", ["testInsert", "testUpdate"]) is True
        assert store.get("dev")[0]["methods"] == ["testInsert", "testUpdate"]

    def test_save_methods_on_unknown_class(self, tmp_path: Path) -> None:
        store = TestClassStore(tmp_path)

        assert store.save_methods("dev", "Missing", ["t"]) is False

    def test_clear(self, tmp_path: Path) -> None:
        store = TestClassStore(tmp_path)
        store.put("dev", [{"name": "A"}])
        store.put("qa", [{"name": "B"}])

        store.clear("dev")
        assert store.get("dev") == []
        assert store.get("qa") == [{"name": "B"}]

        store.clear_all()
        assert store.get("qa") == []
