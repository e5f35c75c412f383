"""
Tests for persistence — the JSON instance store.
"""

import json
from pathlib import Path

import pytest

from toolhub.core.errors import ConflictError, NotFoundError, StoreError
from toolhub.core.models import SSHConfig, ToolInstance
from toolhub.core.persistence.instance_store import InstanceStore, default_store_path


def _local(tool_id: str = "codex", ts: int = 1, **kw) -> ToolInstance:
    return ToolInstance.create_local(tool_id, tool_id.title(), installed=True, now=ts, **kw)


class TestInstanceStore:
    def test_init_creates_file(self, tmp_path: Path):
        path = tmp_path / "deep" / "tool_instances.json"
        store = InstanceStore(path)
        store.init_tables()

        assert path.is_file()
        data = json.loads(path.read_text())
        assert data == {"schema_version": 1, "instances": []}

    def test_add_and_reload(self, tmp_path: Path):
        path = tmp_path / "tool_instances.json"
        store = InstanceStore(path)
        store.init_tables()
        store.add_instance(_local(version="0.65.0"))

        reloaded = InstanceStore(path)
        inst = reloaded.get_instance("codex-local-1")
        assert inst is not None
        assert inst.version == "0.65.0"

    def test_add_duplicate_conflicts(self, store):
        store.add_instance(_local())
        with pytest.raises(ConflictError):
            store.add_instance(_local())

    def test_upsert_replaces(self, store):
        store.upsert_instance(_local(version="1"))
        store.upsert_instance(_local(version="2"))
        assert len(store.get_all_instances()) == 1
        assert store.get_instance("codex-local-1").version == "2"

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            store.update_instance(_local())

    def test_delete(self, store):
        store.add_instance(_local())
        store.delete_instance("codex-local-1")
        assert not store.instance_exists("codex-local-1")
        store.delete_instance("codex-local-1")  # no-op

    def test_local_queries(self, store):
        assert store.has_local_tools() is False
        store.add_instance(ToolInstance.create_ssh("codex", "CodeX", SSHConfig(host="h", user="u")))
        assert store.has_local_tools() is False
        store.add_instance(_local())
        assert store.has_local_tools() is True
        assert [i.instance_id for i in store.get_local_instances()] == ["codex-local-1"]

    def test_corrupt_file_moved_aside(self, tmp_path: Path):
        path = tmp_path / "tool_instances.json"
        path.write_text("not json at all {{{")
        store = InstanceStore(path)
        assert store.get_all_instances() == []
        assert (tmp_path / "tool_instances.json.corrupt").is_file()

    def test_no_temp_files_left(self, tmp_path: Path):
        store = InstanceStore(tmp_path / "tool_instances.json")
        store.init_tables()
        store.add_instance(_local())
        assert list(tmp_path.glob(".instances_*.tmp")) == []

    def test_write_failure_rolls_back(self, store, monkeypatch):
        def fail():
            raise StoreError("disk full")

        monkeypatch.setattr(store, "_save", fail)
        with pytest.raises(StoreError):
            store.add_instance(_local())
        assert store.get_all_instances() == []

    def test_default_store_path(self, tmp_path: Path):
        assert default_store_path(tmp_path) == tmp_path / "tool_instances.json"
