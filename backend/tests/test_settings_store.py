import json
from concurrent.futures import ThreadPoolExecutor
import os

import pytest

from backoffice.deps import store_for
from backoffice.errors import StorageError
from backoffice.services import settings_store as store_mod
from backoffice.services.settings_store import FlatFileStore, import_settings


def test_get_set_delete(domain_store):
    assert domain_store.get("a.test") is None
    assert domain_store.set("a.test", {"site_url": "a.test", "site_name": "A"}) is True
    assert domain_store.get("a.test") == {"site_url": "a.test", "site_name": "A"}
    assert dict(domain_store.items()) == {"a.test": {"site_url": "a.test", "site_name": "A"}}
    assert domain_store.delete("a.test") is True
    assert domain_store.delete("a.test") is False
    assert domain_store.set("", {}) is False


def test_failed_write_leaves_previous_file(tmp_path, monkeypatch):
    store = FlatFileStore(tmp_path / "domain.json")
    store.set("a.test", {"site_url": "a.test"})
    before = (tmp_path / "domain.json").read_text(encoding="utf-8")

    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(store_mod.os, "replace", boom)
    assert store.set("b.test", {"site_url": "b.test"}) is False

    assert (tmp_path / "domain.json").read_text(encoding="utf-8") == before
    assert sorted(os.listdir(tmp_path)) == ["domain.json"]


def test_import_overwrites_matching_keys(domain_store):
    domain_store.set("a.test", {"site_url": "a.test", "site_name": "old"})
    domain_store.set("keep.test", {"site_url": "keep.test", "site_name": "kept"})

    imported, skipped = import_settings(domain_store, "a.test$new$k$d$t$h$a$m\nbroken\n\n")

    assert (imported, skipped) == (1, [2])
    assert domain_store.get("a.test")["site_name"] == "new"
    assert domain_store.get("keep.test")["site_name"] == "kept"
    on_disk = json.loads(domain_store.path.read_text(encoding="utf-8"))
    assert set(on_disk) == {"a.test", "keep.test"}


def test_import_write_failure_raises(domain_store, monkeypatch):
    monkeypatch.setattr(domain_store, "set_many", lambda rows: False)
    with pytest.raises(StorageError):
        import_settings(domain_store, "a.test$A$k$d$t$h$a$m\n")


def test_corrupt_file_raises_storage_error(domain_store):
    domain_store.path.parent.mkdir(parents=True, exist_ok=True)
    domain_store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        domain_store.get("a.test")
    with pytest.raises(StorageError):
        import_settings(domain_store, "a.test$A$k$d$t$h$a$m\n")
    assert domain_store.path.read_text(encoding="utf-8") == "{not json"


def test_store_for_shares_one_instance_per_path(tmp_path):
    path = str(tmp_path / "domain.json")
    assert store_for(path) is store_for(path)

    def write(n):
        store_for(path).set(f"site{n}.test", {"site_url": f"site{n}.test"})

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(write, range(40)))

    assert len(dict(store_for(path).items())) == 40
