"""Tests for the content store."""

import os
import time

import pytest

from tattoo_stencil.errors import AssetNotFoundError, NotFoundError, StorageError
from tattoo_stencil.services.storage_service import AssetCategory, ContentStore


def test_initialize_creates_namespaces_and_is_idempotent(tmp_path):
    store = ContentStore(tmp_path / "assets")
    store.initialize()
    store.initialize()
    for name in ("originals", "processed", "exports", "cache"):
        assert (tmp_path / "assets" / name).is_dir()


def test_save_returns_category_prefixed_logical_path(content_store):
    assert content_store.save(AssetCategory.ORIGINAL, "abc", b"x", "jpg") == "originals/abc.jpg"
    assert content_store.save(AssetCategory.PROCESSED, "abc", b"x") == "processed/abc.png"
    assert content_store.save(AssetCategory.THUMBNAIL, "abc", b"x") == "cache/abc-thumb.jpg"
    assert content_store.save(AssetCategory.EXPORT, "abc", b"x", ".pdf") == "exports/abc.pdf"


def test_save_initializes_lazily(tmp_path):
    store = ContentStore(tmp_path / "fresh")
    path = store.save(AssetCategory.PROCESSED, "a", b"data")
    assert store.read(path) == b"data"


def test_write_overwrites_in_place(content_store):
    path = content_store.save(AssetCategory.PROCESSED, "abc", b"first")
    content_store.write(path, b"second")
    assert content_store.read(path) == b"second"
    assert content_store.list(AssetCategory.PROCESSED) == [path]


def test_read_missing_raises_not_found(content_store):
    with pytest.raises(AssetNotFoundError):
        content_store.read("processed/missing.png")
    with pytest.raises(NotFoundError):
        content_store.read("processed/missing.png")


def test_delete_is_idempotent(content_store):
    path = content_store.save(AssetCategory.ORIGINAL, "abc", b"x", "png")
    content_store.delete(path)
    content_store.delete(path)
    assert not content_store.exists(path)


def test_paths_cannot_escape_the_store(content_store):
    with pytest.raises(StorageError):
        content_store.read("../outside.txt")
    with pytest.raises(StorageError):
        content_store.write("processed/../../outside.png", b"x")


def test_size_by_category(content_store):
    content_store.save(AssetCategory.ORIGINAL, "a", b"12345", "png")
    content_store.save(AssetCategory.THUMBNAIL, "a", b"123")
    sizes = content_store.size_by_category()
    assert sizes == {"originals": 5, "processed": 0, "exports": 0, "cache": 3}


def test_list_skips_staging_files(content_store, tmp_path):
    content_store.save(AssetCategory.PROCESSED, "a", b"x")
    (tmp_path / "assets" / "processed" / ".a.png.deadbeef.tmp").write_bytes(b"partial")
    assert content_store.list(AssetCategory.PROCESSED) == ["processed/a.png"]


def test_prune_expired_removes_only_old_exports(content_store):
    old = content_store.save(AssetCategory.EXPORT, "old", b"x", "pdf")
    fresh = content_store.save(AssetCategory.EXPORT, "fresh", b"x", "pdf")
    kept_original = content_store.save(AssetCategory.ORIGINAL, "old", b"x", "png")

    eight_days_ago = time.time() - 8 * 24 * 3600
    os.utime(content_store.resolve(old), (eight_days_ago, eight_days_ago))
    os.utime(content_store.resolve(kept_original), (eight_days_ago, eight_days_ago))

    assert content_store.prune_expired() is None
    assert not content_store.exists(old)
    assert content_store.exists(fresh)
    assert content_store.exists(kept_original)


def test_prune_expired_without_exports_dir(tmp_path):
    ContentStore(tmp_path / "never-initialized").prune_expired()
