"""Tests for storage module."""
import pytest

from heatmap.storage import FileMappingStore, MemoryMappingStore


def test_memory_store_roundtrip():
    """Test in-memory get and set."""
    store = MemoryMappingStore()

    assert store.get("mapping") is None
    store.set("mapping", b"{}")
    assert store.get("mapping") == b"{}"
    store.set("mapping", b'{"a": 1}')
    assert store.get("mapping") == b'{"a": 1}'


def test_file_store_missing_key(tmp_path):
    """Test reading a key that was never written."""
    store = FileMappingStore(tmp_path / "missing")

    assert store.get("mapping") is None


def test_file_store_creates_directory(tmp_path):
    """Test the directory is created on first write."""
    directory = tmp_path / "wifi_heatmap" / "entry"
    store = FileMappingStore(directory)

    store.set("mapping", b'{"Kitchen": {"x": 0.1, "y": 0.2}}')

    assert (directory / "mapping.json").read_bytes() == b'{"Kitchen": {"x": 0.1, "y": 0.2}}'
    assert store.get("mapping") == b'{"Kitchen": {"x": 0.1, "y": 0.2}}'


def test_file_store_overwrite_leaves_no_temp_files(tmp_path):
    """Test repeated writes replace the file in place."""
    store = FileMappingStore(tmp_path)

    store.set("mapping", b"first")
    store.set("mapping", b"second")

    assert store.get("mapping") == b"second"
    assert [path.name for path in tmp_path.iterdir()] == ["mapping.json"]


def test_file_store_read_error_propagates(tmp_path):
    """Test I/O errors are left to the caller."""
    (tmp_path / "mapping.json").mkdir()
    store = FileMappingStore(tmp_path)

    with pytest.raises(OSError):
        store.get("mapping")
