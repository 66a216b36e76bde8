"""Tests for the record store interface and the encrypted file store."""

import os
import platform
import stat
from unittest.mock import patch

import pytest

from goodhackers.errors import CorruptionError, PersistenceError
from goodhackers.storage import EncryptedFileStore

from conftest import MemoryStore


class TestStagedWrites:

    def test_commit_applies_in_order(self):
        store = MemoryStore()
        store.data["old"] = "1"
        with store.staged() as staged:
            staged.delete("old")
            staged.set("new", "2")
            staged.set("new", "3")
        assert store.data == {"new": "3"}
        assert store.writes == [("delete", "old"), ("set", "new"), ("set", "new")]

    def test_nothing_written_when_block_raises(self):
        store = MemoryStore()
        with pytest.raises(RuntimeError):
            with store.staged() as staged:
                staged.set("a", "1")
                raise RuntimeError("abort")
        assert store.data == {}
        assert store.writes == []


class TestEncryptedFileStore:

    def test_missing_key_is_none(self, file_store):
        assert file_store.get("nope") is None

    def test_set_get_delete(self, file_store):
        file_store.set("k", "v")
        assert file_store.get("k") == "v"
        file_store.delete("k")
        assert file_store.get("k") is None

    def test_delete_absent_key_is_noop(self, file_store):
        file_store.delete("never-set")
        assert not os.path.exists(file_store.filepath)

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "vault.enc")
        EncryptedFileStore(path).set("goodhackers_master_password", "abc")
        assert EncryptedFileStore(path).get("goodhackers_master_password") == "abc"

    def test_contents_encrypted_on_disk(self, file_store):
        file_store.set("account", "very-recognisable-plaintext")
        with open(file_store.filepath, "rb") as f:
            raw = f.read()
        assert raw.startswith(EncryptedFileStore.MAGIC_BYTES)
        assert b"very-recognisable-plaintext" not in raw
        assert b"account" not in raw

    def test_device_key_created(self, file_store):
        file_store.set("k", "v")
        with open(file_store.key_path, "rb") as f:
            assert len(f.read()) == 32

    @pytest.mark.skipif(platform.system() == "Windows", reason="POSIX permissions")
    def test_owner_only_permissions(self, file_store):
        file_store.set("k", "v")
        for path in (file_store.filepath, file_store.key_path):
            assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_staged_commit_is_single_write(self, file_store):
        file_store.set("a", "1")
        with patch.object(file_store, "_write_all", wraps=file_store._write_all) as write:
            with file_store.staged() as staged:
                staged.delete("a")
                staged.set("b", "2")
                staged.set("c", "3")
        assert write.call_count == 1
        assert file_store.get("a") is None
        assert file_store.get("b") == "2"
        assert file_store.get("c") == "3"

    def test_bad_magic_is_corruption(self, file_store):
        file_store.set("k", "v")
        with open(file_store.filepath, "wb") as f:
            f.write(b"JUNKJUNKJUNK")
        with pytest.raises(CorruptionError):
            file_store.get("k")

    def test_truncated_file_is_corruption(self, file_store):
        file_store.set("k", "v")
        with open(file_store.filepath, "rb") as f:
            raw = f.read()
        with open(file_store.filepath, "wb") as f:
            f.write(raw[:10])
        with pytest.raises(CorruptionError):
            file_store.get("k")

    def test_tampered_ciphertext_is_corruption(self, file_store):
        file_store.set("k", "v")
        with open(file_store.filepath, "rb") as f:
            raw = bytearray(f.read())
        raw[-1] ^= 0xFF
        with open(file_store.filepath, "wb") as f:
            f.write(bytes(raw))
        with pytest.raises(CorruptionError):
            file_store.get("k")

    def test_wrong_device_key_is_corruption(self, tmp_path):
        path = str(tmp_path / "vault.enc")
        EncryptedFileStore(path).set("k", "v")
        other_key = tmp_path / "other.key"
        other_key.write_bytes(os.urandom(32))
        other = EncryptedFileStore(path, key_path=str(other_key))
        with pytest.raises(CorruptionError):
            other.get("k")

    def test_missing_device_key_is_corruption(self, file_store):
        file_store.set("k", "v")
        with open(file_store.filepath, "rb") as f:
            before = f.read()
        os.remove(file_store.key_path)

        reopened = EncryptedFileStore(file_store.filepath, key_path=file_store.key_path)
        with pytest.raises(CorruptionError):
            reopened.get("k")
        with pytest.raises(CorruptionError):
            reopened.set("k2", "v2")
        assert not os.path.exists(file_store.key_path)
        with open(file_store.filepath, "rb") as f:
            assert f.read() == before

    def test_write_failure_is_persistence_error(self, file_store):
        with patch("goodhackers.storage.shutil.move", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                file_store.set("k", "v")
        assert not os.path.exists(file_store.filepath + ".tmp")
        assert file_store.get("k") is None

    def test_read_failure_is_persistence_error(self, file_store):
        file_store.set("k", "v")
        with patch("builtins.open", side_effect=PermissionError("denied")):
            with pytest.raises(PersistenceError):
                file_store.get("k")
