"""
Tests for storage backends and transaction support
"""

import pytest
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from dataclasses import dataclass

from simplets.storage import (
    InMemoryStorage, SQLiteStorage, StorageRecord, StorageError,
    DuplicateRecordError, AtomicBatch, create_storage
)


# Test data
test_data = {
    "id": 1,
    "name": "Test Record",
    "amount": 100,
    "created_at": datetime.now(timezone.utc).isoformat(),
}


@pytest.fixture(params=["memory", "sqlite"])
def storage(request):
    if request.param == "memory":
        backend = InMemoryStorage()
        yield backend
        backend.close()
    else:
        with tempfile.TemporaryDirectory() as temp_dir:
            backend = SQLiteStorage(Path(temp_dir) / "test.db")
            yield backend
            backend.close()


class TestStorageInterface:
    """Test basic storage operations on every backend"""

    def test_basic_operations(self, storage):
        """Test basic CRUD operations"""
        # Test save and load
        storage.save("test_table", "record_1", test_data)
        loaded = storage.load("test_table", "record_1")
        assert loaded == test_data

        # Test exists
        assert storage.exists("test_table", "record_1")
        assert not storage.exists("test_table", "non_existent")
        assert storage.load("test_table", "non_existent") is None

        # Test load_all
        storage.save("test_table", "record_2", {"id": 2, "name": "Other"})
        all_records = storage.load_all("test_table")
        assert len(all_records) == 2

        # Test find
        results = storage.find("test_table", {"name": "Test Record"})
        assert len(results) == 1
        assert results[0]["id"] == 1
        assert storage.find("test_table", {"name": "Missing"}) == []

        # Test count
        assert storage.count("test_table") == 2

    def test_save_overwrites(self, storage):
        storage.save("test_table", "record_1", {"id": 1, "value": "a"})
        storage.save("test_table", "record_1", {"id": 1, "value": "b"})

        assert storage.count("test_table") == 1
        assert storage.load("test_table", "record_1")["value"] == "b"

    def test_insert_rejects_duplicates(self, storage):
        storage.insert("test_table", "record_1", {"id": 1})

        with pytest.raises(DuplicateRecordError) as exc_info:
            storage.insert("test_table", "record_1", {"id": 1, "other": True})

        assert exc_info.value.record_id == "record_1"
        assert isinstance(exc_info.value, StorageError)
        assert storage.load("test_table", "record_1") == {"id": 1}

    def test_load_all_keeps_insertion_order(self, storage):
        for record_id in ["c", "a", "b"]:
            storage.save("test_table", record_id, {"key": record_id})
        # Updating a record does not move it
        storage.save("test_table", "c", {"key": "c", "updated": True})

        assert [r["key"] for r in storage.load_all("test_table")] == ["c", "a", "b"]

    def test_loaded_records_are_copies(self, storage):
        storage.save("test_table", "record_1", {"id": 1, "tags": ["x"]})
        loaded = storage.load("test_table", "record_1")
        loaded["tags"].append("y")

        assert storage.load("test_table", "record_1")["tags"] == ["x"]


class TestTransactionSupport:
    """Test atomic transaction support"""

    def test_atomic_commit(self, storage):
        """Test successful transaction"""
        with storage.atomic():
            storage.save("test_table", "record_1", test_data)
            storage.save("test_table", "record_2", {"id": 2})

        assert storage.count("test_table") == 2

    def test_atomic_rollback(self, storage):
        """Test transaction rollback discards every write"""
        storage.save("test_table", "record_1", {"id": 1, "value": "original"})

        with pytest.raises(ValueError):
            with storage.atomic():
                storage.save("test_table", "record_1", {"id": 1, "value": "changed"})
                storage.save("test_table", "record_2", {"id": 2})
                raise ValueError("Simulated error")

        assert storage.count("test_table") == 1
        assert storage.load("test_table", "record_1")["value"] == "original"

    def test_nested_atomic_joins_outer(self, storage):
        storage.save("test_table", "record_1", {"id": 1})

        with pytest.raises(ValueError):
            with storage.atomic():
                with storage.atomic():
                    storage.save("test_table", "record_2", {"id": 2})
                raise ValueError("Simulated error")

        assert not storage.exists("test_table", "record_2")

    def test_apply_batch(self, storage):
        batch = AtomicBatch()
        batch.save("accounts", "1", {"balance": -5})
        batch.save("accounts", "2", {"balance": 5})
        batch.insert("transfers", "1", {"amount": 5})
        assert len(batch) == 3

        storage.apply_batch(batch)

        assert storage.load("accounts", "1") == {"balance": -5}
        assert storage.load("accounts", "2") == {"balance": 5}
        assert storage.load("transfers", "1") == {"amount": 5}

    def test_apply_batch_is_all_or_nothing(self, storage):
        storage.save("accounts", "1", {"balance": 0})
        storage.insert("transfers", "1", {"amount": 1})

        batch = AtomicBatch()
        batch.save("accounts", "1", {"balance": -5})
        batch.insert("transfers", "1", {"amount": 5})  # duplicate id

        with pytest.raises(DuplicateRecordError):
            storage.apply_batch(batch)

        assert storage.load("accounts", "1") == {"balance": 0}
        assert storage.load("transfers", "1") == {"amount": 1}

    def test_sqlite_transaction_survives_reopen(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            db_path = Path(temp_dir) / "test.db"
            storage = SQLiteStorage(db_path)
            with storage.atomic():
                storage.save("test_table", "record_1", test_data)
            storage.close()

            reopened = SQLiteStorage(db_path)
            assert reopened.load("test_table", "record_1") == test_data
            reopened.close()

    def test_sqlite_closed_storage_raises(self):
        storage = SQLiteStorage(":memory:")
        storage.close()

        with pytest.raises(StorageError):
            storage.load("test_table", "record_1")
        with pytest.raises(StorageError):
            storage.insert("test_table", "record_1", {})
        with pytest.raises(StorageError):
            with storage.atomic():
                pass


class TestStorageRecord:
    """Test record serialization helpers"""

    def test_storage_record_serialization(self):
        @dataclass
        class TestRecord(StorageRecord):
            name: str
            amount: int

        now = datetime.now(timezone.utc)
        record = TestRecord(id=7, created_at=now, name="Test", amount=-20)

        data = record.to_dict()
        assert data["id"] == 7
        assert data["created_at"] == now.isoformat()
        assert data["amount"] == -20

        restored = TestRecord.from_dict(data)
        assert restored == record
        assert isinstance(data["created_at"], str)


class TestCreateStorage:
    """Test backend selection from a database URL"""

    def test_memory_url(self):
        assert isinstance(create_storage("memory://"), InMemoryStorage)

    def test_sqlite_url(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            storage = create_storage(f"sqlite:///{temp_dir}/ledger.sqlite")
            assert isinstance(storage, SQLiteStorage)
            assert storage.db_path.endswith("ledger.sqlite")
            storage.close()

    def test_sqlite_memory_url(self):
        storage = create_storage("sqlite:///:memory:")
        assert storage.db_path == ":memory:"
        storage.close()

    def test_unsupported_url(self):
        with pytest.raises(ValueError, match="Unsupported database URL"):
            create_storage("postgresql://localhost/ledger")
