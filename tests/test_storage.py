"""
Tests for the storage layer: backends, collection loading and the unit of work.
"""

import json
import time
from datetime import date

import pytest

from ledgerbook.models import Customer, Transaction
from ledgerbook.services.storage import (
    Collection,
    CollectionStore,
    GoogleSheetsKeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    StorageError,
)


class FakeWorksheet:
    """Minimal stand-in for a gspread worksheet."""
    
    def __init__(self):
        self.rows = [["key", "value"]]
    
    def get_all_values(self):
        return [list(row) for row in self.rows]
    
    def append_row(self, row, value_input_option=None):
        self.rows.append(list(row))
    
    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = value
    
    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self):
        self.sheet = FakeWorksheet()
    
    def get_store_sheet(self):
        return self.sheet


class FlakySheetsClient(FakeSheetsClient):
    """Fails the first `failures` sheet lookups."""
    
    def __init__(self, failures=1):
        super().__init__()
        self.failures = failures
        self.calls = 0
    
    def get_store_sheet(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("quota exceeded")
        return self.sheet


class TestCollectionStore:
    """Tests for typed collection access."""
    
    def test_missing_collection_is_empty(self, store):
        """Test that an absent key loads as an empty list."""
        assert store.load(Collection.CUSTOMERS, Customer) == []
    
    def test_save_and_load(self, store):
        """Test that saved records load back."""
        customer = Customer(user_id="u1", name="Asha")
        store.save(Collection.CUSTOMERS, [customer])
        loaded = store.load(Collection.CUSTOMERS, Customer)
        assert [c.id for c in loaded] == [customer.id]
    
    def test_uses_prefixed_keys(self, kv):
        """Test the physical key layout."""
        store = CollectionStore(kv, key_prefix="kb_")
        store.save(Collection.SALE_BILLS, [])
        assert "kb_sale_bills" in kv.keys()
    
    def test_corrupt_json_is_empty(self, kv, store):
        """Test that unparsable data degrades to an empty collection."""
        kv.write("kb_customers", "{not json")
        assert store.load(Collection.CUSTOMERS, Customer) == []
    
    def test_non_list_is_empty(self, kv, store):
        """Test that a non-array value degrades to an empty collection."""
        kv.write("kb_customers", json.dumps({"id": "c1"}))
        assert store.load(Collection.CUSTOMERS, Customer) == []
    
    def test_invalid_records_are_skipped(self, kv, store):
        """Test that only the malformed records are dropped."""
        kv.write("kb_customers", json.dumps([
            {"id": "c1", "userId": "u1", "name": "Asha"},
            {"id": "c2"},
            "garbage",
        ]))
        loaded = store.load(Collection.CUSTOMERS, Customer)
        assert [c.id for c in loaded] == ["c1"]
    
    def test_degradation_stays_out_of_the_audit_trail(self, kv, bookkeeper, audit_storage):
        """Test that unreadable data is only logged, never recorded as an audit event."""
        kv.write("kb_customers", "{not json")
        kv.write("kb_transactions", json.dumps([{"id": "t1"}]))
        assert bookkeeper.customers.list_customers("user-1") == []
        assert bookkeeper.transactions.list_by_user("user-1") == []
        assert audit_storage.get_recent_events() == []
    
    def test_current_user_round_trip(self, store):
        """Test the single-record current user key."""
        from ledgerbook.models import User
        
        assert store.load_current_user() is None
        user = User(email="a@b.c", business_name="Shop")
        store.save_current_user(user)
        assert store.load_current_user().id == user.id
        store.clear_current_user()
        assert store.load_current_user() is None
    
    def test_corrupt_current_user_is_none(self, kv, store):
        """Test that a broken current user record reads as logged out."""
        kv.write("kb_current_user", "nope")
        assert store.load_current_user() is None


class TestUnitOfWork:
    """Tests for staged multi-collection writes."""
    
    def _txn(self):
        return Transaction(
            customer_id="c1", user_id="u1", amount=10, kind="gave", entry_date=date(2024, 1, 1)
        )
    
    def test_writes_are_deferred_until_exit(self, kv, store):
        """Test that nothing reaches the backend inside the block."""
        with store.unit_of_work():
            store.save(Collection.CUSTOMERS, [Customer(user_id="u1", name="Asha")])
            store.save(Collection.TRANSACTIONS, [self._txn()])
            assert kv.read("kb_customers") is None
            # reads inside the block see the staged data
            assert len(store.load(Collection.CUSTOMERS, Customer)) == 1
        
        assert kv.read("kb_customers") is not None
        assert kv.read("kb_transactions") is not None
    
    def test_exception_discards_everything(self, kv, store):
        """Test that a failing block writes nothing."""
        with pytest.raises(RuntimeError):
            with store.unit_of_work():
                store.save(Collection.CUSTOMERS, [Customer(user_id="u1", name="Asha")])
                raise RuntimeError("boom")
        
        assert kv.read("kb_customers") is None
        assert store.in_unit_of_work is False
    
    def test_nested_blocks_flush_once(self, kv, store):
        """Test that an inner block joins the outer one."""
        with store.unit_of_work():
            with store.unit_of_work():
                store.save(Collection.CUSTOMERS, [])
            assert kv.write_count == 0
        assert kv.write_count == 1
    
    def test_staged_removal(self, kv, store):
        """Test that removals are staged too."""
        kv.write("kb_current_user", "{}")
        with store.unit_of_work():
            store.clear_current_user()
            assert store.read_raw("current_user") is None
            assert kv.read("kb_current_user") == "{}"
        assert kv.read("kb_current_user") is None


class TestInMemoryKeyValueStore:
    """Tests for the dict-backed store."""
    
    def test_basic_operations(self):
        """Test read, write, keys and remove."""
        kv = InMemoryKeyValueStore({"a": "1"})
        kv.write("b", "2")
        assert kv.read("a") == "1"
        assert sorted(kv.keys()) == ["a", "b"]
        kv.remove("a")
        kv.remove("missing")
        assert kv.read("a") is None


class TestJsonFileKeyValueStore:
    """Tests for the file-per-key store."""
    
    def test_write_and_read(self, tmp_path):
        """Test that values persist as files."""
        kv = JsonFileKeyValueStore(tmp_path / "data")
        kv.write("kb_customers", "[]")
        assert kv.read("kb_customers") == "[]"
        assert (tmp_path / "data" / "kb_customers.json").exists()
    
    def test_missing_key(self, tmp_path):
        """Test that an absent key reads as None."""
        kv = JsonFileKeyValueStore(tmp_path)
        assert kv.read("kb_users") is None
        assert list(kv.keys()) == []
    
    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test that writes replace the file atomically."""
        kv = JsonFileKeyValueStore(tmp_path)
        kv.write("kb_users", "[1]")
        kv.write("kb_users", "[2]")
        assert kv.read("kb_users") == "[2]"
        assert [p.name for p in tmp_path.iterdir()] == ["kb_users.json"]
    
    def test_keys_and_remove(self, tmp_path):
        """Test listing and removing keys."""
        kv = JsonFileKeyValueStore(tmp_path)
        kv.write("kb_users", "[]")
        kv.write("kb_customers", "[]")
        assert list(kv.keys()) == ["kb_customers", "kb_users"]
        kv.remove("kb_users")
        kv.remove("kb_users")
        assert list(kv.keys()) == ["kb_customers"]
    
    def test_rejects_path_like_keys(self, tmp_path):
        """Test that keys cannot escape the data directory."""
        kv = JsonFileKeyValueStore(tmp_path)
        with pytest.raises(StorageError):
            kv.write("../evil", "x")
    
    def test_collection_store_over_files(self, tmp_path):
        """Test the collection layer on top of the file store."""
        store = CollectionStore(JsonFileKeyValueStore(tmp_path))
        store.save(Collection.CUSTOMERS, [Customer(user_id="u1", name="Asha")])
        reopened = CollectionStore(JsonFileKeyValueStore(tmp_path))
        assert reopened.load(Collection.CUSTOMERS, Customer)[0].name == "Asha"


class TestGoogleSheetsKeyValueStore:
    """Tests for the Sheets backend against a fake worksheet."""
    
    def test_insert_then_update(self):
        """Test that a second write updates the existing row."""
        client = FakeSheetsClient()
        kv = GoogleSheetsKeyValueStore(client)
        kv.write("kb_users", "[]")
        kv.write("kb_users", "[1]")
        assert client.sheet.rows == [["key", "value"], ["kb_users", "[1]"]]
        assert kv.read("kb_users") == "[1]"
    
    def test_missing_key(self):
        """Test that an absent key reads as None."""
        kv = GoogleSheetsKeyValueStore(FakeSheetsClient())
        assert kv.read("kb_users") is None
    
    def test_keys_and_remove(self):
        """Test listing and deleting rows."""
        client = FakeSheetsClient()
        kv = GoogleSheetsKeyValueStore(client)
        kv.write("kb_users", "[]")
        kv.write("kb_customers", "[]")
        assert list(kv.keys()) == ["kb_users", "kb_customers"]
        kv.remove("kb_users")
        kv.remove("kb_users")
        assert list(kv.keys()) == ["kb_customers"]
    
    def test_collection_store_over_sheets(self):
        """Test the collection layer on top of the Sheets store."""
        store = CollectionStore(GoogleSheetsKeyValueStore(FakeSheetsClient()))
        store.save(Collection.CUSTOMERS, [Customer(user_id="u1", name="Asha")])
        assert store.load(Collection.CUSTOMERS, Customer)[0].name == "Asha"
    
    def test_remove_and_keys_are_retried(self, monkeypatch):
        """Test that transient Sheets failures on remove and keys are retried."""
        monkeypatch.setattr(time, "sleep", lambda seconds: None)
        client = FlakySheetsClient(failures=0)
        kv = GoogleSheetsKeyValueStore(client)
        kv.write("kb_users", "[]")
        kv.write("kb_customers", "[]")
        
        client.calls, client.failures = 0, 1
        kv.remove("kb_users")
        assert client.calls == 2
        
        client.calls, client.failures = 0, 1
        assert list(kv.keys()) == ["kb_customers"]
        assert client.calls == 2
    
    def test_persistent_failure_raises(self, monkeypatch):
        """Test that the storage error surfaces once retries run out."""
        monkeypatch.setattr(time, "sleep", lambda seconds: None)
        kv = GoogleSheetsKeyValueStore(FlakySheetsClient(failures=5))
        with pytest.raises(StorageError):
            kv.remove("kb_users")
