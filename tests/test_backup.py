"""
Tests for backup export and restore.
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from lzstring import LZString

from ledgerbook.backup import BackupManager, InvalidBackupError, decode_backup, encode_backup
from ledgerbook.config import Settings
from ledgerbook.orchestrator import create_app_components
from ledgerbook.services.storage import CollectionStore, InMemoryKeyValueStore


EXPORTED_AT = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def fresh():
    """An empty book on its own store."""
    return create_app_components(settings=Settings(), backend=InMemoryKeyValueStore())


class TestArtifact:
    """Tests for the encoded artifact."""
    
    def test_artifact_is_lzstring_base64(self):
        """Test that the artifact is LZString base64 of the JSON payload."""
        artifact = encode_backup({"customers": "[]"})
        raw = LZString().decompressFromBase64(artifact)
        assert json.loads(raw) == {"customers": "[]"}
    
    def test_reads_browser_exports(self):
        """Test that a file compressed the way the browser app does it decodes."""
        payload = {"users": "[]", "exportDate": "2024-03-15T10:30:00.000Z"}
        artifact = LZString().compressToBase64(json.dumps(payload, separators=(",", ":")))
        assert decode_backup(artifact + "\n") == payload
    
    @pytest.mark.parametrize("artifact", ["", "   ", "%%%", b"\xff\xfe"])
    def test_garbage_rejected(self, artifact):
        """Test that unreadable artifacts raise."""
        with pytest.raises(InvalidBackupError):
            decode_backup(artifact)
    
    def test_non_json_rejected(self):
        """Test that compressed text that is not JSON is rejected."""
        with pytest.raises(InvalidBackupError):
            decode_backup(LZString().compressToBase64("hello"))
    
    def test_non_object_rejected(self):
        """Test that a JSON list is not a backup."""
        with pytest.raises(InvalidBackupError):
            decode_backup(encode_backup([1, 2]))


class TestBackupManager:
    """Tests for exporting and restoring the whole book."""
    
    def test_filename(self, store):
        """Test the dated file name."""
        manager = BackupManager(store)
        assert manager.filename(date(2024, 1, 31)) == "ledger-backup-2024-01-31.dlb"
    
    def test_export_contents(self, bookkeeper, customer):
        """Test that the export carries raw collection strings and the date."""
        payload = decode_backup(bookkeeper.backup.export_backup(EXPORTED_AT))
        assert payload["exportDate"] == "2024-03-15T10:30:00+00:00"
        assert isinstance(payload["customers"], str)
        assert json.loads(payload["customers"])[0]["name"] == "Asha"
        assert payload["saleBills"] is None
    
    def test_round_trip(self, bookkeeper, fresh):
        """Test that a restored book matches the exported one."""
        user = bookkeeper.accounts.signup("owner@shop.in", "pw", "Asha Stores")
        asha = bookkeeper.customers.add_customer(user.id, "Asha")
        bookkeeper.transactions.add_transaction(asha.id, user.id, 300, "gave", "", date(2024, 3, 1))
        bookkeeper.sale_bills.add_sale_bill(
            asha.id, user.id, [{"name": "Rice", "quantity": 2, "price": 100}], 50, date(2024, 3, 2)
        )
        
        restored = fresh.backup.restore_backup(bookkeeper.backup.export_backup())
        
        assert set(restored) == {"users", "currentUser", "customers", "transactions", "saleBills"}
        assert fresh.accounts.current_user().id == user.id
        assert fresh.transactions.compute_balance(asha.id) == Decimal("-450")
        assert fresh.sale_bills.list_by_customer(asha.id)[0].due == Decimal("150")
    
    def test_missing_keys_left_untouched(self, fresh):
        """Test that absent or empty fields keep existing data."""
        kept = fresh.customers.add_customer("user-1", "Kept")
        fresh.backup.restore_backup(encode_backup({"customers": None, "reminders": "[]"}))
        assert fresh.customers.get_customer(kept.id) is not None
    
    def test_structured_values_are_serialized(self, fresh):
        """Test that a field holding JSON instead of a string still restores."""
        artifact = encode_backup({
            "customers": [{"id": "c1", "userId": "user-1", "name": "Ravi"}],
        })
        assert fresh.backup.restore_backup(artifact) == ["customers"]
        assert fresh.customers.get_customer("c1").name == "Ravi"
    
    def test_invalid_backup_writes_nothing(self):
        """Test that a corrupt file leaves the store alone."""
        kv = InMemoryKeyValueStore()
        manager = BackupManager(CollectionStore(kv))
        with pytest.raises(InvalidBackupError):
            manager.restore_backup("%%%")
        assert kv.write_count == 0
    
    def test_save_and_restore_file(self, bookkeeper, customer, fresh, tmp_path):
        """Test writing a backup file and restoring from it."""
        path = bookkeeper.backup.save_to(tmp_path / "backups", EXPORTED_AT)
        assert path.name == "ledger-backup-2024-03-15.dlb"
        assert path.exists()
        
        fresh.backup.restore_from(path)
        assert fresh.customers.get_customer(customer.id).name == "Asha"
    
    def test_expenses_and_stock_are_backed_up(self, bookkeeper, fresh):
        """Test that the expense and inventory collections travel too."""
        bookkeeper.expenses.add_expense("user-1", "Rent", 5000, "March", date(2024, 3, 1))
        bookkeeper.inventory.add_item("user-1", "Rice", 40, "kg", 50, 60, 10)
        
        restored = fresh.backup.restore_backup(bookkeeper.backup.export_backup())
        
        assert set(restored) == {"expenses", "inventory"}
        assert fresh.expenses.list_expenses("user-1")[0].category == "Rent"
        assert fresh.inventory.list_items("user-1")[0].quantity == Decimal("40")
