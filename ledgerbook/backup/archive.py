"""
Backup and Restore

A backup is a JSON object holding the raw stored string of every
collection, plus the export time, compressed with LZString into base64
text. Files written by the browser app open here and the other way round.

Restoring writes each key present in the backup verbatim, all in one unit
of work. Anything built from the old data (caches, open screens) must be
reloaded afterwards.
"""

import json
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from lzstring import LZString

from ledgerbook.audit import AuditLogger
from ledgerbook.models import AuditEventBuilder, utc_now
from ledgerbook.services.storage import CURRENT_USER_KEY, Collection, CollectionStore


# backup field name -> logical storage key
BACKUP_KEYS = {
    "users": Collection.USERS.value,
    "currentUser": CURRENT_USER_KEY,
    "customers": Collection.CUSTOMERS.value,
    "transactions": Collection.TRANSACTIONS.value,
    "reminders": Collection.REMINDERS.value,
    "saleBills": Collection.SALE_BILLS.value,
    "expenses": Collection.EXPENSES.value,
    "inventory": Collection.INVENTORY.value,
}


class InvalidBackupError(Exception):
    """The artifact is not a readable backup."""
    pass


_lz = LZString()


def encode_backup(payload: dict) -> str:
    return _lz.compressToBase64(json.dumps(payload))


def decode_backup(artifact: Union[str, bytes]) -> dict:
    """
    Reverse `encode_backup`.
    
    Raises:
        InvalidBackupError: If the artifact cannot be decoded
    """
    if isinstance(artifact, bytes):
        artifact = artifact.decode("ascii", errors="replace")
    artifact = artifact.strip()
    
    try:
        raw = _lz.decompressFromBase64(artifact) if artifact else None
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise InvalidBackupError(f"Invalid or corrupted backup file: {e!r}")
    if not raw:
        raise InvalidBackupError("Invalid backup file")
    
    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise InvalidBackupError(f"Invalid or corrupted backup file: {e}")
    
    if not isinstance(payload, dict):
        raise InvalidBackupError("Invalid backup file: expected an object")
    return payload


class BackupManager:
    """Exports and restores the whole book."""
    
    def __init__(
        self,
        store: CollectionStore,
        audit_logger: Optional[AuditLogger] = None,
        extension: str = ".dlb",
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._extension = extension
    
    def filename(self, today: Optional[date] = None) -> str:
        """e.g. ledger-backup-2024-01-31.dlb"""
        today = today or date.today()
        return f"ledger-backup-{today.isoformat()}{self._extension}"
    
    def export_backup(self, now: Optional[datetime] = None) -> str:
        """Serialize every collection into a backup artifact."""
        payload = {
            field: self._store.read_raw(key)
            for field, key in BACKUP_KEYS.items()
        }
        payload["exportDate"] = (now or utc_now()).isoformat()
        artifact = encode_backup(payload)
        
        self._audit_logger.log(
            AuditEventBuilder.backup_exported(
                keys=[f for f in BACKUP_KEYS if payload[f] is not None],
                size=len(artifact),
            )
        )
        return artifact
    
    def restore_backup(self, artifact: Union[str, bytes]) -> list[str]:
        """
        Overwrite every key present in the backup.
        
        Keys missing from (or empty in) the backup are left untouched.
        
        Returns:
            The backup field names that were restored
            
        Raises:
            InvalidBackupError: If the artifact cannot be decoded; nothing
                is written in that case
        """
        payload = decode_backup(artifact)
        
        restored = []
        with self._store.unit_of_work():
            for field, key in BACKUP_KEYS.items():
                value = payload.get(field)
                if not value:
                    continue
                if not isinstance(value, str):
                    value = json.dumps(value)
                self._store.write_raw(key, value)
                restored.append(field)
        
        self._audit_logger.log(AuditEventBuilder.backup_restored(keys=restored))
        return restored
    
    def save_to(self, directory: Path, now: Optional[datetime] = None) -> Path:
        """Write a backup file into `directory` and return its path."""
        now = now or utc_now()
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.filename(now.date())
        path.write_text(self.export_backup(now), encoding="ascii")
        return path
    
    def restore_from(self, path: Path) -> list[str]:
        """Restore from a backup file on disk."""
        return self.restore_backup(Path(path).read_text(encoding="ascii"))
