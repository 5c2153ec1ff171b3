"""Backup package."""

from ledgerbook.backup.archive import (
    BACKUP_KEYS,
    BackupManager,
    InvalidBackupError,
    decode_backup,
    encode_backup,
)

__all__ = [
    "BACKUP_KEYS",
    "BackupManager",
    "InvalidBackupError",
    "decode_backup",
    "encode_backup",
]
