"""Backup export and import."""

from .codec import (
    BACKUP_VERSION,
    BackupCodec,
    ImportResult,
)

__all__ = [
    "BACKUP_VERSION",
    "BackupCodec",
    "ImportResult",
]
