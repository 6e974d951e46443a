# =============================================================================
# csc_core/data/__init__.py
# Workbook backup and restore
# =============================================================================

from .backup_service import (
    BackupService,
    BackupFile,
    RestoreReport,
    RowFailure,
)

__all__ = [
    "BackupService",
    "BackupFile",
    "RestoreReport",
    "RowFailure",
]
