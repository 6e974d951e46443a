# =============================================================================
# csc_core/data/backup_service.py
# Workbook backup and restore over the record stores
# =============================================================================
"""
BackupService - exports every entity collection to one Excel workbook and
restores collections from such a workbook.

Layout: one sheet per entity table, named after the table; one row per
record; one column per record field. List-valued fields (user privileges,
job items) are stored as JSON text. Settings is a single-row sheet.

Restore feeds each row through the record store's normal ``save`` path, one
row at a time, so imported rows get the same remote-best-effort, local-
guaranteed treatment as interactive edits.
"""

from __future__ import annotations
import io
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from csc_core.errors import ImportFormatError
from csc_core.models.entities import CompanySettings
from csc_core.offline.record_store import RecordStore, SettingsStore
from csc_core.services.base_service import BaseService

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

RestoreSource = Union[str, Path, bytes, BinaryIO]


@dataclass
class BackupFile:
    """A generated backup workbook."""
    filename: str
    content: bytes
    path: Optional[Path] = None
    mime_type: str = XLSX_MIME


@dataclass
class RowFailure:
    table: str
    row: int  # 1-based data row, header excluded
    error: str


@dataclass
class RestoreReport:
    """Per-table saved counts and per-row failures of one restore."""
    saved: Dict[str, int] = field(default_factory=dict)
    failures: List[RowFailure] = field(default_factory=list)
    ignored_sheets: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def total_saved(self) -> int:
        return sum(self.saved.values())

    def __bool__(self) -> bool:
        return self.success


def _columns_for(record_type) -> List[str]:
    return list(record_type.from_record({}).to_record().keys())


def _cell_value(value: Any) -> Any:
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    if isinstance(value, str):
        # Control characters are not allowed in worksheet XML
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def _flatten(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: _cell_value(value) for key, value in row.items()}


def _keep_text(worksheet) -> None:
    """Store "="-prefixed strings as text, not formulas."""
    for row in worksheet.iter_rows():
        for cell in row:
            if isinstance(cell.value, str) and cell.value.startswith("="):
                cell.data_type = "s"


class BackupService(BaseService):
    """
    Usage:
        service = BackupService(db.collections, db.settings)
        backup = service.backup()
        report = service.restore(backup.content)
    """

    def __init__(self, stores: Mapping[str, RecordStore], settings: SettingsStore):
        super().__init__()
        self._stores = dict(stores)
        self._settings = settings

    @property
    def sheet_names(self) -> List[str]:
        return list(self._stores) + [self._settings.table]

    # =========================================================================
    # EXPORT
    # =========================================================================

    def _collection_frame(self, store: RecordStore) -> pd.DataFrame:
        rows = [_flatten(record.to_record()) for record in store.all()]
        return pd.DataFrame(rows, columns=_columns_for(store.record_type))

    def _settings_frame(self) -> pd.DataFrame:
        row = _flatten(self._settings.get().to_record())
        return pd.DataFrame([row], columns=_columns_for(CompanySettings))

    def export_workbook(self) -> bytes:
        """Serialize every collection into an in-memory .xlsx workbook."""
        with self.log_operation("Exporting backup workbook"):
            buffer = io.BytesIO()
            with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
                for table, store in self._stores.items():
                    frame = self._collection_frame(store)
                    frame.to_excel(writer, sheet_name=table, index=False)
                    _keep_text(writer.sheets[table])
                    self.logger.debug(f"Exported {len(frame)} rows to sheet {table}")
                self._settings_frame().to_excel(
                    writer, sheet_name=self._settings.table, index=False
                )
                _keep_text(writer.sheets[self._settings.table])
            return buffer.getvalue()

    @staticmethod
    def backup_filename(now: Optional[datetime] = None) -> str:
        """csc_erp_backup_<UTC date>.xlsx"""
        now = now or datetime.now(timezone.utc)
        return f"csc_erp_backup_{now.astimezone(timezone.utc).strftime('%Y-%m-%d')}.xlsx"

    def backup(
        self,
        target_dir: Optional[Union[str, Path]] = None,
        now: Optional[datetime] = None,
    ) -> BackupFile:
        """
        Build the backup workbook, optionally writing it to ``target_dir``.

        Returns:
            BackupFile with the download name and bytes
        """
        backup_file = BackupFile(
            filename=self.backup_filename(now),
            content=self.export_workbook(),
        )
        if target_dir is not None:
            directory = Path(target_dir)
            directory.mkdir(parents=True, exist_ok=True)
            backup_file.path = directory / backup_file.filename
            backup_file.path.write_bytes(backup_file.content)
            self.logger.info(f"Backup written to {backup_file.path}")
        return backup_file

    # =========================================================================
    # IMPORT
    # =========================================================================

    def _read_workbook(self, source: RestoreSource) -> Dict[str, pd.DataFrame]:
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        try:
            return pd.read_excel(source, sheet_name=None, dtype=object, engine="openpyxl")
        except Exception as e:
            raise ImportFormatError(
                f"Could not read backup workbook: {e}",
                source=str(getattr(source, "name", "upload")),
            ) from e

    @staticmethod
    def _frame_rows(frame: pd.DataFrame) -> List[Dict[str, Any]]:
        frame = frame.replace({np.nan: None})
        return frame.to_dict(orient="records")

    def restore(self, source: RestoreSource) -> RestoreReport:
        """
        Restore collections from a backup workbook.

        Rows with missing columns are coerced to defaults rather than
        rejected; rows without an id get a fresh one. A failing row is
        recorded in the report and the batch continues.

        Raises:
            ImportFormatError: unreadable workbook or no recognized sheet,
                before any record is written
        """
        sheets = self._read_workbook(source)
        recognized = [name for name in sheets if name in self.sheet_names]
        if not recognized:
            raise ImportFormatError(
                "Workbook contains no recognized entity sheets",
                sheets=list(sheets),
            )

        report = RestoreReport(
            ignored_sheets=[name for name in sheets if name not in self.sheet_names]
        )

        with self.log_operation(f"Restoring {len(recognized)} sheets"):
            for table, store in self._stores.items():
                if table in sheets:
                    self._restore_collection(table, store, sheets[table], report)

            settings_frame = sheets.get(self._settings.table)
            if settings_frame is not None and not settings_frame.empty:
                self._restore_settings(settings_frame, report)

        if report.failures:
            self.logger.warning(
                f"Restore finished with {len(report.failures)} failed rows "
                f"({report.total_saved} saved)"
            )
        return report

    def _restore_collection(
        self,
        table: str,
        store: RecordStore,
        frame: pd.DataFrame,
        report: RestoreReport,
    ) -> None:
        saved = 0
        for index, row in enumerate(self._frame_rows(frame), start=1):
            try:
                record = store.record_type.from_record(row)
                if not record.id:
                    record.id = uuid.uuid4().hex
                store.save(record)
                saved += 1
            except Exception as e:
                self.logger.error(f"Restore of {table} row {index} failed: {e}")
                report.failures.append(RowFailure(table=table, row=index, error=str(e)))
        report.saved[table] = saved
        self.logger.info(f"Restored {saved} {table} records")

    def _restore_settings(self, frame: pd.DataFrame, report: RestoreReport) -> None:
        table = self._settings.table
        try:
            first_row = self._frame_rows(frame.head(1))[0]
            self._settings.save(CompanySettings.from_record(first_row))
            report.saved[table] = 1
        except Exception as e:
            self.logger.error(f"Restore of {table} failed: {e}")
            report.failures.append(RowFailure(table=table, row=1, error=str(e)))
