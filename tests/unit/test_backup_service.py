# =============================================================================
# tests/unit/test_backup_service.py
# Unit Tests for workbook backup and restore
# =============================================================================

import io
from datetime import datetime, timezone

import openpyxl
import pandas as pd
import pytest

from csc_core.errors import ImportFormatError
from csc_core.models import CompanySettings, Customer, InventoryItem


def workbook_bytes(sheets):
    """Build an .xlsx from {sheet name: DataFrame}"""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=name, index=False)
    return buffer.getvalue()


@pytest.fixture
def db(make_database):
    return make_database()


class TestExport:
    """Test workbook layout"""

    def test_one_sheet_per_table(self, db):
        content = db.system.export_workbook()

        sheets = pd.ExcelFile(io.BytesIO(content)).sheet_names
        assert sheets == ["users", "customers", "services", "jobs", "inventory", "settings"]

    def test_empty_collection_keeps_columns(self, db):
        content = db.system.export_workbook()

        frame = pd.read_excel(io.BytesIO(content), sheet_name="customers")
        assert frame.empty
        assert list(frame.columns) == ["id", "name", "phone", "aadhaarNumber", "address", "createdAt"]

    def test_rows_and_nested_fields(self, db, sample_customer, sample_job):
        db.customers.save(sample_customer)
        db.jobs.save(sample_job)

        content = db.system.export_workbook()
        jobs = pd.read_excel(io.BytesIO(content), sheet_name="jobs", dtype=object)

        assert list(jobs["id"]) == ["j1"]
        assert jobs.loc[0, "items"].startswith('[{"serviceId": "s1"')

    def test_settings_is_single_row(self, db):
        content = db.system.export_workbook()

        settings = pd.read_excel(io.BytesIO(content), sheet_name="settings")
        assert len(settings) == 1
        assert settings.loc[0, "id"] == "current_config"
        assert settings.loc[0, "companyName"] == "Regal Jan Seva Kendra"

    def test_backup_filename_uses_utc_date(self, db):
        now = datetime(2024, 5, 2, 23, 30, tzinfo=timezone.utc)

        backup = db.system.backup(now=now)

        assert backup.filename == "csc_erp_backup_2024-05-02.xlsx"
        assert backup.content.startswith(b"PK")
        assert backup.path is None

    def test_backup_writes_to_directory(self, db, tmp_path):
        backup = db.system.backup(target_dir=tmp_path / "backups")

        assert backup.path.exists()
        assert backup.path.read_bytes() == backup.content


class TestRestore:
    """Test workbook import"""

    def test_restores_rows_through_stores(self, db):
        content = workbook_bytes({
            "customers": pd.DataFrame([
                {"id": "c1", "name": "Asha", "phone": "9876543210", "aadhaarNumber": "123456789012"},
                {"id": "c2", "name": "Ravi", "phone": "9123456780", "aadhaarNumber": ""},
            ]),
        })

        report = db.system.restore(content)

        assert report.success
        assert report.saved == {"customers": 2}
        assert {c.id for c in db.customers.all()} == {"c1", "c2"}

    def test_missing_column_defaults_to_empty(self, db):
        content = workbook_bytes({
            "customers": pd.DataFrame([{"id": "c1", "name": "Asha", "phone": "9876543210"}]),
        })

        db.system.restore(content)

        customer = db.customers.get("c1")
        assert customer.aadhaar_number == ""
        assert customer.name == "Asha"

    def test_numeric_cells_are_coerced(self, db):
        content = workbook_bytes({
            "inventory": pd.DataFrame([{"id": "i1", "name": "Paper", "quantity": 12, "minStock": 4.0}]),
        })

        db.system.restore(content)

        assert db.inventory.get("i1") == InventoryItem(id="i1", name="Paper", quantity=12, min_stock=4)

    def test_rows_without_id_get_one(self, db):
        content = workbook_bytes({"customers": pd.DataFrame([{"name": "Walk-in"}])})

        db.system.restore(content)

        customers = db.customers.all()
        assert len(customers) == 1
        assert customers[0].id

    def test_jobs_are_reaggregated(self, db):
        content = workbook_bytes({
            "jobs": pd.DataFrame([{
                "id": "j1",
                "customerId": "c1",
                "items": '[{"serviceId": "s1", "quantity": 2, "unitPrice": 50, "status": "COMPLETED"}]',
                "paidAmount": 100,
                "totalAmount": 5,
                "status": "PENDING",
            }]),
        })

        db.system.restore(content)

        job = db.jobs.get("j1")
        assert job.total_amount == 100.0
        assert job.balance == 0.0
        assert job.status.value == "COMPLETED"
        assert job.payment_status.value == "PAID"

    def test_settings_replaced_from_first_row(self, db):
        content = workbook_bytes({
            "settings": pd.DataFrame([
                {"companyName": "New Centre", "mobileNumber": "+91 90000 00000"},
                {"companyName": "Ignored"},
            ]),
        })

        report = db.system.restore(content)

        assert report.saved["settings"] == 1
        assert db.settings.get() == CompanySettings(
            company_name="New Centre", mobile_number="+91 90000 00000"
        )

    def test_unrecognized_workbook_rejected_before_writes(self, db):
        content = workbook_bytes({"Sheet1": pd.DataFrame([{"id": "c1", "name": "Asha"}])})

        with pytest.raises(ImportFormatError) as exc_info:
            db.system.restore(content)

        assert exc_info.value.details["sheets"] == ["Sheet1"]
        assert db.customers.all() == []

    def test_unreadable_file_rejected(self, db):
        with pytest.raises(ImportFormatError):
            db.system.restore(b"this is not a workbook")

    def test_extra_sheets_are_reported(self, db):
        content = workbook_bytes({
            "customers": pd.DataFrame([{"id": "c1", "name": "Asha"}]),
            "Notes": pd.DataFrame([{"text": "hello"}]),
        })

        report = db.system.restore(content)

        assert report.ignored_sheets == ["Notes"]

    def test_row_failure_does_not_abort_batch(self, db, monkeypatch):
        original_save = db.customers.save

        def flaky_save(record):
            if record.id == "c2":
                raise RuntimeError("disk full")
            return original_save(record)

        monkeypatch.setattr(db.customers, "save", flaky_save)
        content = workbook_bytes({
            "customers": pd.DataFrame([
                {"id": "c1", "name": "Asha"},
                {"id": "c2", "name": "Ravi"},
                {"id": "c3", "name": "Meena"},
            ]),
        })

        report = db.system.restore(content)

        assert not report
        assert report.saved == {"customers": 2}
        assert [(f.table, f.row) for f in report.failures] == [("customers", 2)]
        assert {c.id for c in db.customers.all()} == {"c1", "c3"}

    def test_restore_from_path_and_file_object(self, db, tmp_path):
        content = workbook_bytes({"customers": pd.DataFrame([{"id": "c1", "name": "Asha"}])})
        path = tmp_path / "upload.xlsx"
        path.write_bytes(content)

        assert db.system.restore(path).success
        assert db.system.restore(io.BytesIO(content)).success
        assert [c.id for c in db.customers.all()] == ["c1"]


class TestTextCells:
    """Strings Excel would otherwise reinterpret or refuse"""

    def test_equals_prefixed_text_round_trips(self, make_database):
        source = make_database("source.db")
        source.customers.save(Customer(id="c1", name="=Ravi", address="=> near temple"))
        source.settings.save(CompanySettings(company_name="=Regal JSK"))
        target = make_database("target.db")

        report = target.system.restore(source.system.export_workbook())

        assert report.success
        restored = target.customers.get("c1")
        assert restored.name == "=Ravi"
        assert restored.address == "=> near temple"
        assert target.settings.get().company_name == "=Regal JSK"

    def test_equals_prefixed_text_is_not_a_formula(self, db):
        db.customers.save(Customer(id="c1", name="=SUM(1,2)"))

        workbook = openpyxl.load_workbook(io.BytesIO(db.system.export_workbook()))
        sheet = workbook["customers"]
        headers = [cell.value for cell in sheet[1]]
        name_cell = sheet.cell(row=2, column=headers.index("name") + 1)

        assert name_cell.data_type == "s"
        assert name_cell.value == "=SUM(1,2)"

    def test_control_characters_do_not_break_export(self, db):
        db.inventory.save(InventoryItem(id="i1", name="Paper\x0bA4", category="Sta\x01tionery"))

        content = db.system.export_workbook()

        frame = pd.read_excel(io.BytesIO(content), sheet_name="inventory")
        assert frame.loc[0, "name"] == "PaperA4"
        assert frame.loc[0, "category"] == "Stationery"
