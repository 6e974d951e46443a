# =============================================================================
# tests/unit/test_record_store.py
# Unit Tests for the synchronizing RecordStore
# =============================================================================

import pytest

from csc_core.errors import LocalStoreError
from csc_core.models import (
    CompanySettings,
    Customer,
    DEFAULT_SETTINGS,
    Job,
    JobStatus,
    PaymentStatus,
    apply_job_aggregates,
)
from csc_core.offline.record_store import RecordStore, SettingsStore
from csc_core.offline.remote_store import RemoteStore


@pytest.fixture
def online_customers(local_store, online_remote):
    return RecordStore("customers", Customer, local_store, online_remote)


@pytest.fixture
def offline_customers(local_store, offline_remote):
    return RecordStore("customers", Customer, local_store, offline_remote)


class TestRecordStoreReads:
    """Remote-truth reads with local fallback"""

    def test_all_returns_remote_rows(self, online_customers, fake_supabase):
        fake_supabase.tables["customers"] = [{"id": "c9", "name": "From Cloud"}]

        customers = online_customers.all()

        assert [c.id for c in customers] == ["c9"]
        assert customers[0].name == "From Cloud"

    def test_all_refreshes_local_mirror(self, online_customers, fake_supabase, local_store):
        fake_supabase.tables["customers"] = [
            {"id": "c1", "name": "Asha"},
            {"id": "c2", "name": "Ravi"},
        ]

        online_customers.all()

        assert {r["id"] for r in local_store.get_all("customers")} == {"c1", "c2"}

    def test_refresh_keeps_local_only_rows(self, online_customers, fake_supabase, local_store):
        local_store.put("customers", {"id": "offline-only", "name": "Saved offline"})
        fake_supabase.tables["customers"] = [{"id": "c1", "name": "Asha"}]

        online_customers.all()

        assert {r["id"] for r in local_store.get_all("customers")} == {"c1", "offline-only"}

    def test_all_falls_back_to_local_when_remote_fails(self, local_store, fake_supabase):
        local_store.put("customers", {"id": "c1", "name": "Cached"})
        fake_supabase.fail = True
        store = RecordStore("customers", Customer, local_store, RemoteStore(client=fake_supabase))

        assert [c.name for c in store.all()] == ["Cached"]

    def test_unconfigured_all_equals_local(self, offline_customers, local_store):
        local_store.put("customers", {"id": "c1", "name": "Asha"})
        local_store.put("customers", {"id": "c2", "name": "Ravi"})

        assert [c.to_record() for c in offline_customers.all()] == [
            Customer.from_record(r).to_record() for r in local_store.get_all("customers")
        ]

    def test_all_never_raises(self, offline_customers, local_store, monkeypatch):
        def broken(table):
            raise RuntimeError("disk gone")

        monkeypatch.setattr(local_store, "get_all", broken)

        assert offline_customers.all() == []

    def test_get_prefers_remote(self, online_customers, fake_supabase, local_store):
        local_store.put("customers", {"id": "c1", "name": "Stale"})
        fake_supabase.tables["customers"] = [{"id": "c1", "name": "Fresh"}]

        assert online_customers.get("c1").name == "Fresh"
        assert local_store.get_by_id("customers", "c1")["name"] == "Fresh"

    def test_get_offline_reads_local(self, offline_customers, local_store):
        local_store.put("customers", {"id": "c1", "name": "Asha"})

        assert offline_customers.get("c1").name == "Asha"
        assert offline_customers.get("missing") is None


class TestRecordStoreWrites:
    """Best-effort remote, guaranteed local"""

    def test_save_writes_both_backends(self, online_customers, fake_supabase, local_store,
                                       sample_customer):
        online_customers.save(sample_customer)

        assert fake_supabase.rows("customers") == [sample_customer.to_record()]
        assert local_store.get_by_id("customers", "c1") == sample_customer.to_record()

    def test_save_returns_record(self, offline_customers, sample_customer):
        assert offline_customers.save(sample_customer) == sample_customer

    def test_read_your_writes_offline(self, offline_customers, sample_customer):
        offline_customers.save(sample_customer)

        assert sample_customer in offline_customers.all()

    def test_remote_failure_still_writes_local(self, local_store, failing_client,
                                               sample_customer):
        store = RecordStore("customers", Customer, local_store, RemoteStore(client=failing_client))

        store.save(sample_customer)

        assert local_store.get_by_id("customers", "c1")["name"] == "Asha Verma"

    def test_local_failure_propagates(self, online_customers, local_store, sample_customer,
                                      monkeypatch):
        def broken(table, record):
            raise LocalStoreError("disk full", table=table)

        monkeypatch.setattr(local_store, "put", broken)

        with pytest.raises(LocalStoreError):
            online_customers.save(sample_customer)

    def test_delete_removes_from_both(self, online_customers, fake_supabase, local_store,
                                      sample_customer):
        online_customers.save(sample_customer)

        online_customers.delete("c1")

        assert fake_supabase.rows("customers") == []
        assert local_store.get_all("customers") == []

    def test_delete_missing_id_is_noop(self, offline_customers, sample_customer):
        offline_customers.save(sample_customer)

        offline_customers.delete("never-existed")

        assert [c.id for c in offline_customers.all()] == ["c1"]

    def test_prepare_hook_applies_to_writes(self, local_store, offline_remote, sample_job):
        jobs = RecordStore("jobs", Job, local_store, offline_remote, prepare=apply_job_aggregates)

        saved = jobs.save(sample_job)
        stored = Job.from_record(local_store.get_by_id("jobs", "j1"))

        assert saved.total_amount == 190.0
        assert saved.balance == 150.0
        assert saved.payment_status == PaymentStatus.PARTIAL
        assert saved.status == JobStatus.IN_PROGRESS
        assert stored == saved

    def test_unconfigured_subscribe_is_noop(self, offline_customers):
        unsubscribe = offline_customers.subscribe(lambda: None)

        unsubscribe()
        unsubscribe()


class TestSettingsStore:
    """Singleton company settings"""

    @pytest.fixture
    def settings(self, local_store, offline_remote):
        return SettingsStore(RecordStore("settings", CompanySettings, local_store, offline_remote))

    def test_defaults_when_empty(self, settings):
        assert settings.get() == DEFAULT_SETTINGS
        assert not settings.exists()

    def test_defaults_are_a_copy(self, settings):
        settings.get().company_name = "Changed"

        assert settings.get().company_name == DEFAULT_SETTINGS.company_name

    def test_save_targets_fixed_key(self, settings, local_store):
        settings.save(CompanySettings(company_name="Jan Seva Kendra 2"))
        settings.save(CompanySettings(company_name="Jan Seva Kendra 3"))

        rows = local_store.get_all("settings")
        assert [r["id"] for r in rows] == ["current_config"]
        assert settings.get().company_name == "Jan Seva Kendra 3"
        assert settings.exists()
