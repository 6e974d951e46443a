# =============================================================================
# csc_core/database.py
# Composition root: one Database object wiring every store together
# =============================================================================
"""
Database - builds the local mirror, the remote adapter and one record store
per entity table from an ErpConfig.

Usage:
    db = Database(load_config())
    db.init()
    user = db.auth.login("admin", "password123")
    db.customers.save(customer)
    db.system.backup()
"""

from __future__ import annotations
from typing import Any, Dict, Optional

from csc_core.auth import AuthGate, SessionPointer, hash_password, hash_user_password
from csc_core.config import ErpConfig
from csc_core.data import BackupService
from csc_core.logging import get_logger
from csc_core.models import (
    CompanySettings,
    Customer,
    DEFAULT_SERVICES,
    DEFAULT_SETTINGS,
    InventoryItem,
    Job,
    Privilege,
    Service,
    User,
    UserRole,
    apply_job_aggregates,
)
from csc_core.offline import LocalStore, RecordStore, RemoteStore, SettingsStore

logger = get_logger(__name__)

DEFAULT_ADMIN_ID = "u1"
DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "password123"


class Database:
    """
    Owns every store for one running app instance.

    Args:
        config: Resolved configuration
        remote_client: Pre-built Supabase client (tests)
        realtime_client_factory: Async client factory for the change relay
    """

    def __init__(
        self,
        config: ErpConfig,
        remote_client: Any = None,
        realtime_client_factory=None,
    ):
        self.config = config
        self.local = LocalStore(config.local_db_path).open_or_create(config.schema_version)
        self.remote = RemoteStore(
            url=config.supabase_url,
            key=config.supabase_key,
            client=remote_client,
            realtime_client_factory=realtime_client_factory,
        )
        self.monitor = self.remote.monitor

        self.users = RecordStore(
            "users", User, self.local, self.remote, prepare=hash_user_password
        )
        self.customers = RecordStore("customers", Customer, self.local, self.remote)
        self.services = RecordStore("services", Service, self.local, self.remote)
        self.jobs = RecordStore(
            "jobs", Job, self.local, self.remote, prepare=apply_job_aggregates
        )
        self.inventory = RecordStore("inventory", InventoryItem, self.local, self.remote)
        self.settings = SettingsStore(
            RecordStore("settings", CompanySettings, self.local, self.remote)
        )

        self.auth = AuthGate(self.users, SessionPointer(self.local))
        self.system = BackupService(self.collections, self.settings)

        mode = "cloud + local" if self.is_cloud_active() else "local only"
        logger.info(f"Database ready ({mode}, local db {config.local_db_path})")

    @property
    def collections(self) -> Dict[str, RecordStore]:
        """Entity stores keyed by table name, in backup sheet order."""
        return {
            "users": self.users,
            "customers": self.customers,
            "services": self.services,
            "jobs": self.jobs,
            "inventory": self.inventory,
        }

    def is_cloud_active(self) -> bool:
        """True when remote credentials are configured (not a liveness check)."""
        return self.remote.is_configured

    def init(self, admin_password: Optional[str] = None) -> None:
        """
        Seed the default admin, service catalog and company settings when
        they do not exist yet. Existing records are never overwritten.
        """
        if not self.users.all():
            admin = User(
                id=DEFAULT_ADMIN_ID,
                username=DEFAULT_ADMIN_USERNAME,
                email="admin@csc.local",
                password=hash_password(admin_password or DEFAULT_ADMIN_PASSWORD),
                role=UserRole.ADMIN,
                privileges=list(Privilege),
            )
            self.users.save(admin)
            logger.info("Seeded default admin user")

        if not self.services.all():
            for service in DEFAULT_SERVICES:
                self.services.save(service)
            logger.info(f"Seeded {len(DEFAULT_SERVICES)} default services")

        if not self.settings.exists():
            self.settings.save(DEFAULT_SETTINGS)
            logger.info("Seeded default company settings")

    def close(self) -> None:
        self.remote.close()
        self.local.close()
        logger.info("Database closed")
