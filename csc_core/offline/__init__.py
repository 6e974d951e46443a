# =============================================================================
# csc_core/offline/__init__.py
# Offline-Tolerant Persistence for the CSC ERP
# =============================================================================
"""
Offline-Tolerant Persistence Module

Every entity collection is read and written through one RecordStore. The
hosted backend is the source of truth whenever it answers; a local SQLite
mirror keeps the app working when it does not.

Architecture:
------------
┌─────────────────────────────────────────────────────────────────┐
│                  OFFLINE-TOLERANT PERSISTENCE                    │
├─────────────────────────────────────────────────────────────────┤
│                                                                  │
│   ┌──────────────────────────────────────────────────────────┐  │
│   │            RecordStore (one per entity table)             │  │
│   │      all / get / save / delete / subscribe                │  │
│   └──────────────────────────────────────────────────────────┘  │
│              │                           │                      │
│              ▼                           ▼                      │
│   ┌──────────────────┐        ┌──────────────────┐             │
│   │   RemoteStore    │        │    LocalStore    │             │
│   │ (best effort)    │        │  (always written)│             │
│   └──────────────────┘        └──────────────────┘             │
│        │        │                        │                      │
│        ▼        ▼                        ▼                      │
│ ┌────────┐ ┌─────────────┐          ┌──────────┐               │
│ │Supabase│ │ ChangeRelay │          │  SQLite  │               │
│ │(Cloud) │ │ (realtime)  │          │ (Local)  │               │
│ └────────┘ └─────────────┘          └──────────┘               │
│        │                                                         │
│        ▼                                                         │
│   ┌──────────────────┐                                          │
│   │ConnectionMonitor │                                          │
│   │ (status for UI)  │                                          │
│   └──────────────────┘                                          │
└─────────────────────────────────────────────────────────────────┘

Usage:
------
from csc_core.offline import LocalStore, RemoteStore, RecordStore

local = LocalStore("local_data/csc_erp.db").open_or_create(schema_version=1)
remote = RemoteStore(url, key)
customers = RecordStore("customers", Customer, local, remote)

customers.save(Customer(id="c1", name="Asha"))
customers.all()  # remote when reachable, local mirror otherwise
"""

from csc_core.offline.connection_monitor import (
    ConnectionMonitor,
    ConnectionState,
    ConnectionStatus,
)

from csc_core.offline.local_store import (
    LocalStore,
    ENTITY_TABLES,
)

from csc_core.offline.change_relay import (
    ChangeRelay,
    Subscription,
)

from csc_core.offline.remote_store import (
    RemoteStore,
    RemoteResult,
)

from csc_core.offline.record_store import (
    RecordStore,
    SettingsStore,
)

__all__ = [
    # Connection
    "ConnectionMonitor",
    "ConnectionState",
    "ConnectionStatus",
    # Local
    "LocalStore",
    "ENTITY_TABLES",
    # Remote
    "RemoteStore",
    "RemoteResult",
    "ChangeRelay",
    "Subscription",
    # Record API
    "RecordStore",
    "SettingsStore",
]
