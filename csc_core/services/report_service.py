"""
Report Service - dashboard KPIs and registry reports for the service centre.

Everything here is computed on demand from the record stores; nothing is
cached or persisted.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

import pandas as pd

from .base_service import BaseService
from csc_core.models import Job, JobStatus, InventoryItem, Service
from csc_core.offline.record_store import RecordStore

UNCATEGORIZED = "Other"

# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class DashboardStats:
    """Headline figures for the dashboard cards."""
    pending_jobs: int = 0          # Jobs not yet COMPLETED
    total_revenue: float = 0.0     # Sum of paidAmount
    total_balance: float = 0.0     # Sum of outstanding balance
    low_stock_count: int = 0       # Items at or below minStock


def _matches_prefix(timestamp: str, date_prefix: Optional[str]) -> bool:
    if not date_prefix:
        return True
    return bool(timestamp) and timestamp.startswith(date_prefix)


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    # Compare everything as naive local time
    return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed


class ReportService(BaseService):
    """
    Usage:
        reports = ReportService(db.jobs, db.inventory, db.services)
        stats = reports.dashboard_stats()
        overdue = reports.overdue_jobs(days=3)
    """

    def __init__(
        self,
        jobs: RecordStore[Job],
        inventory: RecordStore[InventoryItem],
        services: RecordStore[Service],
    ):
        super().__init__()
        self._jobs = jobs
        self._inventory = inventory
        self._services = services

    def dashboard_stats(self) -> DashboardStats:
        jobs = self._jobs.all()
        return DashboardStats(
            pending_jobs=sum(1 for j in jobs if j.status != JobStatus.COMPLETED),
            total_revenue=sum(j.paid_amount for j in jobs),
            total_balance=sum(j.balance for j in jobs),
            low_stock_count=len(self.low_stock_items()),
        )

    def pending_jobs(self, date_prefix: Optional[str] = None) -> List[Job]:
        """Jobs not COMPLETED, optionally limited to a createdAt prefix ('2024-05')."""
        return [
            j for j in self._jobs.all()
            if j.status != JobStatus.COMPLETED
            and _matches_prefix(j.created_at or j.updated_at, date_prefix)
        ]

    def pending_payments(self, date_prefix: Optional[str] = None) -> List[Job]:
        """Jobs with an outstanding balance (the credit registry)."""
        return [
            j for j in self._jobs.all()
            if j.balance > 0
            and _matches_prefix(j.created_at or j.updated_at, date_prefix)
        ]

    def low_stock_items(self) -> List[InventoryItem]:
        return [item for item in self._inventory.all() if item.is_low_stock]

    def overdue_jobs(self, days: int = 3, now: Optional[datetime] = None) -> List[Job]:
        """
        Jobs still open ``days`` after creation.

        Args:
            days: Age threshold in days
            now: Reference time (defaults to the current local time)

        Returns:
            Open jobs created before ``now - days``; unparsable dates are skipped
        """
        cutoff = (now or datetime.now()) - timedelta(days=days)
        overdue = []
        for job in self._jobs.all():
            if job.status == JobStatus.COMPLETED:
                continue
            created = _parse_timestamp(job.created_at)
            if created is not None and created < cutoff:
                overdue.append(job)
        return overdue

    def revenue_by_category(self) -> pd.DataFrame:
        """
        Line count and billed subtotal per service category.

        Returns:
            DataFrame with columns category, lines, revenue, sorted by revenue
        """
        categories = {s.id: (s.category or UNCATEGORIZED) for s in self._services.all()}
        rows = [
            {
                "category": categories.get(item.service_id, UNCATEGORIZED),
                "lines": item.quantity,
                "revenue": item.subtotal,
            }
            for job in self._jobs.all()
            for item in job.items
            if item.status != JobStatus.CANCELLED
        ]
        if not rows:
            return pd.DataFrame(columns=["category", "lines", "revenue"])

        df = pd.DataFrame(rows)
        summary = df.groupby("category", as_index=False).agg(
            lines=("lines", "sum"),
            revenue=("revenue", "sum"),
        )
        return summary.sort_values("revenue", ascending=False).reset_index(drop=True)
