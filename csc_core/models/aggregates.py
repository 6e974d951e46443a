# =============================================================================
# csc_core/models/aggregates.py
# Job aggregate derivation (totals, balance, payment and workflow status)
# =============================================================================
"""
The single source of truth for a Job's derived fields.

Every Job write goes through ``apply_job_aggregates`` (the jobs record store
installs it as its prepare hook), so callers never compute status, totals or
balance themselves.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Iterable, List

from csc_core.models.entities import Job, JobItem, JobStatus, PaymentStatus


@dataclass(frozen=True)
class JobAggregates:
    status: JobStatus
    payment_status: PaymentStatus
    total_amount: float
    balance: float


def line_subtotal(quantity: int, unit_price: float, discount: float) -> float:
    """quantity * unit_price - discount, floored at zero."""
    return max(0.0, quantity * unit_price - discount)


def derive_job_status(statuses: Iterable[JobStatus]) -> JobStatus:
    statuses = list(statuses)
    if not statuses:
        return JobStatus.PENDING
    if all(s == JobStatus.CANCELLED for s in statuses):
        return JobStatus.CANCELLED
    if all(s == JobStatus.COMPLETED for s in statuses):
        return JobStatus.COMPLETED
    if any(s in (JobStatus.IN_PROGRESS, JobStatus.COMPLETED) for s in statuses):
        return JobStatus.IN_PROGRESS
    return JobStatus.PENDING


def derive_payment_status(paid_amount: float, balance: float) -> PaymentStatus:
    if balance == 0:
        return PaymentStatus.PAID
    if paid_amount > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def derive_job_aggregates(
    items: List[JobItem],
    paid_amount: float,
    discount: float = 0.0,
) -> JobAggregates:
    """
    Compute the derived Job fields from its items.

    Args:
        items: Ordered job lines
        paid_amount: Amount received so far
        discount: Job-level discount applied on top of line discounts

    Returns:
        JobAggregates with status, payment status, total and balance
    """
    gross = sum(
        line_subtotal(item.quantity, item.unit_price, item.discount) for item in items
    )
    total_amount = max(0.0, gross - discount)
    balance = max(0.0, total_amount - paid_amount)

    return JobAggregates(
        status=derive_job_status(item.status for item in items),
        payment_status=derive_payment_status(paid_amount, balance),
        total_amount=total_amount,
        balance=balance,
    )


def apply_job_aggregates(job: Job) -> Job:
    """Return a copy of ``job`` with line subtotals and job totals recomputed."""
    items = [
        replace(item, subtotal=line_subtotal(item.quantity, item.unit_price, item.discount))
        for item in job.items
    ]
    aggregates = derive_job_aggregates(items, job.paid_amount, job.discount)
    return replace(
        job,
        items=items,
        status=aggregates.status,
        payment_status=aggregates.payment_status,
        total_amount=aggregates.total_amount,
        balance=aggregates.balance,
    )
