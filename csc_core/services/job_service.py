# =============================================================================
# csc_core/services/job_service.py
# Job Service - job intake, per-line workflow and payments
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import List

from .base_service import BaseService, ServiceResult
from csc_core.errors import DataValidationError
from csc_core.models import Job, JobStatus, validate_job
from csc_core.offline.record_store import RecordStore


@dataclass
class JobTask:
    """One (job, line) pair, as shown on the workflow board."""
    job_id: str
    index: int
    customer_id: str
    service_id: str
    status: JobStatus
    created_at: str


class JobService(BaseService):
    """
    Service for job cards.

    Totals, balance and status are derived by the jobs store on every write,
    so this service only edits the inputs (lines, discount, paid amount).

    Usage:
        service = JobService(db.jobs)
        service.save_job(job)
        service.update_item_status(job.id, 0, JobStatus.COMPLETED)
        service.record_payment(job.id, 100.0)
    """

    def __init__(self, jobs: RecordStore[Job]):
        super().__init__()
        self._jobs = jobs

    def _require(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise DataValidationError(f"Job {job_id} not found", field="id", actual=job_id)
        return job

    def save_job(self, job: Job) -> ServiceResult:
        """
        Validate and save a job, stamping created/updated timestamps.

        Returns:
            ServiceResult with the Job as written (aggregates applied)
        """
        def _save():
            validate_job(job)
            now = datetime.now().isoformat()
            if not job.created_at:
                job.created_at = now
            job.updated_at = now
            return self._jobs.save(job)

        return self.safe_execute("Saving job", _save)

    def update_item_status(self, job_id: str, index: int, status: JobStatus) -> ServiceResult:
        """Move one job line to a new workflow stage."""
        def _update():
            job = self._require(job_id)
            if not 0 <= index < len(job.items):
                raise DataValidationError(
                    f"Job {job_id} has no line {index}",
                    field="items",
                    expected=f"0..{len(job.items) - 1}",
                    actual=str(index),
                )
            job.items[index].status = JobStatus(status)
            job.updated_at = datetime.now().isoformat()
            return self._jobs.save(job)

        return self.safe_execute("Updating job line status", _update)

    def record_payment(self, job_id: str, amount: float) -> ServiceResult:
        """Add a received amount to the job's paid total."""
        def _pay():
            if amount <= 0:
                raise DataValidationError(
                    "Payment amount must be positive",
                    field="paidAmount",
                    expected="> 0",
                    actual=str(amount),
                )
            job = self._require(job_id)
            job.paid_amount += amount
            job.updated_at = datetime.now().isoformat()
            saved = self._jobs.save(job)
            self.logger.info(
                f"Recorded payment of {amount:.2f} on job {job_id} "
                f"(balance {saved.balance:.2f})"
            )
            return saved

        return self.safe_execute("Recording payment", _pay)

    def flatten_tasks(self) -> List[JobTask]:
        """One task per job line, in job order."""
        return [
            JobTask(
                job_id=job.id,
                index=index,
                customer_id=job.customer_id,
                service_id=item.service_id,
                status=item.status,
                created_at=job.created_at,
            )
            for job in self._jobs.all()
            for index, item in enumerate(job.items)
        ]
