# hm_ledger/billing/sweeps.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

import structlog
from django.db import DatabaseError, transaction

from hm_ledger.billing.exceptions import InvariantViolation
from hm_ledger.billing.models import SWEEPABLE_STATUSES, Bill, BillStatus
from hm_ledger.billing.money import ZERO
from hm_ledger.billing.selectors import overdue_candidate_ids
from hm_ledger.common.clock import Clock, get_clock, local_date
from hm_ledger.common.events import publish_on_commit

log = structlog.get_logger(__name__)

EVENT_BILL_OVERDUE = "billing.bill_overdue"


@dataclass(frozen=True)
class SweepResult:
    as_of: date
    scanned: int
    updated_count: int
    failed_bill_ids: tuple[UUID, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        return {
            "as_of": self.as_of.isoformat(),
            "scanned": self.scanned,
            "updated_count": self.updated_count,
            "failed_bill_ids": [str(x) for x in self.failed_bill_ids],
        }


class OverdueScanner:
    @staticmethod
    def run_overdue_sweep(*, as_of: date | None = None, clock: Clock | None = None) -> SweepResult:
        """
        Flag PENDING / PARTIALLY_PAID bills whose due_date is before `as_of`
        and that still have money owed.

        Idempotent for a given as_of. A bill that fails to update is logged and
        skipped; a failure reading the candidate snapshot propagates.
        """
        if as_of is None:
            as_of = local_date(get_clock(clock))

        candidate_ids = overdue_candidate_ids(as_of=as_of)

        updated = 0
        failed: list[UUID] = []
        with structlog.contextvars.bound_contextvars(sweep_as_of=as_of.isoformat()):
            for bill_id in candidate_ids:
                try:
                    if OverdueScanner._flag_overdue(bill_id=bill_id, as_of=as_of):
                        updated += 1
                except (DatabaseError, InvariantViolation):
                    # The bill's own transaction has rolled back; the rest of the sweep goes on.
                    log.exception("overdue_sweep_bill_failed", bill_id=str(bill_id))
                    failed.append(bill_id)

        result = SweepResult(
            as_of=as_of,
            scanned=len(candidate_ids),
            updated_count=updated,
            failed_bill_ids=tuple(failed),
        )
        log.info("overdue_sweep_finished", **result.as_dict())
        return result

    @staticmethod
    @transaction.atomic
    def _flag_overdue(*, bill_id: UUID, as_of: date) -> bool:
        # Re-read under the row lock: a payment may have landed since the snapshot.
        bill = Bill.objects.select_for_update().filter(id=bill_id).first()
        if bill is None:
            return False

        if bill.status not in SWEEPABLE_STATUSES:
            return False
        if bill.due_amount <= ZERO or bill.due_date >= as_of:
            return False

        bill.status = BillStatus.OVERDUE
        bill.check_invariants()
        bill.save(update_fields=["status", "updated_at"])

        publish_on_commit(
            EVENT_BILL_OVERDUE,
            {"bill_id": str(bill.id), "patient_id": str(bill.patient_id), "due_date": bill.due_date.isoformat()},
        )
        return True
