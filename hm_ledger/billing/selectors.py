# hm_ledger/billing/selectors.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from django.db.models import Count, Q, QuerySet, Sum

from hm_ledger.billing.exceptions import NotFoundError, ValidationError
from hm_ledger.billing.models import SWEEPABLE_STATUSES, Bill, BillStatus
from hm_ledger.billing.money import CENT, ZERO


def coerce_uuid(value, field_name: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"{field_name} must be a valid UUID.", field=field_name)


def bills_qs() -> QuerySet[Bill]:
    return Bill.objects.all()


def get_bill(*, bill_id) -> Bill:
    bill_id = coerce_uuid(bill_id, "bill_id")
    bill = bills_qs().filter(id=bill_id).first()
    if bill is None:
        raise NotFoundError(f"Bill {bill_id} not found.", field="bill_id")
    return bill


def list_bills(
    *,
    patient_id: UUID | None = None,
    status: str | None = None,
    appointment_id: UUID | None = None,
) -> QuerySet[Bill]:
    qs = bills_qs().order_by("-bill_date", "-created_at")

    if patient_id:
        qs = qs.filter(patient_id=patient_id)

    if status:
        if status not in BillStatus.values:
            raise ValidationError(f"Unknown bill status '{status}'.", field="status")
        qs = qs.filter(status=status)

    if appointment_id:
        qs = qs.filter(appointment_id=appointment_id)

    return qs


def list_by_status(*, status: str) -> QuerySet[Bill]:
    return list_bills(status=status)


def list_by_patient(*, patient_id: UUID) -> QuerySet[Bill]:
    return list_bills(patient_id=coerce_uuid(patient_id, "patient_id"))


def list_overdue() -> QuerySet[Bill]:
    return list_bills(status=BillStatus.OVERDUE).order_by("due_date", "created_at")


def overdue_candidate_ids(*, as_of: date) -> list[UUID]:
    """
    Snapshot of bills the overdue sweep should look at. Evaluated eagerly so a
    failing read surfaces here, before any bill is touched.
    """
    qs = (
        bills_qs()
        .filter(status__in=SWEEPABLE_STATUSES, due_date__lt=as_of, due_amount__gt=ZERO)
        .order_by("due_date", "created_at")
        .values_list("id", flat=True)
    )
    return list(qs)


# -------------------------------------------------------------------
# Aggregates
# -------------------------------------------------------------------

def _money_or_zero(value) -> Decimal:
    return (value if value is not None else ZERO).quantize(CENT)


def get_total_due(*, patient_id) -> Decimal:
    """
    Outstanding balance across a patient's bills. Cancelled bills keep their
    due_amount for the record but are not owed, so they are excluded.
    """
    patient_id = coerce_uuid(patient_id, "patient_id")
    agg = (
        bills_qs()
        .filter(patient_id=patient_id)
        .exclude(status=BillStatus.CANCELLED)
        .aggregate(total=Sum("due_amount"))
    )
    return _money_or_zero(agg["total"])


def billing_summary() -> dict:
    """
    Dashboard figures: collected revenue on PAID bills, outstanding balance on
    open bills, and how many bills are currently flagged OVERDUE.
    """
    open_q = ~Q(status__in=[BillStatus.PAID, BillStatus.CANCELLED])
    agg = bills_qs().aggregate(
        total_revenue=Sum("paid_amount", filter=Q(status=BillStatus.PAID)),
        total_outstanding=Sum("due_amount", filter=open_q),
        overdue_count=Count("id", filter=Q(status=BillStatus.OVERDUE)),
        bill_count=Count("id"),
    )
    return {
        "total_revenue": _money_or_zero(agg["total_revenue"]),
        "total_outstanding": _money_or_zero(agg["total_outstanding"]),
        "overdue_count": agg["overdue_count"] or 0,
        "bill_count": agg["bill_count"] or 0,
    }
