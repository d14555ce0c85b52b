# hm_ledger/billing/services.py
from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

import structlog
from django.db import transaction

from hm_ledger.billing.exceptions import (
    InvalidStateError,
    NotFoundError,
    OverpaymentError,
    ValidationError,
)
from hm_ledger.billing.models import Bill, BillStatus, PaymentMethod
from hm_ledger.billing.money import ZERO, Money, to_money, to_positive_money
from hm_ledger.billing.selectors import coerce_uuid
from hm_ledger.common.clock import Clock, get_clock, local_date
from hm_ledger.common.events import publish_on_commit
from hm_ledger.patients.selectors import PatientDirectory, get_patient_directory

log = structlog.get_logger(__name__)

EVENT_PAYMENT_APPLIED = "billing.payment_applied"
EVENT_BILL_CANCELLED = "billing.bill_cancelled"

# Fields that only the ledger itself may write.
FINANCIAL_FIELDS = frozenset(
    {"bill_amount", "paid_amount", "due_amount", "status", "paid_date", "payment_method", "cancelled_at"}
)
UPDATABLE_FIELDS = frozenset(
    {"itemized_charges", "notes", "due_date", "appointment_id", "insurance_claim_number", "insurance_coverage"}
)


def _coerce_date(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        raise ValidationError(f"{field_name} must be a calendar date, not a timestamp.", field=field_name)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD).", field=field_name)


def _coerce_optional_uuid(value: Any, field_name: str) -> UUID | None:
    if value in (None, ""):
        return None
    return coerce_uuid(value, field_name)


def _coerce_coverage(value: Any, *, bill_amount: Money) -> Money | None:
    if value in (None, ""):
        return None
    coverage = to_money(value, field="insurance_coverage")
    if coverage > bill_amount:
        raise ValidationError("insurance_coverage cannot exceed bill_amount.", field="insurance_coverage")
    return coverage


def check_patch_fields(keys) -> None:
    """Reject patches touching ledger-owned or unknown fields."""
    keys = set(keys)

    financial = sorted(keys & FINANCIAL_FIELDS)
    if financial:
        raise ValidationError(
            f"Financial fields cannot be updated: {', '.join(financial)}. Cancel the bill and create a new one.",
            field=financial[0],
        )

    unknown = sorted(keys - UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown bill fields: {', '.join(unknown)}.", field=unknown[0])


def _lock_bill(bill_id: Any) -> Bill:
    """
    Row-lock a bill for the rest of the current transaction. Every mutation
    goes through here so concurrent writers on one bill are serialized.
    """
    bill_id = coerce_uuid(bill_id, "bill_id")
    bill = Bill.objects.select_for_update().filter(id=bill_id).first()
    if bill is None:
        raise NotFoundError(f"Bill {bill_id} not found.", field="bill_id")
    return bill


def _with_bill(exc: ValidationError, bill: Bill) -> ValidationError:
    return ValidationError(exc.message, bill=bill, field=exc.field)


class BillService:
    @staticmethod
    @transaction.atomic
    def create_bill(
        *,
        patient_id: UUID,
        bill_amount: Any,
        bill_date: date,
        due_date: date,
        appointment_id: UUID | None = None,
        itemized_charges: str = "",
        notes: str = "",
        insurance_claim_number: str = "",
        insurance_coverage: Any = None,
        patients: PatientDirectory | None = None,
    ) -> Bill:
        patient_id = coerce_uuid(patient_id, "patient_id")
        appointment_id = _coerce_optional_uuid(appointment_id, "appointment_id")

        amount = to_positive_money(bill_amount, field="bill_amount")
        bill_date = _coerce_date(bill_date, "bill_date")
        due_date = _coerce_date(due_date, "due_date")

        if due_date < bill_date:
            raise ValidationError("due_date cannot be before bill_date.", field="due_date")

        coverage = _coerce_coverage(insurance_coverage, bill_amount=amount)

        if not get_patient_directory(patients).exists(patient_id):
            raise NotFoundError(f"Patient {patient_id} not found.", field="patient_id")

        bill = Bill(
            patient_id=patient_id,
            appointment_id=appointment_id,
            bill_amount=amount,
            paid_amount=ZERO,
            due_amount=amount,
            status=BillStatus.PENDING,
            bill_date=bill_date,
            due_date=due_date,
            itemized_charges=itemized_charges or "",
            notes=notes or "",
            insurance_claim_number=insurance_claim_number or "",
            insurance_coverage=coverage,
        )
        bill.check_invariants()
        bill.save(force_insert=True)

        log.info(
            "bill_created",
            bill_id=str(bill.id),
            patient_id=str(patient_id),
            bill_amount=str(amount),
            due_date=due_date.isoformat(),
        )
        return bill

    @staticmethod
    @transaction.atomic
    def update_bill(*, bill_id: UUID, patch: dict[str, Any], clock: Clock | None = None) -> Bill:
        """
        Update non-financial fields. Amounts cannot be amended after creation:
        cancel the bill and create a new one instead.

        Moving the due date of an OVERDUE bill to today or later lifts the
        OVERDUE flag again (PARTIALLY_PAID if something was paid, else PENDING).
        """
        patch = dict(patch or {})

        bill = _lock_bill(bill_id)

        try:
            check_patch_fields(patch)
        except ValidationError as exc:
            raise _with_bill(exc, bill) from exc

        if bill.status == BillStatus.CANCELLED:
            raise InvalidStateError("Cannot update a CANCELLED bill.", bill=bill)

        changed: list[str] = []
        try:
            if "due_date" in patch:
                due_date = _coerce_date(patch["due_date"], "due_date")
                if due_date < bill.bill_date:
                    raise ValidationError("due_date cannot be before bill_date.", field="due_date")
                bill.due_date = due_date
                changed.append("due_date")

            if "appointment_id" in patch:
                bill.appointment_id = _coerce_optional_uuid(patch["appointment_id"], "appointment_id")
                changed.append("appointment_id")

            if "insurance_coverage" in patch:
                bill.insurance_coverage = _coerce_coverage(patch["insurance_coverage"], bill_amount=bill.bill_amount)
                changed.append("insurance_coverage")
        except ValidationError as exc:
            raise _with_bill(exc, bill) from exc

        for name in ("itemized_charges", "notes", "insurance_claim_number"):
            if name in patch:
                setattr(bill, name, patch[name] or "")
                changed.append(name)

        if bill.status == BillStatus.OVERDUE and "due_date" in changed:
            today = local_date(get_clock(clock))
            if bill.due_date >= today:
                bill.status = BillStatus.PARTIALLY_PAID if bill.paid_amount > ZERO else BillStatus.PENDING
                changed.append("status")

        if not changed:
            return bill

        bill.check_invariants()
        bill.save(update_fields=[*changed, "updated_at"])

        log.info("bill_updated", bill_id=str(bill.id), fields=sorted(changed))
        return bill

    @staticmethod
    @transaction.atomic
    def cancel_bill(*, bill_id: UUID, reason: str = "", clock: Clock | None = None) -> Bill:
        bill = _lock_bill(bill_id)

        if bill.status == BillStatus.PAID:
            raise InvalidStateError("Cannot cancel a PAID bill.", bill=bill)
        if bill.status == BillStatus.CANCELLED:
            raise InvalidStateError("Bill is already CANCELLED.", bill=bill)

        previous = bill.status
        bill.status = BillStatus.CANCELLED
        bill.cancelled_at = get_clock(clock).now()
        if reason:
            bill.notes = (bill.notes + "\n" + f"CANCELLED: {reason}").strip()

        bill.check_invariants()
        bill.save(update_fields=["status", "cancelled_at", "notes", "updated_at"])

        publish_on_commit(
            EVENT_BILL_CANCELLED,
            {"bill_id": str(bill.id), "patient_id": str(bill.patient_id), "previous_status": previous},
        )
        log.info("bill_cancelled", bill_id=str(bill.id), previous_status=previous)
        return bill

    @staticmethod
    @transaction.atomic
    def delete_bill(*, bill_id: UUID) -> None:
        """Administrative hard delete. Irreversible."""
        bill = _lock_bill(bill_id)
        snapshot = {"bill_id": str(bill.id), "status": bill.status, "due_amount": str(bill.due_amount)}
        bill.delete()
        log.warning("bill_deleted", **snapshot)


class PaymentService:
    @staticmethod
    @transaction.atomic
    def apply_payment(
        *,
        bill_id: UUID,
        amount: Any,
        method: str,
        clock: Clock | None = None,
    ) -> Bill:
        """
        Apply a payment to a bill under its row lock.

        Over-payments are rejected, never truncated: the error carries the
        maximum acceptable amount so the caller can resubmit.
        """
        bill = _lock_bill(bill_id)

        if bill.status in (BillStatus.PAID, BillStatus.CANCELLED):
            raise InvalidStateError(f"Cannot apply payment to a {bill.status} bill.", bill=bill)

        try:
            payment = to_positive_money(amount, field="amount")
        except ValidationError as exc:
            raise _with_bill(exc, bill) from exc

        if method not in PaymentMethod.values:
            raise ValidationError(
                f"Unknown payment method '{method}'. Expected one of: {', '.join(PaymentMethod.values)}.",
                bill=bill,
                field="method",
            )

        if payment > bill.due_amount:
            raise OverpaymentError(
                f"Payment of {payment} exceeds the due amount; at most {bill.due_amount} can be accepted.",
                bill=bill,
                attempted=payment,
            )

        previous = bill.status
        bill.paid_amount = bill.paid_amount + payment
        bill.due_amount = bill.bill_amount - bill.paid_amount
        bill.payment_method = method

        if bill.due_amount == ZERO:
            bill.status = BillStatus.PAID
            bill.paid_date = get_clock(clock).now()
        else:
            bill.status = BillStatus.PARTIALLY_PAID

        bill.check_invariants()
        bill.save(update_fields=["paid_amount", "due_amount", "payment_method", "status", "paid_date", "updated_at"])

        publish_on_commit(
            EVENT_PAYMENT_APPLIED,
            {
                "bill_id": str(bill.id),
                "patient_id": str(bill.patient_id),
                "amount": str(payment),
                "new_status": bill.status,
                "previous_status": previous,
            },
        )
        log.info(
            "payment_applied",
            bill_id=str(bill.id),
            amount=str(payment),
            method=method,
            previous_status=previous,
            new_status=bill.status,
            due_amount=str(bill.due_amount),
        )
        return bill
