# hm_ledger/billing/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import F, Q

from hm_ledger.billing.exceptions import InvariantViolation
from hm_ledger.common.models import UUIDModel


class BillStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PARTIALLY_PAID = "PARTIALLY_PAID", "Partially Paid"
    PAID = "PAID", "Paid"
    OVERDUE = "OVERDUE", "Overdue"
    CANCELLED = "CANCELLED", "Cancelled"


TERMINAL_STATUSES = frozenset({BillStatus.PAID, BillStatus.CANCELLED})

# Statuses the overdue sweep may move to OVERDUE.
SWEEPABLE_STATUSES = (BillStatus.PENDING, BillStatus.PARTIALLY_PAID)


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CREDIT_CARD = "CREDIT_CARD", "Credit Card"
    DEBIT_CARD = "DEBIT_CARD", "Debit Card"
    INSURANCE = "INSURANCE", "Insurance"
    ONLINE = "ONLINE", "Online"


class Bill(UUIDModel):
    """
    One invoice per billable encounter.

    Financial fields (amounts, status, paid_date, payment_method) are
    editable=False: they are written only by BillService / PaymentService /
    OverdueScanner, never through forms, the admin or serializers.
    """
    patient_id = models.UUIDField(db_index=True)
    appointment_id = models.UUIDField(null=True, blank=True, db_index=True)

    bill_amount = models.DecimalField(max_digits=12, decimal_places=2, editable=False)
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False)
    due_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"), editable=False)

    status = models.CharField(
        max_length=32,
        choices=BillStatus.choices,
        default=BillStatus.PENDING,
        db_index=True,
        editable=False,
    )

    bill_date = models.DateField()
    due_date = models.DateField()
    paid_date = models.DateTimeField(null=True, blank=True, editable=False)
    cancelled_at = models.DateTimeField(null=True, blank=True, editable=False)

    payment_method = models.CharField(max_length=32, choices=PaymentMethod.choices, blank=True, editable=False)

    # Informational only: claims are adjudicated elsewhere.
    insurance_claim_number = models.CharField(max_length=64, blank=True)
    insurance_coverage = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    itemized_charges = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = "billing_bill"
        ordering = ["-bill_date", "-created_at"]
        constraints = [
            models.CheckConstraint(condition=Q(bill_amount__gt=0), name="ck_bill_amount_positive"),
            models.CheckConstraint(condition=Q(paid_amount__gte=0), name="ck_bill_paid_non_negative"),
            models.CheckConstraint(condition=Q(due_amount__gte=0), name="ck_bill_due_non_negative"),
            models.CheckConstraint(condition=Q(paid_amount__lte=F("bill_amount")), name="ck_bill_paid_within_amount"),
            models.CheckConstraint(condition=Q(due_date__gte=F("bill_date")), name="ck_bill_due_after_bill_date"),
        ]
        indexes = [
            models.Index(fields=["patient_id", "status"], name="bill_patient_status_idx"),
            models.Index(fields=["status", "due_date"], name="bill_status_due_idx"),
        ]

    def __str__(self) -> str:
        return f"Bill {self.id} ({self.status}) {self.due_amount}/{self.bill_amount}"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def check_invariants(self) -> None:
        """
        Raise InvariantViolation if the row would break a ledger invariant.
        Called by the services after every mutation, inside the transaction.
        """
        if self.bill_amount is None or self.bill_amount <= 0:
            raise InvariantViolation("bill_amount must be positive.", bill=self)

        if self.paid_amount < 0 or self.paid_amount > self.bill_amount:
            raise InvariantViolation("paid_amount must be within [0, bill_amount].", bill=self)

        if self.due_amount != self.bill_amount - self.paid_amount:
            raise InvariantViolation("due_amount must equal bill_amount - paid_amount.", bill=self)

        if self.due_date < self.bill_date:
            raise InvariantViolation("due_date must not precede bill_date.", bill=self)

        if self.status == BillStatus.PAID:
            if self.due_amount != 0:
                raise InvariantViolation("PAID bill must have zero due_amount.", bill=self)
            if self.paid_date is None:
                raise InvariantViolation("PAID bill must have paid_date.", bill=self)
        elif self.status != BillStatus.CANCELLED and self.due_amount == 0:
            raise InvariantViolation("Fully paid bill must be PAID.", bill=self)

        if self.status == BillStatus.OVERDUE and self.due_amount <= 0:
            raise InvariantViolation("OVERDUE bill must have an outstanding due_amount.", bill=self)

        if self.status == BillStatus.PARTIALLY_PAID and self.paid_amount <= 0:
            raise InvariantViolation("PARTIALLY_PAID bill must have a payment.", bill=self)

        if self.status == BillStatus.CANCELLED and self.cancelled_at is None:
            raise InvariantViolation("CANCELLED bill must have cancelled_at.", bill=self)
