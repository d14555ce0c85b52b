# hm_ledger/billing/exceptions.py
from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

from hm_ledger.common.exceptions import DomainError

if TYPE_CHECKING:
    from hm_ledger.billing.models import Bill


def bill_snapshot(bill: "Bill") -> dict[str, Any]:
    """Authoritative amounts a retrying caller needs to correct its request."""
    return {
        "bill_id": str(bill.id),
        "status": bill.status,
        "bill_amount": str(bill.bill_amount),
        "paid_amount": str(bill.paid_amount),
        "due_amount": str(bill.due_amount),
    }


class LedgerError(DomainError):
    code = "ledger_error"

    def __init__(
        self,
        message: str,
        *,
        bill: "Bill | None" = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        data = dict(details or {})
        if bill is not None:
            data["bill"] = bill_snapshot(bill)
        super().__init__(message, field=field, details=data)
        self.bill_id = bill.id if bill is not None else None


class ValidationError(LedgerError):
    """Malformed or out-of-range input."""
    code = "validation_error"
    http_status = 400


class NotFoundError(LedgerError):
    """Unknown bill or patient reference."""
    code = "not_found"
    http_status = 404


class InvalidStateError(LedgerError):
    """Operation not permitted in the bill's current status."""
    code = "invalid_state"
    http_status = 409


class OverpaymentError(LedgerError):
    """Payment would exceed the remaining due amount."""
    code = "overpayment"
    http_status = 422

    def __init__(self, message: str, *, bill: "Bill", attempted: Decimal):
        super().__init__(
            message,
            bill=bill,
            field="amount",
            details={
                "attempted_amount": str(attempted),
                "max_acceptable": str(bill.due_amount),
            },
        )
        self.max_acceptable = bill.due_amount
        self.attempted = attempted


class InvariantViolation(LedgerError):
    """Ledger state failed an integrity check; the enclosing transaction is rolled back."""
    code = "ledger_invariant_violation"
    http_status = 500
