# hm_ledger/billing/subscribers.py
import structlog

from hm_ledger.billing.services import EVENT_BILL_CANCELLED, EVENT_PAYMENT_APPLIED
from hm_ledger.billing.sweeps import EVENT_BILL_OVERDUE
from hm_ledger.common.events import subscribe

log = structlog.get_logger("hm_ledger.billing.events")


@subscribe(EVENT_PAYMENT_APPLIED)
def on_payment_applied(payload: dict) -> None:
    log.info(
        "event.payment_applied",
        bill_id=payload["bill_id"],
        amount=payload["amount"],
        new_status=payload["new_status"],
    )


@subscribe(EVENT_BILL_OVERDUE)
def on_bill_overdue(payload: dict) -> None:
    log.info("event.bill_overdue", bill_id=payload["bill_id"], due_date=payload.get("due_date"))


@subscribe(EVENT_BILL_CANCELLED)
def on_bill_cancelled(payload: dict) -> None:
    log.info("event.bill_cancelled", bill_id=payload["bill_id"])
