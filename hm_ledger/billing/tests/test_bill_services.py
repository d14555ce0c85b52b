# hm_ledger/billing/tests/test_bill_services.py
import uuid
from datetime import date
from decimal import Decimal

import pytest

from hm_ledger.billing.exceptions import InvalidStateError, NotFoundError, ValidationError
from hm_ledger.billing.models import Bill, BillStatus
from hm_ledger.billing.services import BillService, PaymentService
from hm_ledger.billing.sweeps import OverdueScanner


@pytest.mark.django_db
def test_create_bill_starts_pending_with_full_due(patient):
    appointment_id = uuid.uuid4()
    bill = BillService.create_bill(
        patient_id=patient.id,
        appointment_id=appointment_id,
        bill_amount="200.00",
        bill_date=date(2024, 1, 1),
        due_date=date(2024, 1, 15),
        itemized_charges="Consultation 150.00\nX-ray 50.00",
        notes="OPD visit",
    )

    bill.refresh_from_db()
    assert bill.status == BillStatus.PENDING
    assert bill.bill_amount == Decimal("200.00")
    assert bill.paid_amount == Decimal("0.00")
    assert bill.due_amount == Decimal("200.00")
    assert bill.appointment_id == appointment_id
    assert bill.paid_date is None
    assert bill.payment_method == ""


@pytest.mark.django_db
def test_create_bill_accepts_iso_date_strings(patient):
    bill = BillService.create_bill(
        patient_id=str(patient.id),
        bill_amount="75",
        bill_date="2024-02-01",
        due_date="2024-02-01",
    )
    assert bill.bill_date == date(2024, 2, 1)
    assert bill.due_date == bill.bill_date
    assert bill.due_amount == Decimal("75.00")


@pytest.mark.django_db
@pytest.mark.parametrize("amount", ["0.00", "-5.00", "12.345", "ten"])
def test_create_bill_rejects_bad_amount(patient, amount):
    with pytest.raises(ValidationError) as exc:
        BillService.create_bill(
            patient_id=patient.id,
            bill_amount=amount,
            bill_date=date(2024, 1, 1),
            due_date=date(2024, 1, 15),
        )
    assert exc.value.field == "bill_amount"
    assert Bill.objects.count() == 0


@pytest.mark.django_db
def test_create_bill_rejects_due_date_before_bill_date(patient):
    with pytest.raises(ValidationError) as exc:
        BillService.create_bill(
            patient_id=patient.id,
            bill_amount="50.00",
            bill_date=date(2024, 1, 10),
            due_date=date(2024, 1, 9),
        )
    assert exc.value.field == "due_date"


@pytest.mark.django_db
def test_create_bill_unknown_patient_is_not_found():
    with pytest.raises(NotFoundError) as exc:
        BillService.create_bill(
            patient_id=uuid.uuid4(),
            bill_amount="50.00",
            bill_date=date(2024, 1, 1),
            due_date=date(2024, 1, 2),
        )
    assert exc.value.field == "patient_id"


@pytest.mark.django_db
def test_create_bill_uses_injected_patient_directory():
    class Directory:
        def __init__(self):
            self.asked = []

        def exists(self, patient_id):
            self.asked.append(patient_id)
            return True

    directory = Directory()
    external_id = uuid.uuid4()

    bill = BillService.create_bill(
        patient_id=external_id,
        bill_amount="10.00",
        bill_date=date(2024, 1, 1),
        due_date=date(2024, 1, 1),
        patients=directory,
    )
    assert bill.patient_id == external_id
    assert directory.asked == [external_id]


@pytest.mark.django_db
def test_create_bill_rejects_coverage_above_amount(patient):
    with pytest.raises(ValidationError) as exc:
        BillService.create_bill(
            patient_id=patient.id,
            bill_amount="100.00",
            bill_date=date(2024, 1, 1),
            due_date=date(2024, 1, 2),
            insurance_claim_number="CLM-1",
            insurance_coverage="150.00",
        )
    assert exc.value.field == "insurance_coverage"


@pytest.mark.django_db
def test_update_bill_changes_only_non_financial_fields(make_bill):
    bill = make_bill(amount="100.00")
    appointment_id = uuid.uuid4()

    updated = BillService.update_bill(
        bill_id=bill.id,
        patch={
            "notes": "called patient",
            "itemized_charges": "Lab panel",
            "due_date": date(2024, 2, 1),
            "appointment_id": str(appointment_id),
        },
    )

    updated.refresh_from_db()
    assert updated.notes == "called patient"
    assert updated.itemized_charges == "Lab panel"
    assert updated.due_date == date(2024, 2, 1)
    assert updated.appointment_id == appointment_id
    assert updated.bill_amount == Decimal("100.00")
    assert updated.status == BillStatus.PENDING


@pytest.mark.django_db
@pytest.mark.parametrize("field", ["bill_amount", "paid_amount", "due_amount", "status", "paid_date"])
def test_update_bill_rejects_financial_fields(make_bill, field):
    bill = make_bill(amount="100.00")

    with pytest.raises(ValidationError) as exc:
        BillService.update_bill(bill_id=bill.id, patch={field: "1.00"})
    assert exc.value.field == field
    assert exc.value.details["bill"]["bill_amount"] == "100.00"
    assert exc.value.details["bill"]["status"] == BillStatus.PENDING

    bill.refresh_from_db()
    assert bill.bill_amount == Decimal("100.00")
    assert bill.status == BillStatus.PENDING


@pytest.mark.django_db
def test_update_bill_rejects_unknown_field(make_bill):
    bill = make_bill()
    with pytest.raises(ValidationError) as exc:
        BillService.update_bill(bill_id=bill.id, patch={"colour": "red"})
    assert exc.value.field == "colour"
    assert exc.value.details["bill"]["due_amount"] == "100.00"


@pytest.mark.django_db
def test_update_bill_due_date_before_bill_date_reports_amounts(make_bill):
    bill = make_bill(amount="100.00", bill_date=date(2024, 1, 5), due_date=date(2024, 1, 20))

    with pytest.raises(ValidationError) as exc:
        BillService.update_bill(bill_id=bill.id, patch={"due_date": date(2024, 1, 4)})

    assert exc.value.details["bill"]["due_amount"] == "100.00"


@pytest.mark.django_db
def test_update_cancelled_bill_is_invalid_state(make_bill):
    bill = make_bill()
    BillService.cancel_bill(bill_id=bill.id, reason="duplicate")

    with pytest.raises(InvalidStateError):
        BillService.update_bill(bill_id=bill.id, patch={"notes": "too late"})


@pytest.mark.django_db
def test_extending_due_date_lifts_overdue_flag(make_bill, clock):
    bill = make_bill(amount="100.00", due_date=date(2024, 1, 5))
    OverdueScanner.run_overdue_sweep(as_of=date(2024, 1, 10))
    bill.refresh_from_db()
    assert bill.status == BillStatus.OVERDUE

    # clock is 2024-01-10; new due date is in the future
    updated = BillService.update_bill(bill_id=bill.id, patch={"due_date": date(2024, 1, 31)}, clock=clock)
    assert updated.status == BillStatus.PENDING


@pytest.mark.django_db
def test_extending_due_date_of_part_paid_overdue_bill_returns_to_partially_paid(make_bill, clock):
    bill = make_bill(amount="100.00", due_date=date(2024, 1, 5))
    PaymentService.apply_payment(bill_id=bill.id, amount="40.00", method="CASH", clock=clock)
    OverdueScanner.run_overdue_sweep(as_of=date(2024, 1, 10))

    updated = BillService.update_bill(bill_id=bill.id, patch={"due_date": date(2024, 1, 31)}, clock=clock)
    assert updated.status == BillStatus.PARTIALLY_PAID


@pytest.mark.django_db
def test_cancel_bill_keeps_amounts_and_records_reason(make_bill, clock):
    bill = make_bill(amount="999.00")

    cancelled = BillService.cancel_bill(bill_id=bill.id, reason="entered twice", clock=clock)

    cancelled.refresh_from_db()
    assert cancelled.status == BillStatus.CANCELLED
    assert cancelled.cancelled_at == clock.now()
    assert cancelled.due_amount == Decimal("999.00")
    assert "CANCELLED: entered twice" in cancelled.notes


@pytest.mark.django_db
def test_cancel_paid_bill_is_invalid_state(make_bill):
    bill = make_bill(amount="100.00")
    PaymentService.apply_payment(bill_id=bill.id, amount="100.00", method="CASH")

    with pytest.raises(InvalidStateError):
        BillService.cancel_bill(bill_id=bill.id)


@pytest.mark.django_db
def test_cancel_twice_is_invalid_state(make_bill):
    bill = make_bill()
    BillService.cancel_bill(bill_id=bill.id)
    with pytest.raises(InvalidStateError):
        BillService.cancel_bill(bill_id=bill.id)


@pytest.mark.django_db
def test_delete_bill_removes_row(make_bill):
    bill = make_bill()
    BillService.delete_bill(bill_id=bill.id)
    assert not Bill.objects.filter(id=bill.id).exists()

    with pytest.raises(NotFoundError):
        BillService.delete_bill(bill_id=bill.id)


@pytest.mark.django_db
def test_malformed_bill_id_is_validation_error():
    with pytest.raises(ValidationError) as exc:
        BillService.delete_bill(bill_id="not-a-uuid")
    assert exc.value.field == "bill_id"


@pytest.mark.django_db
def test_create_bill_for_inactive_patient_is_not_found(patient):
    patient.is_active = False
    patient.save(update_fields=["is_active"])

    with pytest.raises(NotFoundError):
        BillService.create_bill(
            patient_id=patient.id,
            bill_amount="10.00",
            bill_date=date(2024, 1, 1),
            due_date=date(2024, 1, 1),
        )
