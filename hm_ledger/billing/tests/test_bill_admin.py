# hm_ledger/billing/tests/test_bill_admin.py
from datetime import date

import pytest
from django.urls import reverse

from hm_ledger.billing.models import Bill, BillStatus
from hm_ledger.billing.services import BillService
from hm_ledger.billing.sweeps import OverdueScanner


def _change_url(bill):
    return reverse("admin:billing_bill_change", args=[bill.id])


@pytest.mark.django_db
def test_admin_cannot_move_bill_or_its_dates(admin_client, make_bill, patient, other_patient):
    bill = make_bill(amount="100.00", due_date=date(2024, 1, 5))
    OverdueScanner.run_overdue_sweep(as_of=date(2024, 1, 10))

    resp = admin_client.post(
        _change_url(bill),
        {
            "patient_id": str(other_patient.id),
            "due_date": "2030-01-01",
            "insurance_coverage": "500.00",
            "appointment_id": "",
            "insurance_claim_number": "CLM-9",
            "itemized_charges": "",
            "notes": "called insurer",
        },
    )
    assert resp.status_code == 302

    bill.refresh_from_db()
    assert bill.patient_id == patient.id
    assert bill.due_date == date(2024, 1, 5)
    assert bill.insurance_coverage is None
    assert bill.status == BillStatus.OVERDUE
    assert bill.notes == "called insurer"
    assert bill.insurance_claim_number == "CLM-9"


@pytest.mark.django_db
def test_admin_delete_goes_through_ledger(admin_client, make_bill):
    bill = make_bill()

    resp = admin_client.post(
        reverse("admin:billing_bill_delete", args=[bill.id]),
        {"post": "yes"},
    )

    assert resp.status_code == 302
    assert not Bill.objects.filter(id=bill.id).exists()


@pytest.mark.django_db
def test_admin_shows_cancelled_bill_read_only(admin_client, make_bill):
    bill = make_bill()
    BillService.cancel_bill(bill_id=bill.id, reason="duplicate")

    admin_client.post(_change_url(bill), {"notes": "edited after cancel"})

    bill.refresh_from_db()
    assert "CANCELLED: duplicate" in bill.notes
    assert "edited after cancel" not in bill.notes
