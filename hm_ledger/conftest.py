# hm_ledger/conftest.py
from datetime import date, datetime
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from hm_ledger.common.clock import FixedClock
from hm_ledger.patients.models import Patient


@pytest.fixture
def patient(db):
    return Patient.objects.create(full_name="Test Patient", mrn="MRN-TEST-001")


@pytest.fixture
def other_patient(db):
    return Patient.objects.create(full_name="Other Patient", mrn="MRN-TEST-002")


@pytest.fixture
def clock():
    """Pinned to 2024-01-10 10:00 in the project timezone."""
    return FixedClock(datetime(2024, 1, 10, 10, 0))


@pytest.fixture
def make_bill(patient):
    """
    Create bills through the ledger so every row starts invariant-consistent.
    """
    from hm_ledger.billing.services import BillService

    def _make(
        *,
        amount="100.00",
        bill_date=date(2024, 1, 1),
        due_date=date(2024, 1, 15),
        patient_id=None,
        **extra,
    ):
        return BillService.create_bill(
            patient_id=patient_id or patient.id,
            bill_amount=Decimal(amount),
            bill_date=bill_date,
            due_date=due_date,
            **extra,
        )

    return _make


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(username="billing-clerk", password="testpass", is_active=True)


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c
