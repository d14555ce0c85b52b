# hm_ledger/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from hm_ledger.billing.api.views import BillingSummaryView, BillViewSet, PatientTotalDueView

router = DefaultRouter()
router.register(r"billing/bills", BillViewSet, basename="billing-bills")

urlpatterns = [
    path(
        "billing/patients/<uuid:patient_id>/total-due/",
        PatientTotalDueView.as_view(),
        name="billing-patient-total-due",
    ),
    path("billing/summary/", BillingSummaryView.as_view(), name="billing-summary"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
