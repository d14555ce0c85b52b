# hm_ledger/billing/admin.py
from __future__ import annotations

from django.contrib import admin, messages

from hm_ledger.billing.models import Bill, BillStatus
from hm_ledger.billing.services import BillService
from hm_ledger.common.exceptions import DomainError


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    """
    Amounts, status, patient and dates are read-only here. The remaining
    descriptive fields are saved through BillService.update_bill, and deletes
    go through BillService.delete_bill.
    """
    list_display = (
        "id",
        "patient_id",
        "status",
        "bill_amount",
        "paid_amount",
        "due_amount",
        "bill_date",
        "due_date",
        "paid_date",
    )
    list_filter = ("status", "payment_method", "bill_date", "due_date")
    search_fields = ("id", "patient_id", "appointment_id", "insurance_claim_number")
    readonly_fields = (
        "patient_id",
        "bill_amount",
        "paid_amount",
        "due_amount",
        "status",
        "bill_date",
        "due_date",
        "paid_date",
        "cancelled_at",
        "payment_method",
        "insurance_coverage",
        "created_at",
        "updated_at",
    )
    ordering = ("-bill_date",)
    actions = None

    def has_add_permission(self, request) -> bool:
        return False

    def get_readonly_fields(self, request, obj=None):
        if obj is not None and obj.status == BillStatus.CANCELLED:
            return [f.name for f in obj._meta.fields]
        return self.readonly_fields

    def save_model(self, request, obj, form, change):
        patch = {name: form.cleaned_data[name] for name in form.changed_data}
        if not patch:
            return
        try:
            BillService.update_bill(bill_id=obj.pk, patch=patch)
        except DomainError as exc:
            self.message_user(request, exc.message, level=messages.ERROR)

    def delete_model(self, request, obj):
        BillService.delete_bill(bill_id=obj.pk)
