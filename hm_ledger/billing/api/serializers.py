# hm_ledger/billing/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hm_ledger.billing.models import Bill, PaymentMethod


class BillSerializer(serializers.ModelSerializer):
    class Meta:
        model = Bill
        fields = [
            "id",
            "patient_id",
            "appointment_id",
            "bill_amount",
            "paid_amount",
            "due_amount",
            "status",
            "bill_date",
            "due_date",
            "paid_date",
            "cancelled_at",
            "payment_method",
            "insurance_claim_number",
            "insurance_coverage",
            "itemized_charges",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BillCreateSerializer(serializers.Serializer):
    """
    Amounts arrive as strings or numbers and are handed to the ledger
    untouched; the ledger rejects anything finer than a cent.
    """
    patient_id = serializers.UUIDField()
    appointment_id = serializers.UUIDField(required=False, allow_null=True)
    bill_amount = serializers.CharField()
    bill_date = serializers.DateField()
    due_date = serializers.DateField()
    itemized_charges = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    insurance_claim_number = serializers.CharField(required=False, allow_blank=True, default="", max_length=64)
    insurance_coverage = serializers.CharField(required=False, allow_null=True, default=None)


class BillUpdateSerializer(serializers.Serializer):
    appointment_id = serializers.UUIDField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False)
    itemized_charges = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    insurance_claim_number = serializers.CharField(required=False, allow_blank=True, max_length=64)
    insurance_coverage = serializers.CharField(required=False, allow_null=True)


class PaymentCreateSerializer(serializers.Serializer):
    amount = serializers.CharField()
    # Validated by the ledger so a rejected method still reports the bill amounts.
    payment_method = serializers.CharField(help_text="One of: " + ", ".join(PaymentMethod.values))


class BillCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class OverdueSweepRequestSerializer(serializers.Serializer):
    as_of = serializers.DateField(required=False, allow_null=True)


class OverdueSweepResultSerializer(serializers.Serializer):
    as_of = serializers.DateField()
    scanned = serializers.IntegerField()
    updated_count = serializers.IntegerField()
    failed_bill_ids = serializers.ListField(child=serializers.UUIDField())


class PatientTotalDueSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    total_due = serializers.DecimalField(max_digits=14, decimal_places=2)


class BillingSummarySerializer(serializers.Serializer):
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_outstanding = serializers.DecimalField(max_digits=14, decimal_places=2)
    overdue_count = serializers.IntegerField()
    bill_count = serializers.IntegerField()
