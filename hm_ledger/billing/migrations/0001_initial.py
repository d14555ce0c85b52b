import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Bill",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("patient_id", models.UUIDField(db_index=True)),
                ("appointment_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("bill_amount", models.DecimalField(decimal_places=2, editable=False, max_digits=12)),
                (
                    "paid_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=12),
                ),
                (
                    "due_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=12),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PARTIALLY_PAID", "Partially Paid"),
                            ("PAID", "Paid"),
                            ("OVERDUE", "Overdue"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="PENDING",
                        editable=False,
                        max_length=32,
                    ),
                ),
                ("bill_date", models.DateField()),
                ("due_date", models.DateField()),
                ("paid_date", models.DateTimeField(blank=True, editable=False, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, editable=False, null=True)),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("CASH", "Cash"),
                            ("CREDIT_CARD", "Credit Card"),
                            ("DEBIT_CARD", "Debit Card"),
                            ("INSURANCE", "Insurance"),
                            ("ONLINE", "Online"),
                        ],
                        editable=False,
                        max_length=32,
                    ),
                ),
                ("insurance_claim_number", models.CharField(blank=True, max_length=64)),
                (
                    "insurance_coverage",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True),
                ),
                ("itemized_charges", models.TextField(blank=True)),
                ("notes", models.TextField(blank=True)),
            ],
            options={
                "db_table": "billing_bill",
                "ordering": ["-bill_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["patient_id", "status"], name="bill_patient_status_idx"),
                    models.Index(fields=["status", "due_date"], name="bill_status_due_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(bill_amount__gt=0), name="ck_bill_amount_positive"),
                    models.CheckConstraint(condition=models.Q(paid_amount__gte=0), name="ck_bill_paid_non_negative"),
                    models.CheckConstraint(condition=models.Q(due_amount__gte=0), name="ck_bill_due_non_negative"),
                    models.CheckConstraint(
                        condition=models.Q(paid_amount__lte=models.F("bill_amount")),
                        name="ck_bill_paid_within_amount",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(due_date__gte=models.F("bill_date")),
                        name="ck_bill_due_after_bill_date",
                    ),
                ],
            },
        ),
    ]
