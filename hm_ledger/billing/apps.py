# hm_ledger/billing/apps.py
from __future__ import annotations

from django.apps import AppConfig


class BillingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hm_ledger.billing"
    label = "billing"

    def ready(self) -> None:
        # Registers the in-process event subscribers.
        import hm_ledger.billing.subscribers  # noqa: F401
