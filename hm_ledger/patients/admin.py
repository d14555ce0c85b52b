from django.contrib import admin

from hm_ledger.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("full_name", "mrn", "phone", "email", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("full_name", "mrn", "phone", "email")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-created_at",)
