# hm_ledger/patients/models.py
from django.db import models

from hm_ledger.common.models import UUIDModel


class Patient(UUIDModel):
    """
    Minimal patient record. The ledger only needs to know a patient exists;
    registration workflows live outside this service.
    """
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    date_of_birth = models.DateField(null=True, blank=True)

    # medical record number
    mrn = models.CharField(max_length=64, unique=True)

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["full_name"], name="patient_full_name_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.mrn})"
