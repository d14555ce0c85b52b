# hm_ledger/patients/selectors.py
from __future__ import annotations

from typing import Protocol
from uuid import UUID

from django.conf import settings
from django.utils.module_loading import import_string

from hm_ledger.patients.models import Patient


class PatientDirectory(Protocol):
    def exists(self, patient_id: UUID) -> bool: ...


def patient_exists(*, patient_id: UUID) -> bool:
    return Patient.objects.filter(id=patient_id, is_active=True).exists()


class ModelPatientDirectory:
    """Patient directory backed by the local Patient table."""

    def exists(self, patient_id: UUID) -> bool:
        return patient_exists(patient_id=patient_id)


def get_patient_directory(directory: PatientDirectory | None = None) -> PatientDirectory:
    if directory is not None:
        return directory
    path = getattr(settings, "LEDGER_PATIENT_DIRECTORY", "hm_ledger.patients.selectors.ModelPatientDirectory")
    return import_string(path)()
