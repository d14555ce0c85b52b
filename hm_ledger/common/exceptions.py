# hm_ledger/common/exceptions.py
from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """
    Base for business-rule failures raised by services.

    Services raise these unmodified; the API layer maps them onto the standard
    error envelope using `code` and `http_status`.
    """
    code = "domain_error"
    http_status = 400

    def __init__(self, message: str, *, field: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = dict(details or {})

    def as_details(self) -> dict[str, Any]:
        data = dict(self.details)
        if self.field:
            data.setdefault("field", self.field)
        return data
