"""Worker compliance rules.

A worker is compliant when every rule below passes:
- email, national id and (for INDEPENDANT / ASSOCIE) VAT number are filled in
- the company settings are verified and not expired
- each required document is present and valid through its ``valid_until`` day
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from timesheet_tool.models import (
    CompanySettings,
    ComplianceResult,
    DocumentKind,
    Worker,
    WorkerStatus,
)

REQUIRED_DOCUMENTS = (
    DocumentKind.CAREER_ATTESTATION,
    DocumentKind.CI,
    DocumentKind.VCA,
)


def _still_valid(valid_until: Optional[date], today: date) -> bool:
    return valid_until is not None and valid_until >= today


def company_settings_valid(settings: Optional[CompanySettings], today: date) -> bool:
    if settings is None or not settings.verified:
        return False
    return _still_valid(settings.valid_until, today)


def compute_worker_compliance(
    worker: Worker,
    company_settings: Optional[CompanySettings],
    today: Optional[date] = None,
) -> ComplianceResult:
    today = today or date.today()
    missing: list[str] = []

    if not worker.email:
        missing.append("email")
    if not worker.national_id:
        missing.append("nationalId")
    if worker.status in (WorkerStatus.INDEPENDANT, WorkerStatus.ASSOCIE) and not worker.vat_number:
        missing.append("vatNumber")
    if not company_settings_valid(company_settings, today):
        missing.append("companySettings")

    for kind in REQUIRED_DOCUMENTS:
        doc = next((d for d in worker.documents if d.kind == kind), None)
        if doc is None:
            missing.append(f"document:{kind.value}")
            continue
        if not _still_valid(doc.valid_until, today):
            missing.append(f"documentExpired:{kind.value}")

    return ComplianceResult(is_compliant=not missing, missing=tuple(missing))


def has_expired_documents(worker: Worker, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return any(d.valid_until is not None and d.valid_until < today for d in worker.documents)
