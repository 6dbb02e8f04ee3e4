"""Tests for worker compliance rules."""

from datetime import date

from timesheet_tool.compliance import (
    company_settings_valid,
    compute_worker_compliance,
    has_expired_documents,
)
from timesheet_tool.models import (
    CompanySettings,
    Document,
    DocumentKind,
    Worker,
    WorkerStatus,
)

TODAY = date(2026, 3, 15)
SETTINGS = CompanySettings(verified=True, valid_until=date(2026, 12, 31))


def _make_worker(**kwargs) -> Worker:
    defaults = dict(
        id=1,
        first_name="Jean",
        last_name="Dupont",
        email="jean@example.com",
        national_id="85.07.30-033.61",
        documents=[
            Document(kind=DocumentKind.CAREER_ATTESTATION, valid_until=date(2027, 1, 1)),
            Document(kind=DocumentKind.CI, valid_until=date(2030, 1, 1)),
            Document(kind=DocumentKind.VCA, valid_until=date(2026, 3, 15)),
        ],
    )
    defaults.update(kwargs)
    return Worker(**defaults)


class TestCompliance:
    def test_complete_worker_is_compliant(self):
        result = compute_worker_compliance(_make_worker(), SETTINGS, TODAY)
        assert result.is_compliant
        assert result.missing == ()

    def test_missing_identity_fields(self):
        result = compute_worker_compliance(_make_worker(email=None, national_id=""), SETTINGS, TODAY)
        assert not result.is_compliant
        assert "email" in result.missing
        assert "nationalId" in result.missing

    def test_vat_required_for_independants(self):
        worker = _make_worker(status=WorkerStatus.INDEPENDANT)
        result = compute_worker_compliance(worker, SETTINGS, TODAY)
        assert result.missing == ("vatNumber",)

    def test_vat_not_required_for_employees(self):
        assert compute_worker_compliance(_make_worker(), SETTINGS, TODAY).is_compliant

    def test_missing_document(self):
        worker = _make_worker(documents=[])
        result = compute_worker_compliance(worker, SETTINGS, TODAY)
        assert "document:VCA" in result.missing
        assert "document:CI" in result.missing

    def test_expired_document(self):
        worker = _make_worker()
        result = compute_worker_compliance(worker, SETTINGS, date(2026, 3, 16))
        assert result.missing == ("documentExpired:VCA",)

    def test_unverified_company(self):
        result = compute_worker_compliance(_make_worker(), CompanySettings(verified=False), TODAY)
        assert result.missing == ("companySettings",)

    def test_no_company_settings(self):
        assert "companySettings" in compute_worker_compliance(_make_worker(), None, TODAY).missing


class TestCompanySettings:
    def test_expired(self):
        settings = CompanySettings(verified=True, valid_until=date(2026, 1, 1))
        assert not company_settings_valid(settings, TODAY)

    def test_valid(self):
        assert company_settings_valid(SETTINGS, TODAY)


class TestExpiredDocuments:
    def test_detects_expired(self):
        assert has_expired_documents(_make_worker(), date(2026, 4, 1))

    def test_none_expired(self):
        assert not has_expired_documents(_make_worker(), TODAY)

    def test_open_ended_document_never_expires(self):
        worker = _make_worker(documents=[Document(kind=DocumentKind.OTHER)])
        assert not has_expired_documents(worker, TODAY)
