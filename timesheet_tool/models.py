"""Layer 1 — Canonical Data Model for the timesheet tool."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class EntryStatus(Enum):
    WORKED = "WORKED"
    ABSENT = "ABSENT"


class WorkerStatus(Enum):
    SALARIE = "SALARIE"
    INDEPENDANT = "INDEPENDANT"
    ASSOCIE = "ASSOCIE"


class CostUnit(Enum):
    HOUR = "HOUR"
    DAY = "DAY"


class DocumentKind(Enum):
    CAREER_ATTESTATION = "CAREER_ATTESTATION"
    CI = "CI"
    VCA = "VCA"
    OTHER = "OTHER"


@dataclass(frozen=True)
class AdditionalCost:
    """Named extra cost attached to a worker, billed per hour or per worked day."""
    label: str
    unit: CostUnit
    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError(f"Additional cost '{self.label}' must be positive, got {self.amount}")


@dataclass(frozen=True)
class Document:
    kind: DocumentKind
    valid_until: Optional[date] = None


@dataclass(frozen=True)
class CompanySettings:
    verified: bool = False
    valid_until: Optional[date] = None


@dataclass
class Worker:
    """Identity and compensation profile of a crew member."""
    id: int
    first_name: str
    last_name: str
    status: WorkerStatus = WorkerStatus.SALARIE
    pay_rate: Optional[Decimal] = None
    charges_pct: Decimal = Decimal("0")
    include_in_export: bool = True
    email: Optional[str] = None
    national_id: Optional[str] = None
    vat_number: Optional[str] = None
    additional_costs: list[AdditionalCost] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.last_name.casefold(), self.first_name.casefold())

    @property
    def export_name(self) -> str:
        return f"{self.last_name.upper()} {self.first_name}"

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_pay_rate(self) -> bool:
        return self.pay_rate is not None and self.pay_rate > 0


@dataclass
class Project:
    """Billing container for time entries."""
    id: int
    name: str
    client_name: Optional[str] = None
    billing_rate: Optional[Decimal] = None
    default_hours: Optional[Decimal] = None
    archived: bool = False

    @property
    def client_label(self) -> str:
        label = (self.client_name or "").strip()
        return label or "Client indéfini"


@dataclass
class TimeEntry:
    """One record per (project, worker, calendar date)."""
    project_id: int
    worker_id: int
    date: date
    hours: Decimal
    status: EntryStatus
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    note: Optional[str] = None

    @property
    def key(self) -> tuple[int, int, date]:
        return (self.project_id, self.worker_id, self.date)

    @property
    def is_worked(self) -> bool:
        return self.status == EntryStatus.WORKED and self.hours > 0


@dataclass(frozen=True)
class Day:
    """One calendar day of a period."""
    date: date
    key: str
    label: str
    is_weekend: bool


@dataclass(frozen=True)
class ComplianceResult:
    is_compliant: bool
    missing: tuple[str, ...] = ()


@dataclass
class RosterSlot:
    """Derived pairing of a worker with a project, recomputed on every query."""
    worker: Worker
    project_id: int
    assigned: bool
    compliance: ComplianceResult


class NotFoundError(Exception):
    """Raised when a project or worker referenced by a write does not exist."""
    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class InvalidTimeInput(ValueError):
    """Raised when a cell value is not a valid HH:MM duration."""


class InvalidPeriodError(ValueError):
    """Raised when a month or quarter descriptor cannot be parsed."""


class DatasetValidationError(Exception):
    """Raised when an imported dataset is malformed or fails strict validation."""
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Dataset validation failed with {len(errors)} error(s):\n" +
                         "\n".join(f"  - {e}" for e in errors))
