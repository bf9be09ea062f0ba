"""Domain model entities for propledger.

These are pure data classes representing accounting and utility billing
concepts, independent of database schema. Status values are closed enums:
raw strings are converted once at the database boundary and never passed
around afterwards.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

from propledger.domain.money import ZERO


class AccountType(str, Enum):
    """Account classification in the chart of accounts."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class NormalSide(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class UtilityBillStatus(str, Enum):
    """Bill lifecycle: DRAFT -> PROCESSING -> APPROVED -> POSTED."""

    DRAFT = "DRAFT"
    PROCESSING = "PROCESSING"
    APPROVED = "APPROVED"
    POSTED = "POSTED"


class UtilitySplitMethod(str, Enum):
    """Strategies for splitting a bill across units."""

    EQUAL = "EQUAL"
    OCCUPANCY_BASED = "OCCUPANCY_BASED"
    SQ_FOOTAGE = "SQ_FOOTAGE"
    SUB_METERED = "SUB_METERED"
    CUSTOM_RATIO = "CUSTOM_RATIO"
    AI_OPTIMIZED = "AI_OPTIMIZED"


class UtilityImportMethod(str, Enum):
    """How a bill entered the system."""

    CSV = "CSV"
    API = "API"
    PDF_OCR = "PDF_OCR"
    MANUAL_ENTRY = "MANUAL_ENTRY"
    IMAGE_SCAN = "IMAGE_SCAN"


@dataclass(frozen=True)
class FinancialEntity:
    """Ledger tenancy boundary, one per organization."""

    id: int
    organization_id: str
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Account:
    """Chart of accounts entry."""

    id: int
    entity_id: int
    code: str
    name: str
    account_type: AccountType
    is_system: bool
    created_at: datetime

    @property
    def normal_side(self) -> NormalSide:
        if self.account_type.is_debit_normal:
            return NormalSide.DEBIT
        return NormalSide.CREDIT


@dataclass(frozen=True)
class JournalLine:
    """Single debit or credit line of a journal entry."""

    id: int
    entry_id: int
    account_id: int
    account_code: str
    description: Optional[str]
    debit: Decimal
    credit: Decimal
    property_id: Optional[str] = None
    unit_id: Optional[str] = None
    lease_id: Optional[str] = None
    tenant_id: Optional[str] = None


@dataclass(frozen=True)
class JournalEntry:
    """Posted journal entry. Never mutated after creation."""

    id: int
    entity_id: int
    transaction_date: date
    posted_at: datetime
    description: str
    reference: Optional[str]
    is_locked: bool
    reverses_entry_id: Optional[int] = None
    lines: tuple[JournalLine, ...] = ()

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


@dataclass(frozen=True)
class UtilityBill:
    """Provider invoice for a property and billing period."""

    id: int
    organization_id: str
    property_id: str
    provider_name: str
    total_amount: Decimal
    bill_date: date
    due_date: date
    status: UtilityBillStatus
    split_method: UtilitySplitMethod
    import_method: UtilityImportMethod
    created_at: datetime
    updated_at: datetime
    file_url: Optional[str] = None
    ocr_confidence: Optional[Decimal] = None
    journal_entry_id: Optional[int] = None
    allocation_hash: Optional[str] = None


@dataclass(frozen=True)
class UtilityAllocation:
    """Share of a bill assigned to one unit.

    ``percentage`` is a ratio between 0 and 1, derived at allocation time and
    kept for the audit trail. ``amount`` is authoritative.
    """

    unit_id: str
    amount: Decimal
    percentage: Decimal
    basis: Optional[Decimal] = None
    lease_id: Optional[str] = None
    id: Optional[int] = None
    bill_id: Optional[int] = None


@dataclass(frozen=True)
class UtilityReading:
    """Meter reading for a lease-utility pairing."""

    id: int
    lease_utility_id: str
    reading_value: Decimal
    reading_date: date
    created_at: datetime


@dataclass(frozen=True)
class AccountBalance:
    """Derived balance of one account, signed by its normal side."""

    account_code: str
    account_name: str
    account_type: AccountType
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class FinancialSummary:
    """Headline balances for an organization."""

    organization_id: str
    cash_in_bank: Decimal = ZERO
    accounts_receivable: Decimal = ZERO
    accounts_payable: Decimal = ZERO
    rental_income: Decimal = ZERO
    utility_expense: Decimal = ZERO
    net_operating_income: Decimal = ZERO


# Request value objects


@dataclass(frozen=True)
class JournalLineInput:
    """Line of a posting request, referencing an account by code."""

    account_code: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: Optional[str] = None
    property_id: Optional[str] = None
    unit_id: Optional[str] = None
    lease_id: Optional[str] = None
    tenant_id: Optional[str] = None


@dataclass(frozen=True)
class PostJournalEntryInput:
    """Posting request handed to the journal service."""

    organization_id: str
    date: date
    description: str
    lines: tuple[JournalLineInput, ...] = field(default_factory=tuple)
    reference: Optional[str] = None


@dataclass(frozen=True)
class PreparedJournalLine:
    """Validated line with its account resolved, ready to be written."""

    account_id: int
    account_code: str
    debit: Decimal
    credit: Decimal
    description: Optional[str] = None
    property_id: Optional[str] = None
    unit_id: Optional[str] = None
    lease_id: Optional[str] = None
    tenant_id: Optional[str] = None


@dataclass(frozen=True)
class PreparedJournalEntry:
    """Balanced entry that passed every check and only needs persisting."""

    entity_id: int
    transaction_date: date
    description: str
    lines: tuple[PreparedJournalLine, ...]
    reference: Optional[str] = None
    reverses_entry_id: Optional[int] = None

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


@dataclass(frozen=True)
class UnitSplitContext:
    """Allocation inputs for one unit.

    Only the field matching the bill's split method is consulted:
    ``sq_footage`` for SQ_FOOTAGE, ``occupant_count`` for OCCUPANCY_BASED,
    ``meter_usage`` (or ``lease_utility_id`` to derive it) for SUB_METERED and
    ``custom_ratio`` for CUSTOM_RATIO.
    """

    unit_id: str
    lease_id: Optional[str] = None
    sq_footage: Optional[Decimal] = None
    occupant_count: Optional[int] = None
    meter_usage: Optional[Decimal] = None
    custom_ratio: Optional[Decimal] = None
    lease_utility_id: Optional[str] = None
