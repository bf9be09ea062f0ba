"""SQLAlchemy models for propledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Enum as SAEnum,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from propledger.domain.entities import (
    AccountType,
    UtilityBillStatus,
    UtilityImportMethod,
    UtilitySplitMethod,
)

Base = declarative_base()

MONEY = Numeric(14, 2)
RATIO = Numeric(9, 6)


def _now() -> datetime:
    return datetime.now(UTC)


class FinancialEntity(Base):
    """Ledger owner, one per organization."""

    __tablename__ = "financial_entities"

    id = Column(Integer, primary_key=True)
    organization_id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    accounts = relationship("Account", back_populates="entity", order_by="Account.code")
    journal_entries = relationship("JournalEntry", back_populates="entity")


class Account(Base):
    """Chart of accounts model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("financial_entities.id"), nullable=False)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    account_type = Column(SAEnum(AccountType, native_enum=False), nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (UniqueConstraint("entity_id", "code", name="uq_entity_account_code"),)

    # Relationships
    entity = relationship("FinancialEntity", back_populates="accounts")
    journal_lines = relationship("JournalLine", back_populates="account")


class JournalEntry(Base):
    """Journal entry header. Rows are inserted, never updated."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    entity_id = Column(Integer, ForeignKey("financial_entities.id"), nullable=False)
    transaction_date = Column(Date, nullable=False)
    posted_at = Column(DateTime, default=_now, nullable=False)
    description = Column(String, nullable=False)
    reference = Column(String, nullable=True)
    is_locked = Column(Boolean, default=True, nullable=False)
    reverses_entry_id = Column(
        Integer, ForeignKey("journal_entries.id"), unique=True, nullable=True
    )

    # Relationships
    entity = relationship("FinancialEntity", back_populates="journal_entries")
    lines = relationship(
        "JournalLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalLine.id",
    )


class JournalLine(Base):
    """Journal line model."""

    __tablename__ = "journal_lines"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    description = Column(String, nullable=True)
    debit = Column(MONEY, default=0, nullable=False)
    credit = Column(MONEY, default=0, nullable=False)
    property_id = Column(String, nullable=True)
    unit_id = Column(String, nullable=True)
    lease_id = Column(String, nullable=True)
    tenant_id = Column(String, nullable=True)

    # Relationships
    entry = relationship("JournalEntry", back_populates="lines")
    account = relationship("Account", back_populates="journal_lines")


class UtilityBill(Base):
    """Utility bill model."""

    __tablename__ = "utility_bills"

    id = Column(Integer, primary_key=True)
    organization_id = Column(String, nullable=False, index=True)
    property_id = Column(String, nullable=False)
    provider_name = Column(String, nullable=False)
    total_amount = Column(MONEY, nullable=False)
    bill_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(
        SAEnum(UtilityBillStatus, native_enum=False),
        default=UtilityBillStatus.DRAFT,
        nullable=False,
    )
    split_method = Column(SAEnum(UtilitySplitMethod, native_enum=False), nullable=False)
    import_method = Column(
        SAEnum(UtilityImportMethod, native_enum=False),
        default=UtilityImportMethod.MANUAL_ENTRY,
        nullable=False,
    )
    file_url = Column(String, nullable=True)
    ocr_confidence = Column(Numeric(5, 4), nullable=True)
    journal_entry_id = Column(Integer, ForeignKey("journal_entries.id"), nullable=True)
    allocation_hash = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    # Relationships
    allocations = relationship(
        "UtilityAllocation",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="UtilityAllocation.id",
    )


class UtilityAllocation(Base):
    """Per-unit share of a utility bill."""

    __tablename__ = "utility_allocations"

    id = Column(Integer, primary_key=True)
    bill_id = Column(Integer, ForeignKey("utility_bills.id"), nullable=False)
    unit_id = Column(String, nullable=False)
    lease_id = Column(String, nullable=True)
    amount = Column(MONEY, nullable=False)
    percentage = Column(RATIO, nullable=False)
    basis = Column(Numeric(18, 6), nullable=True)

    __table_args__ = (UniqueConstraint("bill_id", "unit_id", name="uq_bill_unit"),)

    # Relationships
    bill = relationship("UtilityBill", back_populates="allocations")


class UtilityReading(Base):
    """Meter reading model. Append-only."""

    __tablename__ = "utility_readings"

    id = Column(Integer, primary_key=True)
    lease_utility_id = Column(String, nullable=False, index=True)
    reading_value = Column(Numeric(18, 4), nullable=False)
    reading_date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
