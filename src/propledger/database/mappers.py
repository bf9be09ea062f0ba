"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain never sees ORM
objects and the ORM never sees raw status strings.
"""

from decimal import Decimal
from typing import Optional

from propledger.domain import entities as domain
from propledger.domain.money import to_money, to_ratio
from propledger.database.models import (
    Account as ORMAccount,
    FinancialEntity as ORMFinancialEntity,
    JournalEntry as ORMJournalEntry,
    JournalLine as ORMJournalLine,
    UtilityAllocation as ORMUtilityAllocation,
    UtilityBill as ORMUtilityBill,
    UtilityReading as ORMUtilityReading,
)


def _optional_decimal(value) -> Optional[Decimal]:
    return None if value is None else Decimal(value)


def financial_entity_to_domain(orm_entity: ORMFinancialEntity) -> domain.FinancialEntity:
    """Convert SQLAlchemy FinancialEntity model to domain entity."""
    return domain.FinancialEntity(
        id=orm_entity.id,
        organization_id=orm_entity.organization_id,
        name=orm_entity.name,
        created_at=orm_entity.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        entity_id=orm_account.entity_id,
        code=orm_account.code,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        is_system=bool(orm_account.is_system),
        created_at=orm_account.created_at,
    )


def journal_line_to_domain(orm_line: ORMJournalLine) -> domain.JournalLine:
    """Convert SQLAlchemy JournalLine model to domain JournalLine entity."""
    return domain.JournalLine(
        id=orm_line.id,
        entry_id=orm_line.entry_id,
        account_id=orm_line.account_id,
        account_code=orm_line.account.code,
        description=orm_line.description,
        debit=to_money(orm_line.debit),
        credit=to_money(orm_line.credit),
        property_id=orm_line.property_id,
        unit_id=orm_line.unit_id,
        lease_id=orm_line.lease_id,
        tenant_id=orm_line.tenant_id,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model, with its lines, to a domain entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        entity_id=orm_entry.entity_id,
        transaction_date=orm_entry.transaction_date,
        posted_at=orm_entry.posted_at,
        description=orm_entry.description,
        reference=orm_entry.reference,
        is_locked=bool(orm_entry.is_locked),
        reverses_entry_id=orm_entry.reverses_entry_id,
        lines=tuple(journal_line_to_domain(line) for line in orm_entry.lines),
    )


def utility_bill_to_domain(orm_bill: ORMUtilityBill) -> domain.UtilityBill:
    """Convert SQLAlchemy UtilityBill model to domain UtilityBill entity."""
    return domain.UtilityBill(
        id=orm_bill.id,
        organization_id=orm_bill.organization_id,
        property_id=orm_bill.property_id,
        provider_name=orm_bill.provider_name,
        total_amount=to_money(orm_bill.total_amount),
        bill_date=orm_bill.bill_date,
        due_date=orm_bill.due_date,
        status=domain.UtilityBillStatus(orm_bill.status),
        split_method=domain.UtilitySplitMethod(orm_bill.split_method),
        import_method=domain.UtilityImportMethod(orm_bill.import_method),
        created_at=orm_bill.created_at,
        updated_at=orm_bill.updated_at,
        file_url=orm_bill.file_url,
        ocr_confidence=_optional_decimal(orm_bill.ocr_confidence),
        journal_entry_id=orm_bill.journal_entry_id,
        allocation_hash=orm_bill.allocation_hash,
    )


def utility_allocation_to_domain(
    orm_allocation: ORMUtilityAllocation,
) -> domain.UtilityAllocation:
    """Convert SQLAlchemy UtilityAllocation model to domain entity."""
    return domain.UtilityAllocation(
        id=orm_allocation.id,
        bill_id=orm_allocation.bill_id,
        unit_id=orm_allocation.unit_id,
        lease_id=orm_allocation.lease_id,
        amount=to_money(orm_allocation.amount),
        percentage=to_ratio(orm_allocation.percentage),
        basis=_optional_decimal(orm_allocation.basis),
    )


def utility_reading_to_domain(orm_reading: ORMUtilityReading) -> domain.UtilityReading:
    """Convert SQLAlchemy UtilityReading model to domain entity."""
    return domain.UtilityReading(
        id=orm_reading.id,
        lease_utility_id=orm_reading.lease_utility_id,
        reading_value=Decimal(orm_reading.reading_value),
        reading_date=orm_reading.reading_date,
        created_at=orm_reading.created_at,
    )
