"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from propledger.domain.entities import (
    Account,
    AccountType,
    FinancialEntity,
    JournalEntry,
    PreparedJournalEntry,
    UtilityAllocation,
    UtilityBill,
    UtilityBillStatus,
    UtilityImportMethod,
    UtilityReading,
    UtilitySplitMethod,
)


class Database(ABC):
    """Abstract database interface for propledger.

    Every method that writes more than one row does so atomically: either all
    rows are committed or none are. Storage failures surface as
    PersistenceError after the rollback.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Financial entity and account operations
    @abstractmethod
    def get_financial_entity(self, organization_id: str) -> Optional[FinancialEntity]:
        """Get the financial entity of an organization."""
        pass

    @abstractmethod
    def create_financial_entity(
        self,
        organization_id: str,
        name: str,
        system_accounts: Sequence[tuple[str, str, AccountType]],
    ) -> FinancialEntity:
        """Create an entity and its system accounts in one transaction.

        Args:
            organization_id: Owning organization
            name: Entity display name
            system_accounts: (code, name, type) triples, stored with is_system=True

        Raises:
            ConflictError: If the organization already has an entity
        """
        pass

    @abstractmethod
    def create_account(
        self,
        entity_id: int,
        code: str,
        name: str,
        account_type: AccountType,
        is_system: bool = False,
    ) -> Account:
        """Create an account. Raises ConflictError on a duplicate code."""
        pass

    @abstractmethod
    def get_account(self, entity_id: int, code: str) -> Optional[Account]:
        """Get account by code within an entity."""
        pass

    @abstractmethod
    def list_accounts(self, entity_id: int) -> list[Account]:
        """List accounts of an entity ordered by code."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account."""
        pass

    @abstractmethod
    def get_account_line_count(self, account_id: int) -> int:
        """Get count of journal lines referencing an account."""
        pass

    # Journal operations
    @abstractmethod
    def create_journal_entry(self, entry: PreparedJournalEntry) -> JournalEntry:
        """Write an entry and all its lines in one transaction."""
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get journal entry, with lines, by ID."""
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        entity_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[JournalEntry]:
        """List entries of an entity ordered by transaction date then ID."""
        pass

    @abstractmethod
    def get_reversal_of(self, entry_id: int) -> Optional[JournalEntry]:
        """Get the entry that reverses ``entry_id``, if any."""
        pass

    @abstractmethod
    def get_account_totals(self, entity_id: int) -> dict[str, tuple[Decimal, Decimal]]:
        """Sum journal line debits and credits per account code.

        Accounts without lines are included with zero totals.
        """
        pass

    # Utility bill operations
    @abstractmethod
    def create_utility_bill(
        self,
        organization_id: str,
        property_id: str,
        provider_name: str,
        total_amount: Decimal,
        bill_date: date,
        due_date: date,
        split_method: UtilitySplitMethod,
        import_method: UtilityImportMethod = UtilityImportMethod.MANUAL_ENTRY,
        file_url: Optional[str] = None,
        ocr_confidence: Optional[Decimal] = None,
    ) -> UtilityBill:
        """Create a bill in DRAFT status."""
        pass

    @abstractmethod
    def get_utility_bill(self, bill_id: int) -> Optional[UtilityBill]:
        """Get bill by ID."""
        pass

    @abstractmethod
    def list_utility_bills(
        self, organization_id: str, status: Optional[UtilityBillStatus] = None
    ) -> list[UtilityBill]:
        """List bills of an organization, optionally filtered by status."""
        pass

    @abstractmethod
    def update_utility_bill(
        self, bill_id: int, expected_status: UtilityBillStatus, **fields
    ) -> UtilityBill:
        """Update bill fields if the bill still has ``expected_status``.

        Raises:
            StaleBillError: If the stored status differs
        """
        pass

    @abstractmethod
    def transition_utility_bill(
        self,
        bill_id: int,
        expected_status: UtilityBillStatus,
        new_status: UtilityBillStatus,
    ) -> UtilityBill:
        """Compare-and-set the bill status.

        Raises:
            StaleBillError: If the stored status differs from ``expected_status``
        """
        pass

    @abstractmethod
    def save_allocations(
        self,
        bill_id: int,
        allocations: Sequence[UtilityAllocation],
        expected_status: UtilityBillStatus,
        new_status: UtilityBillStatus,
    ) -> list[UtilityAllocation]:
        """Insert allocations and move the bill to ``new_status`` atomically."""
        pass

    @abstractmethod
    def get_allocations(self, bill_id: int) -> list[UtilityAllocation]:
        """Get allocations of a bill in insertion order."""
        pass

    @abstractmethod
    def post_utility_bill(
        self,
        bill_id: int,
        entry: PreparedJournalEntry,
        allocation_hash: str,
        recoveries: Sequence[PreparedJournalEntry] = (),
    ) -> JournalEntry:
        """Write the bill's journal entry and its tenant recovery entries, and
        mark the bill POSTED, in one transaction.

        Raises:
            StaleBillError: If the bill is no longer APPROVED
        """
        pass

    # Utility reading operations
    @abstractmethod
    def create_utility_reading(
        self, lease_utility_id: str, reading_value: Decimal, reading_date: date
    ) -> UtilityReading:
        """Append a meter reading."""
        pass

    @abstractmethod
    def get_previous_reading(
        self, lease_utility_id: str, on_or_before: Optional[date] = None
    ) -> Optional[UtilityReading]:
        """Get the latest reading, optionally only up to ``on_or_before``."""
        pass

    @abstractmethod
    def get_next_reading(self, lease_utility_id: str, after: date) -> Optional[UtilityReading]:
        """Get the earliest reading taken strictly after ``after``."""
        pass

    @abstractmethod
    def list_utility_readings(self, lease_utility_id: str) -> list[UtilityReading]:
        """List readings of a lease utility, oldest first."""
        pass
