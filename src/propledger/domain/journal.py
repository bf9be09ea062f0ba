"""Journal posting domain service.

The ledger is append-only: entries are written once, locked, and corrected
only by posting a reversal. Balances are never stored; they are derived from
journal lines on every query.
"""

from datetime import date as date_type
from decimal import Decimal
from typing import Optional

from propledger.database.base import Database
from propledger.domain.chart import CHART_OF_ACCOUNTS
from propledger.domain.entities import (
    AccountBalance,
    AccountType,
    FinancialSummary,
    JournalEntry,
    PostJournalEntryInput,
    PreparedJournalEntry,
    PreparedJournalLine,
)
from propledger.domain.errors import (
    ConflictError,
    FinancialEntityNotFoundError,
    JournalEntryNotFoundError,
    UnbalancedEntryError,
    UnknownAccountError,
    ValidationError,
)
from propledger.domain.money import MONETARY_TOLERANCE, ZERO, to_money
from propledger.logging_config import get_logger

logger = get_logger(__name__)


def signed_balance(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    """Balance of an account on its normal side."""
    if account_type.is_debit_normal:
        return to_money(debit - credit)
    return to_money(credit - debit)


class JournalService:
    """Service for posting and querying journal entries."""

    def __init__(self, db: Database):
        """Initialize journal service.

        Args:
            db: Database instance
        """
        self.db = db

    def prepare(self, request: PostJournalEntryInput) -> PreparedJournalEntry:
        """Validate a posting request without writing anything.

        Checks run in order: financial entity, line structure, account codes,
        balance. Amounts are quantized to cents before the balance check.

        Args:
            request: Posting request

        Returns:
            Prepared entry with every account resolved

        Raises:
            FinancialEntityNotFoundError: If the organization has no entity
            ValidationError: If the entry has no lines or a malformed line
            UnknownAccountError: If a line's account code does not resolve
            UnbalancedEntryError: If debits and credits differ
        """
        entity = self.db.get_financial_entity(request.organization_id)
        if entity is None:
            raise FinancialEntityNotFoundError(request.organization_id)

        if not request.description or not request.description.strip():
            raise ValidationError("Journal entry description is required")
        if not request.lines:
            raise ValidationError("Journal entry must have at least one line")

        amounts = []
        for index, line in enumerate(request.lines, start=1):
            debit = to_money(line.debit)
            credit = to_money(line.credit)
            if debit < 0 or credit < 0:
                raise ValidationError(f"Line {index}: amounts cannot be negative")
            if debit == 0 and credit == 0:
                raise ValidationError(f"Line {index}: either debit or credit is required")
            if debit != 0 and credit != 0:
                raise ValidationError(
                    f"Line {index}: a line cannot carry both a debit and a credit"
                )
            amounts.append((debit, credit))

        accounts = {}
        for line in request.lines:
            if line.account_code in accounts:
                continue
            account = self.db.get_account(entity.id, line.account_code)
            if account is None:
                raise UnknownAccountError(line.account_code, request.organization_id)
            accounts[line.account_code] = account

        prepared = PreparedJournalEntry(
            entity_id=entity.id,
            transaction_date=request.date,
            description=request.description.strip(),
            reference=request.reference,
            lines=tuple(
                PreparedJournalLine(
                    account_id=accounts[line.account_code].id,
                    account_code=line.account_code,
                    debit=debit,
                    credit=credit,
                    description=line.description or request.description.strip(),
                    property_id=line.property_id,
                    unit_id=line.unit_id,
                    lease_id=line.lease_id,
                    tenant_id=line.tenant_id,
                )
                for line, (debit, credit) in zip(request.lines, amounts)
            ),
        )

        if abs(prepared.total_debit - prepared.total_credit) >= MONETARY_TOLERANCE:
            raise UnbalancedEntryError(prepared.total_debit, prepared.total_credit)

        return prepared

    def post(self, request: PostJournalEntryInput) -> JournalEntry:
        """Validate and write a journal entry with all its lines atomically.

        Args:
            request: Posting request

        Returns:
            The posted, locked entry

        Raises:
            DomainError: Any error from ``prepare``
            PersistenceError: If the write failed; nothing was written
        """
        try:
            prepared = self.prepare(request)
        except (ValidationError, UnknownAccountError, FinancialEntityNotFoundError) as e:
            logger.warning(
                "journal_rejected",
                extra={
                    "organization_id": request.organization_id,
                    "reference": request.reference,
                    "reason": str(e),
                },
            )
            raise

        entry = self.db.create_journal_entry(prepared)
        self._log_posted(request.organization_id, entry)
        return entry

    def _log_posted(self, organization_id: str, entry: JournalEntry) -> None:
        logger.info(
            "journal_posted",
            extra={
                "organization_id": organization_id,
                "entry_id": entry.id,
                "reference": entry.reference,
                "line_count": len(entry.lines),
                "amount": entry.total_debit,
            },
        )

    def get_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get journal entry by ID, or None."""
        return self.db.get_journal_entry(entry_id)

    def require_entry(self, entry_id: int) -> JournalEntry:
        entry = self.db.get_journal_entry(entry_id)
        if entry is None:
            raise JournalEntryNotFoundError(entry_id)
        return entry

    def list_entries(
        self,
        organization_id: str,
        start_date: Optional[date_type] = None,
        end_date: Optional[date_type] = None,
    ) -> list[JournalEntry]:
        """List journal entries of an organization, oldest first.

        Args:
            organization_id: Organization ID
            start_date: Optional inclusive lower bound on transaction date
            end_date: Optional inclusive upper bound on transaction date

        Raises:
            FinancialEntityNotFoundError: If the organization has no entity
        """
        entity = self.db.get_financial_entity(organization_id)
        if entity is None:
            raise FinancialEntityNotFoundError(organization_id)
        return self.db.list_journal_entries(entity.id, start_date, end_date)

    def reverse_entry(
        self,
        organization_id: str,
        entry_id: int,
        date: Optional[date_type] = None,
        description: Optional[str] = None,
    ) -> JournalEntry:
        """Post a new entry that cancels ``entry_id``.

        Every line of the original is copied with debit and credit swapped.
        The original entry is left untouched.

        Args:
            organization_id: Organization owning the entry
            entry_id: Entry to reverse
            date: Transaction date of the reversal (defaults to today)
            description: Reversal description (defaults to "Reversal of ...")

        Returns:
            The reversal entry

        Raises:
            JournalEntryNotFoundError: If the entry does not exist in the organization
            ConflictError: If the entry is already reversed, or is itself a reversal
        """
        entity = self.db.get_financial_entity(organization_id)
        if entity is None:
            raise FinancialEntityNotFoundError(organization_id)

        original = self.db.get_journal_entry(entry_id)
        if original is None or original.entity_id != entity.id:
            raise JournalEntryNotFoundError(entry_id)
        if original.reverses_entry_id is not None:
            raise ConflictError(f"Journal entry {entry_id} is a reversal and cannot be reversed")
        if self.db.get_reversal_of(entry_id) is not None:
            raise ConflictError(f"Journal entry {entry_id} is already reversed")

        reversal = PreparedJournalEntry(
            entity_id=entity.id,
            transaction_date=date or date_type.today(),
            description=description or f"Reversal of entry {entry_id}: {original.description}",
            reference=original.reference,
            reverses_entry_id=original.id,
            lines=tuple(
                PreparedJournalLine(
                    account_id=line.account_id,
                    account_code=line.account_code,
                    debit=line.credit,
                    credit=line.debit,
                    description=line.description,
                    property_id=line.property_id,
                    unit_id=line.unit_id,
                    lease_id=line.lease_id,
                    tenant_id=line.tenant_id,
                )
                for line in original.lines
            ),
        )
        entry = self.db.create_journal_entry(reversal)
        logger.info(
            "journal_reversed",
            extra={
                "organization_id": organization_id,
                "entry_id": entry.id,
                "reverses_entry_id": entry_id,
            },
        )
        return entry

    def get_account_balance(self, organization_id: str, account_code: str) -> Decimal:
        """Derive the balance of one account from its journal lines.

        Debit-normal accounts (asset, expense) report debits minus credits;
        the others report credits minus debits.

        Raises:
            FinancialEntityNotFoundError: If the organization has no entity
            UnknownAccountError: If the code does not resolve
        """
        entity = self.db.get_financial_entity(organization_id)
        if entity is None:
            raise FinancialEntityNotFoundError(organization_id)
        account = self.db.get_account(entity.id, account_code)
        if account is None:
            raise UnknownAccountError(account_code, organization_id)

        debit, credit = self.db.get_account_totals(entity.id).get(account_code, (ZERO, ZERO))
        return signed_balance(account.account_type, debit, credit)

    def get_trial_balance(self, organization_id: str) -> list[AccountBalance]:
        """Balances of every account of the organization, ordered by code."""
        entity = self.db.get_financial_entity(organization_id)
        if entity is None:
            raise FinancialEntityNotFoundError(organization_id)

        totals = self.db.get_account_totals(entity.id)
        balances = []
        for account in self.db.list_accounts(entity.id):
            debit, credit = totals.get(account.code, (ZERO, ZERO))
            balances.append(
                AccountBalance(
                    account_code=account.code,
                    account_name=account.name,
                    account_type=account.account_type,
                    total_debit=debit,
                    total_credit=credit,
                    balance=signed_balance(account.account_type, debit, credit),
                )
            )
        return balances

    def get_financial_summary(self, organization_id: str) -> FinancialSummary:
        """Headline balances of an organization.

        Net operating income is the sum of income balances minus the sum of
        expense balances. An organization without financials gets zeros.
        """
        if self.db.get_financial_entity(organization_id) is None:
            return FinancialSummary(organization_id=organization_id)

        balances = {b.account_code: b for b in self.get_trial_balance(organization_id)}

        def balance_of(code: str) -> Decimal:
            item = balances.get(code)
            return item.balance if item is not None else ZERO

        income = sum(
            (b.balance for b in balances.values() if b.account_type == AccountType.INCOME),
            ZERO,
        )
        expense = sum(
            (b.balance for b in balances.values() if b.account_type == AccountType.EXPENSE),
            ZERO,
        )

        return FinancialSummary(
            organization_id=organization_id,
            cash_in_bank=balance_of(CHART_OF_ACCOUNTS.CASH_IN_BANK),
            accounts_receivable=balance_of(CHART_OF_ACCOUNTS.ACCOUNTS_RECEIVABLE),
            accounts_payable=balance_of(CHART_OF_ACCOUNTS.ACCOUNTS_PAYABLE),
            rental_income=balance_of(CHART_OF_ACCOUNTS.RENTAL_INCOME),
            utility_expense=balance_of(CHART_OF_ACCOUNTS.UTILITY_EXPENSE),
            net_operating_income=to_money(income - expense),
        )
