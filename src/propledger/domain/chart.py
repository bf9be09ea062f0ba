"""Chart of accounts domain service."""

from typing import Optional

from propledger.database.base import Database
from propledger.domain.entities import (
    Account as AccountEntity,
    AccountType,
    FinancialEntity,
)
from propledger.domain.errors import (
    ConflictError,
    DependencyError,
    FinancialEntityNotFoundError,
    UnknownAccountError,
    ValidationError,
    account_code_exists,
    account_delete_blocked,
)
from propledger.logging_config import get_logger

logger = get_logger(__name__)


class CHART_OF_ACCOUNTS:
    """Standard account codes for property management."""

    # Assets (1000-1999)
    CASH_IN_BANK = "1000"
    ACCOUNTS_RECEIVABLE = "1100"
    UNDEPOSITED_FUNDS = "1200"

    # Liabilities (2000-2999)
    SECURITY_DEPOSITS_LIABILITY = "2100"
    ACCOUNTS_PAYABLE = "2200"
    PREPAID_RENT = "2300"

    # Equity (3000-3999)
    OWNER_EQUITY = "3000"

    # Income (4000-4999)
    RENTAL_INCOME = "4000"
    UTILITY_RECOVERY_INCOME = "4100"
    LATE_FEES_INCOME = "4200"
    MAINTENANCE_INCOME = "4300"

    # Expenses (5000-5999)
    MAINTENANCE_EXPENSE = "5100"
    UTILITY_EXPENSE = "5200"
    MANAGEMENT_FEES = "5300"


# (code, name, type) for every system account created at setup
DEFAULT_ACCOUNTS: tuple[tuple[str, str, AccountType], ...] = (
    (CHART_OF_ACCOUNTS.CASH_IN_BANK, "Cash in Bank", AccountType.ASSET),
    (CHART_OF_ACCOUNTS.ACCOUNTS_RECEIVABLE, "Accounts Receivable", AccountType.ASSET),
    (CHART_OF_ACCOUNTS.UNDEPOSITED_FUNDS, "Undeposited Funds", AccountType.ASSET),
    (CHART_OF_ACCOUNTS.SECURITY_DEPOSITS_LIABILITY, "Security Deposits Held", AccountType.LIABILITY),
    (CHART_OF_ACCOUNTS.ACCOUNTS_PAYABLE, "Accounts Payable", AccountType.LIABILITY),
    (CHART_OF_ACCOUNTS.PREPAID_RENT, "Prepaid Rent", AccountType.LIABILITY),
    (CHART_OF_ACCOUNTS.OWNER_EQUITY, "Owner Equity", AccountType.EQUITY),
    (CHART_OF_ACCOUNTS.RENTAL_INCOME, "Rental Income", AccountType.INCOME),
    (CHART_OF_ACCOUNTS.UTILITY_RECOVERY_INCOME, "Utility Recovery", AccountType.INCOME),
    (CHART_OF_ACCOUNTS.LATE_FEES_INCOME, "Late Fees Income", AccountType.INCOME),
    (CHART_OF_ACCOUNTS.MAINTENANCE_INCOME, "Maintenance Income", AccountType.INCOME),
    (CHART_OF_ACCOUNTS.MAINTENANCE_EXPENSE, "Maintenance Expense", AccountType.EXPENSE),
    (CHART_OF_ACCOUNTS.UTILITY_EXPENSE, "Utility Cost", AccountType.EXPENSE),
    (CHART_OF_ACCOUNTS.MANAGEMENT_FEES, "Management Fees", AccountType.EXPENSE),
)


class ChartOfAccountsService:
    """Service for financial entities and their accounts."""

    def __init__(self, db: Database):
        """Initialize chart of accounts service.

        Args:
            db: Database instance
        """
        self.db = db

    def setup_financials(self, organization_id: str, org_name: str) -> FinancialEntity:
        """Create the financial entity and default chart for an organization.

        Idempotent: if the organization already has an entity, it is returned
        unchanged. A concurrent setup that loses the race on the unique
        organization constraint also returns the winner's entity.

        Args:
            organization_id: Organization ID
            org_name: Organization display name

        Returns:
            The organization's financial entity

        Raises:
            ValidationError: If organization ID or name is blank
        """
        if not organization_id or not organization_id.strip():
            raise ValidationError("Organization ID is required")
        if not org_name or not org_name.strip():
            raise ValidationError("Organization name is required")

        existing = self.db.get_financial_entity(organization_id)
        if existing is not None:
            logger.info(
                "financials_already_setup",
                extra={"organization_id": organization_id, "entity_id": existing.id},
            )
            return existing

        try:
            entity = self.db.create_financial_entity(
                organization_id=organization_id,
                name=f"{org_name.strip()} Financials",
                system_accounts=DEFAULT_ACCOUNTS,
            )
        except ConflictError:
            winner = self.db.get_financial_entity(organization_id)
            if winner is None:
                raise
            return winner

        logger.info(
            "financials_setup",
            extra={
                "organization_id": organization_id,
                "entity_id": entity.id,
                "account_count": len(DEFAULT_ACCOUNTS),
            },
        )
        return entity

    def get_entity(self, organization_id: str) -> Optional[FinancialEntity]:
        """Get the financial entity of an organization, or None."""
        return self.db.get_financial_entity(organization_id)

    def require_entity(self, organization_id: str) -> FinancialEntity:
        """Get the financial entity of an organization.

        Raises:
            FinancialEntityNotFoundError: If financials were never set up
        """
        entity = self.db.get_financial_entity(organization_id)
        if entity is None:
            raise FinancialEntityNotFoundError(organization_id)
        return entity

    def create_account(
        self,
        organization_id: str,
        code: str,
        name: str,
        account_type: AccountType,
    ) -> AccountEntity:
        """Create a non-system account on demand.

        Raises:
            ValidationError: If code or name is blank
            ConflictError: If the code is already used by the entity
        """
        code = code.strip() if code else ""
        name = name.strip() if name else ""
        if not code:
            raise ValidationError("Account code is required")
        if not name:
            raise ValidationError("Account name is required")

        entity = self.require_entity(organization_id)
        if self.db.get_account(entity.id, code) is not None:
            raise ConflictError(account_code_exists(code))

        return self.db.create_account(
            entity_id=entity.id, code=code, name=name, account_type=AccountType(account_type)
        )

    def get_account(self, organization_id: str, code: str) -> Optional[AccountEntity]:
        """Get an account by code, or None."""
        entity = self.db.get_financial_entity(organization_id)
        if entity is None:
            return None
        return self.db.get_account(entity.id, code)

    def require_account(self, organization_id: str, code: str) -> AccountEntity:
        """Get an account by code.

        Raises:
            UnknownAccountError: If the code does not resolve
        """
        account = self.get_account(organization_id, code)
        if account is None:
            raise UnknownAccountError(code, organization_id)
        return account

    def list_accounts(self, organization_id: str) -> list[AccountEntity]:
        """List the chart of accounts ordered by code."""
        entity = self.require_entity(organization_id)
        return self.db.list_accounts(entity.id)

    def delete_account(self, organization_id: str, code: str) -> None:
        """Delete an unused, non-system account.

        Raises:
            UnknownAccountError: If the code does not resolve
            DependencyError: If the account is a system account or has journal lines
        """
        account = self.require_account(organization_id, code)
        line_count = self.db.get_account_line_count(account.id)
        if account.is_system or line_count > 0:
            raise DependencyError(account_delete_blocked(code, account.is_system, line_count))
        self.db.delete_account(account.id)
