"""Utility bill domain service.

Drives a bill through DRAFT -> PROCESSING -> APPROVED -> POSTED. Every step
asks a pure guard first and then writes through a compare-and-set on the
stored status, so two callers holding the same stale snapshot cannot both
succeed.
"""

from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence

from propledger.database.base import Database
from propledger.domain.allocation import (
    AllocationRejected,
    compute_allocation_hash,
    compute_allocations,
)
from propledger.domain.chart import CHART_OF_ACCOUNTS
from propledger.domain.entities import (
    JournalEntry,
    JournalLineInput,
    PostJournalEntryInput,
    UnitSplitContext,
    UtilityAllocation,
    UtilityBill,
    UtilityBillStatus,
    UtilitySplitMethod,
)
from propledger.domain.errors import (
    AllocateError,
    AllocationError,
    ApprovalError,
    BillNotFoundError,
    BillPostingError,
    ConflictError,
    FinancialEntityNotFoundError,
    PostError,
    PostedBillError,
    StaleBillError,
    ValidationError,
    bill_transition_rejected,
)
from propledger.domain.guards import (
    assert_not_posted,
    can_allocate_bill,
    can_approve_bill,
    can_post_bill,
    validate_allocation_sum,
)
from propledger.domain.journal import JournalService
from propledger.domain.reading import UtilityReadingService
from propledger.domain.schemas import parse_create_bill_input
from propledger.logging_config import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = (
    "provider_name",
    "total_amount",
    "bill_date",
    "due_date",
    "split_method",
    "import_method",
    "file_url",
    "ocr_confidence",
)


class UtilityBillService:
    """Service for the utility bill lifecycle."""

    def __init__(self, db: Database, journal_service: Optional[JournalService] = None):
        """Initialize utility bill service.

        Args:
            db: Database instance
            journal_service: Service used to validate the posting entry;
                one is built on ``db`` when omitted
        """
        self.db = db
        self.journal_service = journal_service or JournalService(db)
        self.reading_service = UtilityReadingService(db)

    def create_bill(self, data: Mapping[str, Any]) -> UtilityBill:
        """Validate and store a new bill in DRAFT status.

        Raises:
            InvalidInputError: With a CreateBillError code
        """
        parsed = parse_create_bill_input(data)
        bill = self.db.create_utility_bill(
            organization_id=parsed.organization_id,
            property_id=parsed.property_id,
            provider_name=parsed.provider_name,
            total_amount=parsed.total_amount,
            bill_date=parsed.bill_date,
            due_date=parsed.due_date,
            split_method=parsed.split_method,
            import_method=parsed.import_method,
            file_url=str(parsed.file_url) if parsed.file_url is not None else None,
            ocr_confidence=parsed.ocr_confidence,
        )
        logger.info(
            "bill_created",
            extra={
                "organization_id": bill.organization_id,
                "bill_id": bill.id,
                "amount": bill.total_amount,
            },
        )
        return bill

    def get_bill(self, bill_id: int) -> Optional[UtilityBill]:
        return self.db.get_utility_bill(bill_id)

    def require_bill(self, bill_id: int) -> UtilityBill:
        """Get bill by ID.

        Raises:
            BillNotFoundError: If the bill does not exist
        """
        bill = self.db.get_utility_bill(bill_id)
        if bill is None:
            raise BillNotFoundError(bill_id)
        return bill

    def list_bills(
        self, organization_id: str, status: Optional[UtilityBillStatus] = None
    ) -> list[UtilityBill]:
        """List bills of an organization, newest first."""
        return self.db.list_utility_bills(organization_id, status)

    def get_allocations(self, bill_id: int) -> list[UtilityAllocation]:
        return self.db.get_allocations(bill_id)

    def update_bill(self, bill_id: int, **changes) -> UtilityBill:
        """Edit a DRAFT bill.

        The merged bill is re-validated through the creation schema.

        Raises:
            PostedBillError: If the bill is POSTED
            ConflictError: If the bill has left DRAFT
            ValidationError: If a field cannot be edited
            InvalidInputError: If the edited bill is invalid
        """
        bill = self.require_bill(bill_id)
        assert_not_posted(bill)
        if bill.status != UtilityBillStatus.DRAFT:
            raise ConflictError(
                f"Utility bill {bill_id} is {bill.status.value}; only DRAFT bills can be edited"
            )

        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Cannot edit bill fields: {', '.join(unknown)}")
        if not changes:
            return bill

        merged = {
            "organization_id": bill.organization_id,
            "property_id": bill.property_id,
            **{name: getattr(bill, name) for name in EDITABLE_FIELDS},
            **changes,
        }
        parsed = parse_create_bill_input(merged)
        fields = {name: getattr(parsed, name) for name in changes}
        if "file_url" in fields and fields["file_url"] is not None:
            fields["file_url"] = str(fields["file_url"])

        return self.db.update_utility_bill(bill_id, UtilityBillStatus.DRAFT, **fields)

    def _resolve_meter_usage(self, contexts: Sequence[UnitSplitContext]) -> list[UnitSplitContext]:
        resolved = []
        for ctx in contexts:
            if ctx.meter_usage is None and ctx.lease_utility_id is not None:
                ctx = replace(ctx, meter_usage=self.reading_service.get_usage(ctx.lease_utility_id))
            resolved.append(ctx)
        return resolved

    def allocate_bill(
        self, bill_id: int, contexts: Sequence[UnitSplitContext]
    ) -> list[UtilityAllocation]:
        """Split a DRAFT bill across units and move it to PROCESSING.

        For SUB_METERED bills a unit without ``meter_usage`` but with a
        ``lease_utility_id`` uses the delta of its two latest readings.

        Args:
            bill_id: Bill ID
            contexts: One split context per unit

        Returns:
            Stored allocations

        Raises:
            PostedBillError: If the bill is POSTED
            AllocationError: With an AllocateError code
            StaleBillError: If the bill left DRAFT concurrently
        """
        bill = self.require_bill(bill_id)
        assert_not_posted(bill)

        verdict = can_allocate_bill(bill)
        if not verdict:
            raise AllocationError(bill.id, verdict.error)
        if self.db.get_allocations(bill.id):
            raise AllocationError(bill.id, AllocateError.ALREADY_ALLOCATED)
        if not contexts:
            raise AllocationError(bill.id, AllocateError.NO_UNITS_FOUND)
        if bill.total_amount <= 0:
            raise AllocationError(bill.id, AllocateError.INVALID_AMOUNT)

        unit_ids = [ctx.unit_id for ctx in contexts]
        if len(set(unit_ids)) != len(unit_ids):
            raise AllocationError(
                bill.id,
                AllocateError.MISSING_SPLIT_DATA,
                f"Utility bill {bill.id}: each unit can be allocated only once",
            )

        if bill.split_method == UtilitySplitMethod.SUB_METERED:
            contexts = self._resolve_meter_usage(contexts)

        try:
            allocations = compute_allocations(bill.split_method, contexts, bill.total_amount)
        except AllocationRejected as e:
            raise AllocationError(bill.id, e.code, f"Utility bill {bill.id}: {e}") from e

        check = validate_allocation_sum(allocations, bill.total_amount)
        if not check:
            raise AllocationError(
                bill.id,
                AllocateError.SUM_MISMATCH,
                f"{bill_transition_rejected(bill.id, AllocateError.SUM_MISMATCH)}; "
                f"off by {check.difference}",
            )

        saved = self.db.save_allocations(
            bill.id,
            allocations,
            expected_status=UtilityBillStatus.DRAFT,
            new_status=UtilityBillStatus.PROCESSING,
        )
        logger.info(
            "bill_allocated",
            extra={
                "bill_id": bill.id,
                "split_method": bill.split_method,
                "unit_count": len(saved),
                "amount": bill.total_amount,
            },
        )
        return saved

    def approve_bill(self, bill_id: int) -> UtilityBill:
        """Approve a PROCESSING bill whose allocations reconcile.

        Raises:
            PostedBillError: If the bill is POSTED
            ApprovalError: With an ApproveError code
            StaleBillError: If the bill left PROCESSING concurrently
        """
        bill = self.require_bill(bill_id)
        assert_not_posted(bill)

        verdict = can_approve_bill(bill, self.db.get_allocations(bill.id))
        if not verdict:
            raise ApprovalError(bill.id, verdict.error)

        approved = self.db.transition_utility_bill(
            bill.id, UtilityBillStatus.PROCESSING, UtilityBillStatus.APPROVED
        )
        logger.info("bill_approved", extra={"bill_id": bill.id})
        return approved

    def post_bill(self, bill_id: int, organization_id: str) -> JournalEntry:
        """Post an APPROVED bill to the ledger.

        Writes a balanced entry (debit utility cost, credit accounts payable),
        one recovery entry per allocated unit (debit accounts receivable,
        credit utility recovery income) and marks the bill POSTED with the
        entry ID and allocation hash, all in one transaction.

        Args:
            bill_id: Bill ID
            organization_id: Organization whose ledger receives the entry

        Returns:
            The posted journal entry

        Raises:
            BillNotFoundError: If the bill does not exist in the organization
            BillPostingError: With a PostError code
        """
        bill = self.require_bill(bill_id)
        if bill.organization_id != organization_id:
            raise BillNotFoundError(bill_id)

        try:
            assert_not_posted(bill)
        except PostedBillError as e:
            raise BillPostingError(bill.id, PostError.ALREADY_POSTED) from e

        verdict = can_post_bill(bill)
        if not verdict:
            raise BillPostingError(bill.id, verdict.error)

        allocations = self.db.get_allocations(bill.id)
        if not allocations:
            raise BillPostingError(bill.id, PostError.NO_ALLOCATIONS)

        allocation_hash = compute_allocation_hash(allocations)
        request = PostJournalEntryInput(
            organization_id=organization_id,
            date=bill.bill_date,
            description=f"Utility Bill: {bill.provider_name}",
            reference=f"UTIL-{bill.id}",
            lines=(
                JournalLineInput(
                    account_code=CHART_OF_ACCOUNTS.UTILITY_EXPENSE,
                    debit=bill.total_amount,
                    description=f"Utility expense - {bill.provider_name}",
                    property_id=bill.property_id,
                ),
                JournalLineInput(
                    account_code=CHART_OF_ACCOUNTS.ACCOUNTS_PAYABLE,
                    credit=bill.total_amount,
                    description=f"Accounts payable - {bill.provider_name}",
                    property_id=bill.property_id,
                ),
            ),
        )

        try:
            prepared = self.journal_service.prepare(request)
            recoveries = [
                self.journal_service.prepare(self._recovery_request(bill, alloc))
                for alloc in allocations
                if alloc.amount > 0
            ]
        except FinancialEntityNotFoundError as e:
            raise BillPostingError(bill.id, PostError.NO_FINANCIAL_ENTITY) from e

        try:
            entry = self.db.post_utility_bill(bill.id, prepared, allocation_hash, recoveries)
        except StaleBillError as e:
            current = self.require_bill(bill.id)
            if current.status == UtilityBillStatus.POSTED:
                raise BillPostingError(bill.id, PostError.ALREADY_POSTED) from e
            raise

        logger.info(
            "bill_posted",
            extra={
                "organization_id": organization_id,
                "bill_id": bill.id,
                "entry_id": entry.id,
                "recovery_count": len(recoveries),
                "allocation_hash": allocation_hash,
            },
        )
        return entry

    @staticmethod
    def _recovery_request(bill: UtilityBill, alloc: UtilityAllocation) -> PostJournalEntryInput:
        """Entry billing one unit's share to the tenant: debit AR, credit recovery income."""
        return PostJournalEntryInput(
            organization_id=bill.organization_id,
            date=bill.bill_date,
            description=f"Utility Recovery: {bill.provider_name} - Unit {alloc.unit_id}",
            reference=f"UTIL-{bill.id}-{alloc.unit_id}",
            lines=(
                JournalLineInput(
                    account_code=CHART_OF_ACCOUNTS.ACCOUNTS_RECEIVABLE,
                    debit=alloc.amount,
                    property_id=bill.property_id,
                    unit_id=alloc.unit_id,
                    lease_id=alloc.lease_id,
                ),
                JournalLineInput(
                    account_code=CHART_OF_ACCOUNTS.UTILITY_RECOVERY_INCOME,
                    credit=alloc.amount,
                    property_id=bill.property_id,
                    unit_id=alloc.unit_id,
                    lease_id=alloc.lease_id,
                ),
            ),
        )
