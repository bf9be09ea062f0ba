"""Tests for the utility bill lifecycle service."""

from datetime import date
from decimal import Decimal

import pytest

from propledger.domain.chart import CHART_OF_ACCOUNTS as COA
from propledger.domain.entities import UnitSplitContext, UtilityBillStatus, UtilitySplitMethod
from propledger.domain.errors import (
    AllocateError,
    AllocationError,
    ApprovalError,
    ApproveError,
    BillNotFoundError,
    BillPostingError,
    ConflictError,
    CreateBillError,
    InvalidInputError,
    PostError,
    PostedBillError,
    StaleBillError,
    ValidationError,
)
from conftest import ORG_ID


@pytest.fixture
def draft_bill(bill_service, bill_data):
    return bill_service.create_bill(bill_data)


class TestCreate:
    def test_create_bill_is_draft(self, draft_bill):
        assert draft_bill.status is UtilityBillStatus.DRAFT
        assert draft_bill.total_amount == Decimal("100.00")
        assert draft_bill.journal_entry_id is None
        assert draft_bill.allocation_hash is None

    def test_create_invalid_amount(self, bill_service, bill_data):
        bill_data["total_amount"] = "0"
        with pytest.raises(InvalidInputError) as exc_info:
            bill_service.create_bill(bill_data)
        assert exc_info.value.code is CreateBillError.INVALID_AMOUNT

    def test_list_bills_by_status(self, bill_service, bill_data, approved_bill):
        bill_service.create_bill(bill_data)
        assert len(bill_service.list_bills(ORG_ID)) == 2
        drafts = bill_service.list_bills(ORG_ID, UtilityBillStatus.DRAFT)
        assert [b.status for b in drafts] == [UtilityBillStatus.DRAFT]
        assert bill_service.list_bills("org-2") == []

    def test_require_missing_bill(self, bill_service):
        assert bill_service.get_bill(404) is None
        with pytest.raises(BillNotFoundError):
            bill_service.require_bill(404)


class TestUpdate:
    def test_update_draft(self, bill_service, draft_bill):
        updated = bill_service.update_bill(
            draft_bill.id, total_amount="120.50", provider_name="Metro Water"
        )
        assert updated.total_amount == Decimal("120.50")
        assert updated.provider_name == "Metro Water"
        assert updated.updated_at >= draft_bill.updated_at

    def test_update_revalidates(self, bill_service, draft_bill):
        with pytest.raises(InvalidInputError) as exc_info:
            bill_service.update_bill(draft_bill.id, due_date=date(2024, 1, 1))
        assert exc_info.value.code is CreateBillError.INVALID_DATES

    def test_update_unknown_field(self, bill_service, draft_bill):
        with pytest.raises(ValidationError, match="status"):
            bill_service.update_bill(draft_bill.id, status=UtilityBillStatus.POSTED)

    def test_update_after_allocation(self, bill_service, draft_bill, three_units):
        bill_service.allocate_bill(draft_bill.id, three_units)
        with pytest.raises(ConflictError, match="only DRAFT"):
            bill_service.update_bill(draft_bill.id, provider_name="Other")

    def test_update_posted_bill(self, bill_service, approved_bill, org_entity):
        bill_service.post_bill(approved_bill.id, ORG_ID)
        with pytest.raises(PostedBillError) as exc_info:
            bill_service.update_bill(approved_bill.id, provider_name="Other")
        assert exc_info.value.code == "BILL_ALREADY_POSTED"


class TestAllocate:
    def test_allocate_equal(self, bill_service, draft_bill, three_units):
        allocations = bill_service.allocate_bill(draft_bill.id, three_units)
        assert [a.amount for a in allocations] == [
            Decimal("33.33"),
            Decimal("33.33"),
            Decimal("33.34"),
        ]
        assert all(a.bill_id == draft_bill.id for a in allocations)
        assert bill_service.require_bill(draft_bill.id).status is UtilityBillStatus.PROCESSING
        assert bill_service.get_allocations(draft_bill.id) == allocations

    def test_allocate_twice(self, bill_service, draft_bill, three_units):
        bill_service.allocate_bill(draft_bill.id, three_units)
        with pytest.raises(AllocationError) as exc_info:
            bill_service.allocate_bill(draft_bill.id, three_units)
        assert exc_info.value.code is AllocateError.INVALID_STATUS

    def test_allocate_without_units(self, bill_service, draft_bill):
        with pytest.raises(AllocationError) as exc_info:
            bill_service.allocate_bill(draft_bill.id, [])
        assert exc_info.value.code is AllocateError.NO_UNITS_FOUND

    def test_allocate_duplicate_units(self, bill_service, draft_bill):
        units = [UnitSplitContext(unit_id="A"), UnitSplitContext(unit_id="A")]
        with pytest.raises(AllocationError):
            bill_service.allocate_bill(draft_bill.id, units)
        assert bill_service.require_bill(draft_bill.id).status is UtilityBillStatus.DRAFT

    def test_allocate_missing_split_data(self, bill_service, bill_data):
        bill_data["split_method"] = UtilitySplitMethod.SQ_FOOTAGE
        bill = bill_service.create_bill(bill_data)
        units = [
            UnitSplitContext(unit_id="A", sq_footage=Decimal("700")),
            UnitSplitContext(unit_id="B"),
        ]
        with pytest.raises(AllocationError) as exc_info:
            bill_service.allocate_bill(bill.id, units)
        assert exc_info.value.code is AllocateError.MISSING_SPLIT_DATA
        assert bill_service.get_allocations(bill.id) == []
        assert bill_service.require_bill(bill.id).status is UtilityBillStatus.DRAFT

    def test_allocate_ai_optimized(self, bill_service, bill_data, three_units):
        bill_data["split_method"] = UtilitySplitMethod.AI_OPTIMIZED
        bill = bill_service.create_bill(bill_data)
        with pytest.raises(AllocationError) as exc_info:
            bill_service.allocate_bill(bill.id, three_units)
        assert exc_info.value.code is AllocateError.UNSUPPORTED_METHOD

    def test_allocate_sub_metered_from_readings(self, bill_service, reading_service, bill_data):
        for lease_utility_id, first, second in (("lu-a", "100", "130"), ("lu-b", "50", "110")):
            reading_service.create_reading(
                {"lease_utility_id": lease_utility_id, "reading_value": first, "reading_date": date(2024, 2, 1)}
            )
            reading_service.create_reading(
                {"lease_utility_id": lease_utility_id, "reading_value": second, "reading_date": date(2024, 3, 1)}
            )
        bill_data["split_method"] = UtilitySplitMethod.SUB_METERED
        bill_data["total_amount"] = "90.00"
        bill = bill_service.create_bill(bill_data)

        allocations = bill_service.allocate_bill(
            bill.id,
            [
                UnitSplitContext(unit_id="A", lease_utility_id="lu-a"),
                UnitSplitContext(unit_id="B", lease_utility_id="lu-b"),
            ],
        )
        assert [a.amount for a in allocations] == [Decimal("30.00"), Decimal("60.00")]
        assert [a.basis for a in allocations] == [Decimal("30"), Decimal("60")]

    def test_allocate_posted_bill(self, bill_service, approved_bill, three_units, org_entity):
        bill_service.post_bill(approved_bill.id, ORG_ID)
        with pytest.raises(PostedBillError):
            bill_service.allocate_bill(approved_bill.id, three_units)


class TestApprove:
    def test_approve(self, approved_bill):
        assert approved_bill.status is UtilityBillStatus.APPROVED

    def test_approve_draft(self, bill_service, draft_bill):
        with pytest.raises(ApprovalError) as exc_info:
            bill_service.approve_bill(draft_bill.id)
        assert exc_info.value.code is ApproveError.INVALID_STATUS

    def test_approve_twice(self, bill_service, approved_bill):
        with pytest.raises(ApprovalError) as exc_info:
            bill_service.approve_bill(approved_bill.id)
        assert exc_info.value.code is ApproveError.INVALID_STATUS

    def test_stale_transition(self, bill_service, temp_db, draft_bill, three_units):
        """Two approvals from the same PROCESSING snapshot: only one wins."""
        bill_service.allocate_bill(draft_bill.id, three_units)
        temp_db.transition_utility_bill(
            draft_bill.id, UtilityBillStatus.PROCESSING, UtilityBillStatus.APPROVED
        )
        with pytest.raises(StaleBillError):
            temp_db.transition_utility_bill(
                draft_bill.id, UtilityBillStatus.PROCESSING, UtilityBillStatus.APPROVED
            )


class TestPost:
    def test_post_bill(self, bill_service, journal_service, approved_bill, org_entity):
        entry = bill_service.post_bill(approved_bill.id, ORG_ID)

        assert entry.reference == f"UTIL-{approved_bill.id}"
        assert entry.transaction_date == approved_bill.bill_date
        assert entry.total_debit == entry.total_credit == Decimal("100.00")
        assert {line.account_code for line in entry.lines} == {
            COA.UTILITY_EXPENSE,
            COA.ACCOUNTS_PAYABLE,
        }
        assert all(line.property_id == "prop-1" for line in entry.lines)

        bill = bill_service.require_bill(approved_bill.id)
        assert bill.status is UtilityBillStatus.POSTED
        assert bill.journal_entry_id == entry.id
        assert len(bill.allocation_hash) == 64

        assert journal_service.get_account_balance(ORG_ID, COA.UTILITY_EXPENSE) == Decimal("100.00")
        assert journal_service.get_account_balance(ORG_ID, COA.ACCOUNTS_PAYABLE) == Decimal("100.00")

    def test_post_bill_records_tenant_recoveries(
        self, bill_service, journal_service, approved_bill, org_entity
    ):
        entry = bill_service.post_bill(approved_bill.id, ORG_ID)

        assert journal_service.get_account_balance(ORG_ID, COA.ACCOUNTS_RECEIVABLE) == Decimal("100.00")
        assert journal_service.get_account_balance(
            ORG_ID, COA.UTILITY_RECOVERY_INCOME
        ) == Decimal("100.00")
        summary = journal_service.get_financial_summary(ORG_ID)
        assert summary.net_operating_income == Decimal("0.00")

        recoveries = [e for e in journal_service.list_entries(ORG_ID) if e.id != entry.id]
        assert sorted(e.reference for e in recoveries) == [
            f"UTIL-{approved_bill.id}-A",
            f"UTIL-{approved_bill.id}-B",
            f"UTIL-{approved_bill.id}-C",
        ]
        by_unit = {e.lines[0].unit_id: e for e in recoveries}
        assert by_unit["C"].total_debit == Decimal("33.34")
        assert by_unit["A"].description == "Utility Recovery: City Water - Unit A"
        for recovery in recoveries:
            assert [line.account_code for line in recovery.lines] == [
                COA.ACCOUNTS_RECEIVABLE,
                COA.UTILITY_RECOVERY_INCOME,
            ]
            assert all(line.property_id == "prop-1" for line in recovery.lines)
            assert recovery.lines[0].unit_id == recovery.lines[1].unit_id

    def test_recovery_carries_lease(
        self, bill_service, journal_service, bill_data, org_entity
    ):
        bill = bill_service.create_bill(bill_data)
        bill_service.allocate_bill(
            bill.id,
            [
                UnitSplitContext(unit_id="A", lease_id="lease-1"),
                UnitSplitContext(unit_id="B", lease_id="lease-2"),
            ],
        )
        bill_service.approve_bill(bill.id)
        entry = bill_service.post_bill(bill.id, ORG_ID)

        recoveries = [e for e in journal_service.list_entries(ORG_ID) if e.id != entry.id]
        leases = {e.lines[0].unit_id: e.lines[0].lease_id for e in recoveries}
        assert leases == {"A": "lease-1", "B": "lease-2"}
        assert all(e.total_debit == Decimal("50.00") for e in recoveries)

    def test_zero_share_gets_no_recovery_entry(
        self, bill_service, journal_service, bill_data, org_entity
    ):
        bill_data["split_method"] = UtilitySplitMethod.CUSTOM_RATIO
        bill = bill_service.create_bill(bill_data)
        bill_service.allocate_bill(
            bill.id,
            [
                UnitSplitContext(unit_id="A", custom_ratio=Decimal("1")),
                UnitSplitContext(unit_id="B", custom_ratio=Decimal("0")),
            ],
        )
        bill_service.approve_bill(bill.id)
        bill_service.post_bill(bill.id, ORG_ID)

        references = {e.reference for e in journal_service.list_entries(ORG_ID)}
        assert references == {f"UTIL-{bill.id}", f"UTIL-{bill.id}-A"}

    def test_post_twice(self, bill_service, approved_bill, org_entity, journal_service):
        bill_service.post_bill(approved_bill.id, ORG_ID)
        with pytest.raises(BillPostingError) as exc_info:
            bill_service.post_bill(approved_bill.id, ORG_ID)
        assert exc_info.value.code is PostError.ALREADY_POSTED
        # One bill entry plus one recovery entry per unit
        assert len(journal_service.list_entries(ORG_ID)) == 4

    def test_post_unapproved(self, bill_service, draft_bill, org_entity):
        with pytest.raises(BillPostingError) as exc_info:
            bill_service.post_bill(draft_bill.id, ORG_ID)
        assert exc_info.value.code is PostError.NOT_APPROVED

    def test_post_without_financials(self, bill_service, approved_bill):
        with pytest.raises(BillPostingError) as exc_info:
            bill_service.post_bill(approved_bill.id, ORG_ID)
        assert exc_info.value.code is PostError.NO_FINANCIAL_ENTITY
        assert bill_service.require_bill(approved_bill.id).status is UtilityBillStatus.APPROVED

    def test_post_for_other_organization(self, bill_service, approved_bill, chart_service):
        chart_service.setup_financials("org-2", "Oak Lane")
        with pytest.raises(BillNotFoundError):
            bill_service.post_bill(approved_bill.id, "org-2")

    def test_post_rolls_back_when_status_changed(
        self, bill_service, journal_service, temp_db, approved_bill, org_entity, monkeypatch
    ):
        """A bill that left APPROVED after the guard ran is not posted."""
        stale = bill_service.require_bill(approved_bill.id)
        temp_db.transition_utility_bill(
            approved_bill.id, UtilityBillStatus.APPROVED, UtilityBillStatus.PROCESSING
        )
        monkeypatch.setattr(bill_service, "require_bill", lambda bill_id: stale)

        with pytest.raises(StaleBillError):
            bill_service.post_bill(approved_bill.id, ORG_ID)
        monkeypatch.undo()

        assert journal_service.list_entries(ORG_ID) == []
        assert bill_service.require_bill(approved_bill.id).status is UtilityBillStatus.PROCESSING

    def test_full_lifecycle_with_custom_ratio(self, bill_service, bill_data, org_entity):
        bill_data["split_method"] = UtilitySplitMethod.CUSTOM_RATIO
        bill_data["total_amount"] = "250.00"
        bill = bill_service.create_bill(bill_data)
        bill_service.allocate_bill(
            bill.id,
            [
                UnitSplitContext(unit_id="A", custom_ratio=Decimal("0.25")),
                UnitSplitContext(unit_id="B", custom_ratio=Decimal("0.75")),
            ],
        )
        bill_service.approve_bill(bill.id)
        entry = bill_service.post_bill(bill.id, ORG_ID)
        assert entry.total_debit == Decimal("250.00")
