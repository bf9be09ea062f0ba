"""Shared pytest fixtures for propledger tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from propledger.database.factories import create_sqlite_database
from propledger.domain.chart import ChartOfAccountsService
from propledger.domain.entities import (
    JournalLineInput,
    PostJournalEntryInput,
    UnitSplitContext,
    UtilitySplitMethod,
)
from propledger.domain.journal import JournalService
from propledger.domain.reading import UtilityReadingService
from propledger.domain.utility_bill import UtilityBillService
from propledger.logging_config import reset_logging

ORG_ID = "org-1"


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers the CLI installs so each test starts unconfigured."""
    yield
    reset_logging()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def chart_service(temp_db):
    return ChartOfAccountsService(temp_db)


@pytest.fixture
def journal_service(temp_db):
    return JournalService(temp_db)


@pytest.fixture
def reading_service(temp_db):
    return UtilityReadingService(temp_db)


@pytest.fixture
def bill_service(temp_db, journal_service):
    return UtilityBillService(temp_db, journal_service)


@pytest.fixture
def org_entity(chart_service):
    """An organization with financials set up."""
    return chart_service.setup_financials(ORG_ID, "Maple Street Rentals")


@pytest.fixture
def post_entry(journal_service, org_entity):
    """Post a two-line entry: debit one account, credit another."""

    def _post(debit_code, credit_code, amount, entry_date=date(2024, 3, 1), reference=None):
        amount = Decimal(amount)
        return journal_service.post(
            PostJournalEntryInput(
                organization_id=ORG_ID,
                date=entry_date,
                description=f"{debit_code} / {credit_code}",
                reference=reference,
                lines=(
                    JournalLineInput(account_code=debit_code, debit=amount),
                    JournalLineInput(account_code=credit_code, credit=amount),
                ),
            )
        )

    return _post


@pytest.fixture
def bill_data():
    """Raw input for a valid bill."""
    return {
        "organization_id": ORG_ID,
        "property_id": "prop-1",
        "provider_name": "City Water",
        "total_amount": "100.00",
        "bill_date": date(2024, 3, 1),
        "due_date": date(2024, 3, 31),
        "split_method": UtilitySplitMethod.EQUAL,
    }


@pytest.fixture
def three_units():
    return [UnitSplitContext(unit_id=u) for u in ("A", "B", "C")]


@pytest.fixture
def approved_bill(bill_service, bill_data, three_units):
    """A 100.00 EQUAL bill allocated across three units and approved."""
    bill = bill_service.create_bill(bill_data)
    bill_service.allocate_bill(bill.id, three_units)
    return bill_service.approve_bill(bill.id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def invoke(cli_runner, temp_db):
    """Run the CLI against the temporary database."""
    from propledger.cli.main import cli

    def _invoke(*args, **kwargs):
        # Each run installs its handler on that run's stderr
        reset_logging()
        return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)

    return _invoke
