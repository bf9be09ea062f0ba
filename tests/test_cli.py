"""Tests for CLI commands."""

from decimal import Decimal

import pytest

from propledger.cli.commands.bill import build_contexts
from propledger.cli.commands.journal import parse_line
from propledger.cli.main import cli
from propledger.domain.entities import UtilitySplitMethod


@pytest.fixture
def org(invoke):
    result = invoke("setup", "org-1", "Maple Street Rentals")
    assert result.exit_code == 0, result.output
    return "org-1"


def test_help_does_not_touch_database(cli_runner, tmp_path):
    db_path = tmp_path / "never.db"
    result = cli_runner.invoke(cli, ["--db-path", str(db_path), "--help"])
    assert result.exit_code == 0
    assert "setup" in result.output
    assert not db_path.exists()


def test_db_path_from_environment(cli_runner, temp_db, monkeypatch):
    monkeypatch.setenv("PROPLEDGER_DB_PATH", temp_db.database_path)
    result = cli_runner.invoke(cli, ["setup", "org-env", "Env Org"])
    assert result.exit_code == 0
    assert temp_db.get_financial_entity("org-env") is not None


def test_setup(invoke):
    result = invoke("setup", "org-1", "Maple Street Rentals")
    assert result.exit_code == 0
    assert "Created 'Maple Street Rentals Financials'" in result.output
    assert "14 accounts" in result.output


def test_setup_twice(invoke, org):
    result = invoke("setup", org, "Other Name")
    assert result.exit_code == 0
    assert "already set up" in result.output


def test_account_list(invoke, org):
    result = invoke("account", "list", "--org", org)
    assert result.exit_code == 0
    assert "Cash in Bank" in result.output
    assert "(system)" in result.output


def test_account_list_without_setup(invoke):
    result = invoke("account", "list", "--org", "nobody")
    assert result.exit_code == 1
    assert "Financial entity not found" in result.output


def test_account_create_and_delete(invoke, org):
    result = invoke("account", "create", "--org", org, "5400", "Landscaping", "--type", "expense")
    assert result.exit_code == 0
    assert "Created account 5400 'Landscaping'" in result.output

    result = invoke("account", "delete", "--org", org, "5400", input="y\n")
    assert result.exit_code == 0
    assert "Deleted account 5400" in result.output


def test_account_delete_system_account(invoke, org):
    result = invoke("account", "delete", "--org", org, "1000", "--yes")
    assert result.exit_code == 1
    assert "system account" in result.output


def test_journal_post_and_balance(invoke, org):
    result = invoke(
        "journal", "post", "--org", org,
        "--date", "2024-03-01",
        "--description", "March rent",
        "--reference", "RENT-03",
        "--line", "1000:$1,500.00:",
        "--line", "4000::1500",
    )
    assert result.exit_code == 0, result.output
    assert "Posted entry 1 ($1,500.00)" in result.output

    result = invoke("account", "balance", "--org", org, "1000")
    assert result.exit_code == 0
    assert "1000 Cash in Bank: $1,500.00" in result.output


def test_journal_post_unbalanced(invoke, org):
    result = invoke(
        "journal", "post", "--org", org,
        "--description", "Oops",
        "--line", "1000:50:",
        "--line", "4000::40",
    )
    assert result.exit_code == 1
    assert "Unbalanced entry" in result.output

    result = invoke("journal", "list", "--org", org)
    assert "No journal entries found." in result.output


def test_journal_post_bad_line(invoke, org):
    result = invoke("journal", "post", "--org", org, "--description", "Bad", "--line", "1000-50")
    assert result.exit_code == 1
    assert "expected CODE:DEBIT:CREDIT" in result.output


def test_journal_show_list_and_reverse(invoke, org):
    invoke(
        "journal", "post", "--org", org, "--date", "2024-03-01",
        "--description", "Deposit", "--line", "1000:200:", "--line", "3000::200",
    )
    result = invoke("journal", "show", "1")
    assert result.exit_code == 0
    assert "Entry 1 | 2024-03-01 | Deposit" in result.output

    result = invoke("journal", "reverse", "--org", org, "1", "--date", "2024-03-02")
    assert result.exit_code == 0
    assert "Posted reversal 2 of entry 1" in result.output

    result = invoke("journal", "reverse", "--org", org, "1")
    assert result.exit_code == 1
    assert "already reversed" in result.output

    result = invoke("journal", "list", "--org", org, "--start-date", "2024-03-02")
    assert "reverses 1" in result.output
    assert "Deposit" in result.output

    result = invoke("account", "balance", "--org", org, "1000")
    assert "$0.00" in result.output


def test_journal_list_period_conflict(invoke, org):
    result = invoke(
        "journal", "list", "--org", org, "--period", "this-month", "--start-date", "2024-01-01"
    )
    assert result.exit_code == 1
    assert "cannot be combined" in result.output


def test_bill_lifecycle(invoke, org):
    result = invoke(
        "bill", "create", "--org", org, "--property", "prop-1", "--provider", "City Water",
        "--amount", "100", "--bill-date", "2024-03-01", "--due-date", "2024-03-31",
        "--split", "equal",
    )
    assert result.exit_code == 0, result.output
    assert "Created bill 1 ($100.00, DRAFT)" in result.output

    result = invoke("bill", "allocate", "1", "--unit", "A", "--unit", "B", "--unit", "C")
    assert result.exit_code == 0, result.output
    assert "across 3 units" in result.output
    assert "$     33.34" in result.output

    result = invoke("bill", "approve", "1")
    assert result.exit_code == 0
    assert "Approved bill 1" in result.output

    result = invoke("bill", "post", "1", "--org", org)
    assert result.exit_code == 0, result.output
    assert "Posted bill 1 as journal entry 1" in result.output

    result = invoke("bill", "show", "1")
    assert "POSTED" in result.output
    assert "entry 1" in result.output

    result = invoke("bill", "post", "1", "--org", org)
    assert result.exit_code == 1
    assert "ALREADY_POSTED" in result.output

    result = invoke("summary", "--org", org)
    assert result.exit_code == 0
    assert "Utility Expense" in result.output
    assert "$100.00" in result.output


def test_bill_create_invalid_dates(invoke, org):
    result = invoke(
        "bill", "create", "--org", org, "--property", "prop-1", "--provider", "City Water",
        "--amount", "100", "--bill-date", "2024-03-01", "--due-date", "2024-02-01",
        "--split", "EQUAL",
    )
    assert result.exit_code == 1
    assert "Due date must be on or after bill date" in result.output


def test_bill_allocate_missing_data(invoke, org):
    invoke(
        "bill", "create", "--org", org, "--property", "prop-1", "--provider", "Gas Co",
        "--amount", "90", "--due-date", "in 10 days", "--split", "SQ_FOOTAGE",
    )
    result = invoke("bill", "allocate", "1", "--unit", "A:500", "--unit", "B")
    assert result.exit_code == 1
    assert "square footage" in result.output


def test_bill_list(invoke, org):
    result = invoke("bill", "list", "--org", org)
    assert "No bills found." in result.output


def test_reading_add_and_list(invoke):
    result = invoke("reading", "add", "lu-1", "100", "--date", "2024-01-31")
    assert result.exit_code == 0
    result = invoke("reading", "add", "lu-1", "150.5", "--date", "2024-02-29")
    assert result.exit_code == 0

    result = invoke("reading", "add", "lu-1", "120", "--date", "2024-03-31")
    assert result.exit_code == 1
    assert "lower than the previous reading" in result.output

    result = invoke("reading", "list", "lu-1")
    assert "2024-02-29" in result.output
    assert "Latest usage: 50.5" in result.output


def test_summary_with_trial_balance(invoke, org):
    invoke("journal", "post", "--org", org, "--description", "Rent",
           "--line", "1100:900:", "--line", "4000::900")
    result = invoke("summary", "--org", org, "--trial-balance")
    assert result.exit_code == 0
    assert "Accounts Receivable" in result.output
    assert "Trial balance" in result.output
    assert "Net Operating Income" in result.output


def test_log_level_emits_json_events(invoke, org):
    result = invoke(
        "--log-level", "INFO", "journal", "post", "--org", org, "--description", "Rent",
        "--line", "1000:10:", "--line", "4000::10",
    )
    assert result.exit_code == 0
    assert '"message": "journal_posted"' in result.output


def test_parse_line():
    line = parse_line("1000::25.50")
    assert line.account_code == "1000"
    assert line.debit == Decimal("0")
    assert line.credit == Decimal("25.50")
    with pytest.raises(ValueError):
        parse_line(":10:")


def test_build_contexts_reads_value_per_method():
    contexts = build_contexts(UtilitySplitMethod.OCCUPANCY_BASED, ("A:2", "B:3"))
    assert [c.occupant_count for c in contexts] == [2, 3]

    contexts = build_contexts(UtilitySplitMethod.SUB_METERED, ("A", "B:12"), ("A:lu-1",))
    assert contexts[0].lease_utility_id == "lu-1"
    assert contexts[0].meter_usage is None
    assert contexts[1].meter_usage == Decimal("12")

    with pytest.raises(ValueError):
        build_contexts(UtilitySplitMethod.SQ_FOOTAGE, ("A:big",))
