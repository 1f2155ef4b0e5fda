"""
Unit tests for ExpensesService against a mocked Supabase client.
"""

import pytest

from services.expenses_service import ExpensesService, ExpensesServiceError


USER_ID = "user-1"
PROJECT_ID = "project-1"
EXPENSE_ID = "expense-1"


@pytest.fixture
def service(mock_supabase_client):
    return ExpensesService(client=mock_supabase_client)


@pytest.fixture
def table(mock_supabase_client):
    return mock_supabase_client.table.return_value


def test_list_for_owned_project(service, table, queue_results):
    queue_results([{"id": PROJECT_ID}], [{"id": EXPENSE_ID, "amount": 40}])

    assert service.list_expenses(USER_ID, PROJECT_ID) == [{"id": EXPENSE_ID, "amount": 40}]
    table.order.assert_called_once_with("date", desc=True)


def test_list_for_foreign_project_returns_none(service, mock_supabase_client, queue_results):
    queue_results([])

    assert service.list_expenses(USER_ID, PROJECT_ID) is None
    mock_supabase_client.table.assert_called_once_with("projects")


def test_create_attaches_project_and_owner(service, table, queue_results):
    queue_results([{"id": PROJECT_ID}], [{"id": EXPENSE_ID}])

    created = service.create_expense(USER_ID, PROJECT_ID, {"description": "Fuel", "amount": 30})

    assert created == {"id": EXPENSE_ID}
    inserted = table.insert.call_args[0][0]
    assert inserted["project_id"] == PROJECT_ID
    assert inserted["user_id"] == USER_ID


def test_create_for_foreign_project_inserts_nothing(service, table, queue_results):
    queue_results([])

    assert service.create_expense(USER_ID, PROJECT_ID, {"description": "Fuel", "amount": 30}) is None
    table.insert.assert_not_called()


def test_update_refreshes_timestamp(service, table, queue_results):
    queue_results([{"id": PROJECT_ID}], [{"id": EXPENSE_ID, "amount": 55}])

    updated = service.update_expense(USER_ID, PROJECT_ID, EXPENSE_ID, {"amount": 55})

    assert updated["amount"] == 55
    payload = table.update.call_args[0][0]
    assert payload["amount"] == 55
    assert "updated_at" in payload


def test_update_missing_expense_returns_none(service, queue_results):
    queue_results([{"id": PROJECT_ID}], [])

    assert service.update_expense(USER_ID, PROJECT_ID, EXPENSE_ID, {"amount": 1}) is None


def test_empty_update_returns_current_row(service, table, queue_results):
    queue_results([{"id": PROJECT_ID}], [{"id": EXPENSE_ID, "amount": 12}])

    assert service.update_expense(USER_ID, PROJECT_ID, EXPENSE_ID, {}) == {"id": EXPENSE_ID, "amount": 12}
    table.update.assert_not_called()


def test_delete_expense(service, queue_results):
    queue_results([{"id": PROJECT_ID}], [{"id": EXPENSE_ID}])
    assert service.delete_expense(USER_ID, PROJECT_ID, EXPENSE_ID) is True


def test_delete_foreign_expense(service, table, queue_results):
    queue_results([])

    assert service.delete_expense(USER_ID, PROJECT_ID, EXPENSE_ID) is False
    table.delete.assert_not_called()


def test_errors_are_wrapped(service, table):
    table.execute.side_effect = RuntimeError("timeout")

    with pytest.raises(ExpensesServiceError, match="timeout"):
        service.list_expenses(USER_ID, PROJECT_ID)
