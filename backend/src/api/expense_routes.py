# Expense API Routes
# Expenses are always addressed through their parent project, which must
# belong to the caller.

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import AuthContext, get_auth_context, get_expenses_service
from api.models.project_models import ErrorResponse, Expense, ExpenseCreate, ExpenseUpdate
from services.expenses_service import ExpensesService, ExpensesServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects/{project_id}/expenses", tags=["Expenses"])

_ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Unauthorized"},
    404: {"model": ErrorResponse, "description": "Project or expense not found"},
    500: {"model": ErrorResponse, "description": "Server error"},
}


def _not_found(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"code": "not_found", "message": message},
    )


def _service_error(action: str, exc: ExpensesServiceError) -> HTTPException:
    logger.error(f"Expenses service error: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "expenses_error", "message": f"Failed to {action}: {exc}"},
    )


@router.get("", response_model=List[Expense], responses=_ERROR_RESPONSES)
def list_expenses(
    project_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: ExpensesService = Depends(get_expenses_service),
) -> List[Expense]:
    try:
        rows = service.list_expenses(auth.user_id, project_id)
    except ExpensesServiceError as exc:
        raise _service_error("list expenses", exc)
    if rows is None:
        raise _not_found(f"Project {project_id} not found")
    return [Expense(**row) for row in rows]


@router.post(
    "",
    response_model=Expense,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
def create_expense(
    project_id: str,
    payload: ExpenseCreate,
    auth: AuthContext = Depends(get_auth_context),
    service: ExpensesService = Depends(get_expenses_service),
) -> Expense:
    try:
        row = service.create_expense(auth.user_id, project_id, payload.model_dump(mode="json"))
    except ExpensesServiceError as exc:
        raise _service_error("add expense", exc)
    if row is None:
        raise _not_found(f"Project {project_id} not found")
    return Expense(**row)


@router.patch("/{expense_id}", response_model=Expense, responses=_ERROR_RESPONSES)
def update_expense(
    project_id: str,
    expense_id: str,
    payload: ExpenseUpdate,
    auth: AuthContext = Depends(get_auth_context),
    service: ExpensesService = Depends(get_expenses_service),
) -> Expense:
    updates = payload.model_dump(mode="json", exclude_unset=True)
    try:
        row = service.update_expense(auth.user_id, project_id, expense_id, updates)
    except ExpensesServiceError as exc:
        raise _service_error("update expense", exc)
    if row is None:
        raise _not_found(f"Expense {expense_id} not found")
    return Expense(**row)


@router.delete(
    "/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERROR_RESPONSES,
)
def delete_expense(
    project_id: str,
    expense_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: ExpensesService = Depends(get_expenses_service),
) -> None:
    try:
        deleted = service.delete_expense(auth.user_id, project_id, expense_id)
    except ExpensesServiceError as exc:
        raise _service_error("delete expense", exc)
    if not deleted:
        raise _not_found(f"Expense {expense_id} not found")
