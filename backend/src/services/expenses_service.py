from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from services.supabase_client import build_client

logger = logging.getLogger(__name__)

EXPENSES_TABLE = "expenses"
PROJECTS_TABLE = "projects"


class ExpensesServiceError(Exception):
    """Raised when expense storage operations fail."""


class ExpensesService:
    """Manage expenses attached to the caller's projects.

    Every method first confirms the parent project belongs to ``user_id``;
    when it does not, the method returns ``None`` (or ``False`` for deletes)
    exactly as it would for a missing expense.
    """

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        *,
        client: Optional[Client] = None,
    ) -> None:
        self.client: Client = client or build_client(ExpensesServiceError, supabase_url, supabase_key)

    def _owns_project(self, user_id: str, project_id: str) -> bool:
        try:
            response = (
                self.client.table(PROJECTS_TABLE)
                .select("id")
                .eq("user_id", user_id)
                .eq("id", project_id)
                .execute()
            )
        except Exception as exc:
            raise ExpensesServiceError(f"Failed to verify project {project_id}: {exc}") from exc
        return bool(response.data)

    def list_expenses(self, user_id: str, project_id: str) -> Optional[List[Dict[str, Any]]]:
        if not self._owns_project(user_id, project_id):
            return None
        try:
            response = (
                self.client.table(EXPENSES_TABLE)
                .select("*")
                .eq("project_id", project_id)
                .order("date", desc=True)
                .execute()
            )
        except Exception as exc:
            raise ExpensesServiceError(f"Failed to list expenses for project {project_id}: {exc}") from exc
        return response.data or []

    def create_expense(self, user_id: str, project_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self._owns_project(user_id, project_id):
            return None
        record = dict(data)
        record["project_id"] = project_id
        record["user_id"] = user_id
        try:
            response = self.client.table(EXPENSES_TABLE).insert(record).execute()
        except Exception as exc:
            raise ExpensesServiceError(f"Failed to add expense to project {project_id}: {exc}") from exc
        if not response.data:
            raise ExpensesServiceError("Expense insert returned no data")
        logger.info(f"Added expense {response.data[0].get('id')} to project {project_id}")
        return response.data[0]

    def get_expense(self, user_id: str, project_id: str, expense_id: str) -> Optional[Dict[str, Any]]:
        if not self._owns_project(user_id, project_id):
            return None
        try:
            response = (
                self.client.table(EXPENSES_TABLE)
                .select("*")
                .eq("project_id", project_id)
                .eq("id", expense_id)
                .execute()
            )
        except Exception as exc:
            raise ExpensesServiceError(f"Failed to retrieve expense {expense_id}: {exc}") from exc
        if not response.data:
            return None
        return response.data[0]

    def update_expense(
        self,
        user_id: str,
        project_id: str,
        expense_id: str,
        updates: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        if not updates:
            return self.get_expense(user_id, project_id, expense_id)
        if not self._owns_project(user_id, project_id):
            return None

        payload = dict(updates)
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            response = (
                self.client.table(EXPENSES_TABLE)
                .update(payload)
                .eq("project_id", project_id)
                .eq("id", expense_id)
                .execute()
            )
        except Exception as exc:
            raise ExpensesServiceError(f"Failed to update expense {expense_id}: {exc}") from exc
        if not response.data:
            return None
        return response.data[0]

    def delete_expense(self, user_id: str, project_id: str, expense_id: str) -> bool:
        if not self._owns_project(user_id, project_id):
            return False
        try:
            response = (
                self.client.table(EXPENSES_TABLE)
                .delete()
                .eq("project_id", project_id)
                .eq("id", expense_id)
                .execute()
            )
        except Exception as exc:
            raise ExpensesServiceError(f"Failed to delete expense {expense_id}: {exc}") from exc
        return bool(response.data)
