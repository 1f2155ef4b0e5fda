from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from finance.aggregation import parse_datetime
from services.supabase_client import build_client

logger = logging.getLogger(__name__)

PROJECTS_TABLE = "projects"
EXPENSES_TABLE = "expenses"

COMPLETED = "completed"
FULL_COMPLETION = 100


class ProjectsServiceError(Exception):
    """Raised when project storage operations fail."""


def _timestamp(value: Any) -> float:
    parsed = parse_datetime(value)
    return parsed.timestamp() if parsed else 0.0


def _budget(project: Dict[str, Any]) -> float:
    try:
        return float(project.get("budget") or 0)
    except (TypeError, ValueError):
        return 0.0


def sort_projects(projects: List[Dict[str, Any]], sort: str = "newest") -> List[Dict[str, Any]]:
    """Order projects the way the dashboard list offers them."""
    if sort == "newest":
        return sorted(projects, key=lambda p: _timestamp(p.get("created_at")), reverse=True)
    if sort == "oldest":
        return sorted(projects, key=lambda p: _timestamp(p.get("created_at")))
    if sort == "budget-high":
        return sorted(projects, key=_budget, reverse=True)
    if sort == "budget-low":
        return sorted(projects, key=_budget)
    if sort == "deadline":
        return sorted(projects, key=lambda p: _timestamp(p.get("due_date")))
    return list(projects)


def apply_completion_rule(updates: Dict[str, Any]) -> Dict[str, Any]:
    """Reaching 100% completion always marks the project completed."""
    if updates.get("completion_percentage") == FULL_COMPLETION:
        updates["status"] = COMPLETED
    return updates


class ProjectsService:
    """Manage the caller's projects in Supabase.

    Every query is scoped by ``user_id`` so one user can never read or
    mutate another user's rows, even with the service-role key.
    """

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        *,
        client: Optional[Client] = None,
    ) -> None:
        self.client: Client = client or build_client(ProjectsServiceError, supabase_url, supabase_key)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_projects(
        self,
        user_id: str,
        *,
        status: Optional[str] = None,
        sort: str = "newest",
    ) -> List[Dict[str, Any]]:
        """Return the user's projects, optionally filtered by status."""
        try:
            query = self.client.table(PROJECTS_TABLE).select("*").eq("user_id", user_id)
            if status and status != "all":
                query = query.eq("status", status)
            response = query.order("created_at", desc=True).execute()
        except Exception as exc:
            raise ProjectsServiceError(f"Failed to list projects for user {user_id}: {exc}") from exc
        return sort_projects(response.data or [], sort)

    def get_project(self, user_id: str, project_id: str) -> Optional[Dict[str, Any]]:
        try:
            response = (
                self.client.table(PROJECTS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .eq("id", project_id)
                .execute()
            )
        except Exception as exc:
            raise ProjectsServiceError(f"Failed to retrieve project {project_id}: {exc}") from exc
        if not response.data:
            return None
        return response.data[0]

    def get_project_with_expenses(self, user_id: str, project_id: str) -> Optional[Dict[str, Any]]:
        project = self.get_project(user_id, project_id)
        if project is None:
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
            raise ProjectsServiceError(f"Failed to load expenses for project {project_id}: {exc}") from exc
        project["expenses"] = response.data or []
        return project

    def list_projects_with_expenses(self, user_id: str) -> List[Dict[str, Any]]:
        """All of the user's projects with their expenses attached."""
        projects = self.list_projects(user_id)
        project_ids = [project["id"] for project in projects if project.get("id")]
        if not project_ids:
            return projects

        try:
            response = (
                self.client.table(EXPENSES_TABLE)
                .select("*")
                .in_("project_id", project_ids)
                .execute()
            )
        except Exception as exc:
            raise ProjectsServiceError(f"Failed to load expenses for user {user_id}: {exc}") from exc

        by_project: Dict[str, List[Dict[str, Any]]] = {}
        for expense in response.data or []:
            by_project.setdefault(expense.get("project_id"), []).append(expense)
        for project in projects:
            project["expenses"] = by_project.get(project.get("id"), [])
        return projects

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_project(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        record = dict(data)
        record["user_id"] = user_id
        record["completion_percentage"] = 0
        try:
            response = self.client.table(PROJECTS_TABLE).insert(record).execute()
        except Exception as exc:
            raise ProjectsServiceError(f"Failed to create project for user {user_id}: {exc}") from exc
        if not response.data:
            raise ProjectsServiceError("Project insert returned no data")
        logger.info(f"Created project {response.data[0].get('id')} for user {user_id}")
        return response.data[0]

    def update_project(
        self,
        user_id: str,
        project_id: str,
        updates: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        if not updates:
            return self.get_project(user_id, project_id)

        payload = apply_completion_rule(dict(updates))
        payload["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            response = (
                self.client.table(PROJECTS_TABLE)
                .update(payload)
                .eq("user_id", user_id)
                .eq("id", project_id)
                .execute()
            )
        except Exception as exc:
            raise ProjectsServiceError(f"Failed to update project {project_id}: {exc}") from exc
        if not response.data:
            return None
        return response.data[0]

    def update_progress(
        self,
        user_id: str,
        project_id: str,
        completion_percentage: int,
    ) -> Optional[Dict[str, Any]]:
        """Set completion; 100% flips the status to completed, otherwise it is kept."""
        project = self.get_project(user_id, project_id)
        if project is None:
            return None
        status = COMPLETED if completion_percentage == FULL_COMPLETION else project.get("status")
        return self.update_project(
            user_id,
            project_id,
            {"completion_percentage": completion_percentage, "status": status},
        )

    def delete_project(self, user_id: str, project_id: str) -> bool:
        """Delete a project together with every expense it owns."""
        if self.get_project(user_id, project_id) is None:
            return False
        try:
            self.client.table(EXPENSES_TABLE).delete().eq("project_id", project_id).execute()
            response = (
                self.client.table(PROJECTS_TABLE)
                .delete()
                .eq("user_id", user_id)
                .eq("id", project_id)
                .execute()
            )
        except Exception as exc:
            raise ProjectsServiceError(f"Failed to delete project {project_id}: {exc}") from exc
        logger.info(f"Deleted project {project_id} and its expenses")
        return bool(response.data)
