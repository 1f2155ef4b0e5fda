# Project API Routes
# CRUD, progress tracking and timeline data for the caller's projects.
# Every endpoint requires a Supabase bearer token.

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import AuthContext, get_auth_context, get_projects_service
from api.models.project_models import (
    ErrorResponse,
    ProgressUpdate,
    Project,
    ProjectCreate,
    ProjectDetail,
    ProjectSort,
    ProjectTimelineResponse,
    ProjectUpdate,
    StatusFilter,
)
from finance import project_financials, project_timeline
from services.projects_service import ProjectsService, ProjectsServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["Projects"])

_ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Unauthorized"},
    404: {"model": ErrorResponse, "description": "Project not found"},
    500: {"model": ErrorResponse, "description": "Server error"},
}


def _not_found(project_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"code": "not_found", "message": f"Project {project_id} not found"},
    )


def _service_error(action: str, exc: ProjectsServiceError) -> HTTPException:
    logger.error(f"Projects service error: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "projects_error", "message": f"Failed to {action}: {exc}"},
    )


@router.get("", response_model=List[Project], responses=_ERROR_RESPONSES)
def list_projects(
    status_filter: StatusFilter = Query("all", alias="status"),
    sort: ProjectSort = Query("newest"),
    auth: AuthContext = Depends(get_auth_context),
    service: ProjectsService = Depends(get_projects_service),
) -> List[Project]:
    """
    List the caller's projects.

    - **status**: `all` (default) or a single project status
    - **sort**: `newest` (default), `oldest`, `budget-high`, `budget-low`, `deadline`
    """
    try:
        rows = service.list_projects(auth.user_id, status=status_filter, sort=sort)
    except ProjectsServiceError as exc:
        raise _service_error("list projects", exc)
    return [Project(**row) for row in rows]


@router.post(
    "",
    response_model=Project,
    status_code=status.HTTP_201_CREATED,
    responses=_ERROR_RESPONSES,
)
def create_project(
    payload: ProjectCreate,
    auth: AuthContext = Depends(get_auth_context),
    service: ProjectsService = Depends(get_projects_service),
) -> Project:
    """Create a project. Completion always starts at 0%."""
    try:
        row = service.create_project(auth.user_id, payload.model_dump(mode="json"))
    except ProjectsServiceError as exc:
        raise _service_error("create project", exc)
    return Project(**row)


@router.get("/{project_id}", response_model=ProjectDetail, responses=_ERROR_RESPONSES)
def get_project(
    project_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: ProjectsService = Depends(get_projects_service),
) -> ProjectDetail:
    """Return one project with its expenses (newest first) and derived financials."""
    try:
        row = service.get_project_with_expenses(auth.user_id, project_id)
    except ProjectsServiceError as exc:
        raise _service_error("retrieve project", exc)
    if row is None:
        raise _not_found(project_id)
    return ProjectDetail(**row, financials=project_financials(row).to_dict())


@router.patch("/{project_id}", response_model=Project, responses=_ERROR_RESPONSES)
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    auth: AuthContext = Depends(get_auth_context),
    service: ProjectsService = Depends(get_projects_service),
) -> Project:
    """Update the supplied fields. Setting completion to 100 marks the project completed."""
    updates = payload.model_dump(mode="json", exclude_unset=True)
    try:
        row = service.update_project(auth.user_id, project_id, updates)
    except ProjectsServiceError as exc:
        raise _service_error("update project", exc)
    if row is None:
        raise _not_found(project_id)
    return Project(**row)


@router.patch("/{project_id}/progress", response_model=Project, responses=_ERROR_RESPONSES)
def update_project_progress(
    project_id: str,
    payload: ProgressUpdate,
    auth: AuthContext = Depends(get_auth_context),
    service: ProjectsService = Depends(get_projects_service),
) -> Project:
    """Set the completion percentage (0-100)."""
    try:
        row = service.update_progress(auth.user_id, project_id, payload.completion_percentage)
    except ProjectsServiceError as exc:
        raise _service_error("update progress", exc)
    if row is None:
        raise _not_found(project_id)
    return Project(**row)


@router.delete(
    "/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_ERROR_RESPONSES,
)
def delete_project(
    project_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: ProjectsService = Depends(get_projects_service),
) -> None:
    """Delete a project and every expense attached to it."""
    try:
        deleted = service.delete_project(auth.user_id, project_id)
    except ProjectsServiceError as exc:
        raise _service_error("delete project", exc)
    if not deleted:
        raise _not_found(project_id)


@router.get(
    "/{project_id}/timeline",
    response_model=ProjectTimelineResponse,
    responses=_ERROR_RESPONSES,
)
def get_project_timeline(
    project_id: str,
    auth: AuthContext = Depends(get_auth_context),
    service: ProjectsService = Depends(get_projects_service),
) -> ProjectTimelineResponse:
    try:
        row = service.get_project(auth.user_id, project_id)
    except ProjectsServiceError as exc:
        raise _service_error("retrieve project", exc)
    if row is None:
        raise _not_found(project_id)

    timeline = project_timeline(row)
    return ProjectTimelineResponse(
        project_id=row["id"],
        start_date=row["start_date"],
        due_date=row["due_date"],
        **timeline.to_dict(),
    )
