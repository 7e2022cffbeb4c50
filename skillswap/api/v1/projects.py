"""Project endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Header, Query, status

from skillswap.api.v1._authz import authorize
from skillswap.database.db import get_db_session
from skillswap.schemas import ProjectCreateRequest, envelope
from skillswap.services import dispatcher as side_effects
from skillswap.services.project_service import ProjectService

router = APIRouter(tags=["projects"])


@router.post("/projects", status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreateRequest,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["projects.create"])
    with get_db_session() as session:
        service = ProjectService(session, side_effects.get_dispatcher())
        project = service.create_project(user.user_id, payload.model_dump())
        return envelope(service.to_view(project, user.user_id), "Project created successfully")


@router.get("/projects")
def list_open_projects(
    limit: int = Query(default=50, ge=1, le=500),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict:
    user = authorize(authorization, scopes=["projects.read"])
    with get_db_session() as session:
        service = ProjectService(session, side_effects.get_dispatcher())
        projects = service.list_open_projects(limit=limit)
        return envelope([service.to_view(project, user.user_id, user.is_admin) for project in projects])


@router.get("/projects/{project_id}")
def get_project(project_id: int, authorization: str | None = Header(default=None, alias="Authorization")) -> dict:
    user = authorize(authorization, scopes=["projects.read"])
    with get_db_session() as session:
        service = ProjectService(session, side_effects.get_dispatcher())
        project = service.get_project(project_id)
        return envelope(service.to_view(project, user.user_id, user.is_admin))
