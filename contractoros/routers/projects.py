"""Project CRUD plus the profitability view."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.pagination import PaginationParams
from contractoros.core.response import DataResponse, ListResponse, paginated
from contractoros.core.security import CurrentUser, get_current_user, require_role
from contractoros.db.base import get_db
from contractoros.schemas.project import ProfitabilityOut, ProjectCreate, ProjectOut, ProjectUpdate
from contractoros.services.project import ProjectService

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get("", response_model=ListResponse[ProjectOut])
async def list_projects(
    filter_status: Optional[str] = Query(default=None, alias="status"),
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    items, total = await ProjectService(session, user.org_id).list_projects(
        pagination, status=filter_status
    )
    return paginated(
        [ProjectOut.model_validate(p) for p in items], total, pagination.page, pagination.limit
    )


@router.post("", response_model=DataResponse[ProjectOut], status_code=status.HTTP_201_CREATED)
async def create_project(
    body: ProjectCreate,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_role("PM")),
):
    project = await ProjectService(session, user.org_id).create_project(body)
    return {"data": ProjectOut.model_validate(project)}


@router.get("/{project_id}", response_model=DataResponse[ProjectOut])
async def get_project(
    project_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    project = await ProjectService(session, user.org_id).get_project(project_id)
    return {"data": ProjectOut.model_validate(project)}


@router.patch("/{project_id}", response_model=DataResponse[ProjectOut])
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_role("PM")),
):
    project = await ProjectService(session, user.org_id).update_project(project_id, body)
    return {"data": ProjectOut.model_validate(project)}


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_role("PM")),
):
    await ProjectService(session, user.org_id).delete_project(project_id)


@router.get("/{project_id}/profitability", response_model=DataResponse[ProfitabilityOut])
async def get_profitability(
    project_id: str,
    session: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(require_role("PM")),
):
    """Profit, margin and RAG health for one project."""
    result = await ProjectService(session, user.org_id).get_profitability(project_id)
    return {"data": result}
