"""Project service."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from contractoros.core.exceptions import NotFoundError, ValidationError
from contractoros.core.pagination import PaginationParams
from contractoros.domain.project import PROJECT_STATUSES, Project
from contractoros.repositories.project import ProjectRepository
from contractoros.schemas.project import ProfitabilityOut, ProjectCreate, ProjectUpdate
from contractoros.services.profitability import calculate_profitability


class ProjectService:
    def __init__(self, session: AsyncSession, org_id: str):
        self._repo = ProjectRepository(session, org_id)

    async def list_projects(self, pagination: PaginationParams, status: Optional[str] = None):
        if status and status not in PROJECT_STATUSES:
            raise ValidationError(f"Invalid status: {status}")
        filters = {"status": status} if status else None
        return await self._repo.list(
            offset=pagination.offset,
            limit=pagination.limit,
            order_by=pagination.sort,
            order=pagination.order,
            filters=filters,
        )

    async def get_project(self, project_id: str) -> Project:
        project = await self._repo.get_by_id(project_id)
        if not project:
            raise NotFoundError("Project", project_id)
        return project

    async def create_project(self, data: ProjectCreate) -> Project:
        return await self._repo.create(**data.model_dump(exclude_none=True))

    async def update_project(self, project_id: str, data: ProjectUpdate) -> Project:
        await self.get_project(project_id)
        updated = await self._repo.update(
            project_id, **data.model_dump(exclude_none=True, exclude_unset=True)
        )
        return updated  # type: ignore[return-value]

    async def delete_project(self, project_id: str) -> None:
        if not await self._repo.soft_delete(project_id):
            raise NotFoundError("Project", project_id)

    async def get_profitability(self, project_id: str) -> ProfitabilityOut:
        project = await self.get_project(project_id)
        result = calculate_profitability(project.contract_value, project.actual_cost)
        return ProfitabilityOut(
            project_id=project.id,
            contract_value=result.contract_value,
            actual_cost=result.actual_cost,
            profit=result.profit,
            margin_percent=result.margin_percent,
            rag_status=result.rag.status,
            rag_label=result.rag.label,
        )
