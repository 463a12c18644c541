"""FastAPI dependency injection for database sessions and repositories.

Repositories are built on the row-level-security-scoped session, which
itself depends on the admin gate: no repository exists before the caller
has been authenticated and authorized.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_service.auth.deps import AdminContextDep
from backoffice_service.db.engine import get_session_factory
from backoffice_service.db.repositories.accounts import AccountsRepo
from backoffice_service.db.repositories.customers import CustomersRepo
from backoffice_service.db.repositories.employees import EmployeesRepo
from backoffice_service.db.repositories.milestones import MilestonesRepo
from backoffice_service.db.repositories.projects import ProjectMembersRepo, ProjectsRepo
from backoffice_service.db.repositories.reports import ReportsRepo
from backoffice_service.db.repositories.tasks import TasksRepo
from backoffice_service.settings import settings


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield an async DB session, auto-closing on exit."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_scoped_session(ctx: AdminContextDep, session: SessionDep) -> AsyncSession:
    """Scope the session's transaction to the authenticated identity.

    Claims go through ``set_config(..., true)`` as bound parameters and last
    until the transaction ends; repositories run their work and commit in
    that same transaction.
    """
    claims = {
        "sub": ctx.user.id,
        "email": ctx.user.email,
        "role": settings.rls_role or "authenticated",
        "user_metadata": ctx.user.metadata,
    }
    await session.execute(
        text(
            "SELECT set_config('request.jwt.claims', :claims, true), "
            "set_config('request.jwt.claim.sub', :sub, true)"
        ),
        {"claims": json.dumps(claims), "sub": ctx.user.id},
    )
    if settings.rls_role:
        # Identifier validated in Settings; SET ROLE takes no bind parameters.
        await session.execute(text(f"SET LOCAL ROLE {settings.rls_role}"))
    return session


ScopedSessionDep = Annotated[AsyncSession, Depends(get_scoped_session)]


def get_accounts_repo(session: ScopedSessionDep) -> AccountsRepo:
    return AccountsRepo(session)


def get_customers_repo(session: ScopedSessionDep) -> CustomersRepo:
    return CustomersRepo(session)


def get_projects_repo(session: ScopedSessionDep) -> ProjectsRepo:
    return ProjectsRepo(session)


def get_project_members_repo(session: ScopedSessionDep) -> ProjectMembersRepo:
    return ProjectMembersRepo(session)


def get_employees_repo(session: ScopedSessionDep) -> EmployeesRepo:
    return EmployeesRepo(session)


def get_milestones_repo(session: ScopedSessionDep) -> MilestonesRepo:
    return MilestonesRepo(session)


def get_tasks_repo(session: ScopedSessionDep) -> TasksRepo:
    return TasksRepo(session)


def get_reports_repo(session: ScopedSessionDep) -> ReportsRepo:
    return ReportsRepo(session)


AccountsRepoDep = Annotated[AccountsRepo, Depends(get_accounts_repo)]
CustomersRepoDep = Annotated[CustomersRepo, Depends(get_customers_repo)]
ProjectsRepoDep = Annotated[ProjectsRepo, Depends(get_projects_repo)]
ProjectMembersRepoDep = Annotated[ProjectMembersRepo, Depends(get_project_members_repo)]
EmployeesRepoDep = Annotated[EmployeesRepo, Depends(get_employees_repo)]
MilestonesRepoDep = Annotated[MilestonesRepo, Depends(get_milestones_repo)]
TasksRepoDep = Annotated[TasksRepo, Depends(get_tasks_repo)]
ReportsRepoDep = Annotated[ReportsRepo, Depends(get_reports_repo)]
