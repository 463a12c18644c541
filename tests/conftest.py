"""Service test fixtures with in-memory fake repos and identity services."""

from __future__ import annotations

import itertools
import uuid
from collections import Counter
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from backoffice_service.auth.deps import get_identity_admin, get_token_verifier
from backoffice_service.auth.models import Identity
from backoffice_service.db.deps import (
    get_accounts_repo,
    get_customers_repo,
    get_employees_repo,
    get_milestones_repo,
    get_project_members_repo,
    get_projects_repo,
    get_reports_repo,
    get_tasks_repo,
)
from backoffice_service.errors import (
    AuthenticationError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from backoffice_service.rest.app import create_app

ADMIN_ID = "00000000-0000-4000-8000-0000000000a1"
USER_ID = "00000000-0000-4000-8000-0000000000b2"

_EPOCH = datetime(2024, 1, 1, tzinfo=UTC)
_clock = itertools.count()


def _tick() -> datetime:
    """Strictly increasing timestamps so recency ordering is deterministic."""
    return _EPOCH + timedelta(seconds=next(_clock))


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


class FakeCrudRepo:
    defaults: dict[str, Any] = {}

    def __init__(self) -> None:
        self.rows: dict[Any, SimpleNamespace] = {}
        self.commits = 0
        self.rollbacks = 0
        self._ids = itertools.count(1)

    async def get(self, pk):
        return self.rows.get(pk)

    async def create(self, **fields):
        now = _tick()
        row = SimpleNamespace(**{**self.defaults, "created_at": now, "updated_at": now, **fields})
        if getattr(row, "id", None) is None:
            row.id = next(self._ids)
        self.rows[row.id] = row
        return row

    async def update(self, pk, changes):
        row = self.rows.get(pk)
        if row is None:
            return None
        for key, value in changes.items():
            setattr(row, key, value)
        row.updated_at = _tick()
        return row

    async def delete(self, pk):
        return self.rows.pop(pk, None) is not None

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1

    def _recent_first(self, rows):
        return sorted(rows, key=lambda r: (r.created_at, r.id), reverse=True)


def _contains(term: str, *values: str | None) -> bool:
    term = term.lower()
    return any(value is not None and term in value.lower() for value in values)


class FakeCustomersRepo(FakeCrudRepo):
    defaults = {"description": None, "created_by": None}

    async def list(self, q=""):
        rows = [r for r in self.rows.values() if not q or _contains(q, r.title)]
        return self._recent_first(rows)


class FakeProjectsRepo(FakeCrudRepo):
    defaults = {
        "customer_id": None,
        "description": None,
        "start_date": None,
        "end_date": None,
        "progress": 0,
        "status": "planned",
        "created_by": None,
    }

    async def list(self, q=""):
        rows = [r for r in self.rows.values() if not q or _contains(q, r.title)]
        return self._recent_first(rows)


class FakeAccountsRepo(FakeCrudRepo):
    defaults = {"full_name": None, "username": None, "role": "user"}

    def __init__(self) -> None:
        super().__init__()
        self.fail_on_create: Exception | None = None
        self.fail_on_delete: Exception | None = None
        self.fail_on_commit: Exception | None = None
        self._committed: dict[Any, SimpleNamespace] = {}

    def seed(self, **fields) -> SimpleNamespace:
        """Insert a committed row directly, bypassing the provider."""
        now = _tick()
        row = SimpleNamespace(**{**self.defaults, "created_at": now, "updated_at": now, **fields})
        self.rows[row.id] = row
        self._committed = dict(self.rows)
        return row

    async def create(self, **fields):
        if self.fail_on_create is not None:
            raise self.fail_on_create
        return await super().create(**fields)

    async def delete(self, pk):
        if self.fail_on_delete is not None:
            raise self.fail_on_delete
        return await super().delete(pk)

    async def commit(self):
        if self.fail_on_commit is not None:
            raise self.fail_on_commit
        await super().commit()
        self._committed = dict(self.rows)

    async def rollback(self):
        # Row membership only; attribute changes made by update() stay.
        await super().rollback()
        self.rows = dict(self._committed)

    async def list(self, q=""):
        rows = [
            r
            for r in self.rows.values()
            if not q or _contains(q, r.email, r.username, r.full_name)
        ]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)


class FakeMilestonesRepo(FakeCrudRepo):
    defaults = {"description": None, "start_date": None, "due_date": None, "status": "todo"}

    async def list_by_project(self, project_id):
        rows = [r for r in self.rows.values() if r.project_id == project_id]
        rows.sort(key=lambda r: -r.id)
        rows.sort(key=lambda r: (r.start_date is None, r.start_date or _EPOCH))
        return rows


class FakeTasksRepo(FakeCrudRepo):
    defaults = {
        "milestone_id": None,
        "description": None,
        "status": "todo",
        "priority": "medium",
        "assignee_id": None,
        "due_date": None,
        "order_index": 0,
        "is_archived": False,
    }

    async def list(self, project_id, q="", status=None, include_archived=False):
        rows = [
            r
            for r in self.rows.values()
            if r.project_id == project_id
            and (not q or _contains(q, r.title, r.description))
            and (status is None or r.status == status)
            and (include_archived or not r.is_archived)
        ]
        return sorted(rows, key=lambda r: (r.order_index, r.id), reverse=True)


class FakeEmployeesRepo:
    def __init__(self) -> None:
        self.rows = {
            i: SimpleNamespace(
                id=i, name=name, surname=surname, email=f"{name.lower()}@example.com",
                created_at=_tick(),
            )
            for i, (name, surname) in enumerate(
                [("Ana", "Novak"), ("Marko", "Horvat"), ("Iva", "Kovac")], start=1
            )
        }

    async def get(self, employee_id):
        return self.rows.get(employee_id)

    async def list(self, q=""):
        rows = [r for r in self.rows.values() if not q or _contains(q, r.surname)]
        return sorted(rows, key=lambda r: r.id, reverse=True)


class FakeProjectMembersRepo:
    def __init__(self) -> None:
        self.rows: dict[tuple[int, int], SimpleNamespace] = {}

    async def get(self, project_id, user_id):
        return self.rows.get((project_id, user_id))

    async def list(self, project_id):
        rows = [r for r in self.rows.values() if r.project_id == project_id]
        return sorted(rows, key=lambda r: r.added_at, reverse=True)

    async def add(self, project_id, user_id):
        member = SimpleNamespace(project_id=project_id, user_id=user_id, added_at=_tick())
        self.rows[(project_id, user_id)] = member
        return member

    async def remove(self, project_id, user_id):
        return self.rows.pop((project_id, user_id), None) is not None


class FakeReportsRepo:
    def __init__(self, milestones: FakeMilestonesRepo, tasks: FakeTasksRepo) -> None:
        self._milestones = milestones
        self._tasks = tasks

    def _live_tasks(self, project_id):
        return [
            t for t in self._tasks.rows.values()
            if t.project_id == project_id and not t.is_archived
        ]

    async def milestone_counts(self, project_id):
        tasks = self._live_tasks(project_id)
        result = []
        for m in await self._milestones.list_by_project(project_id):
            mine = [t for t in tasks if t.milestone_id == m.id]
            result.append(
                {
                    "milestone_id": m.id,
                    "title": m.title,
                    "total": len(mine),
                    "done": sum(1 for t in mine if t.status == "done"),
                }
            )
        return result

    async def task_timeline(self, project_id):
        return [
            {"created_at": t.created_at, "updated_at": t.updated_at, "status": t.status}
            for t in self._tasks.rows.values()
            if t.project_id == project_id
        ]

    async def status_counts(self, project_id):
        counts = Counter(t.status for t in self._live_tasks(project_id))
        return [{"status": s, "count": counts[s]} for s in sorted(counts)]


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class FakeVerifier:
    """Maps fixed tokens to identities; anything else is rejected."""

    def __init__(self) -> None:
        self.tokens = {
            "admin-token": Identity.from_claims(ADMIN_ID, "admin@example.com", {"role": "admin"}),
            "user-token": Identity.from_claims(USER_ID, "user@example.com", {"role": "user"}),
        }
        self.calls = 0

    async def verify(self, token: str) -> Identity:
        self.calls += 1
        identity = self.tokens.get(token)
        if identity is None:
            raise AuthenticationError("Unauthorized: invalid token")
        return identity


class FakeIdentityAdmin:
    def __init__(self) -> None:
        self.users: dict[str, Identity] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_recovery = False
        self.fail_update_role = False
        self.fail_delete = False

    def _add(self, email: str, role: str) -> Identity:
        identity = Identity.from_claims(str(uuid.uuid4()), email, {"role": role})
        self.users[identity.id] = identity
        return identity

    async def create_user(self, email, role):
        self.calls.append(("create_user", email))
        return self._add(email, role)

    async def invite_user(self, email, role):
        self.calls.append(("invite_user", email))
        return self._add(email, role)

    async def update_role(self, user_id, role):
        self.calls.append(("update_role", user_id))
        if self.fail_update_role:
            raise InternalError("Identity provider unavailable")
        identity = self.users.get(user_id)
        if identity is None:
            raise NotFoundError("Account not found")
        identity.role = role
        return identity

    async def delete_user(self, user_id):
        self.calls.append(("delete_user", user_id))
        if self.fail_delete:
            raise InternalError("Identity provider unavailable")
        if self.users.pop(user_id, None) is None:
            raise NotFoundError("Account not found")

    async def generate_recovery_link(self, email):
        self.calls.append(("generate_recovery_link", email))
        if self.fail_recovery:
            raise ValidationError("Email rate limit exceeded")
        return f"https://id.example.test/recover?email={email}"


# ---------------------------------------------------------------------------
# App fixtures
# ---------------------------------------------------------------------------


class FakeEnv:
    """Every fake collaborator of one test app, plus a log of repo access."""

    def __init__(self) -> None:
        self.verifier = FakeVerifier()
        self.identity_admin = FakeIdentityAdmin()
        self.accounts = FakeAccountsRepo()
        self.customers = FakeCustomersRepo()
        self.projects = FakeProjectsRepo()
        self.members = FakeProjectMembersRepo()
        self.employees = FakeEmployeesRepo()
        self.milestones = FakeMilestonesRepo()
        self.tasks = FakeTasksRepo()
        self.reports = FakeReportsRepo(self.milestones, self.tasks)
        self.touched: list[str] = []

    def provider(self, name: str):
        def _get():
            self.touched.append(name)
            return getattr(self, name)

        return _get


@pytest.fixture
def env() -> FakeEnv:
    return FakeEnv()


@pytest.fixture
def app(env: FakeEnv):
    """The real application with persistence and identity swapped for fakes."""
    app = create_app()
    app.dependency_overrides[get_token_verifier] = lambda: env.verifier
    app.dependency_overrides[get_identity_admin] = lambda: env.identity_admin
    app.dependency_overrides[get_accounts_repo] = env.provider("accounts")
    app.dependency_overrides[get_customers_repo] = env.provider("customers")
    app.dependency_overrides[get_projects_repo] = env.provider("projects")
    app.dependency_overrides[get_project_members_repo] = env.provider("members")
    app.dependency_overrides[get_employees_repo] = env.provider("employees")
    app.dependency_overrides[get_milestones_repo] = env.provider("milestones")
    app.dependency_overrides[get_tasks_repo] = env.provider("tasks")
    app.dependency_overrides[get_reports_repo] = env.provider("reports")
    return app


@pytest.fixture
def client(app):
    """Client authenticated as an admin."""
    return TestClient(app, headers={"Authorization": "Bearer admin-token"})


@pytest.fixture
def anon_client(app):
    return TestClient(app)
