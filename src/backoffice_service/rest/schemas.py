"""Pydantic request/response models for REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError

from backoffice_service.validation import (
    DateLike,
    Int4,
    ResourceId,
    reject_null,
    trimmed_text,
)

Role = Literal["admin", "user"]
ProjectStatus = Literal["planned", "active", "paused", "completed", "cancelled"]
TaskStatus = Literal["todo", "in_progress", "blocked", "done"]
TaskPriority = Literal["low", "medium", "high", "urgent"]

ResourceTitle = trimmed_text(min_length=3, too_short="Title too short (min 3)")
ItemTitle = trimmed_text(
    min_length=1, max_length=180, too_short="Title is required", too_long="Title too long (max 180)"
)
Description = trimmed_text(max_length=10000, too_long="Description too long")
FullName = trimmed_text(max_length=200)
Username = trimmed_text(max_length=100)
SearchTerm = trimmed_text()


def _check_progress(v: int) -> int:
    if v < 0:
        raise PydanticCustomError("progress_range", "Min progress: 0")
    if v > 100:
        raise PydanticCustomError("progress_range", "Max progress: 100")
    return v


# ---------------------------------------------------------------------------
# Query strings
# ---------------------------------------------------------------------------


class SearchQuery(BaseModel):
    q: SearchTerm = ""


class ProjectScopedQuery(BaseModel):
    project_id: ResourceId

    @field_validator("project_id", mode="before")
    @classmethod
    def required(cls, v: Any) -> Any:
        if v is None or v == "":
            raise PydanticCustomError("missing", "Field required")
        return v


class TaskListQuery(ProjectScopedQuery):
    q: SearchTerm = ""
    status: TaskStatus | None = None
    include_archived: bool = False


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class AccountCreate(BaseModel):
    email: EmailStr
    role: Role
    full_name: FullName | None = None
    username: Username | None = None
    send_invite: bool = False


class AccountUpdate(BaseModel):
    role: Role | None = None
    full_name: FullName | None = None
    username: Username | None = None

    @field_validator("role", mode="before")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        return reject_null(v)


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


class CustomerCreate(BaseModel):
    title: ResourceTitle
    description: Description | None = None


class CustomerUpdate(BaseModel):
    title: ResourceTitle | None = None
    description: Description | None = None

    @field_validator("title", mode="before")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        return reject_null(v)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectCreate(BaseModel):
    customer_id: ResourceId | None = None
    title: ResourceTitle
    description: Description | None = None
    start_date: DateLike | None = None
    end_date: DateLike | None = None
    progress: int = Field(default=0, strict=True)
    status: ProjectStatus = "planned"

    @field_validator("progress")
    @classmethod
    def progress_bounds(cls, v: int) -> int:
        return _check_progress(v)


class ProjectUpdate(BaseModel):
    customer_id: ResourceId | None = None
    title: ResourceTitle | None = None
    description: Description | None = None
    start_date: DateLike | None = None
    end_date: DateLike | None = None
    progress: int | None = Field(default=None, strict=True)
    status: ProjectStatus | None = None

    @field_validator("title", "progress", "status", mode="before")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        return reject_null(v)

    @field_validator("progress")
    @classmethod
    def progress_bounds(cls, v: int) -> int:
        return _check_progress(v)


class MemberAction(BaseModel):
    user_id: ResourceId


# ---------------------------------------------------------------------------
# Milestones
# ---------------------------------------------------------------------------


class MilestoneCreate(BaseModel):
    project_id: ResourceId
    title: ItemTitle
    description: str | None = None
    start_date: DateLike | None = None
    due_date: DateLike | None = None
    status: TaskStatus = "todo"


class MilestoneUpdate(BaseModel):
    title: ItemTitle | None = None
    description: str | None = None
    start_date: DateLike | None = None
    due_date: DateLike | None = None
    status: TaskStatus | None = None

    @field_validator("title", "status", mode="before")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        return reject_null(v)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    project_id: ResourceId
    milestone_id: ResourceId | None = None
    title: ItemTitle
    description: str | None = None
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    assignee_id: ResourceId | None = None
    due_date: DateLike | None = None
    order_index: Int4 = 0


class TaskUpdate(BaseModel):
    title: ItemTitle | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: ResourceId | None = None
    due_date: DateLike | None = None
    milestone_id: ResourceId | None = None
    order_index: Int4 | None = None
    is_archived: bool | None = None

    @field_validator("title", "status", "priority", "order_index", "is_archived", mode="before")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        return reject_null(v)


class TaskReorder(BaseModel):
    id: ResourceId
    order_index: Int4
    status: TaskStatus | None = None

    @field_validator("status", mode="before")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        return reject_null(v)


# ---------------------------------------------------------------------------
# Resource shapes
# ---------------------------------------------------------------------------


class _Row(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class AccountSchema(_Row):
    id: UUID
    email: str
    full_name: str | None = None
    username: str | None = None
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CustomerSchema(_Row):
    id: int
    title: str
    description: str | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectSchema(_Row):
    id: int
    customer_id: int | None = None
    title: str
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    progress: int = 0
    status: str
    created_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectMemberSchema(_Row):
    project_id: int
    user_id: int
    added_at: datetime | None = None


class EmployeeSchema(_Row):
    id: int
    name: str | None = None
    surname: str | None = None
    email: str | None = None
    created_at: datetime | None = None


class MilestoneSchema(_Row):
    id: int
    project_id: int
    title: str
    description: str | None = None
    start_date: datetime | None = None
    due_date: datetime | None = None
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskSchema(_Row):
    id: int
    project_id: int
    milestone_id: int | None = None
    title: str
    description: str | None = None
    status: str
    priority: str
    assignee_id: int | None = None
    due_date: datetime | None = None
    order_index: int = 0
    is_archived: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Response envelopes (key names are part of the client contract)
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    account: AccountSchema


class AccountCreatedResponse(BaseModel):
    account: AccountSchema
    recovery_link: str | None = None


class AccountListResponse(BaseModel):
    accounts: list[AccountSchema]


class CustomerResponse(BaseModel):
    customer: CustomerSchema


class CustomerListResponse(BaseModel):
    customers: list[CustomerSchema]


class ProjectResponse(BaseModel):
    project: ProjectSchema


class ProjectListResponse(BaseModel):
    projects: list[ProjectSchema]


class ProjectMemberResponse(BaseModel):
    member: ProjectMemberSchema


class ProjectMemberListResponse(BaseModel):
    members: list[ProjectMemberSchema]


class EmployeeListResponse(BaseModel):
    members: list[EmployeeSchema]


class MilestoneResponse(BaseModel):
    milestone: MilestoneSchema


class MilestoneListResponse(BaseModel):
    milestones: list[MilestoneSchema]


class TaskResponse(BaseModel):
    task: TaskSchema


class TaskListResponse(BaseModel):
    items: list[TaskSchema]


class MilestoneProgressItem(BaseModel):
    milestone_id: int
    title: str
    total: int
    done: int
    progress: int


class MilestoneProgressResponse(BaseModel):
    items: list[MilestoneProgressItem]


class BurndownPoint(BaseModel):
    day: str
    total: int
    done: int


class BurndownResponse(BaseModel):
    points: list[BurndownPoint]


class StatusCount(BaseModel):
    status: str
    count: int


class StatusSummaryResponse(BaseModel):
    items: list[StatusCount]
