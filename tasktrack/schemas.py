"""Wire shapes of the HTTP API and the conversions to and from entities."""

import uuid
from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import Priority, Status, Task, User


def to_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive input is taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDateTime = Annotated[datetime, AfterValidator(to_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    username: str = Field(min_length=1)
    email: str = Field(min_length=1)
    password: str


class LoginRequest(CamelModel):
    username_or_email: str
    password: str


class MessageResponse(CamelModel):
    message: str


class TokenResponse(CamelModel):
    token: str


class TaskCreate(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    due_date: Optional[UtcDateTime] = None
    status: Status = Status.PENDING
    priority: Priority = Priority.MEDIUM


class TaskUpdate(CamelModel):
    """
    Partial update of a task.

    Only the fields present in the request body are applied. ``title``,
    ``status`` and ``priority`` may be omitted but not sent as null.
    """

    title: str = Field(default=None, min_length=1)
    description: Optional[str] = None
    due_date: Optional[UtcDateTime] = None
    status: Status = None
    priority: Priority = None


class TaskRead(CamelModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    status: Status
    priority: Priority
    created_at: datetime
    updated_at: datetime


class TaskPage(CamelModel):
    message: Optional[str] = None
    page: int
    page_size: int
    total: int
    tasks: List[TaskRead]


def user_from_register(payload: RegisterRequest, password_hash: str) -> User:
    return User(
        username=payload.username,
        email=payload.email,
        password_hash=password_hash,
    )


def task_from_create(owner_id: uuid.UUID, payload: TaskCreate) -> Task:
    # owner and timestamps never come from the client
    return Task(
        owner_id=owner_id,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        status=payload.status,
        priority=payload.priority,
    )


def task_changes(payload: TaskUpdate) -> dict:
    """Fields the client actually sent, by attribute name."""
    return payload.model_dump(exclude_unset=True)


def task_to_read(task: Task) -> TaskRead:
    return TaskRead(
        id=task.id,
        title=task.title,
        description=task.description,
        due_date=task.due_date,
        status=task.status,
        priority=task.priority,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )
