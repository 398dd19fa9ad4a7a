"""
Storage gateway for users and tasks.

Services only talk to the abstract ``UserRepository`` and ``TaskRepository``
contracts. The SQL implementations below run on a SQLModel ``Session``; the
test suite swaps in in-memory fakes.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import case, func
from sqlmodel import Session, or_, select

from .models import Priority, Status, Task, User


@dataclass(frozen=True)
class TaskQuery:
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    due_from: Optional[datetime] = None
    due_to: Optional[datetime] = None
    sort_by: str = "dueDate"
    sort_order: str = "asc"
    page: int = 1
    page_size: int = 10

    @property
    def sorts_by_priority(self) -> bool:
        return self.sort_by.lower() == "priority"

    @property
    def descending(self) -> bool:
        return self.sort_order == "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class UserRepository(ABC):
    @abstractmethod
    def get_by_username_or_email(self, username_or_email: str) -> Optional[User]:
        ...

    @abstractmethod
    def exists_by_username_or_email(self, username: str, email: str) -> bool:
        ...

    @abstractmethod
    def add(self, user: User) -> None:
        ...

    @abstractmethod
    def commit(self) -> None:
        ...


class TaskRepository(ABC):
    @abstractmethod
    def get(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> Optional[Task]:
        """Return the task only if it exists and belongs to ``owner_id``."""

    @abstractmethod
    def list(self, owner_id: uuid.UUID, query: TaskQuery) -> List[Task]:
        """Filtered, sorted, paginated tasks of one owner."""

    @abstractmethod
    def count(self, owner_id: uuid.UUID, query: TaskQuery) -> int:
        """Number of tasks matching the query's filters, ignoring pagination."""

    @abstractmethod
    def add(self, task: Task) -> None:
        ...

    @abstractmethod
    def delete(self, task: Task) -> None:
        ...

    @abstractmethod
    def commit(self) -> None:
        ...


class SQLUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def get_by_username_or_email(self, username_or_email: str) -> Optional[User]:
        user = self.session.exec(
            select(User).where(User.username == username_or_email)
        ).first()
        if user is None:
            user = self.session.exec(
                select(User).where(User.email == username_or_email)
            ).first()
        return user

    def exists_by_username_or_email(self, username: str, email: str) -> bool:
        match = self.session.exec(
            select(User.id).where(or_(User.username == username, User.email == email))
        ).first()
        return match is not None

    def add(self, user: User) -> None:
        self.session.add(user)

    def commit(self) -> None:
        self.session.commit()


class SQLTaskRepository(TaskRepository):
    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _filters(owner_id: uuid.UUID, query: TaskQuery) -> List[Any]:
        clauses = [Task.owner_id == owner_id]
        if query.status is not None:
            clauses.append(Task.status == query.status)
        if query.priority is not None:
            clauses.append(Task.priority == query.priority)
        if query.due_from is not None:
            clauses.append(Task.due_date >= query.due_from)
        if query.due_to is not None:
            clauses.append(Task.due_date <= query.due_to)
        return clauses

    @staticmethod
    def _order_by(query: TaskQuery) -> List[Any]:
        if query.sorts_by_priority:
            key = case(*((Task.priority == p, p.rank) for p in Priority))
            key = key.desc() if query.descending else key.asc()
        elif query.descending:
            key = Task.due_date.desc().nulls_last()
        else:
            key = Task.due_date.asc().nulls_first()
        return [key, Task.id.asc()]

    def get(self, task_id: uuid.UUID, owner_id: uuid.UUID) -> Optional[Task]:
        return self.session.exec(
            select(Task).where(Task.id == task_id, Task.owner_id == owner_id)
        ).first()

    def list(self, owner_id: uuid.UUID, query: TaskQuery) -> List[Task]:
        statement = (
            select(Task)
            .where(*self._filters(owner_id, query))
            .order_by(*self._order_by(query))
            .offset(query.offset)
            .limit(query.page_size)
        )
        return list(self.session.exec(statement).all())

    def count(self, owner_id: uuid.UUID, query: TaskQuery) -> int:
        statement = (
            select(func.count())
            .select_from(Task)
            .where(*self._filters(owner_id, query))
        )
        return self.session.exec(statement).one()

    def add(self, task: Task) -> None:
        self.session.add(task)

    def delete(self, task: Task) -> None:
        self.session.delete(task)

    def commit(self) -> None:
        self.session.commit()
