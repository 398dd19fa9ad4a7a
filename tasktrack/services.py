import logging
import uuid
from datetime import timedelta
from typing import List, Optional, Tuple

from . import password_policy
from .auth import PasswordHasher
from .models import Task, User, utcnow
from .repositories import TaskQuery, TaskRepository, UserRepository
from .schemas import (
    RegisterRequest,
    TaskCreate,
    TaskUpdate,
    task_changes,
    task_from_create,
    user_from_register,
)

logger = logging.getLogger(__name__)

USER_EXISTS = "Username or Email already exists."
WEAK_PASSWORD = "Password does not meet complexity requirements."
REGISTERED = "User registered successfully"


class AccountService:
    def __init__(self, users: UserRepository, hasher: PasswordHasher):
        self.users = users
        self.hasher = hasher

    def register(self, payload: RegisterRequest) -> Tuple[bool, str]:
        """
        Create an account.

        Returns ``(success, message)``. A taken username or email is reported
        before a weak password, and neither case writes anything.
        """
        if self.users.exists_by_username_or_email(payload.username, payload.email):
            logger.info("Registration rejected for %r: username or email taken", payload.username)
            return False, USER_EXISTS

        if not password_policy.is_valid(payload.password):
            logger.info("Registration rejected for %r: weak password", payload.username)
            return False, WEAK_PASSWORD

        user = user_from_register(payload, self.hasher.hash(payload.password))
        self.users.add(user)
        self.users.commit()
        logger.info("Registered user %s (%s)", user.id, user.username)
        return True, REGISTERED

    def authenticate(self, username_or_email: str, password: str) -> Optional[User]:
        """Return the user for valid credentials, None for anything else."""
        user = self.users.get_by_username_or_email(username_or_email)
        if user is None or not self.hasher.verify(password, user.password_hash):
            logger.info("Failed login for %r", username_or_email)
            return None
        return user


class TaskService:
    """Task lifecycle, always scoped to the owning user."""

    def __init__(self, tasks: TaskRepository):
        self.tasks = tasks

    def create(self, owner_id: uuid.UUID, payload: TaskCreate) -> Task:
        task = task_from_create(owner_id, payload)
        self.tasks.add(task)
        self.tasks.commit()
        logger.info("User %s created task %s", owner_id, task.id)
        return task

    def get(self, owner_id: uuid.UUID, task_id: uuid.UUID) -> Optional[Task]:
        return self.tasks.get(task_id, owner_id)

    def list(self, owner_id: uuid.UUID, query: TaskQuery) -> Tuple[List[Task], int]:
        items = self.tasks.list(owner_id, query)
        total = self.tasks.count(owner_id, query)
        return items, total

    def update(
        self, owner_id: uuid.UUID, task_id: uuid.UUID, payload: TaskUpdate
    ) -> Optional[Task]:
        task = self.get(owner_id, task_id)
        if task is None:
            return None

        task.sqlmodel_update(task_changes(payload))

        now = utcnow()
        if now <= task.updated_at:
            now = task.updated_at + timedelta(microseconds=1)
        task.updated_at = now

        self.tasks.add(task)
        self.tasks.commit()
        logger.info("User %s updated task %s", owner_id, task_id)
        return task

    def delete(self, owner_id: uuid.UUID, task_id: uuid.UUID) -> bool:
        task = self.get(owner_id, task_id)
        if task is None:
            return False

        self.tasks.delete(task)
        self.tasks.commit()
        logger.info("User %s deleted task %s", owner_id, task_id)
        return True
