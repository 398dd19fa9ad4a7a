import uuid

import pytest

from tasktrack.models import Priority, Status, Task
from tasktrack.repositories import TaskQuery
from tasktrack.schemas import TaskCreate, TaskUpdate
from tasktrack.services import TaskService


@pytest.fixture()
def owner() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def stranger() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def service(task_repo) -> TaskService:
    return TaskService(task_repo)


@pytest.fixture()
def task(service, owner, days) -> Task:
    return service.create(
        owner,
        TaskCreate(
            title="Write report",
            description="Quarterly numbers",
            due_date=days(3),
            status=Status.IN_PROGRESS,
            priority=Priority.HIGH,
        ),
    )


class TestCreate:
    def test_create_assigns_owner_and_persists(self, service, task_repo, owner, task, days):
        assert task.owner_id == owner
        assert task.id in task_repo.tasks
        assert task_repo.commits == 1

        fetched = service.get(owner, task.id)
        assert fetched.title == "Write report"
        assert fetched.description == "Quarterly numbers"
        assert fetched.due_date == days(3)
        assert fetched.status == Status.IN_PROGRESS
        assert fetched.priority == Priority.HIGH

    def test_create_defaults(self, service, owner):
        created = service.create(owner, TaskCreate(title="Minimal"))

        assert created.status == Status.PENDING
        assert created.priority == Priority.MEDIUM
        assert created.description is None
        assert created.due_date is None
        assert created.created_at is not None
        assert created.updated_at is not None


class TestOwnership:
    def test_get_foreign_task_is_not_found(self, service, stranger, task):
        assert service.get(stranger, task.id) is None

    def test_get_missing_task_is_not_found(self, service, owner):
        assert service.get(owner, uuid.uuid4()) is None

    def test_update_foreign_task_writes_nothing(self, service, task_repo, stranger, task):
        writes = task_repo.writes

        assert service.update(stranger, task.id, TaskUpdate(title="Hijacked")) is None
        assert task_repo.writes == writes
        assert task.title == "Write report"

    def test_delete_foreign_task_writes_nothing(self, service, task_repo, stranger, task):
        writes = task_repo.writes

        assert service.delete(stranger, task.id) is False
        assert task_repo.writes == writes
        assert task.id in task_repo.tasks

    def test_delete_missing_task(self, service, task_repo, owner):
        assert service.delete(owner, uuid.uuid4()) is False
        assert task_repo.deletes == 0


class TestUpdate:
    def test_only_supplied_fields_change(self, service, owner, task, days):
        created_at = task.created_at
        updated_at = task.updated_at

        updated = service.update(owner, task.id, TaskUpdate(status=Status.COMPLETED))

        assert updated.status == Status.COMPLETED
        assert updated.title == "Write report"
        assert updated.description == "Quarterly numbers"
        assert updated.due_date == days(3)
        assert updated.priority == Priority.HIGH
        assert updated.owner_id == owner
        assert updated.created_at == created_at
        assert updated.updated_at > updated_at

    def test_updated_at_increases_on_every_update(self, service, owner, task):
        first = service.update(owner, task.id, TaskUpdate(title="One")).updated_at
        second = service.update(owner, task.id, TaskUpdate(title="Two")).updated_at

        assert second > first

    def test_description_and_due_date_can_be_cleared(self, service, owner, task):
        updated = service.update(owner, task.id, TaskUpdate(description=None, due_date=None))

        assert updated.description is None
        assert updated.due_date is None

    def test_update_commits(self, service, task_repo, owner, task):
        commits = task_repo.commits

        service.update(owner, task.id, TaskUpdate(priority=Priority.LOW))

        assert task_repo.commits == commits + 1


class TestDelete:
    def test_delete_removes_task(self, service, task_repo, owner, task):
        assert service.delete(owner, task.id) is True
        assert task.id not in task_repo.tasks
        assert service.get(owner, task.id) is None


class TestList:
    def test_filters_by_status_and_sorts_by_due_date(self, service, owner, days):
        for status, day in [(Status.PENDING, 1), (Status.COMPLETED, 2), (Status.PENDING, 3)]:
            service.create(owner, TaskCreate(title=f"day {day}", status=status, due_date=days(day)))

        items, total = service.list(owner, TaskQuery(status=Status.PENDING))

        assert [t.title for t in items] == ["day 1", "day 3"]
        assert total == 2

    def test_total_ignores_pagination(self, service, owner):
        for i in range(13):
            service.create(owner, TaskCreate(title=f"task {i}"))

        items, total = service.list(owner, TaskQuery(page=1, page_size=10))
        assert (len(items), total) == (10, 13)

        items, total = service.list(owner, TaskQuery(page=2, page_size=10))
        assert (len(items), total) == (3, 13)

    def test_only_owner_tasks_are_listed(self, service, owner, stranger):
        service.create(owner, TaskCreate(title="mine"))
        service.create(stranger, TaskCreate(title="theirs"))

        items, total = service.list(owner, TaskQuery())

        assert [t.title for t in items] == ["mine"]
        assert total == 1

    def test_empty_result(self, service, owner):
        assert service.list(owner, TaskQuery()) == ([], 0)
