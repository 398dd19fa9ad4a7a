import logging
import time
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .auth import PasswordHasher, TokenIssuer, require_user_id
from .config import Settings
from .database import build_engine, create_db_and_tables, get_session
from .models import Priority, Status
from .repositories import SQLTaskRepository, SQLUserRepository, TaskQuery
from .schemas import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TaskCreate,
    TaskPage,
    TaskRead,
    TaskUpdate,
    TokenResponse,
    task_to_read,
    to_utc,
)
from .services import AccountService, TaskService

logger = logging.getLogger(__name__)

users_router = APIRouter(prefix="/users", tags=["Users"])
tasks_router = APIRouter(prefix="/tasks", tags=["Tasks"])

# int32, so (page - 1) * pageSize always fits a 64-bit SQL integer
MAX_PAGING_VALUE = 2**31 - 1


# --- 1. SERVICE WIRING ---
def get_account_service(
    request: Request, session: Session = Depends(get_session)
) -> AccountService:
    return AccountService(SQLUserRepository(session), request.app.state.password_hasher)


def get_task_service(session: Session = Depends(get_session)) -> TaskService:
    return TaskService(SQLTaskRepository(session))


def message(status_code: int, text: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": text})


# --- 2. USER ROUTES ---
@users_router.post("/register", response_model=MessageResponse)
def register(payload: RegisterRequest, accounts: AccountService = Depends(get_account_service)):
    success, text = accounts.register(payload)
    if not success:
        return message(400, text)
    return MessageResponse(message=text)


@users_router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    request: Request,
    accounts: AccountService = Depends(get_account_service),
):
    user = accounts.authenticate(payload.username_or_email, payload.password)
    if user is None:
        return message(401, "Invalid credentials")
    return TokenResponse(token=request.app.state.token_issuer.issue(user))


# --- 3. TASK ROUTES ---
@tasks_router.post("", response_model=TaskRead)
def create_task(
    payload: TaskCreate,
    user_id: uuid.UUID = Depends(require_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    logger.info("User %s creating task: %s", user_id, payload.title)
    return task_to_read(tasks.create(user_id, payload))


@tasks_router.get("", response_model=TaskPage)
def list_tasks(
    status: Optional[Status] = None,
    priority: Optional[Priority] = None,
    due_from: Optional[datetime] = Query(default=None, alias="dueFrom"),
    due_to: Optional[datetime] = Query(default=None, alias="dueTo"),
    sort_by: str = Query(default="dueDate", alias="sortBy"),
    sort_order: str = Query(default="asc", alias="sortOrder"),
    page: int = Query(default=1, ge=1, le=MAX_PAGING_VALUE),
    page_size: int = Query(default=10, ge=1, le=MAX_PAGING_VALUE, alias="pageSize"),
    user_id: uuid.UUID = Depends(require_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    query = TaskQuery(
        status=status,
        priority=priority,
        due_from=to_utc(due_from) if due_from else None,
        due_to=to_utc(due_to) if due_to else None,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )
    items, total = tasks.list(user_id, query)

    result = TaskPage(
        page=page,
        page_size=page_size,
        total=total,
        tasks=[task_to_read(task) for task in items],
    )
    if not items:
        result.message = "No tasks found."
        return JSONResponse(content=result.model_dump(mode="json", by_alias=True))
    return JSONResponse(
        content=result.model_dump(mode="json", by_alias=True, exclude={"message"})
    )


@tasks_router.get("/{task_id}", response_model=TaskRead)
def get_task(
    task_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    task = tasks.get(user_id, task_id)
    if task is None:
        return message(404, "Task not found or you are not authorized to view it.")
    return task_to_read(task)


@tasks_router.put("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdate,
    user_id: uuid.UUID = Depends(require_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    task = tasks.update(user_id, task_id, payload)
    if task is None:
        return message(404, "Task not found or you are not authorized to update it.")
    return task_to_read(task)


@tasks_router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: uuid.UUID,
    user_id: uuid.UUID = Depends(require_user_id),
    tasks: TaskService = Depends(get_task_service),
):
    if not tasks.delete(user_id, task_id):
        return message(404, "Task not found or you are not authorized to delete it.")
    return MessageResponse(message="Task deleted successfully.")


# --- 4. APP FACTORY ---
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.getLogger("tasktrack").setLevel(settings.log_level)

    app = FastAPI(title="tasktrack")
    app.state.settings = settings
    app.state.engine = build_engine(settings.database_url)
    app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.token_issuer = TokenIssuer.from_settings(settings)

    @app.on_event("startup")
    def on_startup():
        create_db_and_tables(app.state.engine)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "%s %s -> %d (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    app.include_router(users_router)
    app.include_router(tasks_router)
    return app


logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
app = create_app()
