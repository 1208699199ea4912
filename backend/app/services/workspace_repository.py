"""Repository for the workspace store (users, projects, activity).

All methods operate on a caller-supplied SQLAlchemy ``Session`` so that
transaction boundaries remain under the caller's control.  Results are
complete, already-authorized collections; callers do no further access
filtering.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from datetime import datetime

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from backend.app.core.logging import (
    EVENT_DB_WRITE_FAILED,
    EVENT_MESSAGE_ADDED,
    EVENT_PROJECT_CREATED,
    EVENT_USER_CREATED,
    log_event,
)
from backend.app.models.workspace import (
    PROJECT_STATUSES,
    ROOM_TYPES,
    CalendarEvent,
    ChatMessage,
    FileItem,
    PersonalTodo,
    Project,
    User,
)

logger = logging.getLogger(__name__)


class RecordNotFoundError(Exception):
    """Raised when a user or project cannot be found by id."""


class DatabaseLockedError(Exception):
    """Raised when the database is locked by another process (retryable)."""


def _handle_operational_error(exc: OperationalError, operation: str) -> None:
    """Check for database-locked errors and raise a categorized exception."""
    msg = str(exc).lower()
    if "locked" in msg or "busy" in msg:
        log_event(
            logger, "warning", EVENT_DB_WRITE_FAILED,
            operation=operation,
            reason="database_locked",
            retryable=True,
        )
        raise DatabaseLockedError(
            f"Database is locked during '{operation}'. "
            f"Another process may be writing. Please retry."
        ) from exc
    raise exc


def _flush(db: Session, operation: str) -> None:
    try:
        db.flush()
    except OperationalError as exc:
        _handle_operational_error(exc, operation)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def create_user(
    db: Session,
    *,
    user_id: str,
    name: str,
    email: str | None = None,
    role: str = "MEMBER",
) -> User:
    """Create a user and flush it."""
    user = User(id=user_id, name=name, email=email, role=role)
    db.add(user)
    _flush(db, "create_user")
    log_event(logger, "info", EVENT_USER_CREATED, id=user_id)
    return user


def create_project(
    db: Session,
    *,
    project_id: str,
    name: str,
    team_member_ids: list[str],
    status: str = "ACTIVE",
) -> Project:
    """Create a project with its team member list."""
    if status not in PROJECT_STATUSES:
        raise ValueError(f"Invalid project status: {status}")
    project = Project(
        id=project_id,
        name=name,
        status=status,
        team_member_ids=list(team_member_ids),
    )
    db.add(project)
    _flush(db, "create_project")
    log_event(
        logger, "info", EVENT_PROJECT_CREATED,
        id=project_id,
        status=status,
        members=len(team_member_ids),
    )
    return project


def add_message(
    db: Session,
    *,
    user_id: str,
    created_at: datetime,
    content: str = "",
    project_id: str | None = None,
    room_type: str = "project",
    direct_chat_user_id: str | None = None,
) -> ChatMessage:
    """Store a chat message; DM messages carry the peer in ``direct_chat_user_id``."""
    if room_type not in ROOM_TYPES:
        raise ValueError(f"Invalid room_type: {room_type}")
    message = ChatMessage(
        user_id=user_id,
        project_id=project_id,
        content=content,
        room_type=room_type,
        direct_chat_user_id=direct_chat_user_id,
        created_at=created_at,
    )
    db.add(message)
    _flush(db, "add_message")
    log_event(
        logger, "debug", EVENT_MESSAGE_ADDED,
        id=message.id,
        room_type=room_type,
        content_len=len(content),
    )
    return message


def add_file(
    db: Session,
    *,
    name: str,
    uploaded_by: str,
    created_at: datetime,
    project_id: str | None = None,
) -> FileItem:
    item = FileItem(
        name=name,
        uploaded_by=uploaded_by,
        project_id=project_id,
        created_at=created_at,
    )
    db.add(item)
    _flush(db, "add_file")
    return item


def add_todo(
    db: Session,
    *,
    title: str,
    assignee_ids: list[str],
    created_at: datetime,
    project_id: str | None = None,
    status: str = "PENDING",
    completed_at: datetime | None = None,
) -> PersonalTodo:
    todo = PersonalTodo(
        title=title,
        assignee_ids=list(assignee_ids),
        project_id=project_id,
        status=status,
        created_at=created_at,
        completed_at=completed_at,
    )
    db.add(todo)
    _flush(db, "add_todo")
    return todo


def add_event(
    db: Session,
    *,
    title: str,
    owner_id: str,
    start_at: datetime,
    end_at: datetime,
    project_id: str | None = None,
) -> CalendarEvent:
    if end_at < start_at:
        raise ValueError("end_at must not precede start_at")
    event = CalendarEvent(
        title=title,
        owner_id=owner_id,
        start_at=start_at,
        end_at=end_at,
        project_id=project_id,
    )
    db.add(event)
    _flush(db, "add_event")
    return event


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def get_user(db: Session, user_id: str) -> User:
    """Fetch a user by id.

    Raises:
        RecordNotFoundError: If no user with *user_id* exists.
    """
    user = db.get(User, user_id)
    if user is None:
        raise RecordNotFoundError(f"User not found: id={user_id}")
    return user


def get_project(db: Session, project_id: str) -> Project:
    """Fetch a project by id.

    Raises:
        RecordNotFoundError: If no project with *project_id* exists.
    """
    project = db.get(Project, project_id)
    if project is None:
        raise RecordNotFoundError(f"Project not found: id={project_id}")
    return project


def list_users(db: Session) -> list[User]:
    return list(db.query(User).order_by(User.id).all())


def list_active_projects(db: Session) -> list[Project]:
    return list(
        db.query(Project)
        .filter(Project.status == "ACTIVE")
        .order_by(Project.id)
        .all()
    )


def list_active_projects_for_user(db: Session, user_id: str) -> list[Project]:
    """Return ACTIVE projects whose team includes *user_id*."""
    return [p for p in list_active_projects(db) if user_id in (p.team_member_ids or [])]


def list_messages(
    db: Session,
    *,
    project_ids: Collection[str] | None = None,
    room_type: str | None = None,
    author_ids: Collection[str] | None = None,
) -> list[ChatMessage]:
    """Return messages matching every filter given, oldest first."""
    query = db.query(ChatMessage)
    if project_ids is not None:
        query = query.filter(ChatMessage.project_id.in_(list(project_ids)))
    if room_type is not None:
        query = query.filter(ChatMessage.room_type == room_type)
    if author_ids is not None:
        query = query.filter(ChatMessage.user_id.in_(list(author_ids)))
    return list(query.order_by(ChatMessage.created_at, ChatMessage.id).all())


def list_files(
    db: Session,
    *,
    uploaded_by: Collection[str] | None = None,
    project_ids: Collection[str] | None = None,
) -> list[FileItem]:
    query = db.query(FileItem)
    if uploaded_by is not None:
        query = query.filter(FileItem.uploaded_by.in_(list(uploaded_by)))
    if project_ids is not None:
        query = query.filter(FileItem.project_id.in_(list(project_ids)))
    return list(query.order_by(FileItem.id).all())


def list_todos(
    db: Session,
    *,
    project_ids: Collection[str] | None = None,
) -> list[PersonalTodo]:
    query = db.query(PersonalTodo)
    if project_ids is not None:
        query = query.filter(PersonalTodo.project_id.in_(list(project_ids)))
    return list(query.order_by(PersonalTodo.id).all())


def list_events(
    db: Session,
    *,
    project_ids: Collection[str] | None = None,
) -> list[CalendarEvent]:
    query = db.query(CalendarEvent)
    if project_ids is not None:
        query = query.filter(CalendarEvent.project_id.in_(list(project_ids)))
    return list(query.order_by(CalendarEvent.start_at, CalendarEvent.id).all())
