"""Assemble per-person activity tallies for the team load calculator.

The cohort is every team member of the given projects.  Each person's
activity is counted across the subset of those projects they belong to.
Files are counted globally by default because uploads are not tied to a
single project; ``file_upload_scope="project-scoped"`` restricts them to
the same project set as the other categories.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Literal

from sqlalchemy.orm import Session

from backend.app.core.logging import EVENT_TEAM_ACTIVITY_LOADED, log_event
from backend.app.models.workspace import (
    CalendarEvent,
    ChatMessage,
    FileItem,
    PersonalTodo,
    Project,
)
from backend.app.services import workspace_repository as repo
from backend.app.services.team_load import ActivityInput, UserId

logger = logging.getLogger(__name__)

FileUploadScope = Literal["global", "project-scoped"]


def cohort_member_ids(projects: Iterable[Project]) -> list[str]:
    """Distinct team member ids across *projects*, in first-seen order."""
    seen: dict[str, None] = {}
    for project in projects:
        for user_id in project.team_member_ids or []:
            seen.setdefault(user_id, None)
    return list(seen)


def collect_activity_inputs(
    projects: Sequence[Project],
    messages: Iterable[ChatMessage],
    files: Iterable[FileItem],
    todos: Iterable[PersonalTodo],
    events: Iterable[CalendarEvent],
    *,
    file_upload_scope: FileUploadScope = "global",
) -> list[ActivityInput]:
    """Build one :class:`ActivityInput` per cohort member.

    Todos are counted whenever the person is an assignee, whatever their
    status.  Direct messages never count toward chat activity.
    """
    if file_upload_scope not in ("global", "project-scoped"):
        raise ValueError(f"Unknown file_upload_scope: {file_upload_scope}")

    members = cohort_member_ids(projects)
    memberships: dict[str, set[str]] = {m: set() for m in members}
    for project in projects:
        for user_id in project.team_member_ids or []:
            memberships[user_id].add(project.id)

    messages = list(messages)
    files = list(files)
    todos = list(todos)
    events = list(events)

    inputs: list[ActivityInput] = []
    for user_id in members:
        scope = memberships[user_id]
        chat = sum(
            1 for m in messages
            if m.user_id == user_id
            and m.project_id in scope
            and m.room_type != "dm"
            and not m.direct_chat_user_id
        )
        uploads = sum(
            1 for f in files
            if f.uploaded_by == user_id
            and (file_upload_scope == "global" or f.project_id in scope)
        )
        assigned = sum(
            1 for t in todos
            if t.project_id in scope and user_id in (t.assignee_ids or [])
        )
        owned = sum(
            1 for e in events
            if e.project_id in scope and e.owner_id == user_id
        )
        inputs.append(
            ActivityInput(
                user_id=UserId(user_id),
                chat_messages=chat,
                file_uploads=uploads,
                assigned_todos=assigned,
                calendar_events=owned,
            )
        )
    return inputs


def load_team_activity(
    db: Session,
    *,
    project_id: str | None = None,
    file_upload_scope: FileUploadScope = "global",
) -> tuple[list[str], list[ActivityInput]]:
    """Load the cohort and its activity from the store.

    With *project_id*, the cohort is that project's team (whatever the
    project's status).  Without it, the cohort spans every ACTIVE project.

    Returns ``(member_ids, inputs)``; both are empty when there is no
    project to consider.

    Raises:
        RecordNotFoundError: If *project_id* is given but unknown.
    """
    if project_id is not None:
        projects = [repo.get_project(db, project_id)]
    else:
        projects = repo.list_active_projects(db)

    if not projects:
        return [], []

    project_ids = [p.id for p in projects]
    members = cohort_member_ids(projects)
    inputs = collect_activity_inputs(
        projects,
        repo.list_messages(db, project_ids=project_ids),
        repo.list_files(
            db,
            uploaded_by=members,
            project_ids=project_ids if file_upload_scope == "project-scoped" else None,
        ),
        repo.list_todos(db, project_ids=project_ids),
        repo.list_events(db, project_ids=project_ids),
        file_upload_scope=file_upload_scope,
    )
    log_event(
        logger, "info", EVENT_TEAM_ACTIVITY_LOADED,
        projects=len(projects),
        members=len(members),
        file_upload_scope=file_upload_scope,
    )
    return members, inputs
