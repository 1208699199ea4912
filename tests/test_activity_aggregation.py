"""Tests for assembling team activity from workspace collections."""

import logging
from datetime import UTC, datetime, timedelta

import pytest
from backend.app.db.base import Base
from backend.app.models.workspace import (
    CalendarEvent,
    ChatMessage,
    FileItem,
    PersonalTodo,
    Project,
)
from backend.app.services import workspace_repository as repo
from backend.app.services.activity_aggregation import (
    cohort_member_ids,
    collect_activity_inputs,
    load_team_activity,
)
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def db() -> Session:  # type: ignore[misc]
    """Yield an in-memory SQLite session with the schema created."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


def _msg(user_id: str, project_id: str | None, *, dm: bool = False) -> ChatMessage:
    return ChatMessage(
        user_id=user_id,
        project_id=project_id,
        room_type="dm" if dm else "project",
        direct_chat_user_id="someone" if dm else None,
        content="",
        created_at=_NOW,
    )


def _by_user(inputs):
    return {i.user_id: i for i in inputs}


# ---------------------------------------------------------------------------
# Pure aggregation
# ---------------------------------------------------------------------------


class TestCohort:
    def test_first_seen_order_without_duplicates(self) -> None:
        projects = [
            Project(id="p1", name="One", team_member_ids=["b", "a"]),
            Project(id="p2", name="Two", team_member_ids=["a", "c"]),
        ]
        assert cohort_member_ids(projects) == ["b", "a", "c"]

    def test_no_projects_no_inputs(self) -> None:
        assert collect_activity_inputs([], [], [], [], []) == []


class TestCollect:
    def setup_method(self) -> None:
        self.projects = [
            Project(id="p1", name="One", team_member_ids=["ann", "bo"]),
            Project(id="p2", name="Two", team_member_ids=["bo"]),
        ]

    def test_chat_counts_project_messages_in_members_scope(self) -> None:
        messages = [
            _msg("ann", "p1"),
            _msg("ann", "p2"),  # ann is not on p2
            _msg("ann", "p9"),  # outside the cohort's projects
            _msg("bo", "p1"),
            _msg("bo", "p2"),
        ]
        inputs = _by_user(collect_activity_inputs(self.projects, messages, [], [], []))
        assert inputs["ann"].chat_messages == 1
        assert inputs["bo"].chat_messages == 2

    def test_direct_messages_never_count_as_chat(self) -> None:
        messages = [_msg("ann", "p1", dm=True), _msg("ann", "p1")]
        inputs = _by_user(collect_activity_inputs(self.projects, messages, [], [], []))
        assert inputs["ann"].chat_messages == 1

    def test_todos_count_every_assignment_regardless_of_status(self) -> None:
        todos = [
            PersonalTodo(title="a", project_id="p1", assignee_ids=["ann"], status="PENDING"),
            PersonalTodo(title="b", project_id="p1", assignee_ids=["ann", "bo"],
                         status="COMPLETED"),
            PersonalTodo(title="c", project_id=None, assignee_ids=["ann"]),
        ]
        inputs = _by_user(collect_activity_inputs(self.projects, [], [], todos, []))
        assert inputs["ann"].assigned_todos == 2
        assert inputs["bo"].assigned_todos == 1

    def test_events_count_owned_events_in_scope(self) -> None:
        events = [
            CalendarEvent(title="x", project_id="p2", owner_id="bo",
                          start_at=_NOW, end_at=_NOW),
            CalendarEvent(title="y", project_id="p2", owner_id="ann",
                          start_at=_NOW, end_at=_NOW),
        ]
        inputs = _by_user(collect_activity_inputs(self.projects, [], [], [], events))
        assert inputs["bo"].calendar_events == 1
        assert inputs["ann"].calendar_events == 0

    def test_files_global_by_default(self) -> None:
        files = [
            FileItem(name="a", uploaded_by="ann", project_id="p1", created_at=_NOW),
            FileItem(name="b", uploaded_by="ann", project_id="elsewhere", created_at=_NOW),
            FileItem(name="c", uploaded_by="ann", project_id=None, created_at=_NOW),
        ]
        inputs = _by_user(collect_activity_inputs(self.projects, [], files, [], []))
        assert inputs["ann"].file_uploads == 3

    def test_files_project_scoped(self) -> None:
        files = [
            FileItem(name="a", uploaded_by="ann", project_id="p1", created_at=_NOW),
            FileItem(name="b", uploaded_by="ann", project_id="elsewhere", created_at=_NOW),
        ]
        inputs = _by_user(collect_activity_inputs(
            self.projects, [], files, [], [], file_upload_scope="project-scoped",
        ))
        assert inputs["ann"].file_uploads == 1

    def test_unknown_scope_rejected(self) -> None:
        with pytest.raises(ValueError):
            collect_activity_inputs(
                self.projects, [], [], [], [], file_upload_scope="team",  # type: ignore[arg-type]
            )


# ---------------------------------------------------------------------------
# Loading from the store
# ---------------------------------------------------------------------------


def _seed(db: Session) -> None:
    repo.create_project(db, project_id="p1", name="One", team_member_ids=["ann", "bo"])
    repo.create_project(db, project_id="p2", name="Two", team_member_ids=["cy"],
                        status="COMPLETED")
    repo.add_message(db, user_id="ann", project_id="p1", created_at=_NOW)
    repo.add_message(db, user_id="cy", project_id="p2", created_at=_NOW)
    repo.add_file(db, name="f", uploaded_by="bo", project_id="p2", created_at=_NOW)
    repo.add_todo(db, title="t", assignee_ids=["bo"], project_id="p1", created_at=_NOW)
    repo.add_event(db, title="e", owner_id="ann", project_id="p1",
                   start_at=_NOW, end_at=_NOW + timedelta(hours=1))


class TestLoadTeamActivity:
    def test_active_projects_only(self, db: Session) -> None:
        _seed(db)
        members, inputs = load_team_activity(db)
        assert members == ["ann", "bo"]
        by_user = _by_user(inputs)
        assert by_user["ann"].chat_messages == 1
        assert by_user["ann"].calendar_events == 1
        assert by_user["bo"].assigned_todos == 1
        assert by_user["bo"].file_uploads == 1

    def test_project_scoped_files_from_store(self, db: Session) -> None:
        _seed(db)
        _, inputs = load_team_activity(db, file_upload_scope="project-scoped")
        assert _by_user(inputs)["bo"].file_uploads == 0

    def test_single_project_of_any_status(self, db: Session) -> None:
        _seed(db)
        members, inputs = load_team_activity(db, project_id="p2")
        assert members == ["cy"]
        assert inputs[0].chat_messages == 1

    def test_unknown_project(self, db: Session) -> None:
        with pytest.raises(repo.RecordNotFoundError):
            load_team_activity(db, project_id="nope")

    def test_no_active_projects(self, db: Session) -> None:
        assert load_team_activity(db) == ([], [])

    def test_load_is_logged_as_event(
        self, db: Session, caplog: pytest.LogCaptureFixture,
    ) -> None:
        _seed(db)
        with caplog.at_level(logging.INFO):
            load_team_activity(db)
        assert (
            "team_activity_loaded: projects=1 members=2 file_upload_scope=global"
            in caplog.text
        )
