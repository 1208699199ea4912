"""Tests for the workspace schema and repository."""

import logging
from datetime import UTC, datetime, timedelta

import pytest
from backend.app.db.base import Base
from backend.app.models.workspace import ChatMessage
from backend.app.services import workspace_repository as repo
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, OperationalError
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


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class TestSchema:
    @pytest.mark.parametrize(
        "table",
        ["users", "projects", "chat_messages", "file_items",
         "personal_todos", "calendar_events"],
    )
    def test_table_exists(self, db: Session, table: str) -> None:
        result = db.execute(
            text("SELECT name FROM sqlite_master WHERE type='table' AND name=:n"),
            {"n": table},
        )
        assert result.fetchone() is not None

    def test_project_status_constraint(self, db: Session) -> None:
        with pytest.raises(IntegrityError):
            db.execute(text(
                "INSERT INTO projects (id, name, status, team_member_ids) "
                "VALUES ('p', 'P', 'PAUSED', '[]')"
            ))

    def test_room_type_constraint(self, db: Session) -> None:
        with pytest.raises(IntegrityError):
            db.add(ChatMessage(user_id="u", room_type="group", content="", created_at=_NOW))
            db.flush()


# ---------------------------------------------------------------------------
# Users and projects
# ---------------------------------------------------------------------------


class TestUsersAndProjects:
    def test_get_user(self, db: Session) -> None:
        repo.create_user(db, user_id="u1", name="Ann")
        assert repo.get_user(db, "u1").name == "Ann"

    def test_writes_logged_as_events(
        self, db: Session, caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.INFO):
            repo.create_user(db, user_id="u1", name="Ann")
            repo.create_project(db, project_id="p1", name="One", team_member_ids=["u1"])
        assert "user_created: id=u1" in caplog.text
        assert "project_created: id=p1 status=ACTIVE members=1" in caplog.text
        assert "Ann" not in caplog.text

    def test_get_missing_user(self, db: Session) -> None:
        with pytest.raises(repo.RecordNotFoundError, match="u404"):
            repo.get_user(db, "u404")

    def test_list_users_ordered_by_id(self, db: Session) -> None:
        repo.create_user(db, user_id="b", name="B")
        repo.create_user(db, user_id="a", name="A")
        assert [u.id for u in repo.list_users(db)] == ["a", "b"]

    def test_team_members_round_trip_as_list(self, db: Session) -> None:
        repo.create_project(db, project_id="p1", name="One", team_member_ids=["a", "b"])
        db.commit()
        db.expire_all()
        assert repo.get_project(db, "p1").team_member_ids == ["a", "b"]

    def test_invalid_status_rejected(self, db: Session) -> None:
        with pytest.raises(ValueError):
            repo.create_project(db, project_id="p", name="P", team_member_ids=[],
                                status="PAUSED")

    def test_get_missing_project(self, db: Session) -> None:
        with pytest.raises(repo.RecordNotFoundError):
            repo.get_project(db, "p404")

    def test_active_projects(self, db: Session) -> None:
        repo.create_project(db, project_id="p1", name="A", team_member_ids=["u"])
        repo.create_project(db, project_id="p2", name="B", team_member_ids=["u"],
                            status="ARCHIVED")
        repo.create_project(db, project_id="p3", name="C", team_member_ids=["v"])
        assert [p.id for p in repo.list_active_projects(db)] == ["p1", "p3"]
        assert [p.id for p in repo.list_active_projects_for_user(db, "u")] == ["p1"]


# ---------------------------------------------------------------------------
# Activity collections
# ---------------------------------------------------------------------------


class TestMessages:
    def test_filters_combine(self, db: Session) -> None:
        repo.add_message(db, user_id="a", project_id="p1", created_at=_NOW)
        repo.add_message(db, user_id="b", project_id="p1", created_at=_NOW)
        repo.add_message(db, user_id="a", room_type="dm", direct_chat_user_id="b",
                         created_at=_NOW)
        assert len(repo.list_messages(db)) == 3
        assert len(repo.list_messages(db, project_ids=["p1"])) == 2
        assert len(repo.list_messages(db, room_type="dm")) == 1
        assert len(repo.list_messages(db, project_ids=["p1"], author_ids=["a"])) == 1

    def test_oldest_first(self, db: Session) -> None:
        repo.add_message(db, user_id="a", content="new", created_at=_NOW)
        repo.add_message(db, user_id="a", content="old", created_at=_NOW - timedelta(days=1))
        assert [m.content for m in repo.list_messages(db)] == ["old", "new"]

    def test_invalid_room_type(self, db: Session) -> None:
        with pytest.raises(ValueError):
            repo.add_message(db, user_id="a", room_type="group", created_at=_NOW)


class TestOtherCollections:
    def test_files_by_uploader_and_project(self, db: Session) -> None:
        repo.add_file(db, name="a", uploaded_by="u", project_id="p1", created_at=_NOW)
        repo.add_file(db, name="b", uploaded_by="u", project_id="p2", created_at=_NOW)
        repo.add_file(db, name="c", uploaded_by="v", project_id="p1", created_at=_NOW)
        assert len(repo.list_files(db, uploaded_by=["u"])) == 2
        assert len(repo.list_files(db, uploaded_by=["u"], project_ids=["p1"])) == 1

    def test_todos_keep_assignees(self, db: Session) -> None:
        repo.add_todo(db, title="t", assignee_ids=["a", "b"], project_id="p1", created_at=_NOW)
        (todo,) = repo.list_todos(db, project_ids=["p1"])
        assert todo.assignee_ids == ["a", "b"]
        assert todo.status == "PENDING"

    def test_events_by_project(self, db: Session) -> None:
        repo.add_event(db, title="e", owner_id="a", project_id="p1",
                       start_at=_NOW, end_at=_NOW + timedelta(hours=1))
        assert len(repo.list_events(db, project_ids=["p1"])) == 1
        assert repo.list_events(db, project_ids=["p2"]) == []

    def test_event_must_not_end_before_start(self, db: Session) -> None:
        with pytest.raises(ValueError):
            repo.add_event(db, title="e", owner_id="a",
                           start_at=_NOW, end_at=_NOW - timedelta(hours=1))


# ---------------------------------------------------------------------------
# Operational errors
# ---------------------------------------------------------------------------


class TestOperationalErrors:
    def test_locked_database_is_retryable(self) -> None:
        exc = OperationalError("INSERT", {}, Exception("database is locked"))
        with pytest.raises(repo.DatabaseLockedError, match="retry"):
            repo._handle_operational_error(exc, "add_message")

    def test_other_errors_propagate(self) -> None:
        exc = OperationalError("INSERT", {}, Exception("disk I/O error"))
        with pytest.raises(OperationalError):
            repo._handle_operational_error(exc, "add_message")
