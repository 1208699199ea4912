"""Seed a small demo workspace for local development.

Usage::

    python -m backend.app.seed
"""

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.errors import normalize_db_error
from backend.app.core.logging import setup_logging
from backend.app.db.migrations import run_migrations
from backend.app.db.session import session_scope
from backend.app.services import workspace_repository as repo

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("u-mina", "Mina Park"),
    ("u-jae", "Jae Kim"),
    ("u-sora", "Sora Lee"),
    ("u-theo", "Theo Grant"),
]


def seed_demo_workspace(db: Session, *, now: datetime) -> None:
    """Insert demo users, projects and activity into *db* (caller commits)."""
    for user_id, name in DEMO_USERS:
        repo.create_user(db, user_id=user_id, name=name)

    repo.create_project(
        db, project_id="p-rebrand", name="Rebrand", team_member_ids=["u-mina", "u-jae", "u-sora"],
    )
    repo.create_project(
        db, project_id="p-launch", name="Launch", team_member_ids=["u-jae", "u-theo"],
    )
    repo.create_project(
        db,
        project_id="p-legacy",
        name="Legacy site",
        team_member_ids=["u-mina", "u-theo"],
        status="ARCHIVED",
    )

    for i in range(6):
        repo.add_message(
            db, user_id="u-mina", project_id="p-rebrand",
            content="status update", created_at=now - timedelta(hours=i),
        )
    for i in range(3):
        repo.add_message(
            db, user_id="u-jae", project_id="p-launch",
            content="launch checklist", created_at=now - timedelta(days=i),
        )

    repo.add_file(db, name="brand-guide.pdf", uploaded_by="u-sora",
                  project_id="p-rebrand", created_at=now)
    repo.add_file(db, name="press-kit.zip", uploaded_by="u-jae",
                  project_id="p-launch", created_at=now)

    repo.add_todo(db, title="Pick typeface", assignee_ids=["u-sora", "u-mina"],
                  project_id="p-rebrand", created_at=now)
    repo.add_todo(db, title="Book venue", assignee_ids=["u-theo"],
                  project_id="p-launch", created_at=now, status="COMPLETED",
                  completed_at=now)

    repo.add_event(db, title="Design review", owner_id="u-mina", project_id="p-rebrand",
                   start_at=now + timedelta(days=1),
                   end_at=now + timedelta(days=1, hours=1))

    # Direct messages around u-mina: recent with Jae, old with Sora.
    for i in range(4):
        repo.add_message(db, user_id="u-jae", room_type="dm", direct_chat_user_id="u-mina",
                         created_at=now - timedelta(days=i))
    for i in range(5):
        repo.add_message(db, user_id="u-mina", room_type="dm", direct_chat_user_id="u-sora",
                         created_at=now - timedelta(days=30 + i))

    logger.info("demo_workspace_seeded: users=%d", len(DEMO_USERS))


def main() -> None:
    setup_logging()
    run_migrations()
    try:
        with session_scope() as db:
            if repo.list_users(db):
                logger.info("demo_workspace_seed_skipped: workspace is not empty")
                return
            seed_demo_workspace(db, now=datetime.now(UTC))
    except (SQLAlchemyError, repo.DatabaseLockedError) as exc:
        error = normalize_db_error(exc, operation="seed_demo_workspace", write=True)
        raise SystemExit(error.user_message) from exc


if __name__ == "__main__":
    main()
