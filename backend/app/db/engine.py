"""SQLAlchemy engine configuration for SQLite."""

import logging
from pathlib import Path

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.pool import Pool

from backend.app.core.settings import settings

logger = logging.getLogger(__name__)

# Ensure the parent directory exists so SQLite can create the file
_db_path = Path(settings.app_db_path)
_db_path.parent.mkdir(parents=True, exist_ok=True)

# Writers wait this long for a lock before SQLite reports "database is locked".
SQLITE_BUSY_TIMEOUT_MS = 5_000


def get_resolved_db_path() -> Path:
    """Return the resolved absolute path to the SQLite database file."""
    return _db_path.resolve()


def build_engine(
    url: str, *, echo: bool = False, poolclass: type[Pool] | None = None,
) -> Engine:
    """Create a SQLite engine with the workspace connection pragmas applied."""
    options: dict[str, object] = {}
    if poolclass is not None:
        options["poolclass"] = poolclass
    new_engine = create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False},  # required for SQLite
        **options,
    )

    @event.listens_for(new_engine, "connect")
    def _set_sqlite_pragmas(dbapi_conn, _record) -> None:  # type: ignore[no-untyped-def]
        cursor = dbapi_conn.cursor()
        cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()

    return new_engine


engine = build_engine(settings.database_url, echo=settings.debug)

logger.info(
    "db_initialized: path=%s url=%s",
    get_resolved_db_path(),
    settings.database_url,
)


class DatabaseInitError(Exception):
    """Raised when the database cannot be initialized."""


def init_db(target: Engine | None = None) -> None:
    """Verify the database is accessible by executing a simple query.

    Raises :class:`DatabaseInitError` with actionable guidance on failure.
    """
    target = target or engine
    try:
        with target.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("db_init_verified: url=%s", target.url)
    except Exception as exc:
        msg = (
            f"Cannot open database at '{target.url}': {exc}. "
            f"Check file permissions or set APP_DB_PATH to a writable location."
        )
        logger.error("db_init_failed: %s", msg)
        raise DatabaseInitError(msg) from exc
