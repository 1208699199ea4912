"""Tests for the structured logging baseline and event taxonomy.

Covers:
  Logs include event_name and component
  Analytics emit their canonical events
  Only ids and counts are logged, not message content
  setup_logging is idempotent
"""

import logging
from datetime import UTC, datetime

import pytest
from backend.app.core.logging import (
    EVENT_CONSTELLATION_COMPUTED,
    EVENT_INVALID_ACTIVITY_INPUT,
    EVENT_TEAM_LOAD_COMPUTED,
    log_event,
    setup_logging,
)
from backend.app.services.constellation import (
    MessageSnapshot,
    UserSnapshot,
    compute_star_placements,
)
from backend.app.services.team_load import ActivityInput, UserId, calculate_team_load

# ---------------------------------------------------------------------------
# log_event format
# ---------------------------------------------------------------------------


class TestLogEventFormat:
    def test_log_event_emits_event_name(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.component")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "test_event", key="value")
        assert "test_event: key=value" in caplog.text

    def test_log_event_without_kwargs(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.component")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "bare_event")
        assert caplog.records[-1].getMessage() == "bare_event"

    def test_log_event_component_in_record(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("backend.app.api.routes.team_load")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "test_event")
        assert any(
            r.name == "backend.app.api.routes.team_load" for r in caplog.records
        )

    def test_log_event_warning_level(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.warn")
        with caplog.at_level(logging.WARNING):
            log_event(test_logger, "warning", "warn_event", detail="x")
        assert caplog.records[0].levelname == "WARNING"

    def test_unknown_level_falls_back_to_info(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.fallback")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "loud", "odd_level")
        assert caplog.records[0].levelname == "INFO"


# ---------------------------------------------------------------------------
# Analytics events
# ---------------------------------------------------------------------------


class TestAnalyticsEvents:
    def test_team_load_computed(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            calculate_team_load([ActivityInput(user_id=UserId("a"), chat_messages=1)])
        assert EVENT_TEAM_LOAD_COMPUTED in caplog.text
        assert "members=1" in caplog.text

    def test_empty_batch_logs_nothing(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            calculate_team_load([])
        assert EVENT_TEAM_LOAD_COMPUTED not in caplog.text

    def test_invalid_input_event(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING), pytest.raises(ValueError):
            calculate_team_load([ActivityInput(user_id=UserId("a"), chat_messages=-2)])
        assert EVENT_INVALID_ACTIVITY_INPUT in caplog.text

    def test_constellation_computed_without_content(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        now = datetime(2026, 10, 19, tzinfo=UTC)
        with caplog.at_level(logging.INFO):
            compute_star_placements(
                "me",
                [UserSnapshot("me", "Me"), UserSnapshot("a", "Secret Name")],
                [MessageSnapshot("a", "dm", now)],
                now=now,
                random_source=lambda: 0.5,
            )
        assert EVENT_CONSTELLATION_COMPUTED in caplog.text
        assert "stars=1" in caplog.text
        assert "Secret Name" not in caplog.text


# ---------------------------------------------------------------------------
# setup_logging
# ---------------------------------------------------------------------------


class TestSetupLogging:
    def test_idempotent(self) -> None:
        setup_logging()
        setup_logging()
        root = logging.getLogger()
        ours = [h for h in root.handlers if getattr(h, "_workspace_insights", False)]
        assert len(ours) == 1
