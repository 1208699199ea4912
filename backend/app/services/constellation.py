"""Relationship proximity and sizing for the constellation map.

Every other user becomes a "star" around the current user.  Stars that
exchanged more direct messages in the recent window sit closer to the
center; stars with more direct messages overall are drawn larger.  Angles
are spread evenly by recent activity rank with a small random jitter.

``now`` and ``random_source`` are explicit parameters so that placements
are reproducible under test.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

from backend.app.core.errors import InvalidInputError, UnknownUserError
from backend.app.core.logging import (
    EVENT_CONSTELLATION_COMPUTED,
    EVENT_INVALID_ACTIVITY_INPUT,
    log_event,
)

logger = logging.getLogger(__name__)

DM_ROOM_TYPE = "dm"

# Two observed size ranges for the map, keyed by variant name.
SIZE_VARIANTS: dict[str, tuple[float, float]] = {
    "compact": (2.5, 7.5),
    "wide": (3.0, 9.0),
}

# Canvas layout
ORBIT_SPEED = 0.1
RADIUS_FILL = 0.85
TAP_PADDING = 12.0
MIN_TAP_RADIUS = 24.0

DmFilter = Literal["author", "conversation"]


@dataclass(frozen=True)
class ConstellationConfig:
    recent_window_days: int = 7
    distance_min: float = 0.25
    distance_span: float = 0.65
    size_min: float = 2.5
    size_max: float = 7.5
    jitter_radians: float = 0.15
    dm_filter: DmFilter = "author"

    def __post_init__(self) -> None:
        if self.recent_window_days < 1:
            raise InvalidInputError("recent_window_days must be >= 1")
        if self.size_max < self.size_min:
            raise InvalidInputError(
                f"size_max ({self.size_max}) must be >= size_min ({self.size_min})"
            )
        if self.jitter_radians < 0:
            raise InvalidInputError("jitter_radians must be >= 0")
        if self.dm_filter not in ("author", "conversation"):
            raise InvalidInputError(f"Unknown dm_filter: {self.dm_filter}")

    @classmethod
    def for_variant(cls, variant: str, **overrides: object) -> ConstellationConfig:
        """Build a config using one of :data:`SIZE_VARIANTS`."""
        try:
            size_min, size_max = SIZE_VARIANTS[variant]
        except KeyError:
            raise InvalidInputError(f"Unknown size variant: {variant}") from None
        return cls(size_min=size_min, size_max=size_max, **overrides)  # type: ignore[arg-type]


@dataclass(frozen=True)
class UserSnapshot:
    user_id: str
    name: str


@dataclass(frozen=True)
class MessageSnapshot:
    """The fields of a chat message the proximity model reads.

    ``created_at`` may be an ISO-8601 string straight from the store;
    anything unparseable counts toward the total but never as recent.
    """

    author_id: str
    room_type: str | None
    created_at: datetime | str | None
    recipient_id: str | None = None


@dataclass(frozen=True)
class StarPlacement:
    user_id: str
    name: str
    recent_count: int
    total_count: int
    angle: float
    distance: float
    size: float


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def parse_timestamp(value: datetime | str | None) -> datetime | None:
    """Return *value* as an aware datetime, or ``None`` if it can't be read."""
    if isinstance(value, datetime):
        return _as_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def _check_users(self_id: str, users: Sequence[UserSnapshot]) -> None:
    seen: set[str] = set()
    try:
        for user in users:
            if user.user_id in seen:
                raise InvalidInputError(f"Duplicate user_id in users: {user.user_id}")
            seen.add(user.user_id)
        if seen and self_id not in seen:
            raise UnknownUserError(f"self_id is not among users: {self_id}")
    except InvalidInputError as exc:
        log_event(
            logger, "warning", EVENT_INVALID_ACTIVITY_INPUT,
            error_type=type(exc).__name__,
            detail=str(exc),
        )
        raise


def _involves(
    message: MessageSnapshot, self_id: str, other_id: str, dm_filter: DmFilter,
) -> bool:
    if message.room_type != DM_ROOM_TYPE:
        return False
    if message.author_id not in (self_id, other_id):
        return False
    if dm_filter == "conversation":
        return {message.author_id, message.recipient_id} == {self_id, other_id}
    return True


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------

def compute_star_placements(
    self_id: str,
    users: Iterable[UserSnapshot],
    messages: Sequence[MessageSnapshot],
    *,
    now: datetime,
    random_source: Callable[[], float],
    config: ConstellationConfig | None = None,
) -> list[StarPlacement]:
    """Place every user other than *self_id* on the constellation map.

    Returns stars ordered by recent message count, most active first.
    ``random_source`` must return floats in ``[0, 1)``; it is called once
    per star for the angular jitter.

    Raises:
        InvalidInputError: If a user id appears more than once.
        UnknownUserError: If *users* is non-empty and does not contain
            *self_id*.
    """
    users = list(users)
    _check_users(self_id, users)
    config = config or ConstellationConfig()
    boundary = _as_utc(now) - timedelta(days=config.recent_window_days)

    tallies: list[tuple[UserSnapshot, int, int]] = []
    for user in users:
        if user.user_id == self_id:
            continue
        selected = [
            m for m in messages
            if _involves(m, self_id, user.user_id, config.dm_filter)
        ]
        recent = 0
        for m in selected:
            created = parse_timestamp(m.created_at)
            if created is not None and created >= boundary:
                recent += 1
        tallies.append((user, recent, len(selected)))

    # sorted() is stable, so ties keep input order.
    tallies.sort(key=lambda t: t[1], reverse=True)

    max_recent = max((t[1] for t in tallies), default=0) or 1
    max_total = max((t[2] for t in tallies), default=0) or 1
    size_span = config.size_max - config.size_min
    count = len(tallies)

    stars: list[StarPlacement] = []
    for i, (user, recent, total) in enumerate(tallies):
        base_angle = (i / count) * 2 * math.pi
        jitter = (random_source() - 0.5) * 2 * config.jitter_radians
        proximity = recent / max_recent
        stars.append(
            StarPlacement(
                user_id=user.user_id,
                name=user.name,
                recent_count=recent,
                total_count=total,
                angle=base_angle + jitter,
                distance=config.distance_min + (1 - proximity) * config.distance_span,
                size=config.size_min + (total / max_total) * size_span,
            )
        )

    log_event(
        logger, "info", EVENT_CONSTELLATION_COMPUTED,
        self_id=self_id,
        stars=len(stars),
        messages_scanned=len(messages),
        dm_filter=config.dm_filter,
    )
    return stars


# ---------------------------------------------------------------------------
# Canvas layout
# ---------------------------------------------------------------------------

def locate_star(
    star: StarPlacement,
    *,
    width: float,
    height: float,
    orbit_phase: float = 0.0,
) -> tuple[float, float]:
    """Return the pixel position of *star* on a ``width`` x ``height`` canvas.

    The map slowly rotates; *orbit_phase* is the animation clock and is
    scaled by :data:`ORBIT_SPEED`.
    """
    cx = width / 2
    cy = height / 2
    max_radius = min(cx, cy) * RADIUS_FILL
    theta = star.angle + orbit_phase * ORBIT_SPEED
    return (
        cx + math.cos(theta) * star.distance * max_radius,
        cy + math.sin(theta) * star.distance * max_radius,
    )


def find_star_at(
    stars: Iterable[StarPlacement],
    x: float,
    y: float,
    *,
    width: float,
    height: float,
) -> StarPlacement | None:
    """Return the first star within tapping range of ``(x, y)``, if any."""
    for star in stars:
        sx, sy = locate_star(star, width=width, height=height)
        if math.hypot(x - sx, y - sy) < max(star.size + TAP_PADDING, MIN_TAP_RADIUS):
            return star
    return None
