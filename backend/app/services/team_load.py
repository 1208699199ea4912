"""Deterministic team workload scoring.

Each person's four activity counts are normalized against the current
batch and combined with fixed weights into a 0–100 load score.  The score
is relative: it answers "who is busiest among this cohort right now", not
an absolute measure of hours worked.

Formula
-------
For each category *c* with weight *w* and the person's count *v*:

    ratio(v) = v / max(batch_max(c), 1)          # normalization="batch_max"
    ratio(v) = v / max(batch_total(c), 1)        # normalization="batch_share"
    component(c) = w * ratio(v)

Final score = round(sum(component(c) for all c) * 100, 2), clamped to [0, 100].
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal, NewType

from backend.app.core.errors import InvalidInputError, UnknownUserError
from backend.app.core.logging import (
    EVENT_INVALID_ACTIVITY_INPUT,
    EVENT_TEAM_LOAD_COMPUTED,
    log_event,
)

logger = logging.getLogger(__name__)

UserId = NewType("UserId", str)

Normalization = Literal["batch_max", "batch_share"]

# ---------------------------------------------------------------------------
# Constants – single source of truth for categories and weights
# ---------------------------------------------------------------------------

CATEGORIES: tuple[str, ...] = (
    "chat_messages",
    "file_uploads",
    "assigned_todos",
    "calendar_events",
)

DEFAULT_OVERLOAD_THRESHOLD = 85.0


@dataclass(frozen=True)
class LoadWeights:
    """Per-category weights; must sum to 1.0."""

    chat: float = 0.25
    files: float = 0.20
    todos: float = 0.40
    calendar: float = 0.15

    def __post_init__(self) -> None:
        values = (self.chat, self.files, self.todos, self.calendar)
        if any(not math.isfinite(v) or v < 0 for v in values):
            raise InvalidInputError(f"Weights must be finite and >= 0: {values}")
        if not math.isclose(sum(values), 1.0, abs_tol=1e-9):
            raise InvalidInputError(f"Weights must sum to 1.0, got {sum(values)}")

    def by_category(self) -> dict[str, float]:
        return {
            "chat_messages": self.chat,
            "file_uploads": self.files,
            "assigned_todos": self.todos,
            "calendar_events": self.calendar,
        }


DEFAULT_WEIGHTS = LoadWeights()


# ---------------------------------------------------------------------------
# Input / result dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActivityInput:
    """Activity tallies for one person over the cohort's project set."""

    user_id: UserId
    chat_messages: int = 0
    file_uploads: int = 0
    assigned_todos: int = 0
    calendar_events: int = 0


@dataclass(frozen=True)
class LoadResult:
    """Load score with per-category breakdown for explainability.

    Attributes:
        load_score: Relative workload in [0, 100], two decimals.
        breakdown: (category, weighted contribution) pairs in category
            order; contributions lie in [0, weight]. Stored as a tuple so
            results stay hashable; use ``dict(result.breakdown)`` for lookups.
    """

    user_id: UserId
    chat_messages: int
    file_uploads: int
    assigned_todos: int
    calendar_events: int
    load_score: float
    breakdown: tuple[tuple[str, float], ...]


@dataclass(frozen=True)
class TeamLoadEntry:
    """A load result ranked for display against the busiest member."""

    result: LoadResult
    relative_percent: float
    is_overloaded: bool


# ---------------------------------------------------------------------------
# Boundary validation
# ---------------------------------------------------------------------------

def _check_count(user_id: str, category: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(
            f"{category} for user {user_id} must be a number, got {type(value).__name__}"
        )
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidInputError(
                f"{category} for user {user_id} must be a finite whole number, got {value}"
            )
        value = int(value)
    if value < 0:
        raise InvalidInputError(
            f"{category} for user {user_id} must be >= 0, got {value}"
        )
    return value


def validate_inputs(
    inputs: Iterable[ActivityInput],
    *,
    member_ids: Iterable[str] | None = None,
) -> list[ActivityInput]:
    """Return *inputs* with counts checked and coerced to ``int``.

    Raises:
        InvalidInputError: On a negative, non-finite or non-integral count,
            or a duplicate ``user_id``.
        UnknownUserError: If *member_ids* is given and an input's user is
            not in it.
    """
    allowed = set(member_ids) if member_ids is not None else None
    seen: set[str] = set()
    checked: list[ActivityInput] = []

    try:
        for item in inputs:
            if not item.user_id:
                raise InvalidInputError("user_id must be a non-empty string")
            if item.user_id in seen:
                raise InvalidInputError(f"Duplicate user_id in batch: {item.user_id}")
            if allowed is not None and item.user_id not in allowed:
                raise UnknownUserError(f"User is not a cohort member: {item.user_id}")
            seen.add(item.user_id)
            counts = {
                c: _check_count(item.user_id, c, getattr(item, c)) for c in CATEGORIES
            }
            checked.append(ActivityInput(user_id=UserId(item.user_id), **counts))
    except InvalidInputError as exc:
        log_event(
            logger, "warning", EVENT_INVALID_ACTIVITY_INPUT,
            error_type=type(exc).__name__,
            detail=str(exc),
        )
        raise

    return checked


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def _denominators(
    inputs: Sequence[ActivityInput], normalization: Normalization,
) -> dict[str, int]:
    result: dict[str, int] = {}
    for category in CATEGORIES:
        values = [getattr(i, category) for i in inputs]
        if normalization == "batch_share":
            denom = sum(values)
        else:
            denom = max(values, default=0)
        # A category with no activity anywhere contributes 0 for everyone.
        result[category] = denom or 1
    return result


def calculate_team_load(
    inputs: Iterable[ActivityInput],
    *,
    weights: LoadWeights = DEFAULT_WEIGHTS,
    normalization: Normalization = "batch_max",
    member_ids: Iterable[str] | None = None,
) -> list[LoadResult]:
    """Score every person in *inputs* relative to the rest of the batch.

    Output preserves input order and cardinality; an empty batch yields an
    empty list.  Pure and deterministic: no I/O and no randomness.
    """
    if normalization not in ("batch_max", "batch_share"):
        raise InvalidInputError(f"Unknown normalization: {normalization}")

    batch = validate_inputs(inputs, member_ids=member_ids)
    if not batch:
        return []

    denominators = _denominators(batch, normalization)
    category_weights = weights.by_category()
    results: list[LoadResult] = []

    for item in batch:
        breakdown: list[tuple[str, float]] = []
        weighted_sum = 0.0
        for category, weight in category_weights.items():
            contribution = weight * (getattr(item, category) / denominators[category])
            breakdown.append((category, contribution))
            weighted_sum += contribution

        score = round(min(max(weighted_sum * 100, 0.0), 100.0), 2)
        results.append(
            LoadResult(
                user_id=item.user_id,
                chat_messages=item.chat_messages,
                file_uploads=item.file_uploads,
                assigned_todos=item.assigned_todos,
                calendar_events=item.calendar_events,
                load_score=score,
                breakdown=tuple(breakdown),
            )
        )

    log_event(
        logger, "info", EVENT_TEAM_LOAD_COMPUTED,
        members=len(results),
        normalization=normalization,
        top_score=max(r.load_score for r in results),
    )
    return results


def summarize_team_load(
    results: Iterable[LoadResult],
    *,
    overload_threshold: float = DEFAULT_OVERLOAD_THRESHOLD,
) -> list[TeamLoadEntry]:
    """Rank *results* busiest-first and flag members near the top.

    ``relative_percent`` rescales each score against the highest score in
    the batch (floored at 1) so the busiest member reads 100%.  Members
    strictly above *overload_threshold* percent are flagged.  Ties keep
    their input order.
    """
    ranked = sorted(results, key=lambda r: r.load_score, reverse=True)
    if not ranked:
        return []
    max_score = max(ranked[0].load_score, 1.0)

    entries: list[TeamLoadEntry] = []
    for result in ranked:
        relative = round(result.load_score / max_score * 100, 2)
        entries.append(
            TeamLoadEntry(
                result=result,
                relative_percent=relative,
                is_overloaded=relative > overload_threshold,
            )
        )
    return entries
