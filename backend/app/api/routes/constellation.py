"""Constellation endpoints — where each contact sits around the current user."""

import logging
import random
import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.errors import (
    InvalidInputError,
    normalize_db_error,
    normalize_validation_error,
)
from backend.app.core.settings import settings
from backend.app.db.session import get_db
from backend.app.models.constellation import (
    ConstellationRequest,
    ConstellationResponse,
    StarModel,
)
from backend.app.services import workspace_repository as repo
from backend.app.services.constellation import (
    ConstellationConfig,
    MessageSnapshot,
    UserSnapshot,
    compute_star_placements,
    locate_star,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _config() -> ConstellationConfig:
    return ConstellationConfig.for_variant(
        settings.constellation_size_variant,
        recent_window_days=settings.recent_window_days,
        jitter_radians=settings.constellation_jitter_radians,
        dm_filter=settings.dm_filter,
    )


def _random_source(seed: int | None):
    if seed is None:
        return random.random
    return random.Random(seed).random


@router.post("/api/v1/constellation", response_model=ConstellationResponse)
def place_stars(body: ConstellationRequest) -> ConstellationResponse:
    """Place caller-supplied users around ``self_id``."""
    now = body.now or datetime.now(UTC)
    try:
        stars = compute_star_placements(
            body.self_id,
            [u.to_snapshot() for u in body.users],
            [m.to_snapshot() for m in body.messages],
            now=now,
            random_source=_random_source(body.seed),
            config=_config(),
        )
    except InvalidInputError as exc:
        error = normalize_validation_error([str(exc)])
        raise HTTPException(status_code=error.http_status, detail=error.user_message)
    return ConstellationResponse(
        self_id=body.self_id,
        computed_at=now,
        stars=[StarModel.from_star(s) for s in stars],
    )


@router.get(
    "/api/v1/users/{user_id}/constellation",
    response_model=ConstellationResponse,
)
def user_constellation(
    user_id: str,
    seed: int | None = None,
    width: float | None = Query(default=None, gt=0),
    height: float | None = Query(default=None, gt=0),
    db: Session = Depends(get_db),
) -> ConstellationResponse:
    """Place every stored user around *user_id* using stored direct messages.

    When both ``width`` and ``height`` are given each star also carries its
    canvas position.
    """
    correlation_id = str(uuid.uuid4())
    try:
        repo.get_user(db, user_id)
        users = [UserSnapshot(user_id=u.id, name=u.name) for u in repo.list_users(db)]
        messages = [
            MessageSnapshot(
                author_id=m.user_id,
                room_type=m.room_type,
                created_at=m.created_at,
                recipient_id=m.direct_chat_user_id,
            )
            for m in repo.list_messages(db, room_type="dm")
        ]
    except repo.RecordNotFoundError:
        raise HTTPException(status_code=404, detail=f"User not found: {user_id}")
    except (SQLAlchemyError, repo.DatabaseLockedError) as exc:
        error = normalize_db_error(
            exc, operation="load_constellation", correlation_id=correlation_id,
        )
        raise HTTPException(status_code=error.http_status, detail=error.user_message)

    now = datetime.now(UTC)
    stars = compute_star_placements(
        user_id,
        users,
        messages,
        now=now,
        random_source=_random_source(seed),
        config=_config(),
    )

    with_layout = width is not None and height is not None
    return ConstellationResponse(
        self_id=user_id,
        computed_at=now,
        stars=[
            StarModel.from_star(
                s,
                locate_star(s, width=width, height=height) if with_layout else None,
            )
            for s in stars
        ],
    )
