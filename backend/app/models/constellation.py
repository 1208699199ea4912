"""Pydantic models for constellation requests and responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from backend.app.services.constellation import (
    MessageSnapshot,
    StarPlacement,
    UserSnapshot,
)


class ConstellationUser(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    name: str = ""

    def to_snapshot(self) -> UserSnapshot:
        return UserSnapshot(user_id=self.id, name=self.name)


class ConstellationMessage(BaseModel):
    """A chat message; ``created_at`` is kept raw so bad timestamps degrade."""

    user_id: str
    room_type: str | None = None
    created_at: str | None = None
    direct_chat_user_id: str | None = None

    def to_snapshot(self) -> MessageSnapshot:
        return MessageSnapshot(
            author_id=self.user_id,
            room_type=self.room_type,
            created_at=self.created_at,
            recipient_id=self.direct_chat_user_id,
        )


class ConstellationRequest(BaseModel):
    self_id: str = Field(..., min_length=1)
    users: list[ConstellationUser] = Field(default_factory=list)
    messages: list[ConstellationMessage] = Field(default_factory=list)
    now: datetime | None = None
    seed: int | None = None


class StarModel(BaseModel):
    user_id: str
    name: str
    recent_count: int
    total_count: int
    angle: float
    distance: float
    size: float
    x: float | None = None
    y: float | None = None

    @classmethod
    def from_star(
        cls, star: StarPlacement, position: tuple[float, float] | None = None,
    ) -> StarModel:
        x, y = position if position is not None else (None, None)
        return cls(
            user_id=star.user_id,
            name=star.name,
            recent_count=star.recent_count,
            total_count=star.total_count,
            angle=star.angle,
            distance=star.distance,
            size=star.size,
            x=x,
            y=y,
        )


class ConstellationResponse(BaseModel):
    self_id: str
    computed_at: datetime
    stars: list[StarModel]
