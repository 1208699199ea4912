"""Pydantic models for team load requests and responses."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from backend.app.services.team_load import (
    ActivityInput,
    LoadResult,
    TeamLoadEntry,
    UserId,
)


class ActivityInputModel(BaseModel):
    """One person's activity tallies as supplied by an API client."""

    user_id: str = Field(..., min_length=1, max_length=64)
    chat_messages: int = Field(default=0, ge=0)
    file_uploads: int = Field(default=0, ge=0)
    assigned_todos: int = Field(default=0, ge=0)
    calendar_events: int = Field(default=0, ge=0)

    def to_input(self) -> ActivityInput:
        return ActivityInput(
            user_id=UserId(self.user_id),
            chat_messages=self.chat_messages,
            file_uploads=self.file_uploads,
            assigned_todos=self.assigned_todos,
            calendar_events=self.calendar_events,
        )


class TeamLoadRequest(BaseModel):
    inputs: list[ActivityInputModel] = Field(default_factory=list)
    normalization: Literal["batch_max", "batch_share"] = "batch_max"
    member_ids: list[str] | None = None


class LoadResultModel(BaseModel):
    user_id: str
    chat_messages: int
    file_uploads: int
    assigned_todos: int
    calendar_events: int
    load_score: float
    breakdown: dict[str, float]

    @classmethod
    def from_result(cls, result: LoadResult) -> LoadResultModel:
        return cls(
            user_id=result.user_id,
            chat_messages=result.chat_messages,
            file_uploads=result.file_uploads,
            assigned_todos=result.assigned_todos,
            calendar_events=result.calendar_events,
            load_score=result.load_score,
            breakdown=dict(result.breakdown),
        )


class TeamLoadEntryModel(LoadResultModel):
    """A load result ranked against the busiest member of the cohort."""

    name: str | None = None
    relative_percent: float
    is_overloaded: bool

    @classmethod
    def from_entry(
        cls, entry: TeamLoadEntry, *, name: str | None = None,
    ) -> TeamLoadEntryModel:
        base = LoadResultModel.from_result(entry.result).model_dump()
        return cls(
            **base,
            name=name,
            relative_percent=entry.relative_percent,
            is_overloaded=entry.is_overloaded,
        )


class TeamLoadResponse(BaseModel):
    results: list[LoadResultModel]


class TeamLoadSummaryResponse(BaseModel):
    """Busiest-first team load for a cohort; ``members`` is empty when idle."""

    project_id: str | None = None
    file_upload_scope: str
    overload_threshold: float
    members: list[TeamLoadEntryModel]
