"""Team load endpoints — relative workload scores for a cohort."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.errors import (
    InvalidInputError,
    normalize_db_error,
    normalize_validation_error,
)
from backend.app.core.settings import settings
from backend.app.db.session import get_db
from backend.app.models.team_load import (
    LoadResultModel,
    TeamLoadEntryModel,
    TeamLoadRequest,
    TeamLoadResponse,
    TeamLoadSummaryResponse,
)
from backend.app.services import workspace_repository as repo
from backend.app.services.activity_aggregation import load_team_activity
from backend.app.services.team_load import calculate_team_load, summarize_team_load

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/v1/team-load", response_model=TeamLoadResponse)
def score_team_load(body: TeamLoadRequest) -> TeamLoadResponse:
    """Score caller-supplied activity tallies. An empty batch returns no results."""
    try:
        results = calculate_team_load(
            [item.to_input() for item in body.inputs],
            normalization=body.normalization,
            member_ids=body.member_ids,
        )
    except InvalidInputError as exc:
        error = normalize_validation_error([str(exc)])
        raise HTTPException(status_code=error.http_status, detail=error.user_message)
    return TeamLoadResponse(results=[LoadResultModel.from_result(r) for r in results])


def _summarize(db: Session, project_id: str | None) -> TeamLoadSummaryResponse:
    correlation_id = str(uuid.uuid4())
    try:
        members, inputs = load_team_activity(
            db,
            project_id=project_id,
            file_upload_scope=settings.file_upload_scope,
        )
        names = {u.id: u.name for u in repo.list_users(db)}
    except repo.RecordNotFoundError:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
    except (SQLAlchemyError, repo.DatabaseLockedError) as exc:
        error = normalize_db_error(
            exc, operation="load_team_activity", correlation_id=correlation_id,
        )
        raise HTTPException(status_code=error.http_status, detail=error.user_message)

    try:
        results = calculate_team_load(inputs, member_ids=members)
    except InvalidInputError as exc:
        error = normalize_validation_error([str(exc)])
        raise HTTPException(status_code=error.http_status, detail=error.user_message)

    entries = summarize_team_load(
        results, overload_threshold=settings.overload_threshold,
    )
    return TeamLoadSummaryResponse(
        project_id=project_id,
        file_upload_scope=settings.file_upload_scope,
        overload_threshold=settings.overload_threshold,
        members=[
            TeamLoadEntryModel.from_entry(e, name=names.get(e.result.user_id))
            for e in entries
        ],
    )


@router.get("/api/v1/team-load", response_model=TeamLoadSummaryResponse)
def active_team_load(db: Session = Depends(get_db)) -> TeamLoadSummaryResponse:
    """Busiest-first load across every member of an ACTIVE project."""
    return _summarize(db, None)


@router.get(
    "/api/v1/projects/{project_id}/team-load",
    response_model=TeamLoadSummaryResponse,
)
def project_team_load(
    project_id: str, db: Session = Depends(get_db),
) -> TeamLoadSummaryResponse:
    """Busiest-first load for one project's team."""
    return _summarize(db, project_id)
