"""Project readiness API routes."""

import uuid

from fastapi import APIRouter, Depends

from showops.api.deps import get_phase_engine, get_readiness_aggregator
from showops.schemas.readiness import FinalizeRequest, ReadinessResponse, UnfinalizeRequest
from showops.services.phase_engine import PhaseEngine
from showops.services.readiness_aggregator import ReadinessAggregator

router = APIRouter()


@router.get("/{project_id}/readiness", response_model=ReadinessResponse)
async def get_readiness(
    project_id: uuid.UUID,
    engine: PhaseEngine = Depends(get_phase_engine),
    readiness: ReadinessAggregator = Depends(get_readiness_aggregator),
):
    await engine.get_current_phase(project_id)
    return ReadinessResponse.from_domain(await readiness.get_snapshot(project_id))


@router.post("/{project_id}/readiness/recompute", response_model=ReadinessResponse)
async def recompute_readiness(
    project_id: uuid.UUID,
    readiness: ReadinessAggregator = Depends(get_readiness_aggregator),
):
    return ReadinessResponse.from_domain(await readiness.recompute(project_id))


@router.post("/{project_id}/readiness/finalize", response_model=ReadinessResponse)
async def finalize_category(
    project_id: uuid.UUID,
    request: FinalizeRequest,
    readiness: ReadinessAggregator = Depends(get_readiness_aggregator),
):
    """Mark one category (locations, roles, team, talent) finalized. 422 for an unknown category."""
    snapshot = await readiness.finalize(project_id, request.category, finalized_by=request.finalized_by)
    return ReadinessResponse.from_domain(snapshot)


@router.post("/{project_id}/readiness/unfinalize", response_model=ReadinessResponse)
async def unfinalize_category(
    project_id: uuid.UUID,
    request: UnfinalizeRequest,
    readiness: ReadinessAggregator = Depends(get_readiness_aggregator),
):
    return ReadinessResponse.from_domain(await readiness.unfinalize(project_id, request.category))
