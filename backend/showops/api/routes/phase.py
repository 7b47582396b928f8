"""Project phase API routes."""

import uuid

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from showops.api.deps import get_audit_recorder, get_phase_engine
from showops.domain.phases import TransitionOutcome, TransitionTrigger
from showops.schemas.phase import (
    ActionItemResponse,
    ActionItemsResponse,
    ConfigurationResponse,
    ConfigurationUpdateRequest,
    EffectiveConfigurationResponse,
    EvaluationResponse,
    HistoryResponse,
    PhaseResponse,
    StoredConfiguration,
    TransitionRecordResponse,
    TransitionRequest,
    TransitionResponse,
)
from showops.services.audit_recorder import MAX_PAGE_SIZE, AuditRecorder
from showops.services.phase_engine import PhaseEngine

router = APIRouter()


@router.get("/{project_id}/phase", response_model=PhaseResponse)
async def get_phase(project_id: uuid.UUID, engine: PhaseEngine = Depends(get_phase_engine)):
    """Current phase of a project. 404 if the project does not exist."""
    project = await engine.get_project(project_id)
    return PhaseResponse.from_domain(project)


@router.get("/{project_id}/phase/evaluate", response_model=EvaluationResponse)
async def evaluate_phase(project_id: uuid.UUID, engine: PhaseEngine = Depends(get_phase_engine)):
    """Whether the project may move to its next phase, and what blocks it. No side effects on the phase."""
    evaluation = await engine.evaluate_transition(project_id, TransitionTrigger.MANUAL)
    return EvaluationResponse.from_domain(evaluation)


@router.post("/{project_id}/phase/transition", response_model=TransitionResponse)
async def transition_phase(
    project_id: uuid.UUID,
    request: TransitionRequest,
    engine: PhaseEngine = Depends(get_phase_engine),
):
    """Attempt a single forward step.

    Returns:
        200 with status "applied" or "blocked" (blockers listed);
        503 with status "error" when the phase could not be saved
    """
    outcome = await engine.transition(
        project_id,
        TransitionTrigger(request.requested_by),
        actor=request.actor,
        target_phase=request.target_phase,
    )
    response = TransitionResponse.from_domain(outcome)
    if outcome.status == TransitionOutcome.ERROR:
        return JSONResponse(status_code=503, content=response.model_dump(mode="json"))
    return response


@router.get("/{project_id}/phase/action-items", response_model=ActionItemsResponse)
async def get_action_items(project_id: uuid.UUID, engine: PhaseEngine = Depends(get_phase_engine)):
    phase = await engine.get_current_phase(project_id)
    items = await engine.get_phase_action_items(project_id)
    return ActionItemsResponse(
        project_id=project_id,
        current_phase=phase.value,
        items=[ActionItemResponse.from_domain(item) for item in items],
    )


@router.get("/{project_id}/phase/history", response_model=HistoryResponse)
async def get_history(
    project_id: uuid.UUID,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    engine: PhaseEngine = Depends(get_phase_engine),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Transition attempts, newest first."""
    await engine.get_current_phase(project_id)
    result = await audit.page(project_id, page=page, page_size=page_size)
    return HistoryResponse(
        project_id=project_id,
        records=[TransitionRecordResponse.from_domain(r) for r in result.records],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        has_more=result.has_more,
    )


@router.get("/{project_id}/phase/configuration", response_model=ConfigurationResponse)
async def get_configuration(project_id: uuid.UUID, engine: PhaseEngine = Depends(get_phase_engine)):
    stored, effective = await engine.get_configuration(project_id)
    return ConfigurationResponse(
        project_id=project_id,
        overrides=StoredConfiguration.from_domain(stored) if stored else None,
        effective=EffectiveConfigurationResponse.from_domain(effective),
    )


@router.put("/{project_id}/phase/configuration", response_model=ConfigurationResponse)
async def update_configuration(
    project_id: uuid.UUID,
    request: ConfigurationUpdateRequest,
    engine: PhaseEngine = Depends(get_phase_engine),
):
    """Partial update of the project's overrides. 422 with per-field errors when invalid."""
    await engine.set_configuration(project_id, request.overrides(), updated_by=request.updated_by)
    stored, effective = await engine.get_configuration(project_id)
    return ConfigurationResponse(
        project_id=project_id,
        overrides=StoredConfiguration.from_domain(stored) if stored else None,
        effective=EffectiveConfigurationResponse.from_domain(effective),
    )
