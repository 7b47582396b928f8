from fastapi import APIRouter

from showops.api.routes import health, phase, phase_transitions, readiness

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(phase.router, prefix="/projects", tags=["phase"])
api_router.include_router(readiness.router, prefix="/projects", tags=["readiness"])
api_router.include_router(phase_transitions.router, prefix="/phase-transitions", tags=["phase-transitions"])
