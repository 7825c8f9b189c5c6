from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from domain import DeployOutcome
from services import DeployService


def build_health_router(deploy_service: DeployService) -> APIRouter:
    router = APIRouter()

    @router.get("/healthz")
    async def healthcheck() -> Dict[str, Any]:
        last = deploy_service.last_result
        current_step = deploy_service.current_step
        degraded = last is not None and last.outcome == DeployOutcome.FAILED

        return {
            "status": "degraded" if degraded else "healthy",
            "deploy_state": deploy_service.state.value,
            "current_step": current_step.value if current_step else None,
            "last_deploy": last.to_summary() if last else None,
        }

    return router
