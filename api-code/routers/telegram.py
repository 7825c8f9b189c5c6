from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import PlainTextResponse

from routers.payload import read_json_body
from services import ApprovalGate, DeployService
from settings import Settings


def build_telegram_router(
    settings: Settings,
    approval_gate: ApprovalGate,
    deploy_service: DeployService,
) -> APIRouter:
    router = APIRouter(prefix=settings.webhook_prefix, tags=["webhooks"])

    @router.post(
        "/telegram",
        response_class=PlainTextResponse,
        summary="Receive Telegram updates; approved deploy buttons start a deploy.",
    )
    async def on_telegram_update(
        request: Request,
        background_tasks: BackgroundTasks,
    ) -> PlainTextResponse:
        payload = await read_json_body(request)
        tag = await approval_gate.process(payload)
        if tag is not None:
            background_tasks.add_task(deploy_service.run_deploy, tag)
        return PlainTextResponse("OK")

    return router
