from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import PlainTextResponse

from routers.payload import read_json_body
from services import PushAnnouncer, filter_push_events
from settings import Settings


logger = logging.getLogger("deploy-bot.registry")


def build_registry_router(settings: Settings, announcer: PushAnnouncer) -> APIRouter:
    router = APIRouter(prefix=settings.webhook_prefix, tags=["webhooks"])

    @router.post(
        "/registry",
        response_class=PlainTextResponse,
        summary="Receive registry notifications and offer a deploy for new pushes.",
    )
    async def on_registry_event(
        request: Request,
        background_tasks: BackgroundTasks,
    ) -> PlainTextResponse:
        payload = await read_json_body(request)
        events = filter_push_events(
            payload,
            repository=settings.app_name,
            media_type=settings.manifest_media_type,
        )
        for event in events:
            logger.info("Got registry event: pushed %s:%s", event.repository, event.tag)
            background_tasks.add_task(announcer.announce, event)
        return PlainTextResponse("OK")

    return router
