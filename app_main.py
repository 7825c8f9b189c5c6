from __future__ import annotations

import logging
import sys
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException


PROJECT_ROOT = Path(__file__).resolve().parent
API_CODE_PATH = PROJECT_ROOT / "api-code"
if str(API_CODE_PATH) not in sys.path:
    sys.path.insert(0, str(API_CODE_PATH))

from env_loader import load_local_env  # noqa: E402
from routers import (  # noqa: E402
    build_health_router,
    build_registry_router,
    build_telegram_router,
)
from services import (  # noqa: E402
    ApprovalGate,
    DeployService,
    DockerClient,
    PushAnnouncer,
    TelegramClient,
)
from settings import Settings, get_settings  # noqa: E402


logger = logging.getLogger("deploy-bot")


def build_app(
    settings: Settings,
    docker: DockerClient,
    messenger: TelegramClient,
) -> FastAPI:
    app = FastAPI(
        title="Registry Deploy Bot",
        version="0.1.0",
        description="Approve-to-deploy bot bridging a Docker registry, Telegram and Docker Engine.",
    )

    deploy_service = DeployService(docker, messenger, settings)
    approval_gate = ApprovalGate(messenger, settings.approver_username)
    announcer = PushAnnouncer(messenger)

    app.state.deploy_service = deploy_service

    app.include_router(build_registry_router(settings, announcer))
    app.include_router(build_telegram_router(settings, approval_gate, deploy_service))
    app.include_router(build_health_router(deploy_service))

    @app.exception_handler(StarletteHTTPException)
    async def on_http_error(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 404:
            return PlainTextResponse("404 Not Found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def on_unhandled_error(request: Request, exc: Exception) -> Response:
        logger.error(
            "Handling error on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        # No body; the client only sees the connection go away.
        return Response(status_code=500, headers={"Connection": "close"})

    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info(
            "bot is running (app=%s, webhooks under %s/)",
            settings.app_name,
            settings.webhook_prefix or "",
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await docker.close()
        await messenger.close()

    return app


load_local_env()
settings = get_settings()

logging.basicConfig(level=settings.log_level.upper())

app = build_app(
    settings,
    DockerClient(settings.docker_socket, settings.docker_api_version),
    TelegramClient(
        settings.telegram_token,
        settings.telegram_chat_id,
        api_base=settings.telegram_api_base,
    ),
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.bind_host, port=settings.bind_port)
