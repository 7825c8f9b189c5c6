from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field


DOCKER_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"


class Settings(BaseModel):
    """Runtime configuration resolved from environment variables."""

    registry_user: str = Field(
        default="", alias="REGISTRY_USER", description="Username for pulling from the registry."
    )
    registry_pass: str = Field(
        default="", alias="REGISTRY_PASS", description="Password for pulling from the registry."
    )
    registry_host: str = Field(
        default="localhost:5000",
        alias="REGISTRY_HOST",
        description="Registry host (and optional port) images are pulled from.",
    )
    manifest_media_type: str = Field(
        default=DOCKER_MANIFEST_V2,
        alias="REGISTRY_MANIFEST_MEDIA_TYPE",
        description="Only push events for manifests of this media type are announced.",
    )
    telegram_token: str = Field(
        default="", alias="TELEGRAM_TOKEN", description="Telegram bot token."
    )
    telegram_chat_id: str = Field(
        default="",
        alias="TELEGRAM_CHAT_ID",
        description="Chat that receives push announcements and deploy status.",
    )
    telegram_api_base: str = Field(
        default="https://api.telegram.org",
        alias="TELEGRAM_API_BASE",
        description="Base URL of the Telegram Bot API.",
    )
    approver_username: str = Field(
        default="",
        alias="APPROVER_USERNAME",
        description="The only Telegram username allowed to approve deploys.",
    )
    app_name: str = Field(
        default="myapp",
        alias="APP_NAME",
        description="Registry repository name, also used as the managed container name.",
    )
    docker_network: str = Field(
        default="net0",
        alias="DOCKER_NETWORK",
        description="Network the managed container is attached to.",
    )
    docker_socket: str = Field(
        default="/run/docker.sock",
        alias="DOCKER_SOCKET",
        description="Unix socket of the Docker Engine API.",
    )
    docker_api_version: str = Field(
        default="v1.38",
        alias="DOCKER_API_VERSION",
        description="Engine API version used as path prefix.",
    )
    webhook_secret: str = Field(
        default="",
        alias="WEBHOOK_SECRET",
        description="Secret path segment in front of both webhook endpoints.",
    )
    bind_host: str = Field(default="0.0.0.0", alias="BIND_HOST")
    bind_port: int = Field(default=8080, alias="BIND_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {"populate_by_name": True}

    @property
    def webhook_prefix(self) -> str:
        secret = self.webhook_secret.strip().strip("/")
        return f"/{secret}" if secret else ""

    def image_reference(self, tag: str) -> str:
        return f"{self.registry_host}/{self.app_name}:{tag}"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls.model_validate(os.environ)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance built from environment variables."""
    return Settings.from_env()
