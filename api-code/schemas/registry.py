from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, Field

from models import PushEvent


class RegistryTarget(BaseModel):
    media_type: str = Field(..., alias="mediaType", description="Manifest media type.")
    repository: str = Field(..., description="Repository the manifest was pushed to.")
    tag: str = Field(..., description="Tag attached to the manifest.")

    model_config = {"populate_by_name": True}


class RegistryEvent(BaseModel):
    """One item of a registry notification envelope (unknown keys ignored)."""

    action: str = Field(..., description="push, pull, delete, ...")
    target: RegistryTarget

    def to_push_event(self) -> PushEvent:
        return PushEvent(
            action=self.action,
            media_type=self.target.media_type,
            repository=self.target.repository,
            tag=self.target.tag,
        )


class RegistryNotification(BaseModel):
    events: List[Any] = Field(
        default_factory=list,
        description="Raw events; each one is validated on its own.",
    )
