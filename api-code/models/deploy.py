from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from domain.deploy_states import DeployOutcome, DeployStep


DEPLOY_COMMAND = "deploy"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PushEvent(BaseModel):
    """A registry notification reduced to the fields the deploy flow consumes."""

    action: str = Field(..., description="Registry action, e.g. push or pull.")
    media_type: str = Field(..., description="Manifest media type of the pushed target.")
    repository: str = Field(..., description="Repository name inside the registry.")
    tag: str = Field(..., description="Tag that was pushed.")

    def matches(self, *, repository: str, media_type: str) -> bool:
        return (
            self.action == "push"
            and self.media_type == media_type
            and self.repository == repository
        )


class DeployCommand(BaseModel):
    """Command carried verbatim through the approval button's callback data.

    The empty command (``DeployCommand()``) stands in for anything that
    could not be decoded.
    """

    command: Optional[str] = None
    tag: Optional[str] = None

    @classmethod
    def for_tag(cls, tag: str) -> "DeployCommand":
        return cls(command=DEPLOY_COMMAND, tag=tag)

    @property
    def is_deploy(self) -> bool:
        return self.command == DEPLOY_COMMAND and self.tag is not None

    def encode(self) -> str:
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def decode(cls, payload: Optional[str]) -> "DeployCommand":
        if payload is None:
            return cls()
        try:
            return cls.model_validate_json(payload)
        except ValidationError:
            return cls()


class DeployResult(BaseModel):
    tag: str = Field(..., description="Image tag requested for deployment.")
    outcome: DeployOutcome = Field(..., description="How the attempt ended.")
    failed_step: Optional[DeployStep] = Field(
        default=None, description="Step that raised when outcome == failed."
    )
    error: Optional[str] = Field(default=None, description="Error message on failure.")
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: Optional[datetime] = Field(default=None)

    def to_summary(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
