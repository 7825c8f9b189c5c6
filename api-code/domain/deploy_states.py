from __future__ import annotations

from enum import Enum


class DeployState(str, Enum):
    IDLE = "idle"
    DEPLOYING = "deploying"


class DeployStep(str, Enum):
    NOTIFY_START = "notify_start"
    PULL_IMAGE = "pull_image"
    REMOVE_CONTAINER = "remove_container"
    CREATE_CONTAINER = "create_container"
    START_CONTAINER = "start_container"
    NOTIFY_DONE = "notify_done"

    @property
    def label(self) -> str:
        return DEPLOY_STEP_LABELS[self]


class DeployOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


DEPLOY_STEP_SEQUENCE: tuple[DeployStep, ...] = (
    DeployStep.NOTIFY_START,
    DeployStep.PULL_IMAGE,
    DeployStep.REMOVE_CONTAINER,
    DeployStep.CREATE_CONTAINER,
    DeployStep.START_CONTAINER,
    DeployStep.NOTIFY_DONE,
)

DEPLOY_STEP_LABELS: dict[DeployStep, str] = {
    DeployStep.NOTIFY_START: "Announce deploy start",
    DeployStep.PULL_IMAGE: "Pull image from registry",
    DeployStep.REMOVE_CONTAINER: "Remove existing container",
    DeployStep.CREATE_CONTAINER: "Create container",
    DeployStep.START_CONTAINER: "Start container",
    DeployStep.NOTIFY_DONE: "Announce deploy completion",
}


class DeployGuard:
    """Single-flight state cell: at most one deploy holds it at a time.

    ``try_acquire`` never awaits, so on one event loop the check and the
    transition to DEPLOYING cannot interleave with another task. Requests
    that lose are meant to be dropped, not queued.
    """

    def __init__(self) -> None:
        self._state = DeployState.IDLE

    @property
    def state(self) -> DeployState:
        return self._state

    def try_acquire(self) -> bool:
        if self._state is DeployState.DEPLOYING:
            return False
        self._state = DeployState.DEPLOYING
        return True

    def release(self) -> None:
        self._state = DeployState.IDLE

