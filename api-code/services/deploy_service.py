from __future__ import annotations

import logging
from typing import Optional

from domain import DeployGuard, DeployOutcome, DeployState, DeployStep
from models import DeployResult, utc_now
from services.docker_client import DockerClient
from services.telegram_client import TelegramClient
from settings import Settings


logger = logging.getLogger("deploy-bot.deploy")


class DeployService:
    """Redeploys the managed container, one deploy at a time.

    A request that arrives while another deploy is running is dropped with a
    warning; it is not queued. The steps run strictly in order and the first
    failure ends the attempt without rolling anything back, so a failure
    after the old container was removed leaves no container until the next
    successful deploy.
    """

    def __init__(self, docker: DockerClient, messenger: TelegramClient, settings: Settings):
        self.docker = docker
        self.messenger = messenger
        self.settings = settings
        self.container_name = settings.app_name
        self.network = settings.docker_network
        self._guard = DeployGuard()
        self._current_step: Optional[DeployStep] = None
        self._last_result: Optional[DeployResult] = None
        logger.info(
            "DeployService initialized (container=%s, network=%s, image=%s)",
            self.container_name,
            self.network,
            self.settings.image_reference("<tag>"),
        )

    @property
    def state(self) -> DeployState:
        return self._guard.state

    @property
    def current_step(self) -> Optional[DeployStep]:
        return self._current_step

    @property
    def last_result(self) -> Optional[DeployResult]:
        return self._last_result

    async def run_deploy(self, tag: str) -> DeployResult:
        """Deploy ``tag`` unless a deploy is already running.

        Never raises for a failed step; the outcome is returned and kept as
        ``last_result``.
        """
        logger.info("Deploy requested tag=%s", tag)
        if not self._guard.try_acquire():
            logger.warning("Deploy already in progress, ignoring request tag=%s", tag)
            return DeployResult(tag=tag, outcome=DeployOutcome.SKIPPED, finished_at=utc_now())

        result = DeployResult(tag=tag, outcome=DeployOutcome.FAILED)
        try:
            await self._redeploy(tag)
            result.outcome = DeployOutcome.SUCCEEDED
            logger.info("Deploy succeeded tag=%s", tag)
        except Exception as exc:  # pylint: disable=broad-except
            step = self._current_step
            logger.exception(
                "Deploy failed tag=%s step=%s error=%s",
                tag,
                step.value if step else None,
                exc,
            )
            result.failed_step = step
            result.error = str(exc)
        finally:
            result.finished_at = utc_now()
            self._last_result = result
            self._current_step = None
            self._guard.release()
        return result

    def _enter_step(self, step: DeployStep, tag: str) -> None:
        self._current_step = step
        logger.info("Deploy tag=%s step=%s (%s)", tag, step.value, step.label)

    async def _redeploy(self, tag: str) -> None:
        image = self.settings.image_reference(tag)

        self._enter_step(DeployStep.NOTIFY_START, tag)
        await self.messenger.send_message(f"Deploying: {tag}")

        self._enter_step(DeployStep.PULL_IMAGE, tag)
        await self.docker.pull_image(
            image,
            self.settings.registry_user,
            self.settings.registry_pass,
        )

        self._enter_step(DeployStep.REMOVE_CONTAINER, tag)
        removed = await self.docker.remove_container(self.container_name, force=True)
        if not removed:
            logger.info("No existing container named %s to remove", self.container_name)

        self._enter_step(DeployStep.CREATE_CONTAINER, tag)
        container_id = await self.docker.create_container(self.container_name, image, self.network)

        self._enter_step(DeployStep.START_CONTAINER, tag)
        started = await self.docker.start_container(container_id)
        if not started:
            logger.info("Container %s was already running", self.container_name)

        self._enter_step(DeployStep.NOTIFY_DONE, tag)
        await self.messenger.send_message(f"Deployed: {tag}")
