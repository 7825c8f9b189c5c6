from __future__ import annotations

import logging
from typing import Any, List, Protocol

from pydantic import ValidationError

from models import DeployCommand, PushEvent
from schemas import RegistryEvent, RegistryNotification


logger = logging.getLogger("deploy-bot.registry")

DEPLOY_BUTTON_LABEL = "Deploy"
# Telegram rejects inline buttons whose callback_data exceeds 64 bytes.
CALLBACK_DATA_MAX_BYTES = 64


class MessageSender(Protocol):
    async def send_message(
        self,
        text: str,
        action_label: str | None = None,
        action_payload: str | None = None,
    ) -> None: ...


def filter_push_events(payload: Any, *, repository: str, media_type: str) -> List[PushEvent]:
    """Return the push events in ``payload`` that concern ``repository``.

    Every event is validated on its own; one malformed event never hides the
    others. Input order is preserved.
    """
    try:
        notification = RegistryNotification.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Ignoring registry notification without an events list: %s", exc)
        return []

    accepted: List[PushEvent] = []
    for index, raw_event in enumerate(notification.events):
        try:
            event = RegistryEvent.model_validate(raw_event).to_push_event()
        except ValidationError:
            logger.debug("Dropping malformed registry event #%d", index)
            continue
        if event.matches(repository=repository, media_type=media_type):
            accepted.append(event)
    return accepted


class PushAnnouncer:
    """Offers the approver a deploy button for every accepted push."""

    def __init__(self, messenger: MessageSender) -> None:
        self.messenger = messenger

    async def announce(self, event: PushEvent) -> None:
        """Send the prompt; runs detached, so failures are only logged."""
        try:
            command = DeployCommand.for_tag(event.tag).encode()
            size = len(command.encode("utf-8"))
            if size > CALLBACK_DATA_MAX_BYTES:
                logger.warning(
                    "Deploy payload for tag=%s is %d bytes; Telegram may reject the button",
                    event.tag,
                    size,
                )
            await self.messenger.send_message(
                f"New image pushed: {event.tag}",
                DEPLOY_BUTTON_LABEL,
                command,
            )
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Failed to announce pushed tag=%r: %s", event.tag, exc)
