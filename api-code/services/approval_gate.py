from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, Tuple

from models import DeployCommand
from schemas import CallbackQuery


logger = logging.getLogger("deploy-bot.approval")


class CallbackAnswerer(Protocol):
    async def answer_callback(self, callback_id: str) -> None: ...


class ApprovalGate:
    """Turns a Telegram update into an approved deploy tag, or nothing.

    Every callback query found is answered first, whatever happens next;
    Telegram shows a spinner and then an error to the user otherwise.
    """

    def __init__(self, messenger: CallbackAnswerer, approver_username: str) -> None:
        self.messenger = messenger
        self.approver_username = approver_username

    @staticmethod
    def extract_callback(payload: Any) -> Optional[Tuple[str, Dict[str, Any]]]:
        """Return ``(id, raw query)`` when the update carries an answerable callback."""
        if not isinstance(payload, dict):
            return None
        raw = payload.get("callback_query")
        if raw is None:
            return None
        callback_id = raw.get("id") if isinstance(raw, dict) else None
        if not isinstance(callback_id, str):
            logger.warning("Ignoring callback query without a usable id")
            return None
        return callback_id, raw

    def is_approver(self, callback: CallbackQuery) -> bool:
        # An unset approver matches nobody.
        if not self.approver_username:
            return False
        return callback.sender_username == self.approver_username

    async def process(self, payload: Any) -> Optional[str]:
        """Return the tag to deploy when an authorized deploy was requested."""
        extracted = self.extract_callback(payload)
        if extracted is None:
            return None
        callback_id, raw = extracted

        await self.messenger.answer_callback(callback_id)

        callback = CallbackQuery.from_raw(callback_id, raw)
        if not self.is_approver(callback):
            logger.warning(
                "Callback %s from %r rejected: wrong sender", callback.id, callback.sender_username
            )
            return None

        command = DeployCommand.decode(callback.data)
        if not command.is_deploy:
            logger.info("Callback %s carried no deploy command", callback.id)
            return None

        logger.info("Deploy of tag=%s approved by %s", command.tag, callback.sender_username)
        return command.tag
