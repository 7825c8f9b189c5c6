from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError


class TelegramChat(BaseModel):
    username: Optional[str] = None


class TelegramMessage(BaseModel):
    chat: Optional[TelegramChat] = None


class CallbackQuery(BaseModel):
    """Subset of Telegram's CallbackQuery used by the approval flow."""

    id: str = Field(..., description="Opaque id that must be answered.")
    data: Optional[str] = Field(
        default=None, description="Button payload echoed back verbatim."
    )
    message: Optional[TelegramMessage] = None

    @property
    def sender_username(self) -> Optional[str]:
        if self.message is None or self.message.chat is None:
            return None
        return self.message.chat.username

    @classmethod
    def from_raw(cls, callback_id: str, raw: Dict[str, Any]) -> "CallbackQuery":
        """Build from an already-answered query, dropping fields of the wrong shape.

        A malformed ``message`` leaves no sender; malformed ``data`` leaves no
        payload.
        """
        data = raw.get("data")
        if not isinstance(data, str):
            data = None
        try:
            message = TelegramMessage.model_validate(raw.get("message"))
        except ValidationError:
            message = None
        return cls(id=callback_id, data=data, message=message)
