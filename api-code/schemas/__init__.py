from .registry import RegistryEvent, RegistryNotification, RegistryTarget
from .telegram import CallbackQuery, TelegramChat, TelegramMessage

__all__ = [
    "RegistryEvent",
    "RegistryNotification",
    "RegistryTarget",
    "CallbackQuery",
    "TelegramChat",
    "TelegramMessage",
]
