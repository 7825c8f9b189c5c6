from .health import build_health_router
from .registry import build_registry_router
from .telegram import build_telegram_router

__all__ = ["build_health_router", "build_registry_router", "build_telegram_router"]
