from .approval_gate import ApprovalGate
from .deploy_service import DeployService
from .docker_client import DockerAPIError, DockerClient
from .errors import ServiceAPIError
from .registry_events import PushAnnouncer, filter_push_events
from .telegram_client import TelegramAPIError, TelegramClient

__all__ = [
    "ApprovalGate",
    "DeployService",
    "DockerAPIError",
    "DockerClient",
    "ServiceAPIError",
    "PushAnnouncer",
    "filter_push_events",
    "TelegramAPIError",
    "TelegramClient",
]
