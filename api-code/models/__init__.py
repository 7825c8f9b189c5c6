from .deploy import DeployCommand, DeployResult, PushEvent, utc_now

__all__ = ["DeployCommand", "DeployResult", "PushEvent", "utc_now"]
