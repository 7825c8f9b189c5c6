from .deploy_states import (
    DEPLOY_STEP_SEQUENCE,
    DeployGuard,
    DeployOutcome,
    DeployState,
    DeployStep,
)

__all__ = [
    "DEPLOY_STEP_SEQUENCE",
    "DeployGuard",
    "DeployOutcome",
    "DeployState",
    "DeployStep",
]
