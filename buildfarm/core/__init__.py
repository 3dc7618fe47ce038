from .models import OK_STAGE, RunOutcome, RunOptions, StageResult, ResultPayload, BuildWorkspace
from .exceptions import (
    BuildFarmError,
    ConfigError,
    PreconditionError,
    WorkspaceError,
    ReportDeliveryError
)

__all__ = [
    'OK_STAGE',
    'RunOutcome',
    'RunOptions',
    'StageResult',
    'ResultPayload',
    'BuildWorkspace',
    'BuildFarmError',
    'ConfigError',
    'PreconditionError',
    'WorkspaceError',
    'ReportDeliveryError',
]
