"""
Exception hierarchy for the build farm client.
"""


class BuildFarmError(Exception):
    """Base class for all build farm client errors"""
    pass


class ConfigError(BuildFarmError):
    """Configuration file is missing or invalid"""
    pass


class PreconditionError(BuildFarmError):
    """Build root or branch directory is not in a state we can run from"""
    pass


class WorkspaceError(BuildFarmError):
    """Preparing the per-run source workspace failed"""
    pass


class ReportDeliveryError(BuildFarmError):
    """The collector did not accept a result"""
    
    def __init__(self, message: str, status_line: str = ""):
        super().__init__(message)
        self.status_line = status_line
