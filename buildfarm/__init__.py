"""
Build farm client - builds and tests a source tree and reports the result

Main modules:
- core: Run models and exceptions
- config: Configuration loading
- build: Branch lock, change detection and run cleanup
- pipeline: The build and test stages
- reporting: Result encoding, signing and delivery
- cli: Command line entry point
"""

from .core.models import RunOptions, StageResult, ResultPayload
from .config.build_farm_config import BuildFarmConfig, load_config
from .manager import BuildFarmRunner

__version__ = "1.0.0"
__all__ = [
    'RunOptions',
    'StageResult',
    'ResultPayload',
    'BuildFarmConfig',
    'load_config',
    'BuildFarmRunner',
]
