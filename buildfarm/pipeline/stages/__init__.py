# Pipeline stages
from .source import SourceSyncStage, CvsSyncStage, GitSyncStage, source_stage_for
from .build import ConfigureStage, MakeStage
from .check import RegressionCheckStage, check_stage, install_check_stage, contrib_check_stage
from .database import DatabaseStage, InitdbStage, StartdbStage, StopdbStage, stop_server_command

__all__ = [
    'SourceSyncStage',
    'CvsSyncStage',
    'GitSyncStage',
    'source_stage_for',
    'ConfigureStage',
    'MakeStage',
    'RegressionCheckStage',
    'check_stage',
    'install_check_stage',
    'contrib_check_stage',
    'DatabaseStage',
    'InitdbStage',
    'StartdbStage',
    'StopdbStage',
    'stop_server_command',
]
