# Pipeline package initialization
from .base import Pipeline, PipelineStage, PipelineStats, artifact_banner
from .pipeline_builder import PipelineBuilder

__all__ = [
    'Pipeline',
    'PipelineStage',
    'PipelineStats',
    'artifact_banner',
    'PipelineBuilder'
]
