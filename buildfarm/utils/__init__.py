from .shell import run_command
from .config_summary import extract_config_summary

__all__ = ['run_command', 'extract_config_summary']
