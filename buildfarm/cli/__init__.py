from .run_cli import main

__all__ = ['main']
