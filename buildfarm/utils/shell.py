"""
Runs external commands the way every pipeline stage needs them run.
"""
import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union


logger = logging.getLogger(__name__)


def run_command(
    command: Union[str, List[str]],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None
) -> Tuple[int, List[bytes]]:
    """
    Run a command to completion and capture its combined output.
    
    Args:
        command: Shell command line, or an argument list run without a shell
        cwd: Working directory for the command
        env: Extra environment variables layered over os.environ
        
    Returns:
        Tuple of (exit status, output as a list of byte lines). A command
        killed by a signal reports 128 + signal number.
    """
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update({k: str(v) for k, v in env.items()})
    
    logger.debug(f"Running {command!r} in {cwd or os.getcwd()}")
    
    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=full_env,
            shell=isinstance(command, str),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as e:
        # missing working directory or executable
        return 1, [f"{e}\n".encode()]
    
    status = completed.returncode
    if status < 0:
        status = 128 - status
    
    return status, completed.stdout.splitlines(keepends=True)
