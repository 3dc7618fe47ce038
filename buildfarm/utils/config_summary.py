"""
Extracts a compact description of the build configuration from config.log.
"""
import re
from pathlib import Path
from typing import Iterable, Optional, Union


START_MARKER = "created by PostgreSQL configure"
END_MARKER = "Core tests"
UNKNOWN_MARKER = "= unknown"

WRAP_WIDTH = 70
WRAP_COLUMNS = (70, 140)
CONTINUATION = "\\\n        "

_CONFIGURE_LINE = re.compile(r"\$.*configure.*--with")


def _wrap_configure_line(line: str) -> str:
    """Break a long configure invocation after the first space at each wrap column"""
    if not (_CONFIGURE_LINE.search(line) and len(line) > WRAP_WIDTH):
        return line
    for column in WRAP_COLUMNS:
        pos = line.find(" ", column)
        if pos > 0:
            line = line[:pos + 1] + CONTINUATION + line[pos + 1:]
    return line


def summarize_config_lines(lines: Iterable[str]) -> str:
    """Filter and reflow config.log lines into the summary text"""
    summary = []
    started = False
    for line in lines:
        if not started and START_MARKER in line:
            started = True
            line = line.replace("It was", "This file was", 1)
        if not started:
            continue
        if END_MARKER in line:
            break
        if line.startswith("#") or UNKNOWN_MARKER in line:
            continue
        summary.append(_wrap_configure_line(line))
    return "".join(summary)


def extract_config_summary(config_log: Union[str, Path]) -> Optional[str]:
    """
    Build the configuration summary sent along with results.
    
    Args:
        config_log: Path to the config.log written by configure
        
    Returns:
        Summary text, or None if configure has not produced a log yet
    """
    path = Path(config_log)
    try:
        # surrogateescape keeps undecodable bytes intact for the report
        with open(path, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
            return summarize_config_lines(f)
    except FileNotFoundError:
        return None
