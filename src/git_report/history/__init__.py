"""Commit history: run git log and parse its numstat output."""

from .git_log import PRETTY_FORMAT, GitLogRunner, build_log_command
from .parser import LogParser, ParseStats, parse_log

__all__ = [
    "PRETTY_FORMAT",
    "GitLogRunner",
    "LogParser",
    "ParseStats",
    "build_log_command",
    "parse_log",
]
