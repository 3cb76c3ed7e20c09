"""
git-report - per-component contribution reports from git history

Reads commit logs from one or more repositories into a SQLite database and
folds the file changes into per-author totals for named path components.
The resulting file is meant to be browsed with an external viewer.
"""

__version__ = "0.3.0"

from .config import ReportConfig, load_config, validate_config
from .core import ReportGenerator, ReportSummary
from .matcher import matches

__all__ = [
    "ReportConfig",
    "ReportGenerator",
    "ReportSummary",
    "load_config",
    "matches",
    "validate_config",
]
