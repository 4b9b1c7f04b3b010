from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version

# Version
try:
    __version__ = _pkg_version("primeproof")
except PackageNotFoundError:
    __version__ = "0+unknown"

# Public API re-exports
from .config import has_profile, load_settings, read_current_profile
from .probability import format_probability, recommend, recommend_rounds, reliability
from .registry import discover
from .runner import ComparisonResult, TestResult, TestRunner, UnknownTestError, parse_candidate
from .runtime import APPLY, CFG
from .utility import UserInputError
from .workspace import workspace_dir

__all__ = [
    "APPLY",
    "CFG",
    "ComparisonResult",
    "TestResult",
    "TestRunner",
    "UnknownTestError",
    "UserInputError",
    "__version__",
    "discover",
    "format_probability",
    "has_profile",
    "load_settings",
    "parse_candidate",
    "read_current_profile",
    "recommend",
    "recommend_rounds",
    "reliability",
    "workspace_dir"
]
