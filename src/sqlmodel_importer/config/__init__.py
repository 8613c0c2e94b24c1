# sqlmodel-importer - Configuration

from .settings import ImporterSettings
from .targets import DEFAULT_TARGETS, DatabaseTarget, get_target, list_available_targets

__all__ = [
    "DEFAULT_TARGETS",
    "DatabaseTarget",
    "ImporterSettings",
    "get_target",
    "list_available_targets",
]
