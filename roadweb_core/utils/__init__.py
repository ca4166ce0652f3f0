"""Utils module - Utility functions."""

from roadweb_core.utils.config import (
    AppConfig,
    load_config,
    configure_logging,
)
from roadweb_core.utils.helpers import (
    normalize_path,
    join_paths,
    preferred_media_type,
)

__all__ = [
    "AppConfig",
    "load_config",
    "configure_logging",
    "normalize_path",
    "join_paths",
    "preferred_media_type",
]
