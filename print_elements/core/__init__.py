"""
Core utilities for print-elements.

This package groups helpers used across the preparation engine:
- config: config path, JSON load/save, effective settings
- logging: element-aware logging filter/formatter and root logger config
- errors: the preparation error taxonomy
- sources: resolving element sources to bytes

Exports are explicit to keep static analyzers (e.g., Pyright) happy.
"""

from .config import (
    DEFAULT_SETTINGS,
    default_config_path,
    get_config_path,
    get_settings,
    load_config,
    save_config,
)
from .errors import (
    ContractViolation,
    InvalidConfiguration,
    InvalidSourceData,
    PreparationCancelled,
    PreparationTimeout,
    PrintElementError,
    SchedulingFailure,
)
from .logging import (
    ElementContextFilter,
    JsonFormatter,
    configure_logging,
)
from .sources import IMAGE_EXTS, is_supported_image, read_source

__all__ = [
    # config
    "DEFAULT_SETTINGS",
    "default_config_path",
    "get_config_path",
    "get_settings",
    "load_config",
    "save_config",
    # errors
    "ContractViolation",
    "InvalidConfiguration",
    "InvalidSourceData",
    "PreparationCancelled",
    "PreparationTimeout",
    "PrintElementError",
    "SchedulingFailure",
    # logging
    "configure_logging",
    "ElementContextFilter",
    "JsonFormatter",
    # sources
    "IMAGE_EXTS",
    "is_supported_image",
    "read_source",
]
