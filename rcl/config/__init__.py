"""
Configuration management.
"""

from .config import (
    Config,
    get_config,
    LogConfig,
    OutputConfig,
    PolicyConfig,
)

from .constants import (
    UINT256_MAX,
    ADDRESS_MAX,
    SUPPORTED_TRACKER_TYPES,
    SUPPORTED_ARRAY_TYPES,
    SUPPORTED_PARAMETER_TYPES,
    split_function_parameters,
)

__all__ = [
    # Config classes
    "Config",
    "get_config",
    "LogConfig",
    "OutputConfig",
    "PolicyConfig",
    # Word sizes
    "UINT256_MAX",
    "ADDRESS_MAX",
    # Policy types
    "SUPPORTED_TRACKER_TYPES",
    "SUPPORTED_ARRAY_TYPES",
    "SUPPORTED_PARAMETER_TYPES",
    "split_function_parameters",
]
