"""
textforensics utility modules.

- errors: structured error codes and exceptions
- config_schema / config_loader: YAML analyzer configuration
"""

from .errors import ConfigurationError, ErrorCode, InputError, TextForensicsError

__all__ = ["ConfigurationError", "ErrorCode", "InputError", "TextForensicsError"]
