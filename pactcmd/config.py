"""
Configuration module for pactcmd.

Centralizes configuration with environment variable support.
Values are read once at import time.
"""

import logging
import os
from typing import Any, Dict, Optional

from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    """
    Read a positive integer setting, falling back to the default when the
    variable is unset, not an integer, or not positive.
    """
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s must be an integer, got %r; using %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive, got %d; using %d", name, value, default)
        return default
    return value


# ============================================================
# Environment Configuration
# ============================================================

# Logging
LOG_LEVEL = os.getenv("PACTCMD_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("PACTCMD_LOG_JSON", "1").lower() in ("1", "true", "yes")
LOG_FILE: Optional[str] = os.getenv("PACTCMD_LOG_FILE") or None

# Largest code text (in UTF-8 bytes) the parser will accept
MAX_CODE_BYTES = _env_int("PACTCMD_MAX_CODE_BYTES", 1024 * 1024)

# Largest payload (in bytes) the verifier will decode
MAX_PAYLOAD_BYTES = _env_int("PACTCMD_MAX_PAYLOAD_BYTES", 4 * 1024 * 1024)

# Deepest array/object nesting the verifier will decode
MAX_JSON_DEPTH = _env_int("PACTCMD_MAX_JSON_DEPTH", 512)


# ============================================================
# Logging Setup
# ============================================================

def logging_settings() -> Dict[str, Any]:
    """Keyword arguments for configure_logging derived from the environment."""
    return {
        "level": "DEBUG" if is_debug() else LOG_LEVEL,
        "json_format": LOG_JSON,
        "log_file": LOG_FILE,
    }


def configure_logging_from_env() -> None:
    """Configure root logging using PACTCMD_LOG_* settings."""
    configure_logging(**logging_settings())


# ============================================================
# Feature Flags
# ============================================================

def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("PACTCMD_DEBUG", "").lower() in ("1", "true", "yes")
