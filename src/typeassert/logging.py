# ===== MODULE DOCSTRING ===== #
"""
typeassert Logging Configuration

This module configures the logger shared by every typeassert module.

The logger is configured with the following defaults:
- Output: Standard error stream (sys.stderr)
- Format: "%(levelname)s:%(name)s: %(message)s"
- Default Level: WARNING

Checks are silent unless a validator nests past the backstop computed by
type_utils.check_depth_limit(), which is reported as a warning. At DEBUG
every validator invocation, cycle cut-off and raised diagnostic is traced
with a "TRACE module.function:" prefix.

Usage:
    from typeassert import set_verbosity

    set_verbosity("DEBUG")
"""

# ===== IMPORTS ===== #

## ===== STANDARD LIBRARY ===== ##
from typing import Final, List, Optional, Union
import logging
import sys

# ===== GLOBALS ===== #

## ===== CONSTANTS ===== ##
LOG_FORMAT: Final[str] = '%(levelname)s:%(name)s: %(message)s'

VALID_LEVELS: Final[List[int]] = [
    logging.DEBUG,
    logging.INFO,
    logging.WARNING,
    logging.ERROR,
    logging.CRITICAL
]

## ===== LOGGER SETUP ===== ##
_log: Final[logging.Logger] = logging.getLogger('typeassert')

handler: Final[logging.StreamHandler] = logging.StreamHandler(sys.stderr)
handler.setFormatter(logging.Formatter(LOG_FORMAT))

if not _log.handlers:
    _log.addHandler(handler)
    _log.propagate = True
    _log.setLevel(logging.WARNING)

## ===== PUBLIC API ALIAS ===== ##
logger = _log

## ===== EXPORTS ===== ##
__all__: Final[List[str]] = [
    'logger',
    'set_verbosity',
]

# ===== FUNCTIONS ===== #

def _resolve_level(level: Union[int, str]) -> Optional[int]:
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
    return level if level in VALID_LEVELS else None

def set_verbosity(level: Union[int, str]) -> None:
    """Set how much the typeassert logger reports.

    DEBUG traces every validator call and each raised diagnostic; WARNING
    (the default) only reports checks cut short by the nesting backstop.

    Args:
        level: A logging module constant (logging.DEBUG) or its name
              ("debug", "DEBUG"), as read from settings or the environment

    Raises:
        ValueError: If the level is not one of VALID_LEVELS
    """
    resolved = _resolve_level(level)
    if resolved is None:
        raise ValueError(
            f"Invalid logging level: {level!r}. "
            f"Valid levels: {[logging.getLevelName(l) for l in VALID_LEVELS]}"
        )

    _log.setLevel(resolved)
    if _log.isEnabledFor(logging.DEBUG):
        _log.debug(f"TRACE logging.set_verbosity: typeassert verbosity set to {logging.getLevelName(resolved)}")
