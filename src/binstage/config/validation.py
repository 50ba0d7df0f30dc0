"""Configuration validation for binstage.

Warns on unknown keys (with a close-match suggestion) and on values of the
wrong type. Does not raise; the loader decides what is fatal.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from typing import Any, Dict, List, Optional, Set, Tuple, Type

from binstage.core.logging import get_logger

LOGGER = get_logger(__name__)

# Valid top-level keys and the types they accept
KEY_TYPES: Dict[str, Tuple[Type[Any], ...]] = {
    "package_name": (str,),
    "package_version": (str,),
    "remote_base_url": (str,),
    "max_attempts": (int,),
    "timeout": (int, float),
    "base_delay": (int, float),
    "backoff_factor": (int, float),
    "installed_name": (str,),
    "staging_dir_name": (str,),
    "disable_marker_name": (str,),
}

VALID_TOP_LEVEL_KEYS: Set[str] = set(KEY_TYPES)


@dataclass
class ConfigValidationWarning:
    """A validation warning for configuration."""

    message: str
    source: str
    key: Optional[str] = None
    suggestion: Optional[str] = None


def validate_config(
    data: Dict[str, Any],
    source: str,
) -> List[ConfigValidationWarning]:
    """Validate a configuration dictionary.

    Args:
        data: Config dictionary to validate.
        source: Source file path for warning messages.

    Returns:
        List of validation warnings.
    """
    warnings: List[ConfigValidationWarning] = []

    if not isinstance(data, dict):
        warning = ConfigValidationWarning(
            message=f"Config must be a mapping, got {type(data).__name__}",
            source=source,
        )
        _log_warning(warning)
        return [warning]

    for key, value in data.items():
        if key not in VALID_TOP_LEVEL_KEYS:
            warning = ConfigValidationWarning(
                message=f"Unknown top-level key '{key}'",
                source=source,
                key=key,
                suggestion=_suggest_key(str(key), VALID_TOP_LEVEL_KEYS),
            )
            warnings.append(warning)
            _log_warning(warning)
            continue

        if value is None:
            continue

        expected = KEY_TYPES[key]
        # bool is an int subclass but never a valid count or duration
        if isinstance(value, bool) or not isinstance(value, expected):
            names = " or ".join(t.__name__ for t in expected)
            warning = ConfigValidationWarning(
                message=f"'{key}' must be {names}, got {type(value).__name__}",
                source=source,
                key=key,
            )
            warnings.append(warning)
            _log_warning(warning)

    return warnings


def _suggest_key(key: str, valid_keys: Set[str]) -> Optional[str]:
    matches = get_close_matches(key, sorted(valid_keys), n=1, cutoff=0.6)
    return matches[0] if matches else None


def _log_warning(warning: ConfigValidationWarning) -> None:
    message = f"{warning.source}: {warning.message}"
    if warning.suggestion:
        message += f" (did you mean '{warning.suggestion}'?)"
    LOGGER.warning(message)
