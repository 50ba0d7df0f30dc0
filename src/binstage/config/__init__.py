"""Configuration module for binstage.

Provides configuration file loading, parsing, and validation with support for:
- Project-level config (.binstage.yml)
- BINSTAGE_* environment overrides
- Environment variable expansion
- Package name/version from package.json
"""

from binstage.config.models import ProvisionConfig
from binstage.config.loader import ConfigError, load_config, find_project_config
from binstage.config.validation import validate_config, ConfigValidationWarning

__all__ = [
    "ProvisionConfig",
    "ConfigError",
    "load_config",
    "find_project_config",
    "validate_config",
    "ConfigValidationWarning",
]
