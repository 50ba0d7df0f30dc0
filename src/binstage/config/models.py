"""Configuration data models for binstage.

Defines the typed configuration passed into the provisioner. Every field
has a default so a bare package root is a valid configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from binstage.bootstrap.download import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT,
)
from binstage.bootstrap.locator import ArtifactLocator, VariantKey


@dataclass
class ProvisionConfig:
    """Provisioning configuration for one host package."""

    package_root: Path = field(default_factory=Path.cwd)
    package_name: str = ""  # Empty = derive from package.json or directory name
    package_version: Optional[str] = None

    # Remote origin; None disables network fetch. May contain {version}.
    remote_base_url: Optional[str] = None
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    timeout: float = DEFAULT_TIMEOUT  # Per-attempt, seconds
    base_delay: float = DEFAULT_BASE_DELAY
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR

    installed_name: str = "index.node"
    staging_dir_name: str = "binaries"
    disable_marker_name: str = ".no-postinstall"

    # Track where config came from (for debugging)
    _config_sources: List[str] = field(default_factory=list, repr=False)

    @property
    def remote_configured(self) -> bool:
        return bool(self.remote_base_url)

    @property
    def display_name(self) -> str:
        return self.package_name or self.package_root.name

    def locator(self) -> ArtifactLocator:
        """Build the artifact locator for this configuration."""
        return ArtifactLocator(
            package_root=self.package_root,
            installed_name=self.installed_name,
            staging_dir_name=self.staging_dir_name,
            disable_marker_name=self.disable_marker_name,
        )

    def remote_url(self, locator: ArtifactLocator, variant: VariantKey) -> Optional[str]:
        """Build the per-variant download URL, or None if no remote is set."""
        if not self.remote_base_url:
            return None
        base = self.remote_base_url.replace("{version}", self.package_version or "")
        return f"{base.rstrip('/')}/{locator.artifact_filename(variant)}"
