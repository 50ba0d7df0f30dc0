"""Artifact path layout for a host package.

Layout relative to the package root::

    index.node                          - installed binary
    binaries/<platform>__<arch>.node.gz - bundled compressed variants
    .no-postinstall                     - install-disable marker

All functions here are pure; nothing touches the filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional

from binstage.bootstrap.platform import (
    SUPPORTED_ARCH,
    SUPPORTED_OS,
    PlatformInfo,
    get_platform_info,
)
from binstage.core.errors import UnsupportedPlatformError

VARIANT_SEPARATOR = "__"


@dataclass(frozen=True)
class VariantKey:
    """Identifies the artifact variant for one platform/architecture pair."""

    platform: str
    arch: str

    @property
    def key(self) -> str:
        return f"{self.platform}{VARIANT_SEPARATOR}{self.arch}"

    def __str__(self) -> str:
        return self.key


def resolve_variant_key(platform_info: Optional[PlatformInfo] = None) -> VariantKey:
    """Resolve the variant key of the running process.

    Args:
        platform_info: Detected platform; defaults to the current host.

    Returns:
        VariantKey for the host.

    Raises:
        UnsupportedPlatformError: If the OS or architecture is outside the
            known vocabulary.
    """
    info = platform_info or get_platform_info()
    if info.os not in SUPPORTED_OS or info.arch not in SUPPORTED_ARCH:
        raise UnsupportedPlatformError(info.os, info.arch)
    return VariantKey(platform=info.os, arch=info.arch)


@dataclass
class ArtifactLocator:
    """Resolves artifact paths within a package root."""

    package_root: Path
    installed_name: str = "index.node"
    staging_dir_name: str = "binaries"
    disable_marker_name: str = ".no-postinstall"

    _ARTIFACT_SUFFIX: ClassVar[str] = ".node.gz"

    @property
    def installed_path(self) -> Path:
        """Final location of the decompressed binary."""
        return self.package_root / self.installed_name

    @property
    def staging_dir(self) -> Path:
        """Directory holding bundled compressed variants."""
        return self.package_root / self.staging_dir_name

    @property
    def disable_marker_path(self) -> Path:
        """Sentinel whose presence disables provisioning."""
        return self.package_root / self.disable_marker_name

    def artifact_filename(self, variant: VariantKey) -> str:
        return f"{variant.key}{self._ARTIFACT_SUFFIX}"

    def staging_path(self, variant: VariantKey) -> Path:
        """Path of the bundled compressed artifact for a variant."""
        return self.staging_dir / self.artifact_filename(variant)
