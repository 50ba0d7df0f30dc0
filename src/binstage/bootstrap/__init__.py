"""
Bootstrap module for native addon artifacts.

This module handles:
- Platform detection (OS + architecture)
- Variant key resolution and artifact path layout
- Remote artifact download with bounded retry
"""

from binstage.bootstrap.platform import get_platform_info, PlatformInfo
from binstage.bootstrap.locator import ArtifactLocator, VariantKey, resolve_variant_key
from binstage.bootstrap.download import fetch_artifact, fetch_with_retry

__all__ = [
    "get_platform_info",
    "PlatformInfo",
    "ArtifactLocator",
    "VariantKey",
    "resolve_variant_key",
    "fetch_artifact",
    "fetch_with_retry",
]
