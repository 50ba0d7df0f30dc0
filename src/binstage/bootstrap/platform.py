"""Platform detection for binstage.

Normalizes the interpreter's view of the host into the short OS and
architecture tokens used to name artifact variants.
"""

from __future__ import annotations

import platform
import sys
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

SUPPORTED_OS: FrozenSet[str] = frozenset({"linux", "darwin", "windows", "freebsd"})
SUPPORTED_ARCH: FrozenSet[str] = frozenset({"amd64", "arm64", "x86", "arm"})

_OS_ALIASES: Dict[str, str] = {
    "linux": "linux",
    "darwin": "darwin",
    "macos": "darwin",
    "win32": "windows",
    "windows": "windows",
    "cygwin": "windows",
    "msys": "windows",
}

_ARCH_ALIASES: Dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv8": "arm64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "ia32": "x86",
    "armv7l": "arm",
    "armv6l": "arm",
    "arm": "arm",
}


@dataclass(frozen=True)
class PlatformInfo:
    """Normalized host platform."""

    os: str
    arch: str

    @property
    def is_supported(self) -> bool:
        return self.os in SUPPORTED_OS and self.arch in SUPPORTED_ARCH


def normalize_os(raw: str) -> str:
    """Map a raw OS identifier (``sys.platform`` style) to a vocabulary token.

    Unknown values are returned lowercased so callers can report them.
    """
    value = raw.strip().lower()
    if value.startswith("freebsd"):
        return "freebsd"
    if value.startswith("linux"):
        return "linux"
    return _OS_ALIASES.get(value, value)


def normalize_arch(raw: str) -> str:
    """Map a raw machine identifier to a vocabulary token."""
    value = raw.strip().lower()
    return _ARCH_ALIASES.get(value, value)


def get_platform_info(
    system: Optional[str] = None,
    machine: Optional[str] = None,
) -> PlatformInfo:
    """Detect the current platform.

    Args:
        system: Override for ``sys.platform`` (testing).
        machine: Override for ``platform.machine()`` (testing).

    Returns:
        PlatformInfo with normalized os and arch.
    """
    raw_os = system if system is not None else sys.platform
    raw_arch = machine if machine is not None else platform.machine()
    return PlatformInfo(os=normalize_os(raw_os), arch=normalize_arch(raw_arch))
