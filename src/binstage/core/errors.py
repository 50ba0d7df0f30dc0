"""Exception hierarchy for provisioning failures.

Each exception carries the :class:`FailureKind` it maps to, so the
provisioner can turn any of them into a tagged result without inspecting
messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Classification of a failed provisioning run."""

    UNSUPPORTED_PLATFORM = "unsupported_platform"
    ARTIFACT_NOT_FOUND = "artifact_not_found"
    TRANSPORT_ERROR = "transport_error"
    BAD_STATUS = "bad_status"
    DECODE_ERROR = "decode_error"
    WRITE_ERROR = "write_error"


class ProvisionError(Exception):
    """Base class for all provisioning errors."""

    kind: FailureKind = FailureKind.WRITE_ERROR
    retryable: bool = False
    # Number of fetch attempts made before the error surfaced.
    attempts: int = 0


class UnsupportedPlatformError(ProvisionError):
    """The running host has no known artifact variant."""

    kind = FailureKind.UNSUPPORTED_PLATFORM

    def __init__(self, platform: str, arch: str) -> None:
        super().__init__(f"Unsupported platform: {platform}-{arch}")
        self.platform = platform
        self.arch = arch


class ArtifactNotFoundError(ProvisionError):
    """No local bundle exists and no remote origin is configured."""

    kind = FailureKind.ARTIFACT_NOT_FOUND


class TransportError(ProvisionError):
    """Network-level failure during a fetch attempt."""

    kind = FailureKind.TRANSPORT_ERROR
    retryable = True


class InvalidURLError(TransportError):
    """The artifact URL is malformed; retrying cannot help."""

    retryable = False


class BadStatusError(ProvisionError):
    """The remote origin answered with a non-2xx status."""

    kind = FailureKind.BAD_STATUS
    retryable = True

    def __init__(self, status: Optional[int], url: str = "") -> None:
        super().__init__(f"Bad status of {status}")
        self.status = status
        self.url = url


class DecodeError(ProvisionError):
    """The compressed artifact is corrupt or truncated."""

    kind = FailureKind.DECODE_ERROR


class WriteError(ProvisionError):
    """The installed binary could not be written."""

    kind = FailureKind.WRITE_ERROR
