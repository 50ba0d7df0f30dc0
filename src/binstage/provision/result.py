"""Outcome of a provisioning run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from binstage.core.errors import FailureKind


class ProvisionStatus(str, Enum):
    """Terminal states of a provisioning run."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


class ArtifactSource(str, Enum):
    """Where the compressed artifact was obtained from."""

    LOCAL = "local"
    REMOTE = "remote"


class SkipReason(str, Enum):
    DISABLED = "disabled"
    ALREADY_INSTALLED = "already-installed"


@dataclass
class ProvisionResult:
    """Tagged result of :meth:`Provisioner.provision`.

    ``failure`` is set exactly when ``status`` is FAILED, ``skip_reason``
    exactly when it is SKIPPED.
    """

    status: ProvisionStatus
    package_name: str
    installed_path: Path
    variant: Optional[str] = None
    source: Optional[ArtifactSource] = None
    failure: Optional[FailureKind] = None
    skip_reason: Optional[SkipReason] = None
    message: str = ""
    attempts: int = 0
    cleanup_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != ProvisionStatus.FAILED

    def summary_line(self) -> str:
        """One-line human readable outcome naming the package."""
        if self.status == ProvisionStatus.SUCCEEDED:
            return f"Installed {self.package_name}"
        if self.status == ProvisionStatus.SKIPPED:
            reason = self.skip_reason.value if self.skip_reason else "skipped"
            return f"Skipped {self.package_name} ({reason})"
        return f"Failed to install {self.package_name}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status.value,
            "package": self.package_name,
            "installed_path": str(self.installed_path),
            "variant": self.variant,
            "source": self.source.value if self.source else None,
            "failure": self.failure.value if self.failure else None,
            "skip_reason": self.skip_reason.value if self.skip_reason else None,
            "message": self.message,
            "attempts": self.attempts,
            "cleanup_error": self.cleanup_error,
        }
