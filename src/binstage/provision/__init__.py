"""Provisioning of the installed native binary."""

from binstage.provision.provisioner import Provisioner, decompress_into
from binstage.provision.result import (
    ArtifactSource,
    ProvisionResult,
    ProvisionStatus,
    SkipReason,
)

__all__ = [
    "Provisioner",
    "decompress_into",
    "ArtifactSource",
    "ProvisionResult",
    "ProvisionStatus",
    "SkipReason",
]
