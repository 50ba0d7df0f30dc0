"""Install command implementation."""

from __future__ import annotations

import sys
from argparse import Namespace
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from binstage.config.models import ProvisionConfig

from binstage.cli.commands import Command
from binstage.cli.exit_codes import (
    EXIT_PROVISION_FAILED,
    EXIT_SUCCESS,
    EXIT_UNSUPPORTED_PLATFORM,
)
from binstage.core.errors import FailureKind
from binstage.provision import Provisioner, ProvisionResult, ProvisionStatus


class InstallCommand(Command):
    """Provisions the native binary for the package root."""

    def __init__(self, provisioner: Optional[Provisioner] = None) -> None:
        self._provisioner = provisioner

    @property
    def name(self) -> str:
        return "install"

    def execute(self, args: Namespace, config: "ProvisionConfig") -> int:
        """Run the provisioner and report a one-line outcome.

        Success and skip lines go to stdout, failures to stderr.
        """
        provisioner = self._provisioner or Provisioner(config)
        result = provisioner.provision(force=getattr(args, "force", False))

        if result.status == ProvisionStatus.FAILED:
            print(result.summary_line(), file=sys.stderr)
        else:
            print(result.summary_line())

        return exit_code_for(result)


def exit_code_for(result: ProvisionResult) -> int:
    """Map a provisioning result to a process exit code."""
    if result.ok:
        return EXIT_SUCCESS
    if result.failure == FailureKind.UNSUPPORTED_PLATFORM:
        return EXIT_UNSUPPORTED_PLATFORM
    return EXIT_PROVISION_FAILED
