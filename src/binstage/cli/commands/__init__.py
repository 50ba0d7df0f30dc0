"""CLI commands package.

This module provides the base Command class and exports all command implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import Namespace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from binstage.config.models import ProvisionConfig


class Command(ABC):
    """Base class for CLI commands."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Command identifier."""

    @abstractmethod
    def execute(self, args: Namespace, config: "ProvisionConfig") -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments.
            config: Loaded provisioning configuration.

        Returns:
            Exit code (0 for success, non-zero for error).
        """


# Import command implementations for convenience
# ruff: noqa: E402
from binstage.cli.commands.install import InstallCommand
from binstage.cli.commands.status import StatusCommand

__all__ = [
    "Command",
    "InstallCommand",
    "StatusCommand",
]
