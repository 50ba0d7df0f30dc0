"""Status command implementation."""

from __future__ import annotations

import json
from argparse import Namespace
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from binstage.config.models import ProvisionConfig

from binstage.bootstrap.locator import resolve_variant_key
from binstage.bootstrap.platform import PlatformInfo, get_platform_info
from binstage.cli.commands import Command
from binstage.cli.exit_codes import EXIT_SUCCESS
from binstage.core.errors import UnsupportedPlatformError


class StatusCommand(Command):
    """Shows platform, variant and install state for a package root."""

    def __init__(self, platform_info: Optional[PlatformInfo] = None) -> None:
        self._platform_info = platform_info

    @property
    def name(self) -> str:
        return "status"

    def collect(self, config: "ProvisionConfig") -> Dict[str, Any]:
        """Gather status information without touching the install."""
        locator = config.locator()
        info = self._platform_info or get_platform_info()

        try:
            variant = resolve_variant_key(info)
        except UnsupportedPlatformError:
            variant = None

        staging_path = locator.staging_path(variant) if variant else None
        return {
            "package": config.display_name,
            "version": config.package_version,
            "platform": f"{info.os}-{info.arch}",
            "variant": variant.key if variant else None,
            "supported": variant is not None,
            "installed_path": str(locator.installed_path),
            "installed": locator.installed_path.exists(),
            "disabled": locator.disable_marker_path.exists(),
            "bundled_artifact": str(staging_path) if staging_path else None,
            "bundled": bool(staging_path and staging_path.exists()),
            "remote_url": config.remote_url(locator, variant) if variant else None,
            "max_attempts": config.max_attempts,
        }

    def execute(self, args: Namespace, config: "ProvisionConfig") -> int:
        status = self.collect(config)

        if getattr(args, "json", False):
            print(json.dumps(status, indent=2))
            return EXIT_SUCCESS

        version = f" v{status['version']}" if status["version"] else ""
        print(f"Package: {status['package']}{version}")
        print(f"Platform: {status['platform']}")
        if status["supported"]:
            print(f"Variant: {status['variant']}")
        else:
            print("Variant: (unsupported platform)")
        print(f"Installed: {'yes' if status['installed'] else 'no'} ({status['installed_path']})")
        print(f"Install disabled: {'yes' if status['disabled'] else 'no'}")
        if status["bundled_artifact"]:
            state = "present" if status["bundled"] else "missing"
            print(f"Bundled artifact: {state} ({status['bundled_artifact']})")
        print(f"Remote: {status['remote_url'] or '(not configured)'}")

        return EXIT_SUCCESS
