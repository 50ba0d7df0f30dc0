"""binstage - install-time provisioning of prebuilt native addons.

Resolves the variant for the running platform, takes its gzip-compressed
artifact from the bundled staging directory (or a remote origin), and
decompresses it into the package root so the host package can load it
without a build toolchain.
"""

from __future__ import annotations

__version__ = "0.8.5"

__all__ = ["__version__"]
