"""Exit codes for the binstage CLI.

- 0: Installed, or skipped (already installed / disabled)
- 1: Provisioning failed
- 3: Invalid usage (bad arguments, bad config)
- 4: No prebuilt variant for this platform
"""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_PROVISION_FAILED = 1
EXIT_INVALID_USAGE = 3
EXIT_UNSUPPORTED_PLATFORM = 4
