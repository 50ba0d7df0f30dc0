"""Allow ``python -m binstage``."""

from __future__ import annotations

from binstage.cli import main

if __name__ == "__main__":  # pragma: no cover - exercised via console script
    raise SystemExit(main())
