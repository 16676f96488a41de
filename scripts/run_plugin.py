"""Runs the OBS plugin from a source checkout with repository-relative imports."""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))

    # Lazy import after adjusting sys.path
    from tilepad_obs.__main__ import main as plugin_main  # type: ignore

    plugin_main(sys.argv[1:])


if __name__ == "__main__":
    main()
