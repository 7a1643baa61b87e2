from __future__ import annotations

import os
from pathlib import Path


def default_cache_root() -> Path:
    """Return the default type-graph cache directory.

    Override with `MIRIP_CACHE_DIR`.
    """
    override = os.environ.get("MIRIP_CACHE_DIR")
    if override:
        return Path(override)

    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
        return Path(base) / "mirip" / "typegraphs"
    return Path(os.path.expanduser("~/.cache/mirip/typegraphs"))
