"""On-disk cache of scanned type graphs, keyed by a source fingerprint."""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import msgpack

from .scan import SCANNER_VERSION

logger = logging.getLogger(__name__)


def find_module_root(start: Path) -> Path | None:
    p = Path(start).resolve()
    while True:
        if (p / "go.mod").exists():
            return p
        if p.parent == p:
            return None
        p = p.parent


def fingerprint_source_dir(src_dir: Path) -> str:
    """Compute a content fingerprint for the module containing `src_dir`.

    Includes:
    - the scanner version and the package directory relative to the module root
    - go.mod, go.sum (if present)
    - all *.go files under the module root (excluding vendor/ and .git/)

    Without a go.mod, only the package directory itself is hashed.
    """
    src_dir = Path(src_dir).resolve()
    root = find_module_root(src_dir) or src_dir
    h = hashlib.sha256()
    h.update(f"scanner-v{SCANNER_VERSION}".encode("utf-8"))
    h.update(b"\x00")
    h.update(src_dir.relative_to(root).as_posix().encode("utf-8"))
    h.update(b"\x00")

    def add_file(p: Path) -> None:
        rel = p.relative_to(root).as_posix()
        h.update(rel.encode("utf-8"))
        h.update(b"\x00")
        with p.open("rb") as f:
            for chunk in iter(lambda: f.read(1024 * 1024), b""):
                h.update(chunk)
        h.update(b"\x00")

    for name in ("go.mod", "go.sum"):
        p = root / name
        if p.exists():
            add_file(p)

    files = sorted(
        [
            p
            for p in root.rglob("*.go")
            if "vendor" not in p.relative_to(root).parts and ".git" not in p.relative_to(root).parts
        ],
        key=lambda p: p.as_posix(),
    )
    for p in files:
        add_file(p)

    return h.hexdigest()


def _entry_path(root: Path, key: str) -> Path:
    return Path(root) / key[:2] / f"{key}.msgpack"


def read_cached(root: Path, key: str) -> dict[str, Any] | None:
    path = _entry_path(root, key)
    if not path.exists():
        return None
    try:
        obj = msgpack.unpackb(path.read_bytes(), raw=False)
    except Exception as e:  # noqa: BLE001 - a corrupt entry is a miss
        logger.debug("ignoring unreadable cache entry %s: %s", path, e)
        return None
    if not isinstance(obj, dict):
        return None
    return obj


def write_cached(root: Path, key: str, obj: dict[str, Any]) -> Path:
    path = _entry_path(root, key)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Atomic replace to be safe under concurrent writers.
    fd, tmp = tempfile.mkstemp(prefix=path.name + ".", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(msgpack.packb(obj, use_bin_type=True))
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.unlink(tmp)
    return path
