"""Type oracles: where mirip gets the type graph of a Go package from."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from ..errors import LoadError
from ..paths import default_cache_root
from ..types import SourcePackage
from . import cache, scan

logger = logging.getLogger(__name__)


class TypeOracle(Protocol):
    def load(self, src_dir: str | Path) -> SourcePackage: ...


class GoOracle:
    """Loads packages by running the Go type scanner, caching results on disk."""

    def __init__(self, *, cache_dir: str | Path | None = None, use_cache: bool = True) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else default_cache_root()
        self.use_cache = use_cache

    def load(self, src_dir: str | Path) -> SourcePackage:
        src = Path(src_dir)
        if not src.is_dir():
            raise LoadError(f"source directory not found: {src}")

        key = None
        if self.use_cache:
            key = cache.fingerprint_source_dir(src)
            obj = cache.read_cached(self.cache_dir, key)
            if obj is not None:
                logger.debug("type graph cache hit for %s (%s)", src, key[:12])
                return SourcePackage.from_obj(obj)
            logger.debug("type graph cache miss for %s (%s)", src, key[:12])

        obj = scan.scan_package(src_dir=src)
        pkg = SourcePackage.from_obj(obj)
        if key is not None:
            try:
                cache.write_cached(self.cache_dir, key, obj)
            except OSError as e:
                logger.warning("could not write type graph cache: %s", e)
        return pkg


class StaticOracle:
    """Serves prebuilt packages, keyed by source directory.

    The package passed to the constructor is returned for any directory
    without its own entry.
    """

    def __init__(self, pkg: SourcePackage | None = None) -> None:
        self._default = pkg
        self._by_dir: dict[str, SourcePackage] = {}

    def add(self, src_dir: str | Path, pkg: SourcePackage) -> None:
        self._by_dir[str(Path(src_dir))] = pkg

    def load(self, src_dir: str | Path) -> SourcePackage:
        pkg = self._by_dir.get(str(Path(src_dir)), self._default)
        if pkg is None:
            raise LoadError(f"no type graph for {src_dir}")
        return pkg


__all__ = [
    "GoOracle",
    "StaticOracle",
    "TypeOracle",
]
