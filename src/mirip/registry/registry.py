from __future__ import annotations

import logging

from ..errors import InvariantError
from ..types import GoPackage, InterfaceDecl, SourcePackage
from .method_scope import MethodScope
from .package import Package, strip_vendor_path

logger = logging.getLogger(__name__)

# Identifiers the generated code declares inside method bodies. A package
# qualifier equal to one of them would be shadowed.
TEMPLATE_IDENTIFIERS = frozenset({"mock", "callInfo", "expect"})


class Registry:
    """Import registry for one generation run.

    Maps import paths to `Package` records and keeps their qualifiers unique.
    It is shared by every MethodScope created during the run; the final state
    is what gets written to the import block.
    """

    def __init__(self, src: SourcePackage, mock_pkg_name: str = "") -> None:
        self._src = src
        self._mock_pkg_path = _mock_pkg_path(src, mock_pkg_name)
        self._aliases = {strip_vendor_path(path): alias for path, alias in src.aliases.items()}
        self._imports: dict[str, Package] = {}

    @property
    def src_pkg(self) -> GoPackage:
        return self._src.pkg

    @property
    def src_pkg_name(self) -> str:
        return self._src.pkg.name

    @property
    def mock_pkg_path(self) -> str:
        return self._mock_pkg_path

    def lookup_interface(self, name: str) -> InterfaceDecl:
        return self._src.lookup_interface(name)

    def method_scope(self) -> MethodScope:
        return MethodScope(self, mock_pkg_path=self._mock_pkg_path)

    def add_import(self, pkg: GoPackage) -> Package | None:
        """Register `pkg` and return its record.

        Returns None for the package the mocks are generated into, since its
        types need no qualifier.
        """
        path = strip_vendor_path(pkg.path)
        if path == self._mock_pkg_path:
            return None

        imp = self._imports.get(path)
        if imp is not None:
            return imp

        imp = Package(pkg, alias=self._aliases.get(path, ""))
        if imp.qualifier() in TEMPLATE_IDENTIFIERS:
            self._resolve_reserved_qualifier(imp)
        conflict = self.search_import(imp.qualifier())
        self._imports[path] = imp
        if conflict is not None:
            self._resolve_import_conflict(imp, conflict)
        return imp

    def imports(self) -> list[Package]:
        return sorted(self._imports.values(), key=lambda p: p.path())

    def search_import(self, name: str) -> Package | None:
        for imp in self._imports.values():
            if imp.qualifier() == name:
                return imp
        return None

    def _resolve_import_conflict(self, a: Package, b: Package) -> None:
        """Re-alias newcomer `a` and existing `b`, which share a qualifier.

        Both take their unique name at the first level where those differ.
        Paths that sanitize identically at every level leave `b` alone and
        give `a` a numbered name.
        """
        if a.path() == b.path():
            raise InvariantError(f"import path {a.path()} registered twice")

        lvl = 0
        top = max(a.depth(), b.depth()) - 1
        while lvl < top and a.unique_name(lvl) == b.unique_name(lvl):
            lvl += 1

        if a.unique_name(lvl) == b.unique_name(lvl):
            self._set_alias(a, self._numbered_name(a.unique_name(lvl)))
            return

        # b still holds the contested qualifier while a is placed.
        self._set_alias(a, self._free_name(a, lvl, ignore=(a, b)))
        self._set_alias(b, self._free_name(b, lvl, ignore=(b,)))

    def _free_name(self, p: Package, lvl: int, *, ignore: tuple[Package, ...]) -> str:
        """First unique name of `p` from `lvl` down that no other package holds."""
        for n in range(lvl, max(p.depth(), lvl + 1)):
            name = p.unique_name(n)
            if not name[:1].isalpha() or name in TEMPLATE_IDENTIFIERS:
                continue
            holders = [imp for imp in self._imports.values() if imp.qualifier() == name]
            if all(any(h is q for q in ignore) for h in holders):
                return name
        return self._numbered_name(p.unique_name(p.depth() - 1))

    def _resolve_reserved_qualifier(self, imp: Package) -> None:
        for lvl in range(1, imp.depth()):
            name = imp.unique_name(lvl)
            if name not in TEMPLATE_IDENTIFIERS:
                self._set_alias(imp, name)
                return
        self._set_alias(imp, self._numbered_name(imp.qualifier()))

    def _numbered_name(self, base: str) -> str:
        n = 2
        while self.search_import(f"{base}{n}") is not None:
            n += 1
        return f"{base}{n}"

    def _set_alias(self, p: Package, name: str) -> None:
        if p.qualifier() != name:
            logger.debug("import %s: qualifier %s -> %s", p.path(), p.qualifier(), name)
        # No alias is written when the package name already matches.
        p.alias = "" if name == p.pkg.name else name


def _mock_pkg_path(src: SourcePackage, mock_pkg_name: str) -> str:
    if not mock_pkg_name or mock_pkg_name == src.pkg.name:
        return strip_vendor_path(src.pkg.path)
    # The mocks live in a different package whose import path is unknown,
    # so the source package is imported like any other.
    return ""
