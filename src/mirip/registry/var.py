from __future__ import annotations

from ..errors import InvariantError
from ..types import GoPackage, Param, Slice, TypeNode, type_string, walk_named
from .package import Package, strip_vendor_path


class Var:
    """A synthesized identifier bound to a parameter or result of a method.

    `name` is mutable: a later `MethodScope.add_var` call may rename an earlier
    Var when it resolves a conflict.
    """

    def __init__(
        self,
        declared: Param,
        *,
        name: str,
        imports: dict[str, Package | None],
        mock_pkg_path: str,
    ) -> None:
        self.declared = declared
        self.name = name
        self.imports = imports
        self.mock_pkg_path = mock_pkg_path

    def is_slice(self) -> bool:
        return isinstance(self.declared.type, Slice)

    def type_string(self) -> str:
        return self.render(self.declared.type)

    def render(self, t: TypeNode) -> str:
        """Render `t`, a node within this var's type, with this var's qualifiers."""
        return type_string(t, self._package_qualifier)

    def can_render(self, t: TypeNode) -> bool:
        """Whether every package `t` refers to is known to this var."""
        for n in walk_named(t):
            if n.pkg is None:
                continue
            path = strip_vendor_path(n.pkg.path)
            if path != self.mock_pkg_path and path not in self.imports:
                return False
        return True

    def _package_qualifier(self, pkg: GoPackage) -> str:
        path = strip_vendor_path(pkg.path)
        if self.mock_pkg_path and self.mock_pkg_path == path:
            return ""
        if path not in self.imports:
            raise InvariantError(f"package {path} was not registered for var {self.name}")
        imp = self.imports[path]
        if imp is None:
            return ""
        return imp.qualifier()

    def __repr__(self) -> str:
        return f"Var(name={self.name!r}, type={self.type_string()!r})"
