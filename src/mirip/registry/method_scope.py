from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import InvariantError
from ..types import (
    Array,
    Basic,
    Chan,
    GoPackage,
    Interface,
    Map,
    Named,
    Param,
    Pointer,
    Signature,
    Slice,
    Struct,
    TypeNode,
    TypeParam,
    Union,
    basic_kind,
    walk_named,
)
from .package import Package, strip_vendor_path
from .var import Var

if TYPE_CHECKING:
    from .registry import Registry

# Appended to names that would shadow a keyword, a builtin type, an
# identifier used by the generated code, or an imported package.
PARAM_SUFFIX = "MiripParam"

RESERVED_NAMES = frozenset(
    {
        # identifiers declared by the generated code
        "mock", "callInfo", "expect",
        # keywords
        "break", "default", "func", "interface", "select", "case", "defer", "go", "map", "struct",
        "chan", "else", "goto", "package", "switch", "const", "fallthrough", "if", "range", "type",
        "continue", "for", "import", "return", "var",
        # basic types
        "string", "bool", "byte", "rune", "uintptr",
        "int", "int8", "int16", "int32", "int64",
        "uint", "uint8", "uint16", "uint32", "uint64",
        "float32", "float64", "complex64", "complex128",
    }
)


class MethodScope:
    """Allocates variable names for the parameters and results of one method.

    Names never collide with each other, with Go keywords and builtin types, or
    with the qualifier of any package registered so far. Every package a
    variable's type refers to is added to the shared registry.
    """

    def __init__(self, registry: "Registry", *, mock_pkg_path: str) -> None:
        self._registry = registry
        self._mock_pkg_path = mock_pkg_path
        self._vars: list[Var] = []
        self._conflicted: set[str] = set()

    @property
    def vars(self) -> list[Var]:
        return list(self._vars)

    def add_var(self, declared: Param, suffix: str) -> Var:
        imports: dict[str, Package | None] = {}
        self._populate_imports(declared.type, imports)
        self._resolve_import_var_conflicts()

        name = var_name(declared, suffix)
        if self._registry.search_import(name) is not None:
            name += PARAM_SUFFIX
        if self._search_var(name) is not None or name in self._conflicted:
            name = self._resolve_var_name_conflict(name)

        v = Var(declared, name=name, imports=imports, mock_pkg_path=self._mock_pkg_path)
        self._vars.append(v)
        return v

    def _populate_imports(self, t: TypeNode, imports: dict[str, Package | None]) -> None:
        """Collect every package referenced by `t`, keyed by vendor-stripped path.

        Registration happens after the walk, in path order, so the qualifiers
        chosen do not depend on where a package appears inside the type.
        """
        found: dict[str, GoPackage] = {}
        for n in walk_named(t):
            if n.pkg is not None:
                found.setdefault(strip_vendor_path(n.pkg.path), n.pkg)
        for path in sorted(found):
            imports[path] = self._registry.add_import(found[path])

    def _resolve_import_var_conflicts(self) -> None:
        # Registration can re-alias packages no var here refers to, so every
        # var is checked. Packages keep their qualifiers; vars are renamed.
        for v in self._vars:
            while self._registry.search_import(v.name) is not None:
                v.name += PARAM_SUFFIX

    def _search_var(self, name: str) -> Var | None:
        for v in self._vars:
            if v.name == name:
                return v
        return None

    def _resolve_var_name_conflict(self, suggested: str) -> str:
        # The first holder of a conflicted name is renamed too, so the
        # sequence reads x1, x2, ... rather than x, x1, ...
        if suggested not in self._conflicted:
            conflict = self._search_var(suggested)
            if conflict is None:
                raise InvariantError(f"no var named {suggested} to disambiguate")
            conflict.name = self._next_free_name(suggested)
            self._conflicted.add(suggested)
        return self._next_free_name(suggested)

    def _next_free_name(self, base: str) -> str:
        n = 1
        while True:
            candidate = f"{base}{n}"
            if self._search_var(candidate) is None and self._registry.search_import(candidate) is None:
                return candidate
            n += 1


def var_name(declared: Param, suffix: str) -> str:
    name = declared.name
    if name and name != "_":
        name += suffix
    else:
        name = var_name_for_type(declared.type) + suffix

    if name in RESERVED_NAMES:
        name += PARAM_SUFFIX
    return name


def var_name_for_type(t: TypeNode) -> str:
    if isinstance(t, Named):
        if t.pkg is None and t.name == "error":
            return "err"
        name = _decapitalise(t.name)
        if name == t.name:
            # Unexported type name; the var would shadow the type.
            name += PARAM_SUFFIX
        return name
    if isinstance(t, Basic):
        return {"boolean": "b", "integer": "n", "float": "f", "string": "s"}.get(basic_kind(t), "v")
    if isinstance(t, (Array, Slice)):
        return _nested_type_name(t.elem) + "s"
    if isinstance(t, Struct):
        return "val"
    if isinstance(t, Pointer):
        return var_name_for_type(t.elem)
    if isinstance(t, Signature):
        return "fn"
    if isinstance(t, Interface):
        return "ifaceVal"
    if isinstance(t, Map):
        return _nested_type_name(t.key) + "To" + _capitalise(_nested_type_name(t.elem))
    if isinstance(t, Chan):
        return _nested_type_name(t.elem) + "Ch"
    if isinstance(t, (TypeParam, Union)):
        return "v"
    raise InvariantError(f"unhandled type node: {t!r}")


def _nested_type_name(t: TypeNode) -> str:
    if isinstance(t, Basic):
        return _decapitalise(t.name)
    return var_name_for_type(t)


def _capitalise(s: str) -> str:
    return s[:1].upper() + s[1:]


def _decapitalise(s: str) -> str:
    return s[:1].lower() + s[1:]
