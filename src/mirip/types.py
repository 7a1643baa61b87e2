"""Type-node model for Go interface signatures.

The nodes mirror the subset of go/types that can appear in a method
signature. They are produced by the type oracle and treated as read-only.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Union as _Union

from .errors import InterfaceNotFoundError, InvariantError, LoadError, NotAnInterfaceError


@dataclass(frozen=True)
class GoPackage:
    path: str
    name: str


@dataclass(frozen=True)
class Basic:
    name: str


@dataclass(frozen=True)
class Named:
    pkg: GoPackage | None
    name: str
    args: tuple["TypeNode", ...] = ()


@dataclass(frozen=True)
class Pointer:
    elem: "TypeNode"


@dataclass(frozen=True)
class Array:
    length: int
    elem: "TypeNode"


@dataclass(frozen=True)
class Slice:
    elem: "TypeNode"


@dataclass(frozen=True)
class Map:
    key: "TypeNode"
    elem: "TypeNode"


@dataclass(frozen=True)
class Chan:
    elem: "TypeNode"
    dir: str = "both"  # both | send | recv


@dataclass(frozen=True)
class Field:
    name: str
    type: "TypeNode"
    embedded: bool = False
    tag: str = ""


@dataclass(frozen=True)
class Struct:
    fields: tuple[Field, ...] = ()


@dataclass(frozen=True)
class Param:
    name: str
    type: "TypeNode"


@dataclass(frozen=True)
class Signature:
    params: tuple[Param, ...] = ()
    results: tuple[Param, ...] = ()
    variadic: bool = False


@dataclass(frozen=True)
class Method:
    name: str
    sig: Signature


@dataclass(frozen=True)
class Interface:
    methods: tuple[Method, ...] = ()
    embeddeds: tuple["TypeNode", ...] = ()


@dataclass(frozen=True)
class TypeParam:
    name: str


@dataclass(frozen=True)
class Term:
    type: "TypeNode"
    tilde: bool = False


@dataclass(frozen=True)
class Union:
    terms: tuple[Term, ...] = ()


TypeNode = _Union[Basic, Named, Pointer, Array, Slice, Map, Chan, Struct, Interface, Signature, TypeParam, Union]

Qualifier = Callable[[GoPackage], str]


_BASIC_KINDS = {
    "bool": "boolean",
    "string": "string",
    "float32": "float",
    "float64": "float",
    "complex64": "complex",
    "complex128": "complex",
    **{
        n: "integer"
        for n in (
            "int", "int8", "int16", "int32", "int64",
            "uint", "uint8", "uint16", "uint32", "uint64",
            "uintptr", "byte", "rune",
        )
    },
}


def basic_kind(b: Basic) -> str:
    return _BASIC_KINDS.get(b.name, "other")


def type_string(t: TypeNode, qualifier: Qualifier) -> str:
    """Render `t` in Go syntax, prefixing named types with `qualifier(pkg)`."""
    if isinstance(t, Basic):
        return t.name
    if isinstance(t, Named):
        name = t.name
        if t.pkg is not None:
            q = qualifier(t.pkg)
            if q:
                name = f"{q}.{name}"
        if t.args:
            name += "[" + ", ".join(type_string(a, qualifier) for a in t.args) + "]"
        return name
    if isinstance(t, Pointer):
        return "*" + type_string(t.elem, qualifier)
    if isinstance(t, Array):
        return f"[{t.length}]" + type_string(t.elem, qualifier)
    if isinstance(t, Slice):
        return "[]" + type_string(t.elem, qualifier)
    if isinstance(t, Map):
        return f"map[{type_string(t.key, qualifier)}]{type_string(t.elem, qualifier)}"
    if isinstance(t, Chan):
        elem = type_string(t.elem, qualifier)
        if t.dir == "send":
            return "chan<- " + elem
        if t.dir == "recv":
            return "<-chan " + elem
        # chan (<-chan T) needs parentheses to keep its meaning.
        if isinstance(t.elem, Chan) and t.elem.dir == "recv":
            elem = f"({elem})"
        return "chan " + elem
    if isinstance(t, Struct):
        parts = []
        for f in t.fields:
            s = type_string(f.type, qualifier) if f.embedded else f"{f.name} {type_string(f.type, qualifier)}"
            if f.tag:
                s += " " + json.dumps(f.tag)
            parts.append(s)
        return "struct{" + "; ".join(parts) + "}"
    if isinstance(t, Interface):
        parts = [m.name + signature_string(m.sig, qualifier) for m in t.methods]
        parts.extend(type_string(e, qualifier) for e in t.embeddeds)
        return "interface{" + "; ".join(parts) + "}"
    if isinstance(t, Signature):
        return "func" + signature_string(t, qualifier)
    if isinstance(t, TypeParam):
        return t.name
    if isinstance(t, Union):
        return " | ".join(("~" if term.tilde else "") + type_string(term.type, qualifier) for term in t.terms)
    raise InvariantError(f"unhandled type node: {t!r}")


def signature_string(sig: Signature, qualifier: Qualifier) -> str:
    """Render the `(params) results` part of a signature (without `func`)."""
    params = _tuple_string(sig.params, qualifier, variadic=sig.variadic)
    if not sig.results:
        return f"({params})"
    if len(sig.results) == 1 and not sig.results[0].name:
        return f"({params}) {type_string(sig.results[0].type, qualifier)}"
    return f"({params}) ({_tuple_string(sig.results, qualifier, variadic=False)})"


def _tuple_string(params: tuple[Param, ...], qualifier: Qualifier, *, variadic: bool) -> str:
    out: list[str] = []
    for i, p in enumerate(params):
        if variadic and i == len(params) - 1 and isinstance(p.type, Slice):
            ts = "..." + type_string(p.type.elem, qualifier)
        else:
            ts = type_string(p.type, qualifier)
        out.append(f"{p.name} {ts}" if p.name else ts)
    return ", ".join(out)


def walk_named(t: TypeNode) -> Iterator[Named]:
    """Yield every named type that appears in `t`, outermost first."""
    if isinstance(t, Named):
        yield t
        for a in t.args:
            yield from walk_named(a)
    elif isinstance(t, (Pointer, Array, Slice, Chan)):
        yield from walk_named(t.elem)
    elif isinstance(t, Map):
        yield from walk_named(t.key)
        yield from walk_named(t.elem)
    elif isinstance(t, Signature):
        for p in (*t.params, *t.results):
            yield from walk_named(p.type)
    elif isinstance(t, Struct):  # anonymous struct
        for f in t.fields:
            yield from walk_named(f.type)
    elif isinstance(t, Interface):  # anonymous interface
        for m in t.methods:
            yield from walk_named(m.sig)
        for e in t.embeddeds:
            yield from walk_named(e)
    elif isinstance(t, Union):
        for term in t.terms:
            yield from walk_named(term.type)
    elif not isinstance(t, (Basic, TypeParam)):
        raise InvariantError(f"unhandled type node: {t!r}")


@dataclass(frozen=True)
class TypeParamDecl:
    name: str
    constraint: TypeNode
    # Underlying interface of a named constraint, when the oracle provides it.
    underlying: TypeNode | None = None


@dataclass(frozen=True)
class InterfaceDecl:
    name: str
    methods: tuple[Method, ...] = ()
    type_params: tuple[TypeParamDecl, ...] = ()


@dataclass(frozen=True)
class SourcePackage:
    """One loaded Go package as seen by the type oracle."""

    pkg: GoPackage
    # import path -> alias used by the package's own source files
    aliases: dict[str, str] = field(default_factory=dict)
    interfaces: dict[str, InterfaceDecl] = field(default_factory=dict)
    other_types: frozenset[str] = frozenset()
    errors: tuple[str, ...] = ()

    def lookup_interface(self, name: str) -> InterfaceDecl:
        iface = self.interfaces.get(name)
        if iface is not None:
            return iface
        if name in self.other_types:
            raise NotAnInterfaceError(f"{name} is not an interface")
        raise InterfaceNotFoundError(f"interface not found: {name}")

    @classmethod
    def from_obj(cls, obj: Any) -> "SourcePackage":
        """Decode the scanner's JSON/msgpack object."""
        if not isinstance(obj, dict):
            raise LoadError("invalid type graph: expected an object")

        pkg = _package_from_obj(obj.get("pkg"))
        if pkg is None:
            raise LoadError("invalid type graph: missing package")

        aliases: dict[str, str] = {}
        raw_aliases = obj.get("aliases")
        if isinstance(raw_aliases, dict):
            for path, alias in raw_aliases.items():
                if isinstance(path, str) and isinstance(alias, str) and alias:
                    aliases[path] = alias

        interfaces: dict[str, InterfaceDecl] = {}
        others: set[str] = set()
        for decl in _list(obj.get("types"), "types"):
            if not isinstance(decl, dict) or not isinstance(decl.get("name"), str):
                raise LoadError("invalid type graph: bad type declaration")
            name = decl["name"]
            if not decl.get("interface"):
                others.add(name)
                continue
            methods = tuple(_method_from_obj(m) for m in _list(decl.get("methods"), "methods"))
            tparams = tuple(_type_param_from_obj(tp) for tp in _list(decl.get("type_params"), "type_params"))
            interfaces[name] = InterfaceDecl(name=name, methods=methods, type_params=tparams)

        errors = tuple(e for e in _list(obj.get("errors"), "errors") if isinstance(e, str))
        return cls(
            pkg=pkg,
            aliases=aliases,
            interfaces=interfaces,
            other_types=frozenset(others),
            errors=errors,
        )


def type_from_obj(obj: Any) -> TypeNode:
    if not isinstance(obj, dict):
        raise LoadError(f"invalid type node: {obj!r}")
    kind = obj.get("kind")
    if kind == "basic":
        return Basic(name=_str(obj, "name"))
    if kind == "named":
        return Named(
            pkg=_package_from_obj(obj.get("pkg")),
            name=_str(obj, "name"),
            args=tuple(type_from_obj(a) for a in _list(obj.get("args"), "args")),
        )
    if kind == "pointer":
        return Pointer(elem=type_from_obj(obj.get("elem")))
    if kind == "array":
        length = obj.get("len", 0)
        if not isinstance(length, int):
            raise LoadError(f"invalid array length: {length!r}")
        return Array(length=length, elem=type_from_obj(obj.get("elem")))
    if kind == "slice":
        return Slice(elem=type_from_obj(obj.get("elem")))
    if kind == "map":
        return Map(key=type_from_obj(obj.get("key")), elem=type_from_obj(obj.get("elem")))
    if kind == "chan":
        d = obj.get("dir") or "both"
        if d not in {"both", "send", "recv"}:
            raise LoadError(f"invalid channel direction: {d!r}")
        return Chan(elem=type_from_obj(obj.get("elem")), dir=d)
    if kind == "struct":
        fields = []
        for f in _list(obj.get("fields"), "fields"):
            if not isinstance(f, dict):
                raise LoadError(f"invalid struct field: {f!r}")
            fields.append(
                Field(
                    name=_str(f, "name"),
                    type=type_from_obj(f.get("type")),
                    embedded=bool(f.get("embedded", False)),
                    tag=str(f.get("tag") or ""),
                )
            )
        return Struct(fields=tuple(fields))
    if kind == "interface":
        return Interface(
            methods=tuple(_method_from_obj(m) for m in _list(obj.get("methods"), "methods")),
            embeddeds=tuple(type_from_obj(e) for e in _list(obj.get("embeddeds"), "embeddeds")),
        )
    if kind == "signature":
        return _signature_from_obj(obj)
    if kind == "typeparam":
        return TypeParam(name=_str(obj, "name"))
    if kind == "union":
        terms = []
        for t in _list(obj.get("terms"), "terms"):
            if not isinstance(t, dict):
                raise LoadError(f"invalid union term: {t!r}")
            terms.append(Term(type=type_from_obj(t.get("type")), tilde=bool(t.get("tilde", False))))
        return Union(terms=tuple(terms))
    raise LoadError(f"unknown type node kind: {kind!r}")


def _signature_from_obj(obj: Any) -> Signature:
    if not isinstance(obj, dict) or obj.get("kind") != "signature":
        raise LoadError(f"invalid signature: {obj!r}")
    return Signature(
        params=tuple(_param_from_obj(p) for p in _list(obj.get("params"), "params")),
        results=tuple(_param_from_obj(p) for p in _list(obj.get("results"), "results")),
        variadic=bool(obj.get("variadic", False)),
    )


def _param_from_obj(obj: Any) -> Param:
    if not isinstance(obj, dict):
        raise LoadError(f"invalid parameter: {obj!r}")
    name = obj.get("name") or ""
    if not isinstance(name, str):
        raise LoadError(f"invalid parameter name: {name!r}")
    return Param(name=name, type=type_from_obj(obj.get("type")))


def _type_param_from_obj(obj: Any) -> TypeParamDecl:
    if not isinstance(obj, dict):
        raise LoadError(f"invalid type parameter: {obj!r}")
    underlying = obj.get("underlying")
    return TypeParamDecl(
        name=_str(obj, "name"),
        constraint=type_from_obj(obj.get("constraint")),
        underlying=type_from_obj(underlying) if underlying is not None else None,
    )


def _method_from_obj(obj: Any) -> Method:
    if not isinstance(obj, dict):
        raise LoadError(f"invalid method: {obj!r}")
    return Method(name=_str(obj, "name"), sig=_signature_from_obj(obj.get("sig")))


def _package_from_obj(obj: Any) -> GoPackage | None:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise LoadError(f"invalid package: {obj!r}")
    return GoPackage(path=_str(obj, "path"), name=_str(obj, "name"))


def _str(obj: dict[str, Any], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str) or not v:
        raise LoadError(f"invalid type graph: missing {key!r} in {obj!r}")
    return v


def _list(v: Any, what: str) -> list[Any]:
    if v is None:
        return []
    if not isinstance(v, list):
        raise LoadError(f"invalid type graph: {what} must be a list")
    return v
