from __future__ import annotations

import pytest

from mirip.types import (
    Basic,
    GoPackage,
    Interface,
    InterfaceDecl,
    Method,
    Named,
    Param,
    Pointer,
    Signature,
    Slice,
    SourcePackage,
    Term,
    TypeParam,
    TypeParamDecl,
    Union,
)

STORE_PKG = GoPackage(path="example.com/app/store", name="store")
CONTEXT_PKG = GoPackage(path="context", name="context")

ERROR = Named(pkg=None, name="error")
STRING = Basic("string")
USER = Named(pkg=STORE_PKG, name="User")


def _store_iface() -> InterfaceDecl:
    return InterfaceDecl(
        name="Store",
        methods=(
            Method(name="Close", sig=Signature()),
            Method(
                name="Get",
                sig=Signature(
                    params=(
                        Param("ctx", Named(pkg=CONTEXT_PKG, name="Context")),
                        Param("id", STRING),
                    ),
                    results=(Param("", Pointer(USER)), Param("", ERROR)),
                ),
            ),
            Method(
                name="Save",
                sig=Signature(
                    params=(Param("users", Slice(Pointer(USER))),),
                    results=(Param("", ERROR),),
                    variadic=True,
                ),
            ),
        ),
    )


def _cache_iface() -> InterfaceDecl:
    k, v = TypeParam("K"), TypeParam("V")
    return InterfaceDecl(
        name="Cache",
        methods=(
            Method(
                name="Get",
                sig=Signature(params=(Param("key", k),), results=(Param("", v), Param("", Basic("bool")))),
            ),
        ),
        type_params=(
            TypeParamDecl(name="K", constraint=Named(pkg=None, name="comparable")),
            TypeParamDecl(name="V", constraint=Interface()),
        ),
    )


def _getter_iface() -> InterfaceDecl:
    t = TypeParam("T")
    return InterfaceDecl(
        name="Getter",
        methods=(Method(name="Get", sig=Signature(results=(Param("", t),))),),
        type_params=(
            TypeParamDecl(name="T", constraint=Union(terms=(Term(Basic("int")), Term(STRING, tilde=True)))),
        ),
    )


@pytest.fixture
def store_pkg() -> SourcePackage:
    ifaces = [_store_iface(), _cache_iface(), _getter_iface()]
    return SourcePackage(
        pkg=STORE_PKG,
        interfaces={i.name: i for i in ifaces},
        other_types=frozenset({"User"}),
    )
