from __future__ import annotations

from mirip.registry import Registry
from mirip.registry.method_scope import var_name_for_type
from mirip.types import (
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
    SourcePackage,
    Struct,
    TypeParam,
)

SVC = GoPackage(path="example.com/app/svc", name="svc")
CONTEXT = GoPackage(path="context", name="context")
JSON = GoPackage(path="encoding/json", name="json")


def _scope(mock_pkg_name: str = ""):  # noqa: ANN202
    reg = Registry(SourcePackage(pkg=SVC), mock_pkg_name)
    return reg, reg.method_scope()


def test_declared_name_is_kept_and_package_registered():
    reg, scope = _scope()
    v = scope.add_var(Param("ctx", Named(pkg=CONTEXT, name="Context")), "")

    assert v.name == "ctx"
    assert v.type_string() == "context.Context"
    assert [p.path() for p in reg.imports()] == ["context"]


def test_result_suffix_applies_to_declared_names():
    _, scope = _scope()
    assert scope.add_var(Param("n", Basic("int")), "Out").name == "nOut"


def test_unnamed_vars_are_named_after_their_type():
    assert var_name_for_type(Slice(Basic("byte"))) == "bytes"
    assert var_name_for_type(Named(pkg=None, name="error")) == "err"
    assert var_name_for_type(Pointer(Named(pkg=SVC, name="User"))) == "user"
    assert var_name_for_type(Named(pkg=SVC, name="config")) == "configMiripParam"
    assert var_name_for_type(Basic("bool")) == "b"
    assert var_name_for_type(Basic("uint16")) == "n"
    assert var_name_for_type(Basic("float64")) == "f"
    assert var_name_for_type(Basic("string")) == "s"
    assert var_name_for_type(Basic("complex128")) == "v"
    assert var_name_for_type(Map(Basic("string"), Basic("int"))) == "stringToInt"
    assert var_name_for_type(Chan(Basic("int"))) == "intCh"
    assert var_name_for_type(Slice(Slice(Basic("string")))) == "stringss"
    assert var_name_for_type(Signature()) == "fn"
    assert var_name_for_type(Struct()) == "val"
    assert var_name_for_type(Interface()) == "ifaceVal"


def test_blank_identifier_is_renamed():
    _, scope = _scope()
    assert scope.add_var(Param("_", Basic("string")), "").name == "s"


def test_reserved_words_get_suffix():
    _, scope = _scope()

    assert scope.add_var(Param("type", Basic("string")), "").name == "typeMiripParam"
    assert scope.add_var(Param("mock", Basic("string")), "").name == "mockMiripParam"
    assert scope.add_var(Param("", Named(pkg=None, name="string")), "").name != "string"


def test_name_equal_to_registered_qualifier_gets_suffix():
    _, scope = _scope()
    scope.add_var(Param("ctx", Named(pkg=CONTEXT, name="Context")), "")

    assert scope.add_var(Param("context", Basic("string")), "").name == "contextMiripParam"


def test_earlier_var_is_renamed_when_a_package_takes_its_name():
    _, scope = _scope()
    first = scope.add_var(Param("json", Basic("string")), "")
    second = scope.add_var(Param("", Named(pkg=JSON, name="RawMessage")), "")

    assert first.name == "jsonMiripParam"
    assert second.name == "rawMessage"
    assert second.type_string() == "json.RawMessage"


def test_duplicate_names_are_numbered_retroactively():
    _, scope = _scope()
    vs = [scope.add_var(Param("", Basic("string")), "") for _ in range(3)]

    assert [v.name for v in vs] == ["s1", "s2", "s3"]
    assert [v.name for v in scope.vars] == ["s1", "s2", "s3"]


def test_numbering_skips_package_qualifiers():
    reg, scope = _scope()
    reg.add_import(GoPackage(path="example.com/lib/s1", name="s1"))
    vs = [scope.add_var(Param("", Basic("string")), "") for _ in range(2)]

    assert [v.name for v in vs] == ["s2", "s3"]


def test_scopes_are_isolated():
    reg, _ = _scope()
    a = reg.method_scope().add_var(Param("", Basic("string")), "")
    b = reg.method_scope().add_var(Param("", Basic("string")), "")

    assert a.name == b.name == "s"


def test_own_package_types_are_unqualified():
    _, scope = _scope()
    v = scope.add_var(Param("u", Pointer(Named(pkg=SVC, name="User"))), "")
    assert v.type_string() == "*User"


def test_own_package_types_are_qualified_for_other_mock_package():
    reg, scope = _scope("mocks")
    v = scope.add_var(Param("u", Pointer(Named(pkg=SVC, name="User"))), "")

    assert v.type_string() == "*svc.User"
    assert [p.path() for p in reg.imports()] == ["example.com/app/svc"]


def test_qualifier_change_is_visible_to_earlier_vars():
    reg, scope = _scope()
    auth = GoPackage(path="github.com/acme/auth/client", name="client")
    storage = GoPackage(path="github.com/acme/storage/client", name="client")

    a = scope.add_var(Param("a", Named(pkg=auth, name="Token")), "")
    assert a.type_string() == "client.Token"

    b = scope.add_var(Param("b", Named(pkg=storage, name="Bucket")), "")
    assert a.type_string() == "authclient.Token"
    assert b.type_string() == "storageclient.Bucket"


def test_nested_type_packages_are_registered_in_path_order():
    reg, scope = _scope()
    t = Map(Named(pkg=JSON, name="Number"), Slice(Named(pkg=CONTEXT, name="Context")))
    v = scope.add_var(Param("m", t), "")

    assert v.type_string() == "map[json.Number][]context.Context"
    assert sorted(v.imports) == ["context", "encoding/json"]
    assert [p.path() for p in reg.imports()] == ["context", "encoding/json"]


def test_nine_unnamed_vars_are_numbered_without_gaps():
    _, scope = _scope()
    vs = [scope.add_var(Param("", TypeParam("T")), "") for _ in range(9)]

    assert [v.name for v in vs] == [f"v{i}" for i in range(1, 10)]


def test_var_is_renamed_when_an_untouched_package_is_realiased():
    reg, scope = _scope()
    auth = GoPackage(path="github.com/acme/auth/client", name="client")
    storage = GoPackage(path="github.com/acme/storage/client", name="client")

    held = scope.add_var(Param("authclient", Basic("string")), "")
    scope.add_var(Param("tok", Named(pkg=auth, name="Token")), "")
    scope.add_var(Param("bkt", Named(pkg=storage, name="Bucket")), "")

    assert reg.search_import("authclient") is not None
    assert held.name == "authclientMiripParam"
    names = [v.name for v in scope.vars]
    assert not [n for n in names if reg.search_import(n) is not None]


def test_builtin_named_types_register_no_package():
    reg, scope = _scope()
    t = Signature(params=(Param("", Named(pkg=None, name="error")), Param("", Named(pkg=JSON, name="Number"))))
    v = scope.add_var(Param("fn", t), "")

    assert v.type_string() == "func(error, json.Number)"
    assert [p.path() for p in reg.imports()] == ["encoding/json"]
