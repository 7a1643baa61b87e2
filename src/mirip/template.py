"""Render mock declarations as Go source text.

Everything here reads names and qualifiers lazily from `Var` and `Package`
records, so rendering must happen after every interface has been processed.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .registry import Package, Var
from .types import Interface, Named, TypeParamDecl, Union

HEADER = [
    "// Code generated by mirip; DO NOT EDIT.",
    "// github.com/gmhafiz/mirip",
]

_INITIALISMS = frozenset(
    {
        "ACL", "API", "ASCII", "CPU", "CSS", "DNS", "EOF", "GUID", "HTML", "HTTP", "HTTPS", "ID",
        "IP", "JSON", "LHS", "QPS", "RAM", "RHS", "RPC", "SLA", "SMTP", "SQL", "SSH", "TCP",
        "TLS", "TTL", "UDP", "UI", "UID", "UUID", "URI", "URL", "UTF8", "VM", "XML", "XMPP",
        "XSRF", "XSS",
    }
)


def exported(s: str) -> str:
    if not s:
        return s
    if s.upper() in _INITIALISMS:
        return s.upper()
    return s[:1].upper() + s[1:]


@dataclass
class Param:
    var: Var
    variadic: bool = False

    @property
    def name(self) -> str:
        return self.var.name

    def method_arg(self) -> str:
        if self.variadic:
            return f"{self.name} ...{self.var.type_string()[2:]}"
        return f"{self.name} {self.type_string()}"

    def call_name(self) -> str:
        if self.variadic:
            return self.name + "..."
        return self.name

    def type_string(self) -> str:
        if self.variadic:
            return "[]" + self.var.type_string()[2:]
        return self.var.type_string()


@dataclass
class MethodData:
    name: str
    params: list[Param] = field(default_factory=list)
    returns: list[Param] = field(default_factory=list)

    def arg_list(self) -> str:
        return ", ".join(p.method_arg() for p in self.params)

    def arg_call_list(self) -> str:
        return ", ".join(p.call_name() for p in self.params)

    def return_arg_type_list(self) -> str:
        types = [p.type_string() for p in self.returns]
        if len(types) > 1:
            return "(" + ", ".join(types) + ")"
        return ", ".join(types)

    def return_arg_name_list(self) -> str:
        return ", ".join(p.name for p in self.returns)

    def func_type(self) -> str:
        ret = self.return_arg_type_list()
        return f"func({self.arg_list()})" + (f" {ret}" if ret else "")


@dataclass
class TypeParamData:
    decl: TypeParamDecl
    var: Var

    @property
    def name(self) -> str:
        return self.decl.name

    def constraint_string(self) -> str:
        return self.var.type_string()

    def ensure_type_arg(self) -> str | None:
        """A concrete type argument satisfying the constraint, if one is evident."""
        c = self.decl.constraint
        if isinstance(c, Union):
            return self.var.render(c.terms[0].type) if c.terms else None
        if isinstance(c, Interface):
            whole = self.var.render(c) if c.methods else "any"
            return self._type_set_arg(c, whole)
        if isinstance(c, Named):
            if c.pkg is None and c.name == "comparable":
                return None
            # A named constraint may carry a type set; it is only usable as a
            # type argument once its underlying interface is known.
            if not isinstance(self.decl.underlying, Interface):
                return None
            return self._type_set_arg(self.decl.underlying, self.var.render(c))
        return self.var.render(c)

    def _type_set_arg(self, iface: Interface, whole: str) -> str | None:
        if not iface.embeddeds:
            # Method-only interfaces satisfy themselves.
            return whole
        if iface.methods or len(iface.embeddeds) != 1 or not isinstance(iface.embeddeds[0], Union):
            return None
        terms = iface.embeddeds[0].terms
        if not terms or not self.var.can_render(terms[0].type):
            return None
        return self.var.render(terms[0].type)


@dataclass
class MockData:
    interface_name: str
    mock_name: str
    methods: list[MethodData] = field(default_factory=list)
    type_params: list[TypeParamData] = field(default_factory=list)

    @property
    def expectation_name(self) -> str:
        return self.mock_name + "Expectation"

    @property
    def expect_method(self) -> str:
        if any(m.name == "Expect" for m in self.methods):
            return "MiripExpect"
        return "Expect"

    def type_param_decls(self) -> str:
        if not self.type_params:
            return ""
        return "[" + ", ".join(f"{tp.name} {tp.constraint_string()}" for tp in self.type_params) + "]"

    def type_param_names(self) -> str:
        if not self.type_params:
            return ""
        return "[" + ", ".join(tp.name for tp in self.type_params) + "]"

    def ensure_type_args(self) -> str | None:
        if not self.type_params:
            return ""
        args = [tp.ensure_type_arg() for tp in self.type_params]
        if any(a is None for a in args):
            return None
        return "[" + ", ".join(a for a in args if a is not None) + "]"


@dataclass
class TemplateData:
    pkg_name: str
    mocks: list[MockData]
    imports: list[Package]
    src_pkg_name: str = ""
    src_pkg: Package | None = None
    stub_impl: bool = False
    skip_ensure: bool = False

    def src_pkg_qualifier(self) -> str:
        if self.src_pkg is not None:
            return self.src_pkg.qualifier() + "."
        if self.src_pkg_name and self.src_pkg_name != self.pkg_name:
            return self.src_pkg_name + "."
        return ""

    def sync_pkg_qualifier(self) -> str:
        for imp in self.imports:
            if imp.path() == "sync":
                return imp.qualifier()
        return "sync"


def import_statement(imp: Package) -> str:
    if not imp.alias:
        return f'"{imp.path()}"'
    return f'{imp.alias} "{imp.path()}"'


def render(data: TemplateData) -> str:
    lines: list[str] = [*HEADER, "", f"package {data.pkg_name}", ""]
    if data.imports:
        lines.append("import (")
        for imp in data.imports:
            lines.append("\t" + import_statement(imp))
        lines.append(")")
        lines.append("")

    for mock in data.mocks:
        lines.extend(_render_mock(data, mock))
    return "\n".join(lines).rstrip("\n") + "\n"


def _render_mock(data: TemplateData, mock: MockData) -> list[str]:
    iface = data.src_pkg_qualifier() + mock.interface_name
    recv = f"{mock.mock_name}{mock.type_param_names()}"
    tracking = not data.stub_impl and bool(mock.methods)
    lines: list[str] = []

    if not data.skip_ensure:
        type_args = mock.ensure_type_args()
        if type_args is not None:
            lines.extend(
                [
                    f"// Ensure that {mock.mock_name} does implement {iface}.",
                    "// If this is not the case, regenerate this file with mirip.",
                    f"var _ {iface}{type_args} = &{mock.mock_name}{type_args}{{}}",
                    "",
                ]
            )

    lines.extend(_render_doc(data, mock, iface))
    lines.append(f"type {mock.mock_name}{mock.type_param_decls()} struct {{")
    for i, m in enumerate(mock.methods):
        if i:
            lines.append("")
        lines.append(f"\t// {m.name}Func mocks the {m.name} method.")
        lines.append(f"\t{m.name}Func {m.func_type()}")
    if tracking:
        lines.append("")
        lines.append("\t// calls tracks calls to the methods.")
        lines.append("\tcalls struct {")
        for m in mock.methods:
            lines.append(f"\t\t// {m.name} holds details about calls to the {m.name} method.")
            lines.append(f"\t\t{m.name} []struct {{")
            for p in m.params:
                lines.append(f"\t\t\t// {exported(p.name)} is the {p.name} argument value.")
                lines.append(f"\t\t\t{exported(p.name)} {p.type_string()}")
            lines.append("\t\t}")
        lines.append("\t}")
        sync_q = data.sync_pkg_qualifier()
        for m in mock.methods:
            lines.append(f"\tlock{m.name} {sync_q}.RWMutex")
    lines.append("}")
    lines.append("")

    lines.append(f"// New{mock.mock_name} returns a {mock.mock_name} with no behavior configured.")
    lines.append(f"func New{mock.mock_name}{mock.type_param_decls()}() *{recv} {{")
    lines.append(f"\treturn &{recv}{{}}")
    lines.append("}")
    lines.append("")

    for m in mock.methods:
        if data.stub_impl:
            lines.extend(_render_stub_method(mock, recv, m))
        else:
            lines.extend(_render_method(mock, recv, m))
            lines.extend(_render_calls_accessor(mock, recv, m))

    lines.extend(_render_expectation(mock, recv))
    return lines


def _render_doc(data: TemplateData, mock: MockData, iface: str) -> list[str]:
    mocked = f"mocked{mock.interface_name}"
    lines = [
        f"// {mock.mock_name} is a mock implementation of {iface}.",
        "//",
        f"//\tfunc TestSomethingThatUses{mock.interface_name}(t *testing.T) {{",
        "//",
        f"//\t\t// make and configure a mocked {iface}",
        f"//\t\t{mocked} := New{mock.mock_name}()",
    ]
    if mock.methods:
        lines.append(f"//\t\t{mocked}.{mock.expect_method}().")
        for i, m in enumerate(mock.methods):
            ret = m.return_arg_type_list()
            lines.append(f"//\t\t\t{m.name}(func({m.arg_list()}){' ' + ret if ret else ''} {{")
            lines.append(f'//\t\t\t\tpanic("mock out the {m.name} method")')
            lines.append("//\t\t\t})" + ("." if i < len(mock.methods) - 1 else ""))
    lines.extend(
        [
            "//",
            f"//\t\t// use {mocked} in code that requires {iface}",
            "//\t\t// and then make assertions.",
            "//",
            "//\t}",
        ]
    )
    return lines


def _render_method(mock: MockData, recv: str, m: MethodData) -> list[str]:
    ret = m.return_arg_type_list()
    lines = [
        f"// {m.name} calls {m.name}Func.",
        f"func (mock *{recv}) {m.name}({m.arg_list()}){' ' + ret if ret else ''} {{",
        f"\tif mock.{m.name}Func == nil {{",
        f'\t\tpanic("{mock.mock_name}.{m.name}Func: method is nil but {mock.interface_name}.{m.name} was just called")',
        "\t}",
        "\tcallInfo := struct {",
    ]
    for p in m.params:
        lines.append(f"\t\t{exported(p.name)} {p.type_string()}")
    lines.append("\t}{")
    for p in m.params:
        lines.append(f"\t\t{exported(p.name)}: {p.name},")
    lines.append("\t}")
    lines.append(f"\tmock.lock{m.name}.Lock()")
    lines.append(f"\tmock.calls.{m.name} = append(mock.calls.{m.name}, callInfo)")
    lines.append(f"\tmock.lock{m.name}.Unlock()")
    if m.returns:
        lines.append(f"\treturn mock.{m.name}Func({m.arg_call_list()})")
    else:
        lines.append(f"\tmock.{m.name}Func({m.arg_call_list()})")
    lines.append("}")
    lines.append("")
    return lines


def _render_stub_method(mock: MockData, recv: str, m: MethodData) -> list[str]:
    ret = m.return_arg_type_list()
    lines = [
        f"// {m.name} calls {m.name}Func, or returns zero values when it is nil.",
        f"func (mock *{recv}) {m.name}({m.arg_list()}){' ' + ret if ret else ''} {{",
        f"\tif mock.{m.name}Func == nil {{",
    ]
    if m.returns:
        lines.append("\t\tvar (")
        for r in m.returns:
            lines.append(f"\t\t\t{r.name} {r.type_string()}")
        lines.append("\t\t)")
        lines.append(f"\t\treturn {m.return_arg_name_list()}")
    else:
        lines.append("\t\treturn")
    lines.append("\t}")
    if m.returns:
        lines.append(f"\treturn mock.{m.name}Func({m.arg_call_list()})")
    else:
        lines.append(f"\tmock.{m.name}Func({m.arg_call_list()})")
    lines.append("}")
    lines.append("")
    return lines


def _call_struct(m: MethodData, indent: str) -> list[str]:
    return [f"{indent}\t{exported(p.name)} {p.type_string()}" for p in m.params]


def _render_calls_accessor(mock: MockData, recv: str, m: MethodData) -> list[str]:
    lines = [
        f"// {m.name}Calls gets all the calls that were made to {m.name}.",
        "// Check the length with:",
        "//",
        f"//\tlen(mocked{mock.interface_name}.{m.name}Calls())",
        f"func (mock *{recv}) {m.name}Calls() []struct {{",
        *_call_struct(m, ""),
        "} {",
        "\tvar calls []struct {",
        *_call_struct(m, "\t"),
        "\t}",
        f"\tmock.lock{m.name}.RLock()",
        f"\tcalls = mock.calls.{m.name}",
        f"\tmock.lock{m.name}.RUnlock()",
        "\treturn calls",
        "}",
        "",
    ]
    return lines


def _render_expectation(mock: MockData, recv: str) -> list[str]:
    exp = mock.expectation_name
    exp_recv = f"{exp}{mock.type_param_names()}"
    lines = [
        f"// {mock.expect_method} returns a {exp} for configuring the mock.",
        f"func (mock *{recv}) {mock.expect_method}() *{exp_recv} {{",
        f"\treturn &{exp_recv}{{mock: mock}}",
        "}",
        "",
        f"// {exp} configures the behavior of a {mock.mock_name}.",
        "// Every setter returns the expectation so calls can be chained.",
        f"type {exp}{mock.type_param_decls()} struct {{",
        f"\tmock *{recv}",
        "}",
        "",
    ]
    for m in mock.methods:
        lines.extend(
            [
                f"// {m.name} sets the function called by {mock.mock_name}.{m.name}.",
                f"func (expect *{exp_recv}) {m.name}(impl {m.func_type()}) *{exp_recv} {{",
                f"\texpect.mock.{m.name}Func = impl",
                "\treturn expect",
                "}",
                "",
            ]
        )
        if not m.returns:
            continue
        out_args = ", ".join(f"{r.name} {r.type_string()}" for r in m.returns)
        lines.extend(
            [
                f"// {m.name}Returns makes {mock.mock_name}.{m.name} return the given values.",
                f"func (expect *{exp_recv}) {m.name}Returns({out_args}) *{exp_recv} {{",
                f"\texpect.mock.{m.name}Func = {m.func_type()} {{",
                f"\t\treturn {m.return_arg_name_list()}",
                "\t}",
                "\treturn expect",
                "}",
                "",
            ]
        )
    return lines
