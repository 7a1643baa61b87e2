"""Generate mock implementations for Go interfaces."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from . import template
from .errors import InvalidSelectorError
from .format import format_source
from .oracle import GoOracle, TypeOracle
from .registry import Registry
from .types import GoPackage, InterfaceDecl, Method, Param

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Config:
    src_dir: str | Path
    # Package name of the generated file; defaults to the source package name.
    pkg_name: str = ""
    formatter: str = "noop"
    stub_impl: bool = False
    skip_ensure: bool = False


def parse_interface_name(selector: str) -> tuple[str, str]:
    """Split `Name` or `Name:Alias` into (interface name, mock name)."""
    name, sep, alias = selector.partition(":")
    name = name.strip()
    alias = alias.strip()
    if not name:
        raise InvalidSelectorError(f"invalid interface selector: {selector!r}")
    if sep and not alias:
        raise InvalidSelectorError(f"missing mock name in selector: {selector!r}")
    return name, alias or name + "Mock"


class Mocker:
    """Mock generator for the interfaces of one source package.

    The source package is loaded on construction, so a missing directory or a
    package that fails to load is reported before any output is produced.
    """

    def __init__(self, config: Config, *, oracle: TypeOracle | None = None) -> None:
        self._cfg = config
        self._oracle = oracle if oracle is not None else GoOracle()
        self._src = self._oracle.load(config.src_dir)

    def mock(self, out: IO[str], *selectors: str) -> None:
        out.write(self.render(*selectors))

    def render(self, *selectors: str) -> str:
        if not selectors:
            raise InvalidSelectorError("must specify one interface")

        pairs = [parse_interface_name(s) for s in selectors]
        registry = Registry(self._src, self._cfg.pkg_name)
        decls = [registry.lookup_interface(name) for name, _ in pairs]

        # Packages the scaffolding itself needs are registered before any
        # variable is named, so no var can take their qualifiers.
        if not self._cfg.stub_impl and any(d.methods for d in decls):
            registry.add_import(GoPackage(path="sync", name="sync"))
        src_pkg = None
        if registry.src_pkg_name != self._pkg_name() and not self._cfg.skip_ensure:
            src_pkg = registry.add_import(registry.src_pkg)

        mocks = [
            self._mock_data(registry, decl, mock_name)
            for decl, (_, mock_name) in zip(decls, pairs)
        ]

        data = template.TemplateData(
            pkg_name=self._pkg_name(),
            mocks=mocks,
            imports=registry.imports(),
            src_pkg_name=registry.src_pkg_name,
            src_pkg=src_pkg,
            stub_impl=self._cfg.stub_impl,
            skip_ensure=self._cfg.skip_ensure,
        )
        src = template.render(data)
        logger.debug(
            "rendered %d mock(s) with %d import(s) for package %s",
            len(mocks),
            len(data.imports),
            data.pkg_name,
        )
        return format_source(src, self._cfg.formatter)

    def _pkg_name(self) -> str:
        return self._cfg.pkg_name or self._src.pkg.name

    def _mock_data(self, registry: Registry, decl: InterfaceDecl, mock_name: str) -> template.MockData:
        tp_scope = registry.method_scope()
        type_params = [
            template.TypeParamData(
                decl=tp,
                var=tp_scope.add_var(Param(name=tp.name, type=tp.constraint), ""),
            )
            for tp in decl.type_params
        ]
        return template.MockData(
            interface_name=decl.name,
            mock_name=mock_name,
            methods=[self._method_data(registry, m) for m in decl.methods],
            type_params=type_params,
        )

    def _method_data(self, registry: Registry, method: Method) -> template.MethodData:
        sig = method.sig
        scope = registry.method_scope()

        n = len(sig.params)
        params = []
        for i, p in enumerate(sig.params):
            v = scope.add_var(p, "")
            # check for final variadic argument
            params.append(template.Param(var=v, variadic=sig.variadic and i == n - 1 and v.is_slice()))

        returns = [template.Param(var=scope.add_var(r, "Out")) for r in sig.results]
        return template.MethodData(name=method.name, params=params, returns=returns)
