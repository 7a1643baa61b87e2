"""Package registry and per-method variable allocation."""

from __future__ import annotations

from .method_scope import MethodScope
from .package import Package, strip_vendor_path
from .registry import Registry
from .var import Var

__all__ = [
    "MethodScope",
    "Package",
    "Registry",
    "Var",
    "strip_vendor_path",
]
