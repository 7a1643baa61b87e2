"""mirip: generate Go mock implementations of interfaces."""

from __future__ import annotations

from . import errors
from .mocker import Config, Mocker
from .oracle import GoOracle, StaticOracle

__all__ = [
    "Config",
    "GoOracle",
    "Mocker",
    "StaticOracle",
    "errors",
]
