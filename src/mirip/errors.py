"""Domain-specific errors for mirip."""

from __future__ import annotations


class MiripError(Exception):
    """Base error for mirip."""


class InvalidSelectorError(MiripError):
    """Raised when an interface selector (`Name` or `Name:Alias`) is malformed."""


class InterfaceNotFoundError(MiripError):
    """Raised when the source package does not declare the requested interface."""


class NotAnInterfaceError(MiripError):
    """Raised when the requested type exists but is not an interface."""


class LoadError(MiripError):
    """Raised when the source package cannot be loaded or its type graph decoded."""


class FormatError(MiripError):
    """Raised when the generated source cannot be formatted."""


class InvariantError(RuntimeError):
    """Raised when the naming/import allocator breaks one of its own invariants.

    It signals a bug in mirip, not bad input. It does not derive from
    MiripError, so the CLI never reports it as a user error.
    """
