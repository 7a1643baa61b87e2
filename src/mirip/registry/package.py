from __future__ import annotations

from ..types import GoPackage

# Applied in order: "go-" and "-go" go before the bare "-".
_STRIP_TOKENS = ("go-", "-go", "-", "_", ".", "@", "+", "~")


def _sanitize(component: str) -> str:
    for tok in _STRIP_TOKENS:
        component = component.replace(tok, "")
    return component.lower()


def strip_vendor_path(path: str) -> str:
    """Drop everything up to and including the last `vendor/` segment."""
    if path.startswith("vendor/"):
        path = path[len("vendor/"):]
    idx = path.rfind("/vendor/")
    if idx == -1:
        return path
    return path[idx + len("/vendor/"):]


class Package:
    """An imported package and the qualifier used for its types."""

    def __init__(self, pkg: GoPackage, alias: str = "") -> None:
        self.pkg = pkg
        self.alias = alias

    def qualifier(self) -> str:
        if self.alias:
            return self.alias
        return self.pkg.name

    def path(self) -> str:
        return strip_vendor_path(self.pkg.path)

    def depth(self) -> int:
        return len(self.path().split("/"))

    def unique_name(self, lvl: int) -> str:
        """Concatenate the last `lvl + 1` path components, closest to root first.

        Two distinct import paths always differ at some depth, so increasing
        `lvl` eventually yields distinct names.
        """
        parts = list(reversed(self.path().split("/")))
        name = ""
        for i in range(min(len(parts), lvl + 1)):
            name = _sanitize(parts[i]) + name
        return name

    def __repr__(self) -> str:
        return f"Package(path={self.path()!r}, qualifier={self.qualifier()!r})"
