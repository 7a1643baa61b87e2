from __future__ import annotations

import subprocess

from .errors import FormatError

FORMATTERS = ("noop", "gofmt", "goimports")


def format_source(src: str, formatter: str) -> str:
    """Pipe generated Go source through `formatter` (`noop` returns it unchanged)."""
    if not formatter or formatter == "noop":
        return src
    if formatter not in FORMATTERS:
        raise FormatError(f"unknown formatter: {formatter}")

    try:
        proc = subprocess.run(
            [formatter],
            input=src.encode("utf-8"),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            check=False,
        )
    except FileNotFoundError as e:
        raise FormatError(f"{formatter} not found on PATH; install it or pass --fmt noop") from e

    if proc.returncode != 0:
        err = (proc.stderr or b"").decode("utf-8", errors="replace")
        raise FormatError(f"{formatter} failed\n{err}")
    return (proc.stdout or b"").decode("utf-8", errors="replace")
