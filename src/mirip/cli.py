from __future__ import annotations

import argparse
import importlib.metadata
import io
import logging
import sys
from pathlib import Path

from .errors import MiripError
from .format import FORMATTERS

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _version() -> str:
    try:
        return importlib.metadata.version("mirip")
    except importlib.metadata.PackageNotFoundError:
        # Running from a source checkout without an install.
        return "0.0.0"


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="mirip",
        usage="%(prog)s [flags] source-dir interface [interface2 [interface3 [...]]]",
        description="Generate Go mock implementations of interfaces.",
    )
    parser.add_argument("--out", default="", help="Output file (default: stdout).")
    parser.add_argument("--pkg", default="", help="Package name of the generated code (default: source package).")
    parser.add_argument("--rm", action="store_true", help="First remove the output file, if it exists.")
    parser.add_argument("--version", action="store_true", help="Show mirip's version and exit.")
    parser.add_argument("--stub", action="store_true", help="Return zero values when no mock implementation is set.")
    parser.add_argument(
        "--skip-ensure",
        action="store_true",
        help="Suppress the compile-time check that the mock implements the interface.",
    )
    parser.add_argument(
        "--fmt",
        choices=FORMATTERS,
        default="gofmt",
        help="Go formatter for the generated code (default: gofmt).",
    )
    parser.add_argument("--no-cache", action="store_true", help="Always rescan the source package.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr.")
    parser.add_argument("args", nargs="*", help=argparse.SUPPRESS)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.version:
        print(f"mirip version {_version()}")
        return

    if len(args.args) < 2:
        print("not enough arguments", file=sys.stderr)
        parser.print_usage(sys.stderr)
        raise SystemExit(1)

    try:
        _run(args)
    except (MiripError, OSError) as e:
        print(f"mirip: {e}", file=sys.stderr)
        raise SystemExit(1) from e


def _run(args: argparse.Namespace) -> None:
    from .mocker import Config, Mocker
    from .oracle import GoOracle

    out_file = Path(args.out) if args.out else None
    if args.rm and out_file is not None:
        out_file.unlink(missing_ok=True)

    src_dir, *selectors = args.args
    cfg = Config(
        src_dir=src_dir,
        pkg_name=args.pkg,
        formatter=args.fmt,
        stub_impl=args.stub,
        skip_ensure=args.skip_ensure,
    )
    m = Mocker(cfg, oracle=GoOracle(use_cache=not args.no_cache))

    # Buffer the whole file so a failure leaves no partial output behind.
    buf = io.StringIO()
    m.mock(buf, *selectors)

    if out_file is None:
        sys.stdout.write(buf.getvalue())
        return
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(buf.getvalue(), encoding="utf-8")
    logger.info("wrote %s", out_file)
