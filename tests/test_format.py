from __future__ import annotations

import subprocess

import pytest

from mirip.errors import FormatError
from mirip.format import format_source


def test_noop_returns_input_unchanged():
    assert format_source("package x\n", "noop") == "package x\n"
    assert format_source("package x\n", "") == "package x\n"


def test_unknown_formatter():
    with pytest.raises(FormatError, match="unknown formatter"):
        format_source("package x\n", "black")


def test_formatter_pipes_source(monkeypatch):
    seen = {}

    def fake_run(cmd, **kwargs):  # noqa: ANN001
        seen["cmd"] = cmd
        seen["input"] = kwargs["input"]
        return subprocess.CompletedProcess(cmd, 0, stdout=b"package x\n", stderr=b"")

    monkeypatch.setattr(subprocess, "run", fake_run)

    assert format_source("package  x\n", "goimports") == "package x\n"
    assert seen == {"cmd": ["goimports"], "input": b"package  x\n"}


def test_missing_formatter(monkeypatch):
    def fake_run(*args, **kwargs):  # noqa: ANN001
        raise FileNotFoundError("gofmt")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(FormatError, match="gofmt not found"):
        format_source("package x\n", "gofmt")


def test_formatter_failure(monkeypatch):
    def fake_run(cmd, **kwargs):  # noqa: ANN001
        return subprocess.CompletedProcess(cmd, 2, stdout=b"", stderr=b"<standard input>:1:1: expected 'package'")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(FormatError, match="expected 'package'"):
        format_source("nonsense", "gofmt")
