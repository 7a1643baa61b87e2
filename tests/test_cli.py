from __future__ import annotations

import pytest

from mirip import StaticOracle
from mirip.cli import main


@pytest.fixture
def oracle_kwargs(monkeypatch, store_pkg):
    seen = {}

    def fake_go_oracle(**kwargs):  # noqa: ANN003
        seen.update(kwargs)
        return StaticOracle(store_pkg)

    monkeypatch.setattr("mirip.oracle.GoOracle", fake_go_oracle)
    return seen


def test_cli_not_enough_arguments(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["./store"])

    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert "not enough arguments" in err
    assert "usage: mirip" in err


def test_cli_version(capsys):
    main(["--version"])
    assert capsys.readouterr().out.startswith("mirip version ")


def test_cli_writes_stdout(capsys, oracle_kwargs):
    main(["--fmt", "noop", "./store", "Store"])

    out = capsys.readouterr().out
    assert out.startswith("// Code generated by mirip; DO NOT EDIT.")
    assert "type StoreMock struct {" in out
    assert oracle_kwargs == {"use_cache": True}


def test_cli_writes_out_file(tmp_path, oracle_kwargs):
    out = tmp_path / "mocks" / "store_mock.go"
    main(["--fmt", "noop", "--pkg", "mocks", "--stub", "--no-cache", "--out", str(out), "./store", "Store:Fake"])

    text = out.read_text(encoding="utf-8")
    assert "package mocks\n" in text
    assert "type Fake struct {" in text
    assert "calls struct" not in text
    assert oracle_kwargs == {"use_cache": False}


def test_cli_rm_removes_stale_output_even_on_failure(tmp_path, capsys, oracle_kwargs):
    out = tmp_path / "store_mock.go"
    out.write_text("stale", encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        main(["--fmt", "noop", "--rm", "--out", str(out), "./store", "Missing"])

    assert exc.value.code == 1
    assert not out.exists()
    assert "interface not found: Missing" in capsys.readouterr().err


def test_cli_failure_leaves_existing_output(tmp_path, capsys, oracle_kwargs):
    out = tmp_path / "store_mock.go"
    out.write_text("previous", encoding="utf-8")

    with pytest.raises(SystemExit):
        main(["--fmt", "noop", "--out", str(out), "./store", "Store", "User"])

    assert out.read_text(encoding="utf-8") == "previous"
    assert "User is not an interface" in capsys.readouterr().err
