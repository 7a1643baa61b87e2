from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest


def _write(p: Path, text: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")


@pytest.mark.skipif(os.environ.get("MIRIP_INTEGRATION") != "1", reason="set MIRIP_INTEGRATION=1")
def test_generated_mock_compiles(tmp_path: Path):
    if shutil.which("go") is None:
        pytest.skip("go not found")

    from mirip import Config, GoOracle, Mocker

    mod = tmp_path / "mod"
    _write(mod / "go.mod", "module example.com/app\n\ngo 1.22\n")
    _write(
        mod / "auth" / "client" / "client.go",
        "package client\n\ntype Token string\n",
    )
    _write(
        mod / "storage" / "client" / "client.go",
        "package client\n\ntype Bucket struct{ Name string }\n",
    )
    _write(
        mod / "store" / "store.go",
        "\n".join(
            [
                "package store",
                "",
                "import (",
                '\t"context"',
                "",
                '\tauth "example.com/app/auth/client"',
                '\t"example.com/app/storage/client"',
                ")",
                "",
                "type User struct{ ID string }",
                "",
                "type Store interface {",
                "\tGet(ctx context.Context, id string) (*User, error)",
                "\tSave(users ...*User) error",
                "\tUpload(string, auth.Token, client.Bucket) ([]byte, error)",
                "}",
                "",
                "type Cache[K comparable, V any] interface {",
                "\tGet(key K) (V, bool)",
                "}",
                "",
            ]
        ),
    )

    m = Mocker(Config(src_dir=mod / "store", formatter="gofmt"), oracle=GoOracle(cache_dir=tmp_path / "cache"))
    src = m.render("Store", "Cache")
    assert 'auth "example.com/app/auth/client"' in src
    _write(mod / "store" / "store_mock.go", src)

    _write(
        mod / "store" / "store_mock_test.go",
        "\n".join(
            [
                "package store",
                "",
                'import "testing"',
                "",
                "func TestMock(t *testing.T) {",
                "\tm := NewStoreMock()",
                '\tm.Expect().GetReturns(&User{ID: "1"}, nil)',
                '\tu, err := m.Get(nil, "1")',
                '\tif err != nil || u.ID != "1" || len(m.GetCalls()) != 1 {',
                '\t\tt.Fatal("unexpected")',
                "\t}",
                "}",
                "",
            ]
        ),
    )

    proc = subprocess.run(["go", "test", "./store"], cwd=str(mod), capture_output=True, text=True, check=False)
    assert proc.returncode == 0, proc.stdout + proc.stderr
