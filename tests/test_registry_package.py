from __future__ import annotations

from mirip.registry import Package, strip_vendor_path
from mirip.types import GoPackage


def test_unique_name_grows_towards_root():
    p = Package(GoPackage(path="github.com/matryer/go-moq/pkg/moq", name="moq"))

    assert p.unique_name(0) == "moq"
    assert p.unique_name(1) == "pkgmoq"
    # "go-moq" sanitizes to "moq".
    assert p.unique_name(2) == "moqpkgmoq"


def test_unique_name_strips_punctuation_and_lowercases():
    assert Package(GoPackage(path="gopkg.in/yaml.v3", name="yaml")).unique_name(0) == "yamlv3"
    assert Package(GoPackage(path="example.com/My_Lib-go", name="mylib")).unique_name(0) == "mylib"
    assert Package(GoPackage(path="example.com/a/x@v1+inc~1", name="x")).unique_name(0) == "xv1inc1"


def test_unique_name_stops_at_path_length():
    p = Package(GoPackage(path="context", name="context"))
    assert p.unique_name(5) == "context"
    assert p.depth() == 1


def test_qualifier_prefers_alias():
    p = Package(GoPackage(path="github.com/x/client", name="client"))
    assert p.qualifier() == "client"
    p.alias = "xclient"
    assert p.qualifier() == "xclient"


def test_strip_vendor_path():
    assert strip_vendor_path("github.com/a/b/vendor/github.com/c/d") == "github.com/c/d"
    assert strip_vendor_path("vendor/golang.org/x/net/http2") == "golang.org/x/net/http2"
    assert strip_vendor_path("a/vendor/b/vendor/c") == "c"
    assert strip_vendor_path("github.com/vendors/x") == "github.com/vendors/x"


def test_package_path_is_vendor_stripped():
    p = Package(GoPackage(path="example.com/app/vendor/github.com/pkg/errors", name="errors"))
    assert p.path() == "github.com/pkg/errors"
    assert p.depth() == 3
