from __future__ import annotations

import json
import logging
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from ..errors import LoadError

logger = logging.getLogger(__name__)

# Bump when the scanner's output format changes; part of the cache key.
SCANNER_VERSION = 2


def scan_package(*, src_dir: Path) -> dict[str, Any]:
    """Dump the declared types of the Go package in `src_dir` as a type graph.

    The scanner is a small Go program run with `go run`. It type-checks the
    package with go/types and emits every declared type name, with complete
    method sets for interfaces.
    """
    src_dir = Path(src_dir).resolve()
    if not src_dir.is_dir():
        raise LoadError(f"source directory not found: {src_dir}")

    with tempfile.TemporaryDirectory(prefix="mirip-typescan-") as td:
        scan_dir = Path(td)
        (scan_dir / "go.mod").write_text(
            "\n".join(
                [
                    "module mirip.typescan",
                    "",
                    "go 1.22",
                    "",
                ]
            ),
            encoding="utf-8",
        )
        (scan_dir / "main.go").write_text(_scanner_go_source(), encoding="utf-8")

        logger.debug("scanning Go package in %s", src_dir)
        try:
            proc = subprocess.run(
                ["go", "run", ".", "--dir", str(src_dir)],
                cwd=str(scan_dir),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
            )
        except FileNotFoundError as e:
            raise LoadError(
                "Go toolchain not found (`go` is missing from PATH). "
                "Install Go and ensure `go` is available on PATH."
            ) from e

    stdout = (proc.stdout or b"").decode("utf-8", errors="replace")
    stderr = (proc.stderr or b"").decode("utf-8", errors="replace")
    if proc.returncode != 0:
        raise LoadError(f"go type scan failed for {src_dir}\n{stderr}{stdout}")

    try:
        obj = json.loads(stdout)
    except Exception as e:  # noqa: BLE001 - boundary parse
        # `go run` may print toolchain messages before the JSON document.
        start = stdout.find("{")
        if start == -1:
            raise LoadError(f"failed to parse go type scan output: {e}\n{stdout}") from e
        try:
            obj = json.loads(stdout[start:])
        except Exception as e2:  # noqa: BLE001 - boundary parse
            raise LoadError(f"failed to parse go type scan output: {e2}\n{stdout}") from e2

    if not isinstance(obj, dict):
        raise LoadError("go type scan output is not an object")
    for msg in obj.get("errors") or []:
        logger.warning("type check: %s", msg)
    return obj


def _scanner_go_source() -> str:
    # Keep this file stdlib-only so `go run` doesn't need network access.
    return r'''
package main

import (
	"bytes"
	"encoding/json"
	"flag"
	"fmt"
	"go/ast"
	"go/importer"
	"go/parser"
	"go/token"
	"go/types"
	"os"
	"os/exec"
	"path/filepath"
	"strconv"
)

type listPkg struct {
	ImportPath string
	Name       string
	Dir        string
	GoFiles    []string
	CgoFiles   []string
}

type outPkg struct {
	Path string `json:"path"`
	Name string `json:"name"`
}

type outVar struct {
	Name string   `json:"name"`
	Type *outType `json:"type"`
}

type outField struct {
	Name     string   `json:"name"`
	Type     *outType `json:"type"`
	Embedded bool     `json:"embedded,omitempty"`
	Tag      string   `json:"tag,omitempty"`
}

type outMethod struct {
	Name string   `json:"name"`
	Sig  *outType `json:"sig"`
}

type outTerm struct {
	Tilde bool     `json:"tilde,omitempty"`
	Type  *outType `json:"type"`
}

type outType struct {
	Kind      string      `json:"kind"`
	Name      string      `json:"name,omitempty"`
	Pkg       *outPkg     `json:"pkg,omitempty"`
	Args      []*outType  `json:"args,omitempty"`
	Elem      *outType    `json:"elem,omitempty"`
	Key       *outType    `json:"key,omitempty"`
	Len       int64       `json:"len,omitempty"`
	Dir       string      `json:"dir,omitempty"`
	Fields    []outField  `json:"fields,omitempty"`
	Methods   []outMethod `json:"methods,omitempty"`
	Embeddeds []*outType  `json:"embeddeds,omitempty"`
	Params    []outVar    `json:"params,omitempty"`
	Results   []outVar    `json:"results,omitempty"`
	Variadic  bool        `json:"variadic,omitempty"`
	Terms     []outTerm   `json:"terms,omitempty"`
}

type outTypeParam struct {
	Name       string   `json:"name"`
	Constraint *outType `json:"constraint"`
	Underlying *outType `json:"underlying,omitempty"`
}

type outDecl struct {
	Name       string         `json:"name"`
	Interface  bool           `json:"interface"`
	TypeParams []outTypeParam `json:"type_params,omitempty"`
	Methods    []outMethod    `json:"methods,omitempty"`
}

type outObj struct {
	Pkg     outPkg            `json:"pkg"`
	Aliases map[string]string `json:"aliases"`
	Types   []outDecl         `json:"types"`
	Errors  []string          `json:"errors"`
}

func main() {
	var dir string
	flag.StringVar(&dir, "dir", "", "Go package directory to scan")
	flag.Parse()

	if dir == "" {
		fmt.Fprintln(os.Stderr, "missing --dir")
		os.Exit(2)
	}

	out, err := scan(dir)
	if err != nil {
		fmt.Fprintln(os.Stderr, err.Error())
		os.Exit(1)
	}

	enc := json.NewEncoder(os.Stdout)
	enc.SetEscapeHTML(false)
	if err := enc.Encode(out); err != nil {
		fmt.Fprintln(os.Stderr, err.Error())
		os.Exit(1)
	}
}

func listPackage(dir string) (*listPkg, error) {
	cmd := exec.Command("go", "list", "-json", ".")
	cmd.Dir = dir
	var stdout, stderr bytes.Buffer
	cmd.Stdout = &stdout
	cmd.Stderr = &stderr
	if err := cmd.Run(); err != nil {
		return nil, fmt.Errorf("go list failed: %v\n%s", err, stderr.String())
	}

	var p listPkg
	if err := json.Unmarshal(stdout.Bytes(), &p); err != nil {
		return nil, fmt.Errorf("failed to decode go list json: %v", err)
	}
	return &p, nil
}

func scan(dir string) (*outObj, error) {
	abs, err := filepath.Abs(dir)
	if err != nil {
		return nil, err
	}
	p, err := listPackage(abs)
	if err != nil {
		return nil, err
	}

	fset := token.NewFileSet()
	names := append(append([]string{}, p.GoFiles...), p.CgoFiles...)
	files := make([]*ast.File, 0, len(names))
	for _, fn := range names {
		af, err := parser.ParseFile(fset, filepath.Join(p.Dir, fn), nil, 0)
		if err != nil {
			return nil, err
		}
		files = append(files, af)
	}

	out := &outObj{
		Pkg:     outPkg{Path: p.ImportPath, Name: p.Name},
		Aliases: map[string]string{},
		Types:   []outDecl{},
		Errors:  []string{},
	}
	for _, af := range files {
		for _, imp := range af.Imports {
			if imp.Name == nil || imp.Name.Name == "_" || imp.Name.Name == "." {
				continue
			}
			path, err := strconv.Unquote(imp.Path.Value)
			if err != nil {
				continue
			}
			out.Aliases[path] = imp.Name.Name
		}
	}

	conf := types.Config{
		Importer:    importer.ForCompiler(fset, "source", nil),
		FakeImportC: true,
		Error: func(err error) {
			out.Errors = append(out.Errors, err.Error())
		},
	}
	pkg, _ := conf.Check(p.ImportPath, fset, files, nil)
	if pkg == nil {
		return nil, fmt.Errorf("type check of %s failed", p.ImportPath)
	}

	scope := pkg.Scope()
	for _, name := range scope.Names() {
		tn, ok := scope.Lookup(name).(*types.TypeName)
		if !ok {
			continue
		}
		decl := outDecl{Name: name}
		typ := types.Unalias(tn.Type())
		if iface, ok := typ.Underlying().(*types.Interface); ok {
			decl.Interface = true
			iface = iface.Complete()
			decl.Methods = []outMethod{}
			// Method(i) is ordered by name for complete interfaces.
			for i := 0; i < iface.NumMethods(); i++ {
				m := iface.Method(i)
				decl.Methods = append(decl.Methods, outMethod{Name: m.Name(), Sig: encode(m.Type())})
			}
			if named, ok := typ.(*types.Named); ok {
				tps := named.TypeParams()
				for i := 0; i < tps.Len(); i++ {
					tp := tps.At(i)
					otp := outTypeParam{
						Name:       tp.Obj().Name(),
						Constraint: encode(tp.Constraint()),
					}
					// Named constraints hide their type sets; expose the interface.
					if _, ok := types.Unalias(tp.Constraint()).(*types.Named); ok {
						otp.Underlying = encode(tp.Constraint().Underlying())
					}
					decl.TypeParams = append(decl.TypeParams, otp)
				}
			}
		}
		out.Types = append(out.Types, decl)
	}
	return out, nil
}

func encodePkg(pkg *types.Package) *outPkg {
	if pkg == nil {
		return nil
	}
	return &outPkg{Path: pkg.Path(), Name: pkg.Name()}
}

func encodeTuple(tup *types.Tuple) []outVar {
	vars := []outVar{}
	for i := 0; i < tup.Len(); i++ {
		v := tup.At(i)
		vars = append(vars, outVar{Name: v.Name(), Type: encode(v.Type())})
	}
	return vars
}

func encodeMethods(iface *types.Interface) []outMethod {
	methods := []outMethod{}
	for i := 0; i < iface.NumExplicitMethods(); i++ {
		m := iface.ExplicitMethod(i)
		methods = append(methods, outMethod{Name: m.Name(), Sig: encode(m.Type())})
	}
	return methods
}

// encode does not descend into the underlying type of named types, so the
// output is a tree even for recursive types.
func encode(t types.Type) *outType {
	t = types.Unalias(t)
	switch t := t.(type) {
	case *types.Basic:
		if t.Kind() == types.UnsafePointer {
			return &outType{Kind: "named", Name: "Pointer", Pkg: &outPkg{Path: "unsafe", Name: "unsafe"}}
		}
		return &outType{Kind: "basic", Name: t.Name()}

	case *types.Named:
		o := &outType{Kind: "named", Name: t.Obj().Name(), Pkg: encodePkg(t.Obj().Pkg())}
		args := t.TypeArgs()
		for i := 0; i < args.Len(); i++ {
			o.Args = append(o.Args, encode(args.At(i)))
		}
		return o

	case *types.Pointer:
		return &outType{Kind: "pointer", Elem: encode(t.Elem())}

	case *types.Array:
		return &outType{Kind: "array", Len: t.Len(), Elem: encode(t.Elem())}

	case *types.Slice:
		return &outType{Kind: "slice", Elem: encode(t.Elem())}

	case *types.Map:
		return &outType{Kind: "map", Key: encode(t.Key()), Elem: encode(t.Elem())}

	case *types.Chan:
		dir := "both"
		switch t.Dir() {
		case types.SendOnly:
			dir = "send"
		case types.RecvOnly:
			dir = "recv"
		}
		return &outType{Kind: "chan", Dir: dir, Elem: encode(t.Elem())}

	case *types.Struct:
		o := &outType{Kind: "struct"}
		for i := 0; i < t.NumFields(); i++ {
			f := t.Field(i)
			o.Fields = append(o.Fields, outField{
				Name:     f.Name(),
				Type:     encode(f.Type()),
				Embedded: f.Embedded(),
				Tag:      t.Tag(i),
			})
		}
		return o

	case *types.Interface:
		o := &outType{Kind: "interface", Methods: encodeMethods(t)}
		for i := 0; i < t.NumEmbeddeds(); i++ {
			o.Embeddeds = append(o.Embeddeds, encode(t.EmbeddedType(i)))
		}
		return o

	case *types.Signature:
		return &outType{
			Kind:     "signature",
			Params:   encodeTuple(t.Params()),
			Results:  encodeTuple(t.Results()),
			Variadic: t.Variadic(),
		}

	case *types.TypeParam:
		return &outType{Kind: "typeparam", Name: t.Obj().Name()}

	case *types.Union:
		o := &outType{Kind: "union"}
		for i := 0; i < t.Len(); i++ {
			term := t.Term(i)
			o.Terms = append(o.Terms, outTerm{Tilde: term.Tilde(), Type: encode(term.Type())})
		}
		return o
	}
	return &outType{Kind: "basic", Name: types.TypeString(t, nil)}
}
'''
