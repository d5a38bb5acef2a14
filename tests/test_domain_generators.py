"""Tests for the per-category domain generators."""
from qbgen.generators.builders import DirBuilder
from qbgen.generators.domain.cast_maps import generate_cast_maps, implicit_cast_closure
from qbgen.generators.domain.functions import generate_function_types
from qbgen.generators.domain.globals import generate_globals
from qbgen.generators.domain.object_types import generate_object_types
from qbgen.generators.domain.operators import generate_operators
from qbgen.generators.domain.runtime_spec import generate_runtime_spec
from qbgen.generators.domain.scalars import generate_scalars
from qbgen.generators.domain.set_impl import generate_set_impl
from qbgen.generators.emitter import render_module
from qbgen.generators.genutil import GeneratorParams, get_ref, ident
from qbgen.generators.registry import GeneratorRegistry
from qbgen.generators.targets import CJS_PROFILE, DTS_PROFILE, TS_PROFILE
from qbgen.introspect.introspector import build_types_by_name
from qbgen.schemas.catalog import (
    ArrayType,
    Cast,
    FunctionDef,
    Global,
    ObjectType,
    OperatorDef,
    Param,
    Pointer,
    ScalarType,
    SchemaCatalog,
    TupleElement,
    TupleType,
    Version,
)


def _params(**catalog_fields):
    types = {
        "std::str": ScalarType(id="s1", name="std::str", ts_type="string"),
        "std::int64": ScalarType(id="s2", name="std::int64", ts_type="number"),
        "std::int32": ScalarType(id="s3", name="std::int32", ts_type="number"),
        "std::anyscalar": ScalarType(id="s4", name="std::anyscalar", is_abstract=True),
        "default::Color": ScalarType(id="s5", name="default::Color", enum_values=("Red", "Green")),
        "default::User": ObjectType(id="o1", name="default::User", pointers=(
            Pointer(name="name", target="std::str", cardinality="One"),
            Pointer(name="friends", kind="link", target="default::User", cardinality="Many"),
        )),
        "default::Named": ObjectType(id="o2", name="default::Named", is_abstract=True),
        "array<std::str>": ArrayType(id="a1", name="array<std::str>", element="std::str"),
    }
    types.update(catalog_fields.pop("types", {}))
    scalars = {name: t for name, t in types.items() if isinstance(t, ScalarType)}
    catalog = SchemaCatalog(version=Version(major=2, minor=0), types=types, scalars=scalars, **catalog_fields)
    return GeneratorParams(dir=DirBuilder(), catalog=catalog, types_by_name=build_types_by_name(types))


def test_ident_escapes_reserved_words():
    assert ident("default") == "default_"
    assert ident("to-str") == "to_str"
    assert ident("2d") == "_2d"
    assert ident("len") == "len"


def test_get_ref_across_modules():
    params = _params()
    default = params.dir.get_module("default")
    assert get_ref(params, default, "default::User") == "$User"
    assert get_ref(params, default, "std::str") == "_std.$str"
    assert get_ref(params, default, "array<std::str>") == "$.ArrayType<_std.$str>"
    assert get_ref(params, default, "anytype") == "$.BaseType"
    assert any(rec.name == "_std" and rec.path == "./std" for rec in default.imports)

    cast_maps = params.dir.get_path("castMaps")
    assert get_ref(params, cast_maps, "std::str") == "_std.$str"
    assert any(rec.path == "./modules/std" for rec in cast_maps.imports)


def test_get_ref_tuples():
    params = _params(types={
        "tuple<std::str, std::int64>": TupleType(id="t1", name="tuple<std::str, std::int64>", elements=(
            TupleElement(name="0", target="std::str"), TupleElement(name="1", target="std::int64"),
        )),
        "tuple<a:std::str>": TupleType(id="t2", name="tuple<a:std::str>", elements=(
            TupleElement(name="a", target="std::str"),
        )),
    })
    b = params.dir.get_module("std")
    assert get_ref(params, b, "tuple<std::str, std::int64>") == "$.TupleType<[$str, $int64]>"
    assert get_ref(params, b, "tuple<a:std::str>") == '$.NamedTupleType<{"a": $str}>'


def test_object_types():
    params = _params()
    generate_object_types(params)
    b = params.dir.get_module("default")
    content = render_module(b, TS_PROFILE)
    assert 'type $User = $.ObjectType<"default::User", {' in content
    assert '"name": $.PropertyDesc<_std.$str, $.Cardinality.One, false, false, false, false>;' in content
    assert '"friends": $.LinkDesc<$User, $.Cardinality.Many, {}, false, false, false, false>;' in content
    assert 'const $User: $User = $.makeType<$User>(_.spec, "o1", _.syntax.literal);' in content
    assert "const User: $.$expr_PathNode<$.TypeSet<$User, $.Cardinality.Many>, null>" in content
    # abstract types get a type and value but no root path
    assert "const $Named" in content
    assert "const Named" not in content
    assert b.list_top_level_export_names() == ["User"]


def test_scalars():
    params = _params()
    generate_scalars(params)
    std = render_module(params.dir.get_module("std"), TS_PROFILE)
    assert 'type $str = $.ScalarType<"std::str", string>;' in std
    assert 'const $str: $str = $.makeType<$str>(_.spec, "s1", _.syntax.literal);' in std
    assert 'type $anyscalar = $.ScalarType<"std::anyscalar", unknown>;' in std
    assert "const $anyscalar" not in std
    assert params.dir.get_module("std").list_top_level_export_names() == ["int32", "int64", "str"]

    default = render_module(params.dir.get_module("default"), TS_PROFILE)
    assert '"Red": $.$expr_Literal<$Color>;' in default
    assert '} & $.EnumType<"default::Color", ["Red", "Green"]>;' in default

    js = render_module(params.dir.get_module("std"), CJS_PROFILE)
    assert "anyscalar" not in js
    assert 'const $str = $.makeType(_.spec, "s1", _.syntax.literal);' in js


def test_runtime_spec_lists_every_type():
    params = _params()
    generate_runtime_spec(params)
    content = render_module(params.dir.get_path("__spec__"), TS_PROFILE)
    assert "const spec: $.introspect.Types = new $.StrictMap();" in content
    assert 'spec.set("o1", ' in content
    assert 'spec.set("a1", ' in content
    assert "export {spec};" in content
    dts = render_module(params.dir.get_path("__spec__"), DTS_PROFILE)
    assert "declare const spec: $.introspect.Types;" in dts
    assert "spec.set" not in dts


def test_implicit_cast_closure_is_transitive():
    params = _params(casts={
        "std::int32": (Cast(source="std::int32", target="std::int64", allow_implicit=True),),
        "std::int64": (Cast(source="std::int64", target="std::float64", allow_implicit=True),
                       Cast(source="std::int64", target="std::str")),
    })
    closure = implicit_cast_closure(params)
    assert closure["std::int64"] == {"std::int32"}
    assert closure["std::float64"] == {"std::int64", "std::int32"}
    assert "std::str" not in closure


def test_cast_maps():
    params = _params(casts={
        "std::int32": (Cast(source="std::int32", target="std::int64", allow_implicit=True),),
    })
    generate_cast_maps(params)
    b = params.dir.get_path("castMaps")
    ts = render_module(b, TS_PROFILE)
    assert "T extends _std.$int64 ? _std.$int64 | _std.$int32 :" in ts
    assert "const implicitCastMap: Map<string, Set<string>> = new Map<string, Set<string>>([" in ts
    assert '["std::int64", new Set(["std::int32"])],' in ts
    js = render_module(b, CJS_PROFILE)
    assert "scalarAssignableBy" not in js
    assert "const implicitCastMap = new Map([" in js
    assert "exports.isImplicitlyCastableTo = isImplicitlyCastableTo;" in js
    dts = render_module(b, DTS_PROFILE)
    assert "declare const implicitCastMap: Map<string, Set<string>>;" in dts
    assert "declare function isImplicitlyCastableTo(from: string, to: string): boolean;" in dts


def test_functions():
    params = _params(functions={
        "std::len": (FunctionDef(id="f1", name="std::len", params=(Param(name="s", type="std::str"),),
                                 return_type="std::int64"),),
    })
    generate_function_types(params)
    b = params.dir.get_module("std")
    ts = render_module(b, TS_PROFILE)
    assert 'function len(...args: any[]): $.$expr_Function<"std::len", any, any, $.BaseTypeSet> {' in ts
    assert '_.syntax.$resolveOverload("std::len", args, _.spec, [' in ts
    assert '{name: "s", typeId: "s1", optional: false, setoftype: false, variadic: false}' in ts
    assert 'returnTypeId: "s2"' in ts
    assert "}) as any;" in ts
    dts = render_module(b, DTS_PROFILE)
    assert 'declare function len(...args: any[]): $.$expr_Function<"std::len", any, any, $.BaseTypeSet>;' in dts
    assert "$resolveOverload" not in dts
    assert b.list_top_level_export_names() == ["len"]


def test_operators_file_always_generated():
    params = _params(operators={
        "std::+": (OperatorDef(id="op1", name="std::+", operator_symbol="+", operator_kind="Infix",
                               params=(Param(name="l", type="std::int64"), Param(name="r", type="std::int64")),
                               return_type="std::int64"),),
    })
    generate_operators(params)
    ts = render_module(params.dir.get_path("operators"), TS_PROFILE)
    assert 'import * as _ from "./imports";' in ts
    assert "Infix: {" in ts
    assert '"+": [' in ts
    assert "_.syntax.$resolveOperator(overloadDefs, args, _.spec);" in ts
    assert "export {op};" in ts

    empty = _params()
    generate_operators(empty)
    assert not empty.dir.get_path("operators").is_empty()


def test_set_impl():
    params = _params()
    generate_set_impl(params)
    ts = render_module(params.dir.get_path("syntax/setImpl"), TS_PROFILE)
    assert 'import * as castMaps from "../castMaps";' in ts
    assert 'import {spec} from "../__spec__";' in ts
    assert "return $.$mergeSets(exprs, {" in ts


def test_globals():
    params = _params(globals={
        "default::current_user": Global(id="g1", name="default::current_user", target="std::str"),
    })
    generate_globals(params)
    b = params.dir.get_module("default")
    ts = render_module(b, TS_PROFILE)
    assert "const $default__globals: {" in ts
    assert '"current_user": _.syntax.$expr_Global<"default::current_user", _std.$str, $.Cardinality.AtMostOne>;' in ts
    assert "} = {" in ts
    js = render_module(b, CJS_PROFILE)
    assert "const $default__globals = {" in js
    assert '"current_user": _.syntax.makeGlobal("default::current_user", $.makeType(_.spec, "s1", _.syntax.literal), $.Cardinality.AtMostOne),' in js
    assert b.list_top_level_export_names() == ["global"]


def test_registry_runs_every_generator():
    params = _params()
    registry = GeneratorRegistry.default()
    assert [name for name, _ in registry.generators] == [
        "runtime_spec", "cast_maps", "scalars", "object_types",
        "functions", "operators", "set_impl", "globals",
    ]
    registry.run(params)
    paths = {b.path for b in params.dir.builders()}
    assert {"__spec__", "castMaps", "operators", "syntax/setImpl", "modules/default", "modules/std"} <= paths
