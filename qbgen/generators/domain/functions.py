"""Generates one overload-resolving function per schema function name."""
from typing import Dict, List, Tuple
from qbgen.generators.builders import CodeBuilder, dts, quote, r, t, ts
from qbgen.generators.genutil import GeneratorParams, ident, module_builder
from qbgen.schemas.catalog import FunctionDef, Param, split_name


def param_def(params: GeneratorParams, param: Param) -> str:
    return (
        f"{{name: {quote(param.name)}, typeId: {quote(params.type_id(param.type))}, "
        f"optional: {'true' if param.typemod == 'OptionalType' or param.has_default else 'false'}, "
        f"setoftype: {'true' if param.typemod == 'SetOfType' else 'false'}, "
        f"variadic: {'true' if param.kind == 'VariadicParam' else 'false'}}}"
    )


def overload_def(params: GeneratorParams, overload) -> str:
    positional = ", ".join(param_def(params, p) for p in overload.params if p.kind != "NamedOnlyParam")
    named = ", ".join(
        f"{quote(p.name)}: {param_def(params, p)}" for p in overload.params if p.kind == "NamedOnlyParam"
    )
    return (
        f"{{args: [{positional}], namedArgs: {{{named}}}, "
        f"returnTypeId: {quote(params.type_id(overload.return_type))}, "
        f"returnTypemod: {quote(overload.return_typemod)}}}"
    )


def write_overload_list(params: GeneratorParams, b: CodeBuilder, overloads) -> None:
    with b.indented():
        for overload in overloads:
            b.writeln([r(f"{overload_def(params, overload)},")])


def generate_function_types(params: GeneratorParams) -> None:
    by_module: Dict[str, List[Tuple[str, Tuple[FunctionDef, ...]]]] = {}
    for name in sorted(params.catalog.functions):
        module_name, _ = split_name(name)
        if not module_name:
            continue
        by_module.setdefault(module_name, []).append((name, params.catalog.functions[name]))

    for module_name, functions in by_module.items():
        b = module_builder(params, module_name)
        for name, overloads in functions:
            _, short = split_name(name)
            fn = ident(short)
            b.writeln([
                dts("declare "),
                f"function {fn}(...args",
                t(": any[]"),
                ")",
                t(f": $.$expr_Function<{quote(name)}, any, any, $.BaseTypeSet>"),
                dts(";"),
                r(" {"),
            ])
            with b.indented():
                b.writeln([r("const {returnType, cardinality, args: positionalArgs, namedArgs} = "
                             f"_.syntax.$resolveOverload({quote(name)}, args, _.spec, [")])
                write_overload_list(params, b, overloads)
                b.writeln([r("]);")])
                b.writeln([r("return _.syntax.$expressionify({")])
                with b.indented():
                    b.writeln([r("__kind__: $.ExpressionKind.Function,")])
                    b.writeln([r("__element__: returnType,")])
                    b.writeln([r("__cardinality__: cardinality,")])
                    b.writeln([r(f"__name__: {quote(name)},")])
                    b.writeln([r("__args__: positionalArgs,")])
                    b.writeln([r("__namedargs__: namedArgs,")])
                b.writeln([r("})"), ts(" as any"), r(";")])
            b.writeln([r("}")])
            b.nl()
            b.add_export(fn)
            b.add_to_default_export(fn, short)
