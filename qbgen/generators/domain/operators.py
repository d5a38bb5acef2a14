"""Generates ``operators``: the single ``op`` entry point and its overload table."""
from typing import Dict, List
from qbgen.generators.builders import dts, quote, r, t, ts
from qbgen.generators.domain.functions import write_overload_list
from qbgen.generators.genutil import GeneratorParams
from qbgen.schemas.catalog import OperatorDef

OPERATOR_KINDS = ("Infix", "Prefix", "Postfix", "Ternary")


def generate_operators(params: GeneratorParams) -> None:
    f = params.dir.get_path("operators")
    f.add_import(["$"], params.runtime_package)
    f.add_import_star("_", "./imports")

    table: Dict[str, Dict[str, List[OperatorDef]]] = {kind: {} for kind in OPERATOR_KINDS}
    for name in sorted(params.catalog.operators):
        for overload in params.catalog.operators[name]:
            table[overload.operator_kind].setdefault(overload.operator_symbol, []).append(overload)

    f.writeln([
        dts("declare "),
        "const overloadDefs",
        t(": {[kind: string]: {[symbol: string]: any[]}}"),
        r(" = {"),
        dts(";"),
    ])
    with f.indented():
        for kind in OPERATOR_KINDS:
            f.writeln([r(f"{kind}: {{")])
            with f.indented():
                for symbol in sorted(table[kind]):
                    overloads = table[kind][symbol]
                    f.writeln([r(f"{quote(symbol)}: [")])
                    write_overload_list(params, f, overloads)
                    f.writeln([r("],")])
            f.writeln([r("},")])
    f.writeln([r("};")])
    f.nl()

    f.writeln([
        dts("declare "),
        "function op(...args",
        t(": any[]"),
        ")",
        t(": $.$expr_Operator"),
        dts(";"),
        r(" {"),
    ])
    with f.indented():
        f.writeln([r("const {returnType, cardinality, args: resolvedArgs, opName, opKind} = "
                     "_.syntax.$resolveOperator(overloadDefs, args, _.spec);")])
        f.writeln([r("return _.syntax.$expressionify({")])
        with f.indented():
            f.writeln([r("__kind__: $.ExpressionKind.Operator,")])
            f.writeln([r("__element__: returnType,")])
            f.writeln([r("__cardinality__: cardinality,")])
            f.writeln([r("__name__: opName,")])
            f.writeln([r("__opkind__: opKind,")])
            f.writeln([r("__args__: resolvedArgs,")])
        f.writeln([r("})"), ts(" as any"), r(";")])
    f.writeln([r("}")])
    f.add_export("op")
