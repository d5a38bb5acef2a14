"""Generates the ``global`` namespace of each schema module that declares globals."""
from typing import Dict, List
from qbgen.generators.builders import dts, internal_name, js, quote, r, t, ts
from qbgen.generators.genutil import GeneratorParams, cardinality_ref, get_ref, module_builder
from qbgen.schemas.catalog import Global, split_name


def generate_globals(params: GeneratorParams) -> None:
    by_module: Dict[str, List[Global]] = {}
    for name in sorted(params.catalog.globals):
        module_name, _ = split_name(name)
        by_module.setdefault(module_name, []).append(params.catalog.globals[name])

    for module_name, globals_ in by_module.items():
        b = module_builder(params, module_name)
        var = f"${internal_name(module_name)}__globals"

        b.writeln([dts("declare "), f"const {var}", t(": {"), js(" = {")])
        with b.indented():
            for g in globals_:
                _, short = split_name(g.name)
                target = get_ref(params, b, g.target)
                b.writeln([t(
                    f"{quote(short)}: _.syntax.$expr_Global<{quote(g.name)}, {target}, "
                    f"{cardinality_ref(g.cardinality)}>;"
                )])
        b.writeln([ts("} = {"), dts("};")])
        with b.indented():
            for g in globals_:
                _, short = split_name(g.name)
                b.writeln([r(
                    f"{quote(short)}: _.syntax.makeGlobal({quote(g.name)}, "
                    f"$.makeType(_.spec, {quote(params.type_id(g.target))}, _.syntax.literal), "
                    f"{cardinality_ref(g.cardinality)}),"
                )])
        b.writeln([r("};")])
        b.nl()
        b.add_to_default_export(var, "global")
