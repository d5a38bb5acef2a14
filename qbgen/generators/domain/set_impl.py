"""Generates ``syntax/setImpl``: the ``set`` constructor bound to this schema's casts."""
from qbgen.generators.builders import dts, r, t
from qbgen.generators.genutil import GeneratorParams


def generate_set_impl(params: GeneratorParams) -> None:
    f = params.dir.get_path("syntax/setImpl")
    f.add_import(["$"], params.runtime_package)
    f.add_import_star("castMaps", "../castMaps")
    f.add_import(["spec"], "../__spec__")

    f.writeln([
        dts("declare "),
        "function set(...exprs",
        t(": any[]"),
        ")",
        t(": $.TypeSet"),
        dts(";"),
        r(" {"),
    ])
    with f.indented():
        f.writeln([r("return $.$mergeSets(exprs, {")])
        with f.indented():
            f.writeln([r("spec,")])
            f.writeln([r("isImplicitlyCastableTo: castMaps.isImplicitlyCastableTo,")])
        f.writeln([r("});")])
    f.writeln([r("}")])
    f.add_export("set")
