"""Generates object type descriptors and their root path expressions."""
from qbgen.generators.builders import dts, quote, r, t, ts
from qbgen.generators.genutil import (
    GeneratorParams,
    cardinality_ref,
    get_ref,
    ident,
    module_builder,
    type_ident,
)
from qbgen.schemas.catalog import ObjectType, Pointer, split_name


def _flag(value: bool) -> str:
    return "true" if value else "false"


def pointer_desc(params: GeneratorParams, b, pointer: Pointer) -> str:
    target = get_ref(params, b, pointer.target)
    card = cardinality_ref(pointer.cardinality)
    flags = ", ".join(_flag(v) for v in (
        pointer.is_exclusive, pointer.is_computed, pointer.is_readonly, pointer.has_default,
    ))
    if pointer.kind == "link":
        return f"$.LinkDesc<{target}, {card}, {{}}, {flags}>"
    return f"$.PropertyDesc<{target}, {card}, {flags}>"


def generate_object_types(params: GeneratorParams) -> None:
    objects = sorted(
        (t_ for t_ in params.types_by_name.values() if isinstance(t_, ObjectType)),
        key=lambda t_: t_.name,
    )
    for obj in objects:
        module_name, short = split_name(obj.name)
        b = module_builder(params, module_name)
        type_name = type_ident(obj.name)
        path_name = ident(short)

        b.writeln([t(f"type {type_name} = $.ObjectType<{quote(obj.name)}, {{")])
        with b.indented():
            for pointer in obj.pointers:
                b.writeln([t(f"{quote(pointer.name)}: {pointer_desc(params, b, pointer)};")])
        b.writeln([t("}, null>;")])

        b.writeln([
            dts("declare "),
            f"const {type_name}",
            t(f": {type_name}"),
            r(" = $.makeType"),
            ts(f"<{type_name}>"),
            r(f"(_.spec, {quote(obj.id)}, _.syntax.literal)"),
            ";",
        ])
        b.nl()
        b.add_export(type_name)

        if obj.is_abstract:
            continue
        path_type = f"$.$expr_PathNode<$.TypeSet<{type_name}, $.Cardinality.Many>, null>"
        b.writeln([
            dts("declare "),
            f"const {path_name}",
            t(f": {path_type}"),
            r(f" = _.syntax.$PathNode($.$toSet({type_name}, $.Cardinality.Many), null)"),
            ";",
        ])
        b.nl()
        b.add_export(path_name)
        b.add_to_default_export(path_name, short)
