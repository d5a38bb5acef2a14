"""Generates one ``$name`` type and runtime value per scalar type."""
from qbgen.generators.builders import dts, quote, r, t, ts
from qbgen.generators.genutil import GeneratorParams, get_ref, module_builder, type_ident
from qbgen.schemas.catalog import ScalarType, split_name


def generate_scalars(params: GeneratorParams) -> None:
    for name in sorted(params.catalog.scalars):
        scalar = params.catalog.scalars[name]
        if "::" not in name:
            continue
        module_name, short = split_name(name)
        b = module_builder(params, module_name)
        type_name = type_ident(name)

        if scalar.enum_values:
            members = ", ".join(quote(v) for v in scalar.enum_values)
            b.writeln([t(f"type {type_name} = {{")])
            with b.indented():
                for value in scalar.enum_values:
                    b.writeln([t(f"{quote(value)}: $.$expr_Literal<{type_name}>;")])
            b.writeln([t(f"}} & $.EnumType<{quote(name)}, [{members}]>;")])
        elif scalar.is_abstract:
            b.writeln([t(f"type {type_name} = $.ScalarType<{quote(name)}, {scalar.ts_type}>;")])
            b.add_export(type_name, modes=["ts", "dts"])
            b.nl()
            continue
        else:
            material = scalar.material
            if material and material != name and isinstance(params.types_by_name.get(material), ScalarType):
                b.writeln([t(f"type {type_name} = {get_ref(params, b, material)};")])
            else:
                b.writeln([t(f"type {type_name} = $.ScalarType<{quote(name)}, {scalar.ts_type}>;")])

        b.writeln([
            dts("declare "),
            f"const {type_name}",
            t(f": {type_name}"),
            r(" = $.makeType"),
            ts(f"<{type_name}>"),
            r(f"(_.spec, {quote(scalar.id)}, _.syntax.literal)"),
            ";",
        ])
        b.nl()
        b.add_export(type_name)
        b.add_to_default_export(type_name, short)
