"""Naming and type-reference helpers shared by the domain generators."""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Dict
from qbgen.generators.builders import CodeBuilder, DirBuilder, internal_name, quote
from qbgen.schemas.catalog import (
    ArrayType,
    ObjectType,
    ScalarType,
    SchemaCatalog,
    SchemaType,
    TupleType,
    split_name,
)

JS_RESERVED = {
    "break", "case", "catch", "class", "const", "continue", "debugger", "default",
    "delete", "do", "else", "enum", "export", "extends", "false", "finally", "for",
    "function", "if", "import", "in", "instanceof", "new", "null", "return", "super",
    "switch", "this", "throw", "true", "try", "typeof", "var", "void", "while", "with",
    "yield", "let", "static", "implements", "interface", "package", "private",
    "protected", "public", "await",
}

_INVALID = re.compile(r"[^A-Za-z0-9_$]")


@dataclass
class GeneratorParams:
    dir: DirBuilder
    catalog: SchemaCatalog
    types_by_name: Dict[str, SchemaType]
    runtime_package: str = "edgedb"

    def type_id(self, name: str) -> str:
        """Key of a type in the runtime type map; falls back to the name for placeholder types."""
        type_ = self.types_by_name.get(name) or self.catalog.types.get(name)
        return type_.id if type_ is not None else name


def ident(name: str) -> str:
    """A JavaScript identifier for ``name``."""
    result = _INVALID.sub("_", name)
    if result in JS_RESERVED:
        return f"{result}_"
    if result[:1].isdigit():
        return f"_{result}"
    return result


def type_ident(fqn: str) -> str:
    return f"${ident(split_name(fqn)[1])}"


def cardinality_ref(cardinality: str) -> str:
    return f"$.Cardinality.{cardinality}"


def module_builder(params: GeneratorParams, module_name: str) -> CodeBuilder:
    """Builder of a schema module file with the imports every module needs."""
    builder = params.dir.get_module(module_name)
    builder.add_import(["$"], params.runtime_package)
    builder.add_import_star("_", "../imports")
    return builder


def _module_namespace(params: GeneratorParams, builder: CodeBuilder, module_name: str) -> str:
    """Namespace alias through which ``builder`` reaches schema module ``module_name``."""
    internal = internal_name(module_name)
    alias = f"_{internal}"
    if builder.path.startswith("modules/"):
        builder.add_import_star(alias, f"./{internal}")
    else:
        depth = builder.path.count("/")
        prefix = "../" * depth if depth else "./"
        builder.add_import_star(alias, f"{prefix}modules/{internal}")
    # the target module must exist even if nothing else wrote to it yet
    params.dir.get_module(module_name)
    return alias


def get_ref(params: GeneratorParams, builder: CodeBuilder, type_name: str) -> str:
    """Type-level reference to ``type_name`` from inside ``builder``."""
    type_ = params.types_by_name.get(type_name)
    if isinstance(type_, ArrayType):
        return f"$.ArrayType<{get_ref(params, builder, type_.element)}>"
    if isinstance(type_, TupleType):
        if type_.elements and all(e.name.isdigit() for e in type_.elements):
            items = ", ".join(get_ref(params, builder, e.target) for e in type_.elements)
            return f"$.TupleType<[{items}]>"
        fields = ", ".join(
            f"{quote(e.name)}: {get_ref(params, builder, e.target)}" for e in type_.elements
        )
        return f"$.NamedTupleType<{{{fields}}}>"
    if not isinstance(type_, (ObjectType, ScalarType)):
        return "$.BaseType"

    module_name, _ = split_name(type_name)
    own_path = f"modules/{internal_name(module_name)}"
    if builder.path == own_path:
        return type_ident(type_name)
    return f"{_module_namespace(params, builder, module_name)}.{type_ident(type_name)}"
