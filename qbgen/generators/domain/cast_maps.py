"""Generates ``castMaps``: implicit-cast lookups for scalar assignment."""
from typing import Dict, Set
from qbgen.generators.builders import dts, quote, r, t, ts
from qbgen.generators.genutil import GeneratorParams, get_ref
from qbgen.schemas.catalog import ScalarType


def implicit_cast_closure(params: GeneratorParams) -> Dict[str, Set[str]]:
    """Map each type to every type that implicitly casts into it, transitively."""
    direct: Dict[str, Set[str]] = {}
    for casts in params.catalog.casts.values():
        for cast in casts:
            if cast.allow_implicit:
                direct.setdefault(cast.target, set()).add(cast.source)

    closure: Dict[str, Set[str]] = {}
    for target in direct:
        seen: Set[str] = set()
        stack = list(direct[target])
        while stack:
            source = stack.pop()
            if source in seen or source == target:
                continue
            seen.add(source)
            stack.extend(direct.get(source, ()))
        closure[target] = seen
    return closure


def generate_cast_maps(params: GeneratorParams) -> None:
    f = params.dir.get_path("castMaps")
    f.add_import(["$"], params.runtime_package)
    assignable = implicit_cast_closure(params)
    scalar_targets = sorted(
        name for name in assignable
        if isinstance(params.types_by_name.get(name), ScalarType)
    )

    f.writeln([t("type scalarAssignableBy<T extends $.ScalarType> =")])
    with f.indented():
        for name in scalar_targets:
            target_ref = get_ref(params, f, name)
            sources = " | ".join(
                [target_ref] + [get_ref(params, f, s) for s in sorted(assignable[name])]
            )
            f.writeln([t(f"T extends {target_ref} ? {sources} :")])
        f.writeln([t("T;")])
    f.add_export("scalarAssignableBy", modes=["ts", "dts"])
    f.nl()

    f.writeln([
        dts("declare "),
        "const implicitCastMap",
        t(": Map<string, Set<string>>"),
        r(" = new Map"),
        ts("<string, Set<string>>"),
        r("(["),
        dts(";"),
    ])
    with f.indented():
        for name in sorted(assignable):
            sources = ", ".join(quote(s) for s in sorted(assignable[name]))
            f.writeln([r(f"[{quote(name)}, new Set([{sources}])],")])
    f.writeln([r("]);")])
    f.nl()

    f.writeln([
        dts("declare "),
        "function isImplicitlyCastableTo(from",
        t(": string"),
        ", to",
        t(": string"),
        ")",
        t(": boolean"),
        dts(";"),
        r(" {"),
    ])
    with f.indented():
        f.writeln([r("if (from === to) return true;")])
        f.writeln([r("const sources = implicitCastMap.get(to);")])
        f.writeln([r("return sources !== undefined && sources.has(from);")])
    f.writeln([r("}")])

    f.add_export("implicitCastMap")
    f.add_export("isImplicitlyCastableTo")
