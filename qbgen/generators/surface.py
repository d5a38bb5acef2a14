"""The single externally visible surface: ``imports`` and ``index``.

The index default export flattens several namespaces into one object. Each
namespace may only contribute keys that no earlier namespace claimed; the
type description omits those keys namespace by namespace, and the runtime
object spreads namespaces in reverse so that earlier ones win.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple
from qbgen.core.errors import MergeConflictInvariantViolation
from qbgen.generators.builders import (
    ALL_MODES,
    CodeBuilder,
    DirBuilder,
    Fragment,
    Mode,
    dts,
    internal_name,
    js,
    quote,
    r,
    t,
    ts,
)
from qbgen.generators.genutil import ident

log = logging.getLogger(__name__)

RUNTIME_VERSION_SYMBOL = "_edgedbJsVersion"

SYNTAX_KEYS = (
    "ASC",
    "DESC",
    "EMPTY_FIRST",
    "EMPTY_LAST",
    "alias",
    "array",
    "cast",
    "detached",
    "for",
    "insert",
    "is",
    "literal",
    "namedTuple",
    "optional",
    "select",
    "set",
    "tuple",
    "with",
    "withParams",
)


@dataclass(frozen=True)
class SpreadNamespace:
    """A named bundle of keys merged into the index default export.

    Either ``keys`` lists the keys explicitly, or ``module`` names the schema
    module whose default-export keys are used.
    """
    name: str
    keys: Optional[Tuple[str, ...]] = None
    module: Optional[str] = None
    omit_dollar_prefixed: bool = False


@dataclass(frozen=True)
class MergedNamespace:
    namespace: SpreadNamespace
    keys: Tuple[str, ...]
    omitted: Tuple[str, ...]
    # output modes in which the namespace binding exists
    modes: FrozenSet[Mode] = ALL_MODES

    @property
    def type_expr(self) -> str:
        name = self.namespace.name
        if self.omitted:
            expr = f"Omit<typeof {name}, {' | '.join(quote(k) for k in self.omitted)}>"
        else:
            expr = f"typeof {name}"
        if self.namespace.omit_dollar_prefixed:
            expr = f"$.util.OmitDollarPrefixed<{expr}>"
        return expr

    @property
    def value_expr(self) -> str:
        if self.namespace.omit_dollar_prefixed:
            return f"$.util.omitDollarPrefixed({self.namespace.name})"
        return self.namespace.name


def present_modes(builder: CodeBuilder) -> FrozenSet[Mode]:
    """Output modes for which ``builder`` renders a file."""
    return frozenset(mode for mode in Mode if not builder.is_empty(mode))


def merge_spread_namespaces(
    dir: DirBuilder,
    namespaces: Iterable[SpreadNamespace],
    reserved: Iterable[str] = (),
) -> List[MergedNamespace]:
    """Resolve keys and omissions for ``namespaces`` in declaration order.

    ``reserved`` seeds the claimed-key set (empty by default). Namespaces
    backed by an empty module are dropped and claim nothing.
    """
    claimed = set(reserved)
    merged: List[MergedNamespace] = []
    for namespace in namespaces:
        modes = ALL_MODES
        if namespace.module is not None:
            if not dir.has_module(namespace.module):
                raise MergeConflictInvariantViolation(
                    f"Spread namespace {namespace.name!r} refers to undeclared module {namespace.module!r}"
                )
            builder = dir.get_module(namespace.module)
            modes = present_modes(builder)
            if not modes:
                log.debug("Skipping spread namespace %s: module %s is empty", namespace.name, namespace.module)
                continue
            keys = namespace.keys if namespace.keys is not None else tuple(builder.list_top_level_export_names())
        elif namespace.keys is not None:
            keys = namespace.keys
        else:
            raise MergeConflictInvariantViolation(
                f"Spread namespace {namespace.name!r} has neither keys nor a backing module"
            )

        omitted = tuple(key for key in keys if key in claimed)
        claimed.update(keys)
        merged.append(MergedNamespace(namespace, tuple(keys), omitted, modes))
    return merged


def default_spread_namespaces(dir: DirBuilder) -> List[SpreadNamespace]:
    namespaces = [
        SpreadNamespace(name="$op", keys=("op",)),
        SpreadNamespace(name="$syntax", keys=SYNTAX_KEYS, omit_dollar_prefixed=True),
    ]
    for module_name in ("default", "std"):
        if dir.has_module(module_name):
            namespaces.append(SpreadNamespace(name=f"_{internal_name(module_name)}", module=module_name))
    return namespaces


def generate_imports(dir: DirBuilder, runtime_package: str) -> None:
    """Shared ``imports`` file every generated module reads the runtime through."""
    imports = dir.get_path("imports")
    imports.add_export_star(runtime_package, as_name=ident(runtime_package))
    imports.add_export_from(["spec"], "./__spec__")
    imports.add_export_star("./syntax/syntax", as_name="syntax")
    imports.add_export_star("./castMaps", as_name="castMaps")


def write_version_guard(dir: DirBuilder, runtime_package: str, runtime_version: str) -> None:
    index = dir.get_path("index")
    index.add_import([RUNTIME_VERSION_SYMBOL], runtime_package)
    index.nl()
    index.writeln([r(f"""if ({RUNTIME_VERSION_SYMBOL} !== {quote(runtime_version)}) {{
  throw new Error(
    `The query builder was generated by a different version of {runtime_package} (v{runtime_version})` +
      ` than the one currently installed (v${{{RUNTIME_VERSION_SYMBOL}}}).\\n` +
      `Run 'qbgen' to re-generate a compatible version.\\n`
  );
}}""")])


def _write_entry(index: CodeBuilder, text: str, modes: FrozenSet[Mode]) -> None:
    # entries naming a module binding appear only where that module is emitted
    if modes:
        index.writeln([Fragment(text, frozenset(modes))])


def generate_index(
    dir: DirBuilder,
    runtime_package: str,
    runtime_version: str,
    namespaces: Optional[List[SpreadNamespace]] = None,
) -> List[MergedNamespace]:
    index = dir.get_path("index")
    index.add_export_star("./syntax/external")
    index.add_import(["$"], runtime_package)
    index.add_export_from(["createClient"], runtime_package)
    index.add_import_star("$syntax", "./syntax/syntax")
    index.add_import_star("$op", "./operators")

    write_version_guard(dir, runtime_package, runtime_version)

    modules = []
    for module_name, internal in dir.modules():
        modes = present_modes(dir.get_module(module_name))
        if modes:
            modules.append((module_name, internal, modes))
    if namespaces is None:
        namespaces = default_spread_namespaces(dir)
    merged = merge_spread_namespaces(dir, namespaces, reserved=[name for name, _, _ in modules])

    def type_expr(mode: Mode) -> str:
        spread_types = [m.type_expr for m in reversed(merged) if mode in m.modes]
        return " & \n  ".join(spread_types + ["{"])

    index.nl()
    index.writeln([
        dts("declare "),
        "const ExportDefault",
        ts(f": {type_expr(Mode.TS)}"),
        dts(f": {type_expr(Mode.DTS)}"),
        js(" = {"),
    ])
    with index.indented():
        for module_name, internal, modes in modules:
            _write_entry(index, f"{quote(module_name)}: typeof _{internal};", modes & {Mode.TS, Mode.DTS})
    index.writeln([ts("} = {"), dts("};")])
    with index.indented():
        for m in reversed(merged):
            _write_entry(index, f"...{m.value_expr},", m.modes & {Mode.TS, Mode.JS})
        for module_name, internal, modes in modules:
            index.add_import_default(f"_{internal}", f"./modules/{internal}", modes=modes)
            _write_entry(index, f"{quote(module_name)}: _{internal},", modes & {Mode.TS, Mode.JS})
    index.writeln([r("};")])
    index.add_export_default("ExportDefault")

    # re-export some reflection types
    index.nl()
    index.writeln([r("const Cardinality = $.Cardinality;")])
    index.writeln([dts("declare const Cardinality: typeof $.Cardinality;")])
    index.writeln([dts("declare "), t("type Cardinality = $.Cardinality;")])
    index.add_export("Cardinality")
    index.writeln([
        t("export "),
        dts("declare "),
        t("""type Set<
  Type extends $.BaseType,
  Card extends $.Cardinality = $.Cardinality.Many
> = $.TypeSet<Type, Card>;"""),
    ])
    return merged
