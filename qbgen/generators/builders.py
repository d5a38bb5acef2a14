"""In-memory module graph for generated sources.

Generators never write text for a particular output dialect. They append
lines made of tagged fragments, and structured import/export records, to a
``CodeBuilder``; the emitter later projects the graph onto one target
profile. A ``DirBuilder`` is the addressable collection of builders.
"""
from __future__ import annotations
import json
import re
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Iterator, List, Literal, Optional, Sequence, Tuple, Union


class Mode(str, Enum):
    TS = "ts"
    JS = "js"
    DTS = "dts"


ALL_MODES: FrozenSet[Mode] = frozenset(Mode)


@dataclass(frozen=True)
class Fragment:
    text: str
    modes: FrozenSet[Mode] = ALL_MODES


def _tagger(*modes: Mode):
    tagged = frozenset(modes)

    def tag(text: str) -> Fragment:
        return Fragment(text, tagged)
    return tag


# runtime code, present in typed and plain JavaScript output
r = _tagger(Mode.TS, Mode.JS)
# type annotations, present in typed and declaration output
t = _tagger(Mode.TS, Mode.DTS)
ts = _tagger(Mode.TS)
js = _tagger(Mode.JS)
dts = _tagger(Mode.DTS)

Code = Union[str, Fragment]


@dataclass(frozen=True)
class Line:
    indent: int
    fragments: Tuple[Fragment, ...]

    def render(self, mode: Mode) -> Optional[str]:
        """Text of the line for ``mode``, or None when every fragment is filtered out."""
        if not self.fragments:
            return ""
        active = [f.text for f in self.fragments if mode in f.modes]
        if not active:
            return None
        prefix = "  " * self.indent
        return "\n".join(prefix + part if part else part for part in "".join(active).split("\n"))


@dataclass(frozen=True)
class ImportRecord:
    kind: Literal["named", "star", "default"]
    path: str
    name: str
    modes: FrozenSet[Mode] = ALL_MODES
    type_only: bool = False


@dataclass(frozen=True)
class ExportRecord:
    kind: Literal["from", "star", "local", "default"]
    path: Optional[str] = None
    name: Optional[str] = None
    as_name: Optional[str] = None
    modes: FrozenSet[Mode] = ALL_MODES


def _modes(modes: Optional[Iterable[Union[Mode, str]]]) -> FrozenSet[Mode]:
    if modes is None:
        return ALL_MODES
    return frozenset(Mode(m) for m in modes)


class CodeBuilder:
    """One generated source file."""

    def __init__(self, path: str):
        self.path = path
        self._imports: Dict[ImportRecord, None] = {}
        self._exports: Dict[ExportRecord, None] = {}
        self._default_exports: Dict[str, str] = {}
        self._lines: List[Line] = []
        self._indent = 0

    # --- imports / exports -------------------------------------------------

    def add_import(self, names: Iterable[str], path: str, modes=None, type_only: bool = False) -> None:
        for name in names:
            self._imports.setdefault(ImportRecord("named", path, name, _modes(modes), type_only))

    def add_import_star(self, name: str, path: str, modes=None, type_only: bool = False) -> None:
        self._imports.setdefault(ImportRecord("star", path, name, _modes(modes), type_only))

    def add_import_default(self, name: str, path: str, modes=None) -> None:
        self._imports.setdefault(ImportRecord("default", path, name, _modes(modes)))

    def add_export_from(self, names: Iterable[str], path: str, modes=None) -> None:
        for name in names:
            self._exports.setdefault(ExportRecord("from", path=path, name=name, modes=_modes(modes)))

    def add_export_star(self, path: str, as_name: Optional[str] = None, modes=None) -> None:
        self._exports.setdefault(ExportRecord("star", path=path, as_name=as_name, modes=_modes(modes)))

    def add_export(self, name: str, as_name: Optional[str] = None, modes=None) -> None:
        self._exports.setdefault(ExportRecord("local", name=name, as_name=as_name, modes=_modes(modes)))

    def add_export_default(self, name: str, modes=None) -> None:
        self._exports.setdefault(ExportRecord("default", name=name, modes=_modes(modes)))

    def add_to_default_export(self, ref: str, key: str) -> None:
        """Expose ``ref`` as ``key`` on this module's default export object."""
        existing = self._default_exports.get(key)
        if existing is not None and existing != ref:
            raise ValueError(f"{self.path}: default export key {key!r} already bound to {existing!r}")
        self._default_exports[key] = ref

    # --- body ----------------------------------------------------------------

    def writeln(self, code: Union[Code, Sequence[Code]]) -> None:
        if isinstance(code, (str, Fragment)):
            code = [code]
        fragments = tuple(c if isinstance(c, Fragment) else Fragment(c) for c in code)
        self._lines.append(Line(self._indent, fragments))

    def nl(self) -> None:
        self._lines.append(Line(0, ()))

    @contextmanager
    def indented(self) -> Iterator[None]:
        self._indent += 1
        try:
            yield
        finally:
            self._indent -= 1

    # --- queries -------------------------------------------------------------

    @property
    def imports(self) -> Tuple[ImportRecord, ...]:
        return tuple(self._imports)

    @property
    def exports(self) -> Tuple[ExportRecord, ...]:
        return tuple(self._exports)

    @property
    def lines(self) -> Tuple[Line, ...]:
        return tuple(self._lines)

    @property
    def default_exports(self) -> Dict[str, str]:
        return dict(self._default_exports)

    def list_top_level_export_names(self) -> List[str]:
        """Keys of this module's default export object, in declaration order."""
        return list(self._default_exports)

    def is_empty(self, mode: Optional[Mode] = None) -> bool:
        """True when the module declares nothing.

        With ``mode`` only fragments and exports active for that mode count,
        so a module holding nothing but runtime code is empty for declaration
        output. Imports alone never make a module non-empty.
        """
        if self._default_exports:
            return False
        if any(mode is None or mode in rec.modes for rec in self._exports):
            return False
        for line in self._lines:
            for fragment in line.fragments:
                if fragment.text.strip() and (mode is None or mode in fragment.modes):
                    return False
        return True


_NON_WORD = re.compile(r"\W")


def internal_name(module_name: str) -> str:
    """File-and-identifier safe name for a schema module (``std::math`` -> ``std__math``)."""
    return _NON_WORD.sub("_", module_name.replace("::", "__"))


def quote(value: str) -> str:
    return json.dumps(value)


class DirBuilder:
    """Addressable collection of generated files.

    ``get_path`` creates a builder on first use and returns the same builder
    afterwards. Schema modules live under ``modules/`` and are tracked
    separately so the index can expose one namespace per module.
    """

    def __init__(self):
        self._paths: Dict[str, CodeBuilder] = {}
        self._modules: Dict[str, str] = {}

    def get_path(self, path: str) -> CodeBuilder:
        builder = self._paths.get(path)
        if builder is None:
            builder = self._paths[path] = CodeBuilder(path)
        return builder

    def get_module(self, module_name: str) -> CodeBuilder:
        internal = self._modules.get(module_name)
        if internal is None:
            internal = internal_name(module_name)
            for other, other_internal in self._modules.items():
                if other_internal == internal:
                    raise ValueError(
                        f"Schema modules {other!r} and {module_name!r} map to the same file {internal!r}"
                    )
            self._modules[module_name] = internal
        return self.get_path(f"modules/{internal}")

    def has_module(self, module_name: str) -> bool:
        return module_name in self._modules

    def module_path(self, module_name: str) -> str:
        return f"modules/{self._modules[module_name]}"

    def modules(self) -> List[Tuple[str, str]]:
        """``(schema module, internal name)`` pairs sorted by module name."""
        return sorted(self._modules.items())

    def builders(self) -> List[CodeBuilder]:
        return [self._paths[path] for path in sorted(self._paths)]
