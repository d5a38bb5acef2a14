"""Static support files shipped under ``qbgen/syntax``.

The files are authored once and rewritten per target: references into the
runtime package's reflection tree become package imports, ``@generated/``
references point back into the generated tree, and ESM-flavoured targets get
explicit ``.mjs`` suffixes on relative references.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from qbgen.core.config import Target
from qbgen.core.errors import InvalidTargetFile

log = logging.getLogger(__name__)

SYNTAX_DIR = Path(__file__).resolve().parent.parent / "syntax"

TARGET_FILE_TYPES: Dict[str, Tuple[str, ...]] = {
    "ts": (".ts",),
    "deno": (".ts",),
    "mts": (".mts",),
    "esm": (".mjs", ".d.ts"),
    "cjs": (".js", ".d.ts"),
}

LOCAL_EXTENSIONS: Dict[str, str] = {"esm": ".mjs", "mts": ".mjs"}
PACKAGE_EXTENSIONS: Dict[str, str] = {"esm": ".js", "mts": ".js"}

_DENO_REFLECTION = re.compile(r'"\.\./reflection([a-zA-Z0-9._/]*)"')
_REFLECTION = re.compile(r'"\.\./reflection([a-zA-Z0-9_/]*)\.?([^"]*)"')
_GENERATED = re.compile(r'"@generated/([^"]*)"')
_RELATIVE = re.compile(r'"(\.?\./[^"]+)"')


@dataclass(frozen=True)
class SyntaxFile:
    name: str
    content: str


def file_type(name: str) -> Optional[str]:
    """Extension used to select a support file; ``.d.ts`` is its own type."""
    if name.endswith(".d.ts"):
        return ".d.ts"
    for ext in (".mjs", ".mts", ".js", ".ts"):
        if name.endswith(ext):
            return ext
    return None


def rewrite(content: str, target: Target, runtime_package: str) -> str:
    if target == "deno":
        content = _DENO_REFLECTION.sub(lambda m: f'"{runtime_package}/_src/reflection{m.group(1)}"', content)
    else:
        pkg_ext = PACKAGE_EXTENSIONS.get(target, "")
        content = _REFLECTION.sub(
            lambda m: f'"{runtime_package}/dist/reflection{m.group(1)}{pkg_ext}"', content
        )
    content = _GENERATED.sub(lambda m: f'"../{m.group(1)}"', content)

    local_ext = LOCAL_EXTENSIONS.get(target)
    if local_ext:
        content = _RELATIVE.sub(lambda m: f'"{m.group(1)}{local_ext}"', content)
    return content


def prepare_syntax_files(
    target: Target,
    runtime_package: str = "edgedb",
    source_dir: Optional[Path] = None,
) -> List[SyntaxFile]:
    """Select, validate and rewrite the support files for ``target``.

    Nothing is written here; a bad file aborts before the output directory
    is touched.
    """
    try:
        wanted = TARGET_FILE_TYPES[target]
    except KeyError:
        raise ValueError(f"Unknown target {target!r}") from None

    source_dir = source_dir or SYNTAX_DIR
    forbidden = f'"{runtime_package}/dist/reflection"'
    prepared: List[SyntaxFile] = []
    for path in sorted(source_dir.iterdir()):
        if not path.is_file() or file_type(path.name) not in wanted:
            continue
        content = path.read_text(encoding="utf-8")
        if forbidden in content:
            raise InvalidTargetFile(str(path), "No directory imports allowed in syntax files")
        prepared.append(SyntaxFile(path.name, rewrite(content, target, runtime_package)))

    log.debug("Prepared %d syntax files for target %s", len(prepared), target)
    return prepared
