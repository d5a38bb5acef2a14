"""Write the generated tree into the output directory.

The synchronizer snapshots the directory on enter and, on a clean exit,
removes every pre-existing file that was not written during the run. Files
whose bytes already match are left untouched, so a second run against an
unchanged schema touches nothing.
"""
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Iterable, List, Set
from qbgen.core.config import Target
from qbgen.sync.syntax_files import SyntaxFile

log = logging.getLogger(__name__)

CONFIG_FILE_HEADER = "// query builder configuration. To update, run `qbgen`"
CONFIG_FILE_NAME = "config.json"
SYNTAX_OUT_DIR = "syntax"


def walk(root: Path) -> List[Path]:
    """Every regular file under ``root``, recursively."""
    if not root.exists():
        return []
    return sorted(p for p in root.rglob("*") if p.is_file())


def render_config(target: Target) -> str:
    return f"{CONFIG_FILE_HEADER}\n{json.dumps({'target': target}, separators=(',', ':'))}\n"


class DirectorySynchronizer:
    """Context manager around one write phase into ``output_dir``."""

    def __init__(self, output_dir: Path | str):
        self.output_dir = Path(output_dir)
        self.initial_files: Set[Path] = set()
        self.written: Set[Path] = set()
        self.changed: List[Path] = []
        self.removed: List[Path] = []

    def __enter__(self) -> "DirectorySynchronizer":
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.initial_files = set(walk(self.output_dir))
        log.debug("Snapshot of %s: %d files", self.output_dir, len(self.initial_files))
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            log.warning("Write phase aborted; leaving %d vestigial files in place", len(self.initial_files - self.written))
            return False
        self._remove_vestigial()
        return False

    def write(self, relative_path: str, content: str) -> bool:
        """Write ``content`` unless the file already holds exactly these bytes."""
        path = self.output_dir / relative_path
        self.written.add(path)
        data = content.encode("utf-8")
        if path.is_file() and path.read_bytes() == data:
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        self.changed.append(path)
        return True

    def write_all(self, files: dict) -> None:
        for relative_path in sorted(files):
            self.write(relative_path, files[relative_path])

    def copy_syntax_files(self, files: Iterable[SyntaxFile]) -> None:
        for syntax_file in files:
            self.write(f"{SYNTAX_OUT_DIR}/{syntax_file.name}", syntax_file.content)

    def write_config(self, target: Target) -> None:
        self.write(CONFIG_FILE_NAME, render_config(target))

    def _remove_vestigial(self) -> None:
        for path in sorted(self.initial_files - self.written):
            # a file may already be gone if something else cleaned up
            if path.exists():
                path.unlink()
            self.removed.append(path)
            log.info("Removed vestigial file %s", path)
