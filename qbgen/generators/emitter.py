"""Projection of the module graph onto a target profile.

Rendering reads builders and never mutates them, so the same graph can be
rendered once per emission pass.
"""
from __future__ import annotations
import logging
from typing import Dict, List, Optional, Tuple
from qbgen.core.config import Target
from qbgen.generators.builders import CodeBuilder, DirBuilder, ExportRecord, ImportRecord, Mode, quote
from qbgen.generators.targets import TargetProfile, profiles_for

log = logging.getLogger(__name__)

FILE_HEADER = "// GENERATED by qbgen. Do not edit; re-run qbgen to update."

EXPORT_STAR_HELPER = (
    "function __exportStar(m, e) {\n"
    "  for (const k in m) if (k !== \"default\" && !Object.prototype.hasOwnProperty.call(e, k)) e[k] = m[k];\n"
    "}"
)


def _active(modes, mode: Mode) -> bool:
    return mode in modes


def _render_imports(records: List[ImportRecord], profile: TargetProfile) -> List[str]:
    mode = profile.mode
    esm = profile.module_kind == "esm"
    # named imports from one source collapse into a single statement
    named: Dict[Tuple[str, bool], List[str]] = {}
    entries: List[Tuple[str, object]] = []
    for rec in records:
        if not _active(rec.modes, mode):
            continue
        # type-only imports vanish from plain JavaScript
        if rec.type_only and mode == Mode.JS:
            continue
        ref = quote(profile.module_reference(rec.path))
        if rec.kind == "named":
            key = (rec.path, rec.type_only)
            if key not in named:
                named[key] = []
                entries.append(("named", key))
            named[key].append(rec.name)
        elif rec.kind == "star":
            type_kw = "type " if rec.type_only else ""
            entries.append(("text", f"import {type_kw}* as {rec.name} from {ref};" if esm
                                    else f"const {rec.name} = require({ref});"))
        else:
            entries.append(("text", f"import {rec.name} from {ref};" if esm
                                    else f"const {rec.name} = require({ref}).default;"))

    rendered: List[str] = []
    for kind, value in entries:
        if kind == "text":
            rendered.append(value)
            continue
        path, type_only = value
        names = ", ".join(named[value])
        ref = quote(profile.module_reference(path))
        if esm:
            type_kw = "type " if type_only else ""
            rendered.append(f"import {type_kw}{{{names}}} from {ref};")
        else:
            rendered.append(f"const {{{names}}} = require({ref});")
    return rendered


def _render_exports(records: List[ExportRecord], profile: TargetProfile) -> List[str]:
    mode = profile.mode
    esm = profile.module_kind == "esm"
    active = [rec for rec in records if _active(rec.modes, mode)]
    lines: List[str] = []

    if esm:
        from_groups: Dict[str, List[str]] = {}
        for rec in active:
            if rec.kind == "from":
                from_groups.setdefault(rec.path, []).append(rec.name)
        for path, names in from_groups.items():
            lines.append(f"export {{{', '.join(names)}}} from {quote(profile.module_reference(path))};")
        for rec in active:
            if rec.kind == "star":
                ref = quote(profile.module_reference(rec.path))
                lines.append(f"export * as {rec.as_name} from {ref};" if rec.as_name
                             else f"export * from {ref};")
        locals_ = [
            f"{rec.name} as {rec.as_name}" if rec.as_name else rec.name
            for rec in active if rec.kind == "local"
        ]
        if locals_:
            lines.append(f"export {{{', '.join(locals_)}}};")
        for rec in active:
            if rec.kind == "default":
                lines.append(f"export default {rec.name};")
        return lines

    if any(rec.kind == "star" and not rec.as_name for rec in active):
        lines.append(EXPORT_STAR_HELPER)
    for rec in active:
        if rec.kind == "from":
            ref = quote(profile.module_reference(rec.path))
            lines.append(f"exports.{rec.name} = require({ref}).{rec.name};")
        elif rec.kind == "star":
            ref = quote(profile.module_reference(rec.path))
            lines.append(f"exports.{rec.as_name} = require({ref});" if rec.as_name
                         else f"__exportStar(require({ref}), exports);")
        elif rec.kind == "local":
            lines.append(f"exports.{rec.as_name or rec.name} = {rec.name};")
        else:
            lines.append(f"exports.default = {rec.name};")
    return lines


def _render_default_export(entries: Dict[str, str], profile: TargetProfile) -> List[str]:
    if not entries:
        return []
    mode = profile.mode
    lines: List[str] = []
    if mode != Mode.JS:
        lines.append("type __defaultExports = {")
        lines.extend(f"  {quote(key)}: typeof {ref};" for key, ref in entries.items())
        lines.append("};")
    if mode == Mode.DTS:
        lines.append("declare const __defaultExports: __defaultExports;")
    else:
        annotation = ": __defaultExports" if mode == Mode.TS else ""
        lines.append(f"const __defaultExports{annotation} = {{")
        lines.extend(f"  {quote(key)}: {ref}," for key, ref in entries.items())
        lines.append("};")
    if profile.module_kind == "esm":
        lines.append("export default __defaultExports;")
    else:
        lines.append("exports.default = __defaultExports;")
    return lines


def render_module(builder: CodeBuilder, profile: TargetProfile) -> Optional[str]:
    """Source text of ``builder`` for ``profile``, or None if nothing survives filtering."""
    if builder.is_empty(profile.mode):
        return None

    out: List[str] = [FILE_HEADER]
    if profile.module_kind == "cjs":
        out.append('"use strict";')
        out.append('Object.defineProperty(exports, "__esModule", { value: true });')

    imports = _render_imports(list(builder.imports), profile)
    if imports:
        out.extend(imports)
        out.append("")

    for line in builder.lines:
        text = line.render(profile.mode)
        if text is not None:
            out.append(text)

    tail = _render_exports(list(builder.exports), profile) + _render_default_export(builder.default_exports, profile)
    if tail:
        out.append("")
        out.extend(tail)

    return "\n".join(out).rstrip("\n") + "\n"


def render_dir(dir: DirBuilder, profile: TargetProfile) -> Dict[str, str]:
    """Map of output-relative file path to content for one emission pass."""
    rendered: Dict[str, str] = {}
    for builder in dir.builders():
        content = render_module(builder, profile)
        if content is None:
            log.debug("Skipping %s: empty for mode %s", builder.path, profile.mode.value)
            continue
        rendered[f"{builder.path}{profile.file_extension}"] = content
    return rendered


def render_target(dir: DirBuilder, target: Target) -> Dict[str, str]:
    """Render every emission pass of ``target``."""
    rendered: Dict[str, str] = {}
    for profile in profiles_for(target):
        for path, content in render_dir(dir, profile).items():
            if path in rendered:
                raise ValueError(f"Emission passes of target {target!r} both produced {path}")
            rendered[path] = content
    return rendered
