"""Output dialects: how each target renders the module graph."""
from dataclasses import dataclass
from typing import Dict, Literal, Tuple
from qbgen.core.config import Target
from qbgen.generators.builders import Mode

ModuleKind = Literal["esm", "cjs"]


@dataclass(frozen=True)
class TargetProfile:
    mode: Mode
    module_kind: ModuleKind
    file_extension: str
    module_extension: str

    def module_reference(self, path: str) -> str:
        """Spell a module reference; only relative references carry the suffix."""
        if path.startswith("."):
            return f"{path}{self.module_extension}"
        return path


TS_PROFILE = TargetProfile(Mode.TS, "esm", ".ts", "")
MTS_PROFILE = TargetProfile(Mode.TS, "esm", ".mts", ".mjs")
CJS_PROFILE = TargetProfile(Mode.JS, "cjs", ".js", "")
ESM_PROFILE = TargetProfile(Mode.JS, "esm", ".mjs", ".mjs")
DTS_PROFILE = TargetProfile(Mode.DTS, "esm", ".d.ts", "")
DENO_PROFILE = TargetProfile(Mode.TS, "esm", ".ts", ".ts")

# Emission passes per target; two-pass targets share file stems
TARGET_PROFILES: Dict[str, Tuple[TargetProfile, ...]] = {
    "ts": (TS_PROFILE,),
    "mts": (MTS_PROFILE,),
    "cjs": (CJS_PROFILE, DTS_PROFILE),
    "esm": (ESM_PROFILE, DTS_PROFILE),
    "deno": (DENO_PROFILE,),
}


def profiles_for(target: Target) -> Tuple[TargetProfile, ...]:
    try:
        return TARGET_PROFILES[target]
    except KeyError:
        raise ValueError(
            f"Unknown target {target!r}; expected one of: {', '.join(TARGET_PROFILES)}"
        ) from None
