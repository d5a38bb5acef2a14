from dataclasses import dataclass
from enum import Enum

class GenerationStage(str, Enum):
    CONNECT = "CONNECT"
    INTROSPECT = "INTROSPECT"
    GENERATE = "GENERATE"
    MERGE = "MERGE"
    EMIT = "EMIT"
    SYNC = "SYNC"
    DONE = "DONE"
    FAILED = "FAILED"

@dataclass(frozen=True)
class GenerationResult:
    target: str
    output_dir: str
    written: list[str]
    changed: list[str]
    removed: list[str]
