from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class OutputKind(str, Enum):
    VARIABLE = "variable"
    ARRAY = "array"
    FUNCTION = "function"
    TYPE = "type"
    ENUM = "enum"
    OBJECT = "object"
    CLASS = "class"
    INTERFACE = "interface"
    NAMESPACE = "namespace"
    MODULE = "module"
    MEMBER = "member"  # nested entries only


# Precedence tier per kind. A registered kind may only be replaced by a kind
# from a strictly higher tier.
KIND_TIERS: Dict[OutputKind, int] = {
    OutputKind.MEMBER: 0,
    OutputKind.TYPE: 1,
    OutputKind.VARIABLE: 1,
    OutputKind.FUNCTION: 2,
    OutputKind.ARRAY: 2,
    OutputKind.OBJECT: 3,
    OutputKind.ENUM: 3,
    OutputKind.CLASS: 4,
    OutputKind.INTERFACE: 4,
    OutputKind.NAMESPACE: 4,
    OutputKind.MODULE: 4,
}


def kind_tier(kind: OutputKind) -> int:
    return KIND_TIERS.get(kind, 0)


# Names always provided by the compiler's default externs, or picked up from
# syntax the walker cannot interpret (`export =`).
SKIP_SYMBOLS: frozenset[str] = frozenset(
    {
        "export=",
        "Map",
        "Symbol",
        "Error",
        "escape",
        "unescape",
    }
)

CONSOLE_NAME = "console"
CONSOLE_MEMBER_NAMES: tuple[str, ...] = (
    "log",
    "info",
    "warn",
    "error",
    "dir",
    "time",
    "timeEnd",
    "trace",
    "assert",
)


# ---------------------------------------------------------------------------
# Output entries
# ---------------------------------------------------------------------------


class OutputEntry(BaseModel):
    """One registry record: a top-level name or a member of one."""

    kind: OutputKind
    documentation: str = ""  # already formatted comment block
    members: Dict[str, "OutputEntry"] = Field(default_factory=dict)
