import re
from typing import Dict, Iterator, Optional, Sequence, Tuple

from dts2externs.logger import logger
from dts2externs.models import OutputEntry, OutputKind, kind_tier

_QUOTES_RE = re.compile(r"[\"']")
_SEPARATORS_RE = re.compile(r"[~/\\]")


def sanitize_name(name: str) -> str:
    """
    Turn a symbol name into a registry key: quotes are dropped and path
    separators (``/``, ``\\``, ``~``) become ``_``.
    """
    return _SEPARATORS_RE.sub("_", _QUOTES_RE.sub("", name))


def format_documentation(lines: Optional[Sequence[str]]) -> str:
    """
    Render documentation lines as the comment block emitted before an entry.
    Returns an empty string when there is nothing to render.
    """
    if not lines:
        return ""
    return "/*" + "\n".join(lines) + " */\n"


class OutputRegistry:
    """
    Name-keyed store of output entries for one generation run.

    Top-level entries obey tiered kind precedence; members are plain
    last-write-wins records keyed by their raw name.
    """

    def __init__(self, debug: bool = False) -> None:
        self.debug = debug
        self._entries: Dict[str, OutputEntry] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> Optional[OutputEntry]:
        return self._entries.get(name)

    def items(self) -> Iterator[Tuple[str, OutputEntry]]:
        return iter(list(self._entries.items()))

    def upsert_entry(
        self, name: str, kind: OutputKind, documentation: str = ""
    ) -> OutputEntry:
        entry = self._entries.get(name)
        if entry is None:
            entry = OutputEntry(kind=kind, documentation=documentation)
            self._entries[name] = entry
            return entry

        if kind == entry.kind:
            return entry

        if kind_tier(kind) > kind_tier(entry.kind):
            if self.debug:
                logger.info(
                    "Already defined, overwriting",
                    name=name,
                    previous=entry.kind.value,
                    kind=kind.value,
                )
            entry.kind = kind
            entry.documentation = documentation
        elif self.debug:
            logger.info(
                "Already defined, not overwriting",
                name=name,
                previous=entry.kind.value,
                kind=kind.value,
            )
        return entry

    def attach_member(
        self, owner: str, member: str, documentation: str = ""
    ) -> Optional[OutputEntry]:
        key = sanitize_name(owner)
        entry = self._entries.get(key)
        if entry is None:
            logger.error("No entry found for member owner", owner=owner, member=member)
            return None
        record = OutputEntry(kind=OutputKind.MEMBER, documentation=documentation)
        entry.members[member] = record
        return record
