import re
from typing import Callable, Dict, Optional

from dts2externs.logger import logger
from dts2externs.models import SKIP_SYMBOLS, OutputEntry, OutputKind
from dts2externs.registry import OutputRegistry
from dts2externs.settings import OutputStyle

StyleFunc = Callable[[str, OutputEntry, bool], str]

_PLAIN_MEMBER_RE = re.compile(r"^[^0-9]")


def _is_plain_member(name: str) -> bool:
    # Member names starting with a digit cannot be written as identifiers
    return _PLAIN_MEMBER_RE.match(name) is not None


def output_type_prototype(name: str, entry: OutputEntry, keep_comments: bool) -> str:
    """
    Render a structured entry as a constructor function plus one
    ``NAME.prototype.MEMBER;`` line per member. Members whose name starts
    with a digit are left out.
    """
    out = f"function {name}() {{}};\n"
    for member, record in entry.members.items():
        if member in SKIP_SYMBOLS:
            continue
        if not _is_plain_member(member):
            continue
        if keep_comments and record.documentation:
            out += record.documentation
        out += f"{name}.prototype.{member};\n"
    return out


def output_type_object(name: str, entry: OutputEntry, keep_comments: bool) -> str:
    """
    Render a structured entry as an object literal with one stub function
    per member. Members whose name starts with a digit get a quoted key.
    """
    out = f"var {name} = {{\n"
    first = True
    for member, record in entry.members.items():
        if member in SKIP_SYMBOLS:
            continue
        if keep_comments and record.documentation:
            out += record.documentation
        if first:
            out += "\t "
            first = False
        else:
            out += "\t,"
        if _is_plain_member(member):
            out += f"{member}: function() {{}}\n"
        else:
            out += f'"{member}": function() {{}}\n'
    out += "};\n"
    return out


STYLE_FUNCS: Dict[OutputStyle, StyleFunc] = {
    OutputStyle.PROTO: output_type_prototype,
    OutputStyle.OBJ: output_type_object,
}

_STRUCTURED_KINDS = frozenset(
    {
        OutputKind.ENUM,
        OutputKind.OBJECT,
        OutputKind.CLASS,
        OutputKind.INTERFACE,
        OutputKind.NAMESPACE,
        OutputKind.MODULE,
    }
)


def serialize_entry(
    name: str, entry: OutputEntry, style: OutputStyle, keep_comments: bool
) -> Optional[str]:
    """
    Render one top-level entry without its trailing blank line. Returns None
    for kinds that have no top-level rendering.
    """
    kind = entry.kind
    if kind in (OutputKind.VARIABLE, OutputKind.TYPE):
        body = f"var {name};\n"
    elif kind == OutputKind.ARRAY:
        body = f"var {name} = [];\n"
    elif kind == OutputKind.FUNCTION:
        body = f"function {name}() {{}};\n"
    elif kind in _STRUCTURED_KINDS:
        body = STYLE_FUNCS[style](name, entry, keep_comments)
    else:
        logger.error("Unknown output kind", name=name, kind=kind.value)
        return None

    if keep_comments and entry.documentation:
        return entry.documentation + body
    return body


def serialize_registry(
    registry: OutputRegistry,
    style: OutputStyle = OutputStyle.OBJ,
    keep_comments: bool = False,
) -> str:
    """Render every registry entry, in insertion order, separated by blank lines."""
    parts: list[str] = []
    for name, entry in registry.items():
        if name in SKIP_SYMBOLS:
            continue
        rendered = serialize_entry(name, entry, style, keep_comments)
        if rendered is None:
            continue
        parts.append(rendered)
        parts.append("\n")
    return "".join(parts)
