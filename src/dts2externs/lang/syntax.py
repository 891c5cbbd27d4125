import re
from typing import Dict, List, Optional

from dts2externs.frontend import DeclaredSymbol, DeclNode, SymbolFlags

_WS_RE = re.compile(r"\s+")
_WELL_KNOWN_SYMBOL_RE = re.compile(r"^Symbol\.([A-Za-z_$][\w$]*)$")


def get_node_text(node) -> str:
    """
    Get text of the tree sitter node
    """
    if not node or not node.text:
        return ""

    return node.text.decode("utf-8", errors="replace")


def compact_text(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] in "\"'`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def first_named_child(node, exclude: tuple[str, ...] = ("comment",)):
    if node is None:
        return None
    return next((c for c in node.named_children if c.type not in exclude), None)


def has_keyword(node, keyword: str) -> bool:
    """True if *node* has an anonymous `keyword` token among its direct children."""
    return any(not c.is_named and c.type == keyword for c in node.children)


def property_name(name_node) -> Optional[str]:
    """
    Symbol name for a property-like name node. String names lose their
    quotes; computed well-known symbols become ``__@name``.
    """
    if name_node is None:
        return None
    text = get_node_text(name_node)
    if name_node.type == "string":
        return strip_quotes(text)
    if name_node.type == "computed_property_name":
        inner = text[1:-1].strip()
        m = _WELL_KNOWN_SYMBOL_RE.match(inner)
        if m:
            return f"__@{m.group(1)}"
        if inner and inner[0] in "\"'":
            return strip_quotes(inner)
        return "__computed"
    return text or None


def declare_member(
    table: Dict[str, DeclaredSymbol],
    name: str,
    flags: SymbolFlags,
    node: DeclNode,
) -> DeclaredSymbol:
    """Add *node* as a declaration of *name* in *table*, merging with an existing symbol."""
    symbol = table.get(name)
    if symbol is None:
        symbol = DeclaredSymbol(name=name, flags=flags)
        table[name] = symbol
    else:
        symbol.flags |= flags
    symbol.declarations.append(node)
    node.symbol = symbol
    return symbol


def parse_jsdoc(text: str) -> List[str]:
    """
    Extract the description lines of a ``/** ... */`` comment. Leading
    asterisks are removed and everything from the first ``@tag`` line on is
    dropped.
    """
    if not text.startswith("/**") or text.startswith("/**/"):
        return []
    body = text[3:-2] if text.endswith("*/") else text[3:]

    lines: List[str] = []
    for raw in body.splitlines():
        line = raw.strip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        line = line.rstrip()
        if line.lstrip().startswith("@"):
            break
        lines.append(line)

    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def preceding_comments(node) -> List[str]:
    """Texts of the comment siblings directly preceding *node*, in source order."""
    comments: List[str] = []
    sib = node.prev_sibling
    while sib is not None and sib.type == "comment":
        comments.append(get_node_text(sib))
        sib = sib.prev_sibling
    comments.reverse()
    return comments
