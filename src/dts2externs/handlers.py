"""
Node handlers: each one resolves the symbol behind a declaration node,
decides its output kind and writes it (and its members) into the registry.
"""

import re
from typing import TYPE_CHECKING, Iterable, Optional

from dts2externs.frontend import (
    DeclaredSymbol,
    DeclNode,
    NodeFlags,
    SymbolFlags,
    SyntheticSymbol,
)
from dts2externs.logger import logger
from dts2externs.models import OutputKind
from dts2externs.registry import OutputRegistry, format_documentation, sanitize_name

if TYPE_CHECKING:
    from dts2externs.walker import TraversalContext

_ARRAY_TYPE_RE = re.compile(r".*\[\]$")


# --- registry helpers -------------------------------------------------------
def documentation_of(ctx: "TraversalContext", symbol: DeclaredSymbol) -> str:
    if not ctx.settings.keep_comments:
        return ""
    return format_documentation(
        ctx.frontend.get_documentation_comment(symbol, ctx.source_root)
    )


def output_symbol(
    ctx: "TraversalContext", symbol: Optional[DeclaredSymbol], kind: OutputKind
) -> None:
    if symbol is None or not symbol.name:
        return
    ctx.registry.upsert_entry(
        sanitize_name(symbol.name), kind, documentation_of(ctx, symbol)
    )


def add_member(
    ctx: "TraversalContext",
    owner: Optional[DeclaredSymbol],
    member: Optional[DeclaredSymbol],
) -> None:
    if owner is None or not owner.name or member is None or not member.name:
        return
    ctx.registry.attach_member(owner.name, member.name, documentation_of(ctx, member))


def seed_synthetic(
    registry: OutputRegistry,
    owner: SyntheticSymbol,
    members: Iterable[SyntheticSymbol],
) -> None:
    """Register a class-kind entry that exists regardless of the input files."""
    registry.upsert_entry(
        sanitize_name(owner.name),
        OutputKind.CLASS,
        format_documentation(owner.documentation),
    )
    for member in members:
        registry.attach_member(
            owner.name, member.name, format_documentation(member.documentation)
        )


# --- structured declarations -------------------------------------------------
def output_class_declaration(ctx: "TraversalContext", node: DeclNode) -> None:
    symbol = ctx.frontend.get_symbol_at_location(node)
    output_symbol(ctx, symbol, OutputKind.CLASS)
    if symbol is None:
        return
    for member in ctx.frontend.get_members_of_symbol(symbol):
        add_member(ctx, symbol, member)


def output_interface_declaration(ctx: "TraversalContext", node: DeclNode) -> None:
    symbol = ctx.frontend.get_symbol_at_location(node)
    output_symbol(ctx, symbol, OutputKind.INTERFACE)
    if symbol is None:
        return
    for member in ctx.frontend.get_members_of_symbol(symbol):
        add_member(ctx, symbol, member)


def output_module_declaration(ctx: "TraversalContext", node: DeclNode) -> None:
    symbol = ctx.frontend.get_symbol_at_location(node)
    kind = (
        OutputKind.NAMESPACE if node.flags & NodeFlags.NAMESPACE else OutputKind.MODULE
    )
    output_symbol(ctx, symbol, kind)
    if symbol is None:
        return
    for export in ctx.frontend.get_exports_of_module(symbol):
        add_member(ctx, symbol, export)


def output_enum_declaration(ctx: "TraversalContext", node: DeclNode) -> None:
    symbol = ctx.frontend.get_symbol_at_location(node)
    if symbol is None:
        return
    type_ = ctx.frontend.get_type_of_symbol(symbol)
    output_symbol(ctx, symbol, OutputKind.ENUM)
    for prop in ctx.frontend.get_properties_of_type(type_):
        if prop.flags & SymbolFlags.VALUE and not prop.flags & SymbolFlags.TRANSIENT:
            add_member(ctx, symbol, prop)


def output_property_signature(ctx: "TraversalContext", node: DeclNode) -> None:
    symbol = ctx.frontend.get_symbol_at_location(node)
    if symbol is None:
        return
    type_ = ctx.frontend.get_type_of_symbol(symbol)
    output_symbol(ctx, symbol, OutputKind.OBJECT)
    for prop in ctx.frontend.get_properties_of_type(type_):
        if (
            prop.flags & SymbolFlags.PROPERTY
            and not prop.flags & SymbolFlags.TRANSIENT
        ):
            add_member(ctx, symbol, prop)


def output_structured_variable_declaration(
    ctx: "TraversalContext", node: DeclNode
) -> None:
    symbol = ctx.frontend.get_symbol_at_location(node)
    if symbol is None:
        return
    type_ = ctx.frontend.get_type_of_symbol(symbol)

    if _ARRAY_TYPE_RE.search(ctx.frontend.type_to_string(type_)):
        output_symbol(ctx, symbol, OutputKind.ARRAY)
        return

    output_symbol(ctx, symbol, OutputKind.OBJECT)
    for prop in ctx.frontend.get_properties_of_type(type_):
        if not prop.flags & SymbolFlags.TRANSIENT:
            add_member(ctx, symbol, prop)


# --- simple declarations -----------------------------------------------------
def output_function_declaration(ctx: "TraversalContext", node: DeclNode) -> None:
    output_symbol(ctx, ctx.frontend.get_symbol_at_location(node), OutputKind.FUNCTION)


def output_variable_declaration(ctx: "TraversalContext", node: DeclNode) -> None:
    symbol = ctx.frontend.get_symbol_at_location(node)
    if symbol is None:
        return
    type_ = ctx.frontend.get_type_of_symbol(symbol)
    if ctx.frontend.is_structured_type(type_):
        logger.error(
            "Plain variable has a structured type",
            name=symbol.name,
            type=ctx.frontend.type_to_string(type_),
        )
        return
    output_symbol(ctx, symbol, OutputKind.VARIABLE)


def output_type_alias_declaration(ctx: "TraversalContext", node: DeclNode) -> None:
    output_symbol(ctx, ctx.frontend.get_symbol_at_location(node), OutputKind.TYPE)
