from dataclasses import dataclass
from typing import Callable, Dict, Optional

from dts2externs.frontend import (
    AbstractFrontEnd,
    DeclNode,
    NodeFlags,
    SymbolFlags,
    SyntaxKind,
)
from dts2externs import handlers
from dts2externs.logger import logger
from dts2externs.registry import OutputRegistry
from dts2externs.settings import GeneratorSettings


@dataclass(frozen=True)
class TraversalContext:
    """Per-file state threaded through every recursive visit."""

    frontend: AbstractFrontEnd
    registry: OutputRegistry
    settings: GeneratorSettings
    is_declaration_file: bool
    source_root: Optional[DeclNode] = None


@dataclass(frozen=True)
class Classification:
    structured: bool
    recurse: bool


SIMPLE = Classification(structured=False, recurse=False)

Handler = Callable[[TraversalContext, DeclNode], None]

_STRUCTURED_DECLARATIONS = frozenset(
    {
        SyntaxKind.CLASS_DECLARATION,
        SyntaxKind.INTERFACE_DECLARATION,
        SyntaxKind.MODULE_DECLARATION,
        SyntaxKind.ENUM_DECLARATION,
    }
)


def is_node_exported(node: DeclNode) -> bool:
    """True if the node is visible outside its file."""
    return bool(node.flags & NodeFlags.EXPORT) or (
        node.parent is not None and node.parent.kind == SyntaxKind.SOURCE_FILE
    )


def is_node_eligible(ctx: TraversalContext, node: DeclNode) -> bool:
    return (
        ctx.is_declaration_file
        or ctx.settings.parse_all
        or is_node_exported(node)
    )


def is_structured_node(frontend: AbstractFrontEnd, node: DeclNode) -> bool:
    """
    True for declarations whose value has named members worth emitting:
    property signatures of anonymous object type, variables of structured
    type, and non-abstract classes, interfaces, modules and enums.
    """
    if node.kind == SyntaxKind.PROPERTY_SIGNATURE:
        symbol = frontend.get_symbol_at_location(node)
        if symbol is not None:
            type_ = frontend.get_type_of_symbol(symbol)
            if (
                symbol.flags & (SymbolFlags.PROPERTY | SymbolFlags.ENUM_MEMBER)
                and not symbol.flags & SymbolFlags.TRANSIENT
                and frontend.is_anonymous_type(type_)
            ):
                return True

    if node.kind == SyntaxKind.VARIABLE_DECLARATION:
        symbol = frontend.get_symbol_at_location(node)
        if symbol is not None and frontend.is_structured_type(
            frontend.get_type_of_symbol(symbol)
        ):
            return True

    if node.flags & NodeFlags.ABSTRACT:
        return False

    return node.kind in _STRUCTURED_DECLARATIONS


def classify(frontend: AbstractFrontEnd, node: DeclNode) -> Classification:
    if not is_structured_node(frontend, node):
        return SIMPLE
    # structured variables discover their own members
    return Classification(
        structured=True, recurse=node.kind != SyntaxKind.VARIABLE_DECLARATION
    )


def visit(ctx: TraversalContext, node: Optional[DeclNode]) -> None:
    """Classify one node, hand it to its handler and descend as required."""
    if node is None:
        return
    if not is_node_eligible(ctx, node):
        return

    cls = classify(ctx.frontend, node)
    table = STRUCTURED_HANDLERS if cls.structured else SIMPLE_HANDLERS
    handler = table.get(node.kind)
    if handler is not None:
        handler(ctx, node)
    elif cls.structured:
        logger.error(
            "Unknown structured node",
            kind=node.kind.value,
            name=node.name,
        )

    if cls.recurse:
        for child in node.children:
            visit(ctx, child)


def visit_children(ctx: TraversalContext, node: DeclNode) -> None:
    for child in node.children:
        visit(ctx, child)


def visit_source_file(ctx: TraversalContext, root: DeclNode) -> None:
    visit_children(ctx, root)


STRUCTURED_HANDLERS: Dict[SyntaxKind, Handler] = {
    SyntaxKind.CLASS_DECLARATION: handlers.output_class_declaration,
    SyntaxKind.MODULE_DECLARATION: handlers.output_module_declaration,
    SyntaxKind.INTERFACE_DECLARATION: handlers.output_interface_declaration,
    SyntaxKind.ENUM_DECLARATION: handlers.output_enum_declaration,
    SyntaxKind.PROPERTY_SIGNATURE: handlers.output_property_signature,
    SyntaxKind.VARIABLE_DECLARATION: handlers.output_structured_variable_declaration,
}

SIMPLE_HANDLERS: Dict[SyntaxKind, Handler] = {
    SyntaxKind.FUNCTION_DECLARATION: handlers.output_function_declaration,
    SyntaxKind.VARIABLE_DECLARATION: handlers.output_variable_declaration,
    SyntaxKind.VARIABLE_STATEMENT: visit_children,
    SyntaxKind.MODULE_BLOCK: visit_children,
    SyntaxKind.TYPE_ALIAS_DECLARATION: handlers.output_type_alias_declaration,
}
