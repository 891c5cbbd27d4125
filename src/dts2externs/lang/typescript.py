import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Set

import tree_sitter as ts
import tree_sitter_typescript as tsts

from dts2externs.frontend import (
    AbstractFrontEnd,
    DeclaredSymbol,
    DeclNode,
    NodeFlags,
    SourceFile,
    SymbolFlags,
    SyntaxKind,
    TypeInfo,
)
from dts2externs.lang.checker import TypeChecker
from dts2externs.lang.syntax import (
    declare_member,
    first_named_child,
    get_node_text,
    has_keyword,
    parse_jsdoc,
    preceding_comments,
    property_name,
    strip_quotes,
)
from dts2externs.logger import logger

TS_LANGUAGE = ts.Language(tsts.language_typescript())
_parser: Optional[ts.Parser] = None

_REFERENCE_PATH_RE = re.compile(r"""^///\s*<reference\s+path\s*=\s*["']([^"']+)["']""")
_NO_DEFAULT_LIB_RE = re.compile(
    r"""^///\s*<reference\s+no-default-lib\s*=\s*["']true["']"""
)
_DECLARATION_FILE_RE = re.compile(r"\.d\.ts$")

_METHOD_TYPES = ("method_definition", "method_signature", "abstract_method_signature")


def _get_parser() -> ts.Parser:
    global _parser
    if _parser is None:
        _parser = ts.Parser(TS_LANGUAGE)
    return _parser


@dataclass
class _Scope:
    """Binding target: where declarations land and whether they are exported."""

    locals: Dict[str, DeclaredSymbol]
    exports: Dict[str, DeclaredSymbol]
    export_all: bool = False


class TypeScriptFrontEnd(AbstractFrontEnd):
    """
    Declaration front end built on tree-sitter: parses files, binds their
    declarations into symbols and answers type queries through `TypeChecker`.
    """

    def __init__(self) -> None:
        self.parser = _get_parser()
        self.globals: Dict[str, DeclaredSymbol] = {}
        self.source_files: List[SourceFile] = []
        self.checker = TypeChecker(self)
        self._binders: Dict[str, Callable[..., None]] = {
            "class_declaration": self._bind_class,
            "abstract_class_declaration": self._bind_class,
            "interface_declaration": self._bind_interface,
            "enum_declaration": self._bind_enum,
            "module": self._bind_module,
            "internal_module": self._bind_module,
            "function_declaration": self._bind_function,
            "function_signature": self._bind_function,
            "generator_function_declaration": self._bind_function,
            "lexical_declaration": self._bind_variables,
            "variable_declaration": self._bind_variables,
            "type_alias_declaration": self._bind_type_alias,
        }

    # --- program ------------------------------------------------------------
    def create_program(self, file_names: Sequence[str]) -> List[SourceFile]:
        seen: Set[str] = set()
        for name in file_names:
            self._add_file(Path(name), seen)
        return list(self.source_files)

    def _add_file(self, path: Path, seen: Set[str]) -> None:
        key = str(path.resolve())
        if key in seen:
            return
        seen.add(key)

        try:
            source = path.read_bytes()
        except OSError as ex:
            logger.error("Cannot read source file", path=str(path), error=str(ex))
            return

        tree = self.parser.parse(source)
        directives = self._leading_directives(tree.root_node)

        # referenced files come before the file referencing them
        for line in directives:
            m = _REFERENCE_PATH_RE.match(line)
            if m:
                self._add_file(path.parent / m.group(1), seen)

        no_default_lib = any(_NO_DEFAULT_LIB_RE.match(line) for line in directives)
        self.source_files.append(
            self._bind_file(str(path), tree.root_node, no_default_lib)
        )

    def _leading_directives(self, root: ts.Node) -> List[str]:
        lines: List[str] = []
        for child in root.children:
            if child.type != "comment":
                break
            text = get_node_text(child).strip()
            if text.startswith("///"):
                lines.append(text)
        return lines

    def _is_external_module(self, root: ts.Node) -> bool:
        return any(
            c.type in ("import_statement", "export_statement")
            for c in root.named_children
        )

    # --- binder -------------------------------------------------------------
    def _bind_file(
        self, file_name: str, root_syntax: ts.Node, no_default_lib: bool
    ) -> SourceFile:
        is_declaration = bool(_DECLARATION_FILE_RE.search(file_name))
        root = DeclNode(SyntaxKind.SOURCE_FILE, name=file_name, syntax=root_syntax)

        if self._is_external_module(root_syntax):
            file_symbol = DeclaredSymbol(
                name=f'"{Path(file_name).with_suffix("").as_posix()}"',
                flags=SymbolFlags.VALUE_MODULE,
                declarations=[root],
            )
            root.symbol = file_symbol
            scope = _Scope(file_symbol.locals, file_symbol.exports)
        else:
            scope = _Scope(self.globals, self.globals, export_all=True)

        self._bind_statements(root_syntax.named_children, root, scope, is_declaration)
        return SourceFile(
            file_name=file_name,
            is_declaration_file=is_declaration,
            has_no_default_lib=no_default_lib,
            root=root,
        )

    def _bind_statements(
        self, statements, parent: DeclNode, scope: _Scope, ambient: bool
    ) -> None:
        for syn in statements:
            self._bind_statement(
                syn, parent, scope, ambient=ambient, exported=False, doc=syn
            )

    def _bind_statement(
        self,
        syn: ts.Node,
        parent: DeclNode,
        scope: _Scope,
        *,
        ambient: bool,
        exported: bool,
        doc: ts.Node,
    ) -> None:
        t = syn.type
        if t == "export_statement":
            if has_keyword(syn, "="):
                node = parent.add_child(
                    DeclNode(
                        SyntaxKind.EXPORT_ASSIGNMENT,
                        name="export=",
                        flags=NodeFlags.EXPORT,
                        syntax=syn,
                        doc_syntax=doc,
                    )
                )
                self._declare(scope, "export=", SymbolFlags.ALIAS, node, True)
                return
            decl = syn.child_by_field_name("declaration")
            if decl is not None:
                self._bind_statement(
                    decl, parent, scope, ambient=ambient, exported=True, doc=doc
                )
            return

        if t == "ambient_declaration":
            if has_keyword(syn, "global"):
                block = next(
                    (c for c in syn.named_children if c.type == "statement_block"),
                    None,
                )
                if block is not None:
                    node = parent.add_child(
                        DeclNode(
                            SyntaxKind.MODULE_BLOCK,
                            flags=NodeFlags.AMBIENT,
                            syntax=block,
                        )
                    )
                    self._bind_statements(
                        block.named_children,
                        node,
                        _Scope(self.globals, self.globals, export_all=True),
                        ambient=True,
                    )
                return
            inner = first_named_child(syn)
            if inner is not None:
                self._bind_statement(
                    inner, parent, scope, ambient=True, exported=exported, doc=doc
                )
            return

        if t == "expression_statement":
            # `namespace Foo {}` may surface as an expression
            inner = first_named_child(syn)
            if inner is not None and inner.type == "internal_module":
                self._bind_module(
                    inner, parent, scope, ambient=ambient, exported=exported, doc=doc
                )
            return

        binder = self._binders.get(t)
        if binder is not None:
            binder(syn, parent, scope, ambient=ambient, exported=exported, doc=doc)

    def _declare(
        self,
        scope: _Scope,
        name: str,
        flags: SymbolFlags,
        node: DeclNode,
        exported: bool,
    ) -> DeclaredSymbol:
        exported = exported or scope.export_all
        symbol = scope.locals.get(name)
        if symbol is None and exported:
            symbol = scope.exports.get(name)
            if symbol is not None:
                scope.locals[name] = symbol
        if symbol is None:
            symbol = declare_member(scope.locals, name, flags, node)
        else:
            symbol.flags |= flags
            symbol.declarations.append(node)
            node.symbol = symbol
        if exported:
            scope.exports[name] = symbol
        return symbol

    def _node_flags(self, ambient: bool, exported: bool) -> NodeFlags:
        flags = NodeFlags.NONE
        if exported:
            flags |= NodeFlags.EXPORT
        if ambient:
            flags |= NodeFlags.AMBIENT
        return flags

    def _bind_class(self, syn, parent, scope, *, ambient, exported, doc) -> None:
        name = get_node_text(syn.child_by_field_name("name")) or None
        flags = self._node_flags(ambient, exported)
        if syn.type == "abstract_class_declaration":
            flags |= NodeFlags.ABSTRACT
        node = parent.add_child(
            DeclNode(
                SyntaxKind.CLASS_DECLARATION,
                name=name,
                flags=flags,
                syntax=syn,
                doc_syntax=doc,
            )
        )
        if name is None:
            return
        symbol = self._declare(scope, name, SymbolFlags.CLASS, node, exported)
        body = syn.child_by_field_name("body")
        if body is None:
            return
        for member in body.named_children:
            self._bind_class_member(member, node, symbol)

    def _bind_class_member(
        self, syn: ts.Node, owner: DeclNode, owner_symbol: DeclaredSymbol
    ) -> None:
        t = syn.type
        if t == "public_field_definition":
            kind, flags = SyntaxKind.PROPERTY_DECLARATION, SymbolFlags.PROPERTY
            name = property_name(syn.child_by_field_name("name"))
        elif t in _METHOD_TYPES:
            kind, flags = SyntaxKind.METHOD_DECLARATION, SymbolFlags.METHOD
            name = property_name(syn.child_by_field_name("name"))
            if has_keyword(syn, "get") or has_keyword(syn, "set"):
                flags = SymbolFlags.PROPERTY
            elif name == "constructor":
                kind, flags, name = (
                    SyntaxKind.CONSTRUCTOR,
                    SymbolFlags.CONSTRUCTOR,
                    "__constructor",
                )
        elif t == "index_signature":
            kind, flags, name = (
                SyntaxKind.INDEX_SIGNATURE,
                SymbolFlags.SIGNATURE,
                "__index",
            )
        else:
            return
        if not name:
            return

        node_flags = NodeFlags.NONE
        if has_keyword(syn, "static"):
            node_flags |= NodeFlags.STATIC
        if has_keyword(syn, "abstract"):
            node_flags |= NodeFlags.ABSTRACT
        node = owner.add_child(
            DeclNode(kind, name=name, flags=node_flags, syntax=syn, doc_syntax=syn)
        )
        table = (
            owner_symbol.exports
            if node_flags & NodeFlags.STATIC
            else owner_symbol.members
        )
        declare_member(table, name, flags, node)

    def bind_type_member(
        self,
        syn: ts.Node,
        owner: DeclNode,
        table: Dict[str, DeclaredSymbol],
        detached: bool = False,
    ) -> Optional[DeclaredSymbol]:
        """
        Bind one member of an interface body or object type literal into
        *table*. Detached members get a parent link but are not added to the
        owner's children.
        """
        t = syn.type
        if t == "property_signature":
            kind, flags = SyntaxKind.PROPERTY_SIGNATURE, SymbolFlags.PROPERTY
            name = property_name(syn.child_by_field_name("name"))
        elif t == "method_signature":
            kind, flags = SyntaxKind.METHOD_SIGNATURE, SymbolFlags.METHOD
            name = property_name(syn.child_by_field_name("name"))
            if has_keyword(syn, "get") or has_keyword(syn, "set"):
                flags = SymbolFlags.PROPERTY
        elif t == "call_signature":
            kind, flags, name = (
                SyntaxKind.CALL_SIGNATURE,
                SymbolFlags.SIGNATURE,
                "__call",
            )
        elif t == "construct_signature":
            kind, flags, name = (
                SyntaxKind.CONSTRUCT_SIGNATURE,
                SymbolFlags.SIGNATURE,
                "__new",
            )
        elif t == "index_signature":
            kind, flags, name = (
                SyntaxKind.INDEX_SIGNATURE,
                SymbolFlags.SIGNATURE,
                "__index",
            )
        else:
            return None
        if not name:
            return None

        node = DeclNode(kind, name=name, syntax=syn, doc_syntax=syn)
        if detached:
            node.parent = owner
        else:
            owner.add_child(node)
        return declare_member(table, name, flags, node)

    def _bind_interface(self, syn, parent, scope, *, ambient, exported, doc) -> None:
        name = get_node_text(syn.child_by_field_name("name")) or None
        node = parent.add_child(
            DeclNode(
                SyntaxKind.INTERFACE_DECLARATION,
                name=name,
                flags=self._node_flags(ambient, exported),
                syntax=syn,
                doc_syntax=doc,
            )
        )
        if name is None:
            return
        symbol = self._declare(scope, name, SymbolFlags.INTERFACE, node, exported)
        body = syn.child_by_field_name("body")
        if body is None:
            return
        for member in body.named_children:
            self.bind_type_member(member, node, symbol.members)

    def _bind_enum(self, syn, parent, scope, *, ambient, exported, doc) -> None:
        name = get_node_text(syn.child_by_field_name("name")) or None
        node = parent.add_child(
            DeclNode(
                SyntaxKind.ENUM_DECLARATION,
                name=name,
                flags=self._node_flags(ambient, exported),
                syntax=syn,
                doc_syntax=doc,
            )
        )
        if name is None:
            return
        symbol = self._declare(scope, name, SymbolFlags.ENUM, node, exported)
        body = syn.child_by_field_name("body")
        if body is None:
            return
        for member in body.named_children:
            if member.type == "enum_assignment":
                name_node = member.child_by_field_name("name")
            elif member.type in (
                "property_identifier",
                "identifier",
                "string",
                "number",
                "computed_property_name",
            ):
                name_node = member
            else:
                continue
            member_name = property_name(name_node)
            if not member_name:
                continue
            member_node = node.add_child(
                DeclNode(
                    SyntaxKind.ENUM_MEMBER,
                    name=member_name,
                    syntax=member,
                    doc_syntax=member,
                )
            )
            declare_member(
                symbol.exports, member_name, SymbolFlags.ENUM_MEMBER, member_node
            )

    def _bind_module(self, syn, parent, scope, *, ambient, exported, doc) -> None:
        name_node = syn.child_by_field_name("name")
        if name_node is None:
            return
        if name_node.type == "string":
            parts = [f'"{strip_quotes(get_node_text(name_node))}"']
        else:
            parts = [p.strip() for p in get_node_text(name_node).split(".")]
            parts = [p for p in parts if p]
        if not parts:
            return

        namespace_flag = (
            NodeFlags.NAMESPACE if syn.type == "internal_module" else NodeFlags.NONE
        )

        # `namespace A.B {}` declares A containing an exported B
        symbols: List[DeclaredSymbol] = []
        container, current_scope, current_exported = parent, scope, exported
        node = parent
        for idx, part in enumerate(parts):
            node = container.add_child(
                DeclNode(
                    SyntaxKind.MODULE_DECLARATION,
                    name=part,
                    flags=self._node_flags(ambient, current_exported) | namespace_flag,
                    syntax=syn,
                    doc_syntax=doc if idx == 0 else None,
                )
            )
            symbol = self._declare(
                current_scope,
                part,
                SymbolFlags.NAMESPACE_MODULE,
                node,
                current_exported,
            )
            symbols.append(symbol)
            container = node
            current_scope = _Scope(symbol.locals, symbol.exports)
            current_exported = True

        body = syn.child_by_field_name("body")
        if body is not None:
            block = node.add_child(DeclNode(SyntaxKind.MODULE_BLOCK, syntax=body))
            # ambient namespaces without any explicit export export everything
            export_all = ambient and not any(
                c.type == "export_statement" for c in body.named_children
            )
            inner = symbols[-1]
            self._bind_statements(
                body.named_children,
                block,
                _Scope(inner.locals, inner.exports, export_all=export_all),
                ambient=ambient,
            )

        instantiated = body is None or parts[0].startswith('"')
        for symbol in reversed(symbols):
            if instantiated or any(
                s.flags & SymbolFlags.VALUE for s in symbol.locals.values()
            ):
                symbol.flags |= SymbolFlags.VALUE_MODULE
                instantiated = True

    def _bind_function(self, syn, parent, scope, *, ambient, exported, doc) -> None:
        name = get_node_text(syn.child_by_field_name("name")) or None
        node = parent.add_child(
            DeclNode(
                SyntaxKind.FUNCTION_DECLARATION,
                name=name,
                flags=self._node_flags(ambient, exported),
                syntax=syn,
                doc_syntax=doc,
            )
        )
        if name is not None:
            self._declare(scope, name, SymbolFlags.FUNCTION, node, exported)

    def _bind_variables(self, syn, parent, scope, *, ambient, exported, doc) -> None:
        statement = parent.add_child(
            DeclNode(
                SyntaxKind.VARIABLE_STATEMENT,
                flags=self._node_flags(ambient, exported),
                syntax=syn,
                doc_syntax=doc,
            )
        )
        for declarator in syn.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            # destructuring patterns declare nothing we can name
            if name_node is None or name_node.type != "identifier":
                continue
            name = get_node_text(name_node)
            node = statement.add_child(
                DeclNode(
                    SyntaxKind.VARIABLE_DECLARATION,
                    name=name,
                    flags=self._node_flags(ambient, False),
                    syntax=declarator,
                    doc_syntax=doc,
                )
            )
            self._declare(scope, name, SymbolFlags.VARIABLE, node, exported)

    def _bind_type_alias(self, syn, parent, scope, *, ambient, exported, doc) -> None:
        name = get_node_text(syn.child_by_field_name("name")) or None
        node = parent.add_child(
            DeclNode(
                SyntaxKind.TYPE_ALIAS_DECLARATION,
                name=name,
                flags=self._node_flags(ambient, exported),
                syntax=syn,
                doc_syntax=doc,
            )
        )
        if name is not None:
            self._declare(scope, name, SymbolFlags.TYPE_ALIAS, node, exported)

    # --- queries ------------------------------------------------------------
    def get_symbol_at_location(self, node: DeclNode) -> Optional[DeclaredSymbol]:
        return node.symbol

    def get_type_of_symbol(self, symbol: DeclaredSymbol) -> TypeInfo:
        return self.checker.get_type_of_symbol(symbol)

    def get_documentation_comment(
        self, symbol: DeclaredSymbol, source: Optional[DeclNode] = None
    ) -> List[str]:
        decls = symbol.declarations
        if source is not None:
            decls = [d for d in decls if d.root is source] or decls

        lines: List[str] = []
        for decl in decls:
            if decl.doc_syntax is None:
                continue
            for comment in preceding_comments(decl.doc_syntax):
                lines.extend(parse_jsdoc(comment))
        return lines
