from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Set, Tuple

from dts2externs.frontend import (
    DeclaredSymbol,
    DeclNode,
    SymbolFlags,
    SyntaxKind,
    TypeFlags,
    TypeInfo,
)
from dts2externs.lang.syntax import (
    compact_text,
    declare_member,
    first_named_child,
    get_node_text,
    property_name,
)
from dts2externs.logger import logger

if TYPE_CHECKING:
    from dts2externs.lang.typescript import TypeScriptFrontEnd

ANY = TypeInfo(TypeFlags.ANY, "any")

_VALUE_DECLARATIONS = (
    SyntaxKind.VARIABLE_DECLARATION,
    SyntaxKind.PROPERTY_SIGNATURE,
    SyntaxKind.PROPERTY_DECLARATION,
    SyntaxKind.METHOD_SIGNATURE,
    SyntaxKind.METHOD_DECLARATION,
)
_FUNCTION_DECLARATIONS = (
    SyntaxKind.FUNCTION_DECLARATION,
    SyntaxKind.METHOD_SIGNATURE,
    SyntaxKind.METHOD_DECLARATION,
    SyntaxKind.CONSTRUCTOR,
)
_ARRAY_NAMES = ("Array", "ReadonlyArray")
_WRAPPED_ELEMENT_TYPES = (
    "union_type",
    "intersection_type",
    "function_type",
    "constructor_type",
)
_FUNCTION_EXPRESSIONS = (
    "arrow_function",
    "function",
    "function_expression",
    "generator_function",
    "class",
)
_PRIMITIVE_EXPRESSIONS = {
    "string": "string",
    "template_string": "string",
    "number": "number",
    "true": "boolean",
    "false": "boolean",
    "regex": "RegExp",
    "null": "null",
    "undefined": "undefined",
}


def _transient(symbol: DeclaredSymbol) -> DeclaredSymbol:
    """Detached copy of *symbol* standing in for a property of a derived type."""
    return DeclaredSymbol(
        name=symbol.name,
        flags=symbol.flags | SymbolFlags.TRANSIENT,
        declarations=symbol.declarations,
        members=symbol.members,
        exports=symbol.exports,
    )


def _find_declaration(
    symbol: DeclaredSymbol, kinds: Iterable[SyntaxKind]
) -> Optional[DeclNode]:
    kinds = tuple(kinds)
    return next((d for d in symbol.declarations if d.kind in kinds), None)


class TypeChecker:
    """
    Resolves the types of bound symbols from their declaration syntax.
    Resolution is lazy and cached per symbol; cycles resolve to ``any``.
    """

    def __init__(self, frontend: "TypeScriptFrontEnd") -> None:
        self.frontend = frontend
        self._symbol_types: Dict[DeclaredSymbol, TypeInfo] = {}
        self._declared_types: Dict[DeclaredSymbol, TypeInfo] = {}
        self._literal_members: Dict[Tuple[int, int, int], Dict[str, DeclaredSymbol]] = {}
        self._resolving: Set[DeclaredSymbol] = set()
        self._resolving_declared: Set[DeclaredSymbol] = set()

    # --- symbols ------------------------------------------------------------
    def get_type_of_symbol(self, symbol: DeclaredSymbol) -> TypeInfo:
        cached = self._symbol_types.get(symbol)
        if cached is not None:
            return cached
        if symbol in self._resolving:
            logger.debug("Circular type reference", name=symbol.name)
            return ANY

        self._resolving.add(symbol)
        try:
            type_ = self._compute_type_of_symbol(symbol)
        finally:
            self._resolving.discard(symbol)

        self._symbol_types[symbol] = type_
        return type_

    def _compute_type_of_symbol(self, symbol: DeclaredSymbol) -> TypeInfo:
        flags = symbol.flags

        if flags & (SymbolFlags.VARIABLE | SymbolFlags.PROPERTY):
            decl = _find_declaration(symbol, _VALUE_DECLARATIONS)
            if decl is None:
                decl = symbol.value_declaration
            if decl is not None:
                return self._type_of_value_declaration(decl)
            return ANY

        if flags & SymbolFlags.ENUM_MEMBER:
            owner = symbol.value_declaration.parent if symbol.declarations else None
            name = owner.name if owner is not None and owner.name else symbol.name
            return TypeInfo(TypeFlags.ENUM, name)

        if flags & (SymbolFlags.FUNCTION | SymbolFlags.METHOD | SymbolFlags.CONSTRUCTOR):
            decl = _find_declaration(symbol, _FUNCTION_DECLARATIONS)
            text = self._signature_text(decl.syntax) if decl is not None else "() => any"
            props: List[DeclaredSymbol] = []
            if flags & SymbolFlags.VALUE_MODULE:
                props = self._value_exports(symbol)
            return TypeInfo(TypeFlags.ANONYMOUS, text, props)

        if flags & SymbolFlags.CLASS:
            props = self._value_exports(symbol)
            props.append(DeclaredSymbol(name="prototype", flags=SymbolFlags.PROPERTY))
            return TypeInfo(TypeFlags.ANONYMOUS, f"typeof {symbol.name}", props)

        if flags & SymbolFlags.ENUM:
            return TypeInfo(
                TypeFlags.ANONYMOUS,
                f"typeof {symbol.name}",
                list(symbol.exports.values()),
            )

        if flags & SymbolFlags.VALUE_MODULE:
            return TypeInfo(
                TypeFlags.ANONYMOUS,
                f"typeof {symbol.name}",
                self._value_exports(symbol),
            )

        return ANY

    def _value_exports(self, symbol: DeclaredSymbol) -> List[DeclaredSymbol]:
        return [s for s in symbol.exports.values() if s.flags & SymbolFlags.VALUE]

    def _type_of_value_declaration(self, decl: DeclNode) -> TypeInfo:
        syn = decl.syntax
        if syn is None:
            return ANY
        type_node = syn.child_by_field_name("type")
        if type_node is None:
            # accessors declare their type as a return type
            type_node = syn.child_by_field_name("return_type")
        if type_node is not None:
            return self.resolve_type_node(type_node, decl)
        value = syn.child_by_field_name("value")
        if value is not None:
            return self.infer_expression(value, decl)
        return ANY

    def _signature_text(self, syn) -> str:
        if syn is None:
            return "() => any"
        params = syn.child_by_field_name("parameters")
        ret = syn.child_by_field_name("return_type")
        params_text = compact_text(get_node_text(params)) if params else "()"
        ret_text = compact_text(get_node_text(ret)).lstrip(":").strip() if ret else ""
        return f"{params_text} => {ret_text or 'any'}"

    # --- declared (instance) types -------------------------------------------
    def get_declared_type(self, symbol: DeclaredSymbol) -> TypeInfo:
        cached = self._declared_types.get(symbol)
        if cached is not None:
            return cached
        if symbol in self._resolving_declared:
            logger.debug("Circular base type", name=symbol.name)
            return ANY

        self._resolving_declared.add(symbol)
        try:
            type_ = self._compute_declared_type(symbol)
        finally:
            self._resolving_declared.discard(symbol)

        self._declared_types[symbol] = type_
        return type_

    def _compute_declared_type(self, symbol: DeclaredSymbol) -> TypeInfo:
        flags = symbol.flags
        if flags & (SymbolFlags.CLASS | SymbolFlags.INTERFACE):
            type_flags = (
                TypeFlags.CLASS if flags & SymbolFlags.CLASS else TypeFlags.INTERFACE
            )
            return TypeInfo(type_flags, symbol.name, self._instance_properties(symbol))

        if flags & SymbolFlags.TYPE_ALIAS:
            decl = _find_declaration(symbol, (SyntaxKind.TYPE_ALIAS_DECLARATION,))
            value = decl.syntax.child_by_field_name("value") if decl else None
            if value is None:
                return ANY
            return self.resolve_type_node(value, decl)

        if flags & SymbolFlags.ENUM:
            return TypeInfo(TypeFlags.ENUM, symbol.name)

        return ANY

    def _instance_properties(self, symbol: DeclaredSymbol) -> List[DeclaredSymbol]:
        props: Dict[str, DeclaredSymbol] = {}
        for decl in symbol.declarations:
            for base in self._base_types(decl):
                for prop in base.properties:
                    props.setdefault(prop.name, prop)
        own = {
            name: member
            for name, member in symbol.members.items()
            if member.flags & (SymbolFlags.PROPERTY | SymbolFlags.METHOD)
        }
        props.update(own)
        return list(props.values())

    def _base_types(self, decl: DeclNode) -> List[TypeInfo]:
        syn = decl.syntax
        if syn is None:
            return []
        bases: List[TypeInfo] = []
        for child in syn.named_children:
            if child.type == "extends_type_clause":
                for type_node in child.named_children:
                    bases.append(self.resolve_type_node(type_node, decl))
            elif child.type == "class_heritage":
                for clause in child.named_children:
                    if clause.type != "extends_clause":
                        continue
                    value = clause.child_by_field_name("value")
                    if value is None:
                        continue
                    target = self.resolve_qualified_name(
                        get_node_text(value), decl, SymbolFlags.CLASS
                    )
                    if target is not None:
                        bases.append(self.get_declared_type(target))
        return bases

    # --- name resolution -----------------------------------------------------
    def resolve_name(
        self, name: str, context: Optional[DeclNode], meaning: SymbolFlags
    ) -> Optional[DeclaredSymbol]:
        """Look *name* up from the scope of *context* outwards, ending at globals."""
        node = context
        while node is not None:
            if (
                node.kind in (SyntaxKind.MODULE_DECLARATION, SyntaxKind.SOURCE_FILE)
                and node.symbol is not None
            ):
                found = node.symbol.locals.get(name)
                if found is not None and found.flags & meaning:
                    return found
            node = node.parent

        found = self.frontend.globals.get(name)
        if found is not None and found.flags & meaning:
            return found
        return None

    def resolve_qualified_name(
        self, text: str, context: Optional[DeclNode], meaning: SymbolFlags
    ) -> Optional[DeclaredSymbol]:
        parts = [p.strip() for p in text.split(".")]
        if len(parts) == 1:
            return self.resolve_name(parts[0], context, meaning)

        symbol = self.resolve_name(parts[0], context, SymbolFlags.MODULE | meaning)
        for part in parts[1:]:
            if symbol is None:
                return None
            symbol = symbol.exports.get(part)
        if symbol is not None and symbol.flags & meaning:
            return symbol
        return None

    def _is_type_parameter(self, name: str, context: Optional[DeclNode]) -> bool:
        node = context
        while node is not None:
            syn = node.syntax
            params = syn.child_by_field_name("type_parameters") if syn else None
            if params is not None:
                for param in params.named_children:
                    if get_node_text(param.child_by_field_name("name")) == name:
                        return True
            node = node.parent
        return False

    # --- type nodes ----------------------------------------------------------
    def resolve_type_node(self, node, context: DeclNode) -> TypeInfo:
        t = node.type

        if t in ("type_annotation", "parenthesized_type", "opting_type_annotation"):
            inner = first_named_child(node)
            return self.resolve_type_node(inner, context) if inner else ANY

        if t == "predefined_type":
            text = get_node_text(node)
            if text in ("any", "unknown"):
                return TypeInfo(TypeFlags.ANY, text)
            return TypeInfo(TypeFlags.PRIMITIVE, text)

        if t in ("literal_type", "template_literal_type"):
            return TypeInfo(TypeFlags.PRIMITIVE, get_node_text(node))

        if t == "object_type":
            members = self._object_type_members(node, context)
            return TypeInfo(
                TypeFlags.ANONYMOUS,
                compact_text(get_node_text(node)),
                [
                    m
                    for m in members.values()
                    if m.flags & (SymbolFlags.PROPERTY | SymbolFlags.METHOD)
                ],
            )

        if t in ("function_type", "constructor_type"):
            return TypeInfo(TypeFlags.ANONYMOUS, compact_text(get_node_text(node)))

        if t == "array_type":
            elem = first_named_child(node)
            return TypeInfo(TypeFlags.REFERENCE, self._array_text(elem, context))

        if t == "tuple_type":
            return TypeInfo(TypeFlags.TUPLE, compact_text(get_node_text(node)))

        if t == "readonly_type":
            inner = first_named_child(node)
            if inner is None:
                return ANY
            base = self.resolve_type_node(inner, context)
            return TypeInfo(base.flags, f"readonly {base.text}", base.properties)

        if t == "generic_type":
            return self._resolve_generic(node, context)

        if t in ("type_identifier", "nested_type_identifier", "identifier"):
            return self._resolve_reference(get_node_text(node), context)

        if t == "union_type":
            return self._resolve_union(node, context)

        if t == "intersection_type":
            return self._resolve_intersection(node, context)

        if t == "type_query":
            target = first_named_child(node)
            symbol = (
                self.resolve_qualified_name(
                    get_node_text(target), context, SymbolFlags.VALUE
                )
                if target is not None
                else None
            )
            return self.get_type_of_symbol(symbol) if symbol is not None else ANY

        if t == "this_type":
            return TypeInfo(TypeFlags.TYPE_PARAMETER, "this")

        return ANY

    def _array_text(self, elem, context: DeclNode) -> str:
        if elem is None:
            return "any[]"
        text = self.resolve_type_node(elem, context).text
        if elem.type in _WRAPPED_ELEMENT_TYPES:
            return f"({text})[]"
        return f"{text}[]"

    def _object_type_members(self, node, context: DeclNode) -> Dict[str, DeclaredSymbol]:
        key = (id(context), node.start_byte, node.end_byte)
        members = self._literal_members.get(key)
        if members is None:
            members = {}
            for child in node.named_children:
                self.frontend.bind_type_member(child, context, members, detached=True)
            self._literal_members[key] = members
        return members

    def _resolve_reference(self, text: str, context: DeclNode) -> TypeInfo:
        text = compact_text(text)
        if "." not in text and self._is_type_parameter(text, context):
            return TypeInfo(TypeFlags.TYPE_PARAMETER, text)
        symbol = self.resolve_qualified_name(text, context, SymbolFlags.TYPE)
        if symbol is None:
            return ANY
        return self.get_declared_type(symbol)

    def _resolve_generic(self, node, context: DeclNode) -> TypeInfo:
        name_node = node.child_by_field_name("name")
        args_node = node.child_by_field_name("type_arguments")
        if name_node is None:
            return ANY
        name = compact_text(get_node_text(name_node))
        args = [a for a in args_node.named_children] if args_node is not None else []

        if name in _ARRAY_NAMES and len(args) == 1:
            return TypeInfo(TypeFlags.REFERENCE, self._array_text(args[0], context))

        symbol = self.resolve_qualified_name(name, context, SymbolFlags.TYPE)
        if symbol is None:
            return ANY
        target = self.get_declared_type(symbol)
        arg_texts = ", ".join(self.resolve_type_node(a, context).text for a in args)
        return TypeInfo(
            TypeFlags.REFERENCE,
            f"{name}<{arg_texts}>",
            [_transient(p) for p in target.properties],
        )

    def _resolve_union(self, node, context: DeclNode) -> TypeInfo:
        types = [self.resolve_type_node(c, context) for c in node.named_children]
        if not types:
            return ANY
        if any(t.flags & TypeFlags.ANY for t in types):
            return ANY

        common: Optional[Dict[str, DeclaredSymbol]] = None
        for type_ in types:
            by_name = {p.name: p for p in type_.properties}
            if common is None:
                common = by_name
            else:
                common = {k: v for k, v in common.items() if k in by_name}
        return TypeInfo(
            TypeFlags.UNION,
            " | ".join(t.text for t in types),
            [_transient(p) for p in (common or {}).values()],
        )

    def _resolve_intersection(self, node, context: DeclNode) -> TypeInfo:
        types = [self.resolve_type_node(c, context) for c in node.named_children]
        if not types:
            return ANY
        merged: Dict[str, DeclaredSymbol] = {}
        for type_ in types:
            for prop in type_.properties:
                merged.setdefault(prop.name, prop)
        return TypeInfo(
            TypeFlags.INTERSECTION,
            " & ".join(t.text for t in types),
            [_transient(p) for p in merged.values()],
        )

    # --- initializers --------------------------------------------------------
    def infer_expression(self, node, context: DeclNode) -> TypeInfo:
        """Type of an initializer expression, for declarations without annotations."""
        t = node.type

        if t == "array":
            return TypeInfo(TypeFlags.REFERENCE, "any[]")

        if t == "object":
            return TypeInfo(
                TypeFlags.ANONYMOUS,
                compact_text(get_node_text(node)),
                list(self._object_literal_members(node, context).values()),
            )

        if t in _PRIMITIVE_EXPRESSIONS:
            return TypeInfo(TypeFlags.PRIMITIVE, _PRIMITIVE_EXPRESSIONS[t])

        if t in _FUNCTION_EXPRESSIONS:
            return TypeInfo(TypeFlags.ANONYMOUS, self._signature_text(node))

        if t == "new_expression":
            ctor = node.child_by_field_name("constructor")
            symbol = (
                self.resolve_qualified_name(
                    get_node_text(ctor), context, SymbolFlags.CLASS
                )
                if ctor is not None
                else None
            )
            return self.get_declared_type(symbol) if symbol is not None else ANY

        if t in ("identifier", "member_expression"):
            symbol = self.resolve_qualified_name(
                get_node_text(node), context, SymbolFlags.VALUE
            )
            return self.get_type_of_symbol(symbol) if symbol is not None else ANY

        if t in ("as_expression", "satisfies_expression"):
            named = [c for c in node.named_children if c.type != "comment"]
            if len(named) >= 2:
                return self.resolve_type_node(named[-1], context)
            return ANY

        if t == "parenthesized_expression":
            inner = first_named_child(node)
            return self.infer_expression(inner, context) if inner else ANY

        return ANY

    def _object_literal_members(self, node, context: DeclNode) -> Dict[str, DeclaredSymbol]:
        key = (id(context), node.start_byte, node.end_byte)
        members = self._literal_members.get(key)
        if members is not None:
            return members

        members = {}
        for child in node.named_children:
            if child.type == "pair":
                kind, flags = SyntaxKind.PROPERTY_DECLARATION, SymbolFlags.PROPERTY
                name = property_name(child.child_by_field_name("key"))
            elif child.type == "shorthand_property_identifier":
                kind, flags = SyntaxKind.PROPERTY_DECLARATION, SymbolFlags.PROPERTY
                name = get_node_text(child)
            elif child.type == "method_definition":
                kind, flags = SyntaxKind.METHOD_DECLARATION, SymbolFlags.METHOD
                name = property_name(child.child_by_field_name("name"))
            else:
                continue
            if not name:
                continue
            member = DeclNode(kind, name=name, syntax=child, doc_syntax=child)
            member.parent = context
            declare_member(members, name, flags, member)

        self._literal_members[key] = members
        return members
