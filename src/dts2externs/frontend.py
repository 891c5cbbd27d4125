from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any, Dict, List, Optional, Sequence, Tuple


class SyntaxKind(str, Enum):
    SOURCE_FILE = "source_file"
    CLASS_DECLARATION = "class_declaration"
    INTERFACE_DECLARATION = "interface_declaration"
    MODULE_DECLARATION = "module_declaration"
    MODULE_BLOCK = "module_block"
    ENUM_DECLARATION = "enum_declaration"
    ENUM_MEMBER = "enum_member"
    FUNCTION_DECLARATION = "function_declaration"
    VARIABLE_STATEMENT = "variable_statement"
    VARIABLE_DECLARATION = "variable_declaration"
    TYPE_ALIAS_DECLARATION = "type_alias_declaration"
    PROPERTY_SIGNATURE = "property_signature"
    PROPERTY_DECLARATION = "property_declaration"
    METHOD_SIGNATURE = "method_signature"
    METHOD_DECLARATION = "method_declaration"
    CONSTRUCTOR = "constructor"
    CALL_SIGNATURE = "call_signature"
    CONSTRUCT_SIGNATURE = "construct_signature"
    INDEX_SIGNATURE = "index_signature"
    EXPORT_ASSIGNMENT = "export_assignment"


class NodeFlags(IntFlag):
    NONE = 0
    EXPORT = 1 << 0
    ABSTRACT = 1 << 1
    NAMESPACE = 1 << 2
    STATIC = 1 << 3
    AMBIENT = 1 << 4


class SymbolFlags(IntFlag):
    NONE = 0
    VARIABLE = 1 << 0
    PROPERTY = 1 << 1
    ENUM_MEMBER = 1 << 2
    FUNCTION = 1 << 3
    CLASS = 1 << 4
    INTERFACE = 1 << 5
    ENUM = 1 << 6
    VALUE_MODULE = 1 << 7
    NAMESPACE_MODULE = 1 << 8
    TYPE_ALIAS = 1 << 9
    METHOD = 1 << 10
    CONSTRUCTOR = 1 << 11
    SIGNATURE = 1 << 12
    ALIAS = 1 << 13
    TRANSIENT = 1 << 14

    VALUE = (
        VARIABLE
        | PROPERTY
        | ENUM_MEMBER
        | FUNCTION
        | CLASS
        | ENUM
        | VALUE_MODULE
        | METHOD
    )
    TYPE = CLASS | INTERFACE | ENUM | TYPE_ALIAS
    MODULE = VALUE_MODULE | NAMESPACE_MODULE


class TypeFlags(IntFlag):
    NONE = 0
    ANY = 1 << 0
    PRIMITIVE = 1 << 1
    ENUM = 1 << 2
    TYPE_PARAMETER = 1 << 3
    CLASS = 1 << 4
    INTERFACE = 1 << 5
    REFERENCE = 1 << 6
    TUPLE = 1 << 7
    ANONYMOUS = 1 << 8
    UNION = 1 << 9
    INTERSECTION = 1 << 10

    OBJECT = CLASS | INTERFACE | REFERENCE | TUPLE | ANONYMOUS
    STRUCTURED = OBJECT | UNION | INTERSECTION


# ---------------------------------------------------------------------------
# Declaration tree
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class DeclNode:
    """
    One node of a declaration tree. `syntax` carries the front-end specific
    payload (for example a tree-sitter node) and is never inspected by the
    walker.
    """

    kind: SyntaxKind
    name: Optional[str] = None
    flags: NodeFlags = NodeFlags.NONE
    parent: Optional["DeclNode"] = field(default=None, repr=False)
    children: List["DeclNode"] = field(default_factory=list, repr=False)
    syntax: Any = field(default=None, repr=False)
    doc_syntax: Any = field(default=None, repr=False)
    symbol: Optional["DeclaredSymbol"] = field(default=None, repr=False)

    def add_child(self, child: "DeclNode") -> "DeclNode":
        child.parent = self
        self.children.append(child)
        return child

    @property
    def root(self) -> "DeclNode":
        node = self
        while node.parent is not None:
            node = node.parent
        return node


@dataclass(eq=False)
class SourceFile:
    file_name: str
    is_declaration_file: bool
    has_no_default_lib: bool
    root: DeclNode

    @property
    def statements(self) -> List[DeclNode]:
        return self.root.children


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------


class Symbol:
    """Base of the symbol variants handed to node handlers."""

    name: str


@dataclass(eq=False)
class DeclaredSymbol(Symbol):
    """A symbol bound by the front end from one or more declarations."""

    name: str
    flags: SymbolFlags = SymbolFlags.NONE
    declarations: List[DeclNode] = field(default_factory=list, repr=False)
    members: Dict[str, "DeclaredSymbol"] = field(default_factory=dict, repr=False)
    exports: Dict[str, "DeclaredSymbol"] = field(default_factory=dict, repr=False)
    locals: Dict[str, "DeclaredSymbol"] = field(default_factory=dict, repr=False)

    @property
    def value_declaration(self) -> Optional[DeclNode]:
        return self.declarations[0] if self.declarations else None


@dataclass(frozen=True)
class SyntheticSymbol(Symbol):
    """A symbol invented by the generator; it has a name and nothing else."""

    name: str
    documentation: Tuple[str, ...] = ()


@dataclass(eq=False)
class TypeInfo:
    flags: TypeFlags
    text: str
    properties: List[DeclaredSymbol] = field(default_factory=list, repr=False)


# ---------------------------------------------------------------------------
# Front-end interface
# ---------------------------------------------------------------------------


class AbstractFrontEnd(ABC):
    """
    Parses declaration sources and answers the symbol/type queries the
    declaration walker needs.
    """

    @abstractmethod
    def create_program(self, file_names: Sequence[str]) -> List[SourceFile]:
        """
        Parse and bind the given files (plus anything they reference) and
        return the program's source files in processing order.
        """
        ...

    @abstractmethod
    def get_symbol_at_location(self, node: DeclNode) -> Optional[DeclaredSymbol]: ...

    @abstractmethod
    def get_type_of_symbol(self, symbol: DeclaredSymbol) -> TypeInfo: ...

    @abstractmethod
    def get_documentation_comment(
        self, symbol: DeclaredSymbol, source: Optional[DeclNode] = None
    ) -> List[str]:
        """
        Documentation lines of *symbol*. When *source* (a source file root) is
        given and the symbol is declared in that file, only those
        declarations contribute.
        """
        ...

    def is_structured_type(self, type_: TypeInfo) -> bool:
        return bool(type_.flags & TypeFlags.STRUCTURED)

    def is_anonymous_type(self, type_: TypeInfo) -> bool:
        return bool(type_.flags & TypeFlags.ANONYMOUS)

    def get_properties_of_type(self, type_: TypeInfo) -> List[DeclaredSymbol]:
        return list(type_.properties)

    def get_members_of_symbol(self, symbol: DeclaredSymbol) -> List[DeclaredSymbol]:
        return list(symbol.members.values())

    def get_exports_of_module(self, symbol: DeclaredSymbol) -> List[DeclaredSymbol]:
        return list(symbol.exports.values())

    def type_to_string(self, type_: TypeInfo) -> str:
        return type_.text
