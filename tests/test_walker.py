from fakes import FakeFrontEnd, declare, make_source, member

from dts2externs.frontend import (
    DeclaredSymbol,
    NodeFlags,
    SymbolFlags,
    SyntaxKind,
    TypeFlags,
    TypeInfo,
)
from dts2externs.models import OutputKind
from dts2externs.registry import OutputRegistry
from dts2externs.settings import GeneratorSettings
from dts2externs.walker import (
    SIMPLE,
    TraversalContext,
    classify,
    is_node_eligible,
    visit_source_file,
)


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #
def _walk(frontend, source, **settings) -> OutputRegistry:
    registry = OutputRegistry()
    ctx = TraversalContext(
        frontend=frontend,
        registry=registry,
        settings=GeneratorSettings(**settings),
        is_declaration_file=source.is_declaration_file,
    )
    visit_source_file(ctx, source.root)
    return registry


def _namespace_with_function(source, exported_block: bool = False):
    ns = declare(
        source.root,
        SyntaxKind.MODULE_DECLARATION,
        "ns",
        SymbolFlags.NAMESPACE_MODULE | SymbolFlags.VALUE_MODULE,
        NodeFlags.EXPORT | NodeFlags.NAMESPACE,
    )
    block = declare(
        ns,
        SyntaxKind.MODULE_BLOCK,
        None,
        node_flags=NodeFlags.EXPORT if exported_block else NodeFlags.NONE,
    )
    declare(
        block,
        SyntaxKind.FUNCTION_DECLARATION,
        "hidden",
        SymbolFlags.FUNCTION,
        table=ns.symbol.exports,
    )
    return ns


# --------------------------------------------------------------------------- #
# Structured declarations
# --------------------------------------------------------------------------- #
def test_interface_members_are_attached():
    source = make_source()
    iface = declare(
        source.root, SyntaxKind.INTERFACE_DECLARATION, "Foo", SymbolFlags.INTERFACE
    )
    member(iface, "bar")
    member(iface, "baz", SymbolFlags.METHOD, SyntaxKind.METHOD_SIGNATURE)

    reg = _walk(FakeFrontEnd([source]), source)

    entry = reg.get("Foo")
    assert entry.kind == OutputKind.INTERFACE
    assert list(entry.members) == ["bar", "baz"]
    assert "bar" not in reg


def test_class_members_exclude_statics():
    source = make_source()
    cls = declare(source.root, SyntaxKind.CLASS_DECLARATION, "C", SymbolFlags.CLASS)
    member(cls, "__constructor", SymbolFlags.CONSTRUCTOR, SyntaxKind.CONSTRUCTOR)
    member(cls, "run", SymbolFlags.METHOD, SyntaxKind.METHOD_DECLARATION)
    member(
        cls,
        "create",
        SymbolFlags.METHOD,
        SyntaxKind.METHOD_DECLARATION,
        table="exports",
    )

    reg = _walk(FakeFrontEnd([source]), source)

    assert reg.get("C").kind == OutputKind.CLASS
    assert list(reg.get("C").members) == ["__constructor", "run"]


def test_abstract_class_is_skipped():
    source = make_source()
    cls = declare(
        source.root,
        SyntaxKind.CLASS_DECLARATION,
        "Base",
        SymbolFlags.CLASS,
        NodeFlags.ABSTRACT,
    )
    member(cls, "run", SymbolFlags.METHOD, SyntaxKind.METHOD_DECLARATION)

    frontend = FakeFrontEnd([source])
    assert classify(frontend, cls) == SIMPLE
    assert len(_walk(frontend, source)) == 0


def test_namespace_and_module_kinds():
    source = make_source()
    _namespace_with_function(source)
    declare(
        source.root,
        SyntaxKind.MODULE_DECLARATION,
        '"my/mod"',
        SymbolFlags.VALUE_MODULE,
    )

    reg = _walk(FakeFrontEnd([source]), source)

    assert reg.get("ns").kind == OutputKind.NAMESPACE
    assert list(reg.get("ns").members) == ["hidden"]
    assert reg.get("hidden").kind == OutputKind.FUNCTION
    assert reg.get("my_mod").kind == OutputKind.MODULE


def test_enum_members_come_from_its_type():
    source = make_source()
    enum = declare(source.root, SyntaxKind.ENUM_DECLARATION, "Color", SymbolFlags.ENUM)
    red = member(enum, "Red", SymbolFlags.ENUM_MEMBER, SyntaxKind.ENUM_MEMBER, "exports")
    green = member(
        enum, "Green", SymbolFlags.ENUM_MEMBER, SyntaxKind.ENUM_MEMBER, "exports"
    )
    copy = DeclaredSymbol("Blue", SymbolFlags.ENUM_MEMBER | SymbolFlags.TRANSIENT)
    types = {
        enum.symbol: TypeInfo(
            TypeFlags.ANONYMOUS,
            "typeof Color",
            [red.symbol, green.symbol, copy],
        )
    }

    reg = _walk(FakeFrontEnd([source], types=types), source)

    assert reg.get("Color").kind == OutputKind.ENUM
    assert list(reg.get("Color").members) == ["Red", "Green"]


def test_property_signature_with_anonymous_type():
    source = make_source()
    iface = declare(
        source.root, SyntaxKind.INTERFACE_DECLARATION, "Opts", SymbolFlags.INTERFACE
    )
    prop = member(iface, "nested")
    inner = DeclaredSymbol("depth", SymbolFlags.PROPERTY)
    method = DeclaredSymbol("go", SymbolFlags.METHOD)
    types = {
        prop.symbol: TypeInfo(
            TypeFlags.ANONYMOUS, "{ depth: number; go(): void }", [inner, method]
        )
    }

    reg = _walk(FakeFrontEnd([source], types=types), source)

    assert list(reg.get("Opts").members) == ["nested"]
    assert reg.get("nested").kind == OutputKind.OBJECT
    assert list(reg.get("nested").members) == ["depth"]


def test_transient_property_signature_is_simple():
    source = make_source()
    iface = declare(
        source.root, SyntaxKind.INTERFACE_DECLARATION, "I", SymbolFlags.INTERFACE
    )
    prop = member(iface, "p", SymbolFlags.PROPERTY | SymbolFlags.TRANSIENT)
    types = {prop.symbol: TypeInfo(TypeFlags.ANONYMOUS, "{}")}

    assert classify(FakeFrontEnd([source], types=types), prop) == SIMPLE


# --------------------------------------------------------------------------- #
# Variables
# --------------------------------------------------------------------------- #
def test_variable_statement_children():
    source = make_source()
    stmt = declare(source.root, SyntaxKind.VARIABLE_STATEMENT, None)
    plain = declare(stmt, SyntaxKind.VARIABLE_DECLARATION, "count", SymbolFlags.VARIABLE)
    arr = declare(stmt, SyntaxKind.VARIABLE_DECLARATION, "items", SymbolFlags.VARIABLE)
    obj = declare(stmt, SyntaxKind.VARIABLE_DECLARATION, "cfg", SymbolFlags.VARIABLE)
    types = {
        plain.symbol: TypeInfo(TypeFlags.PRIMITIVE, "number"),
        arr.symbol: TypeInfo(TypeFlags.REFERENCE, "string[]"),
        obj.symbol: TypeInfo(
            TypeFlags.INTERFACE,
            "Config",
            [
                DeclaredSymbol("debug", SymbolFlags.PROPERTY),
                DeclaredSymbol("copied", SymbolFlags.PROPERTY | SymbolFlags.TRANSIENT),
                DeclaredSymbol("reset", SymbolFlags.METHOD),
            ],
        ),
    }
    frontend = FakeFrontEnd([source], types=types)

    assert classify(frontend, obj).recurse is False
    reg = _walk(frontend, source)

    assert reg.get("count").kind == OutputKind.VARIABLE
    assert reg.get("items").kind == OutputKind.ARRAY
    assert reg.get("items").members == {}
    assert reg.get("cfg").kind == OutputKind.OBJECT
    assert list(reg.get("cfg").members) == ["debug", "reset"]


def test_type_alias_and_function():
    source = make_source()
    declare(source.root, SyntaxKind.TYPE_ALIAS_DECLARATION, "Id", SymbolFlags.TYPE_ALIAS)
    declare(source.root, SyntaxKind.FUNCTION_DECLARATION, "run", SymbolFlags.FUNCTION)

    reg = _walk(FakeFrontEnd([source]), source)

    assert [(name, e.kind) for name, e in reg.items()] == [
        ("Id", OutputKind.TYPE),
        ("run", OutputKind.FUNCTION),
    ]


def test_function_then_variable_keeps_function():
    source = make_source()
    declare(source.root, SyntaxKind.FUNCTION_DECLARATION, "foo", SymbolFlags.FUNCTION)
    stmt = declare(source.root, SyntaxKind.VARIABLE_STATEMENT, None)
    declare(stmt, SyntaxKind.VARIABLE_DECLARATION, "foo", SymbolFlags.VARIABLE)

    reg = _walk(FakeFrontEnd([source]), source)

    assert reg.get("foo").kind == OutputKind.FUNCTION


# --------------------------------------------------------------------------- #
# Visibility in non-declaration files
# --------------------------------------------------------------------------- #
def test_eligibility_rule():
    source = make_source("app.ts", declaration=False)
    ns = _namespace_with_function(source)
    block = ns.children[0]
    frontend = FakeFrontEnd([source])

    def ctx(parse_all=False, declaration=False):
        return TraversalContext(
            frontend=frontend,
            registry=OutputRegistry(),
            settings=GeneratorSettings(parse_all=parse_all),
            is_declaration_file=declaration,
        )

    assert is_node_eligible(ctx(), ns)
    assert not is_node_eligible(ctx(), block)
    assert is_node_eligible(ctx(parse_all=True), block)
    assert is_node_eligible(ctx(declaration=True), block)


def test_unexported_nested_declarations_need_parse_all():
    source = make_source("app.ts", declaration=False)
    _namespace_with_function(source)
    stmt = declare(source.root, SyntaxKind.VARIABLE_STATEMENT, None)
    declare(stmt, SyntaxKind.VARIABLE_DECLARATION, "local", SymbolFlags.VARIABLE)

    reg = _walk(FakeFrontEnd([source]), source)
    assert "ns" in reg
    assert "hidden" not in reg
    assert "local" not in reg

    reg = _walk(FakeFrontEnd([source]), source, parse_all=True)
    assert "hidden" in reg
    assert "local" in reg


def test_exported_module_block_is_visited():
    source = make_source("app.ts", declaration=False)
    _namespace_with_function(source, exported_block=True)

    reg = _walk(FakeFrontEnd([source]), source)

    assert reg.get("hidden").kind == OutputKind.FUNCTION
