from fakes import FakeFrontEnd, declare, make_source, member

from dts2externs.frontend import SymbolFlags, SyntaxKind
from dts2externs.generator import ExternsGenerator
from dts2externs.models import CONSOLE_MEMBER_NAMES
from dts2externs.settings import GeneratorSettings, OutputStyle


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #
def _generator(sources, frontend_kwargs=None, **settings) -> ExternsGenerator:
    return ExternsGenerator(
        [s.file_name for s in sources],
        GeneratorSettings(**settings),
        frontend_factory=lambda: FakeFrontEnd(sources, **(frontend_kwargs or {})),
    )


def _function_source(file_name, name, declaration=True, no_default_lib=False):
    source = make_source(file_name, declaration, no_default_lib)
    declare(source.root, SyntaxKind.FUNCTION_DECLARATION, name, SymbolFlags.FUNCTION)
    return source


# --------------------------------------------------------------------------- #
# Console seeding
# --------------------------------------------------------------------------- #
def test_console_only():
    out = _generator([], add_console=True).generate()

    expected = "var console = {\n"
    for idx, name in enumerate(CONSOLE_MEMBER_NAMES):
        expected += ("\t " if idx == 0 else "\t,") + f"{name}: function() {{}}\n"
    expected += "};\n\n"
    assert out == expected
    assert len(CONSOLE_MEMBER_NAMES) == 9


def test_console_prototype_style():
    out = _generator([], add_console=True, style=OutputStyle.PROTO).generate()

    lines = out.splitlines()
    assert lines[0] == "function console() {};"
    assert lines[1:10] == [f"console.prototype.{n};" for n in CONSOLE_MEMBER_NAMES]
    assert out.endswith("console.prototype.assert;\n\n")


def test_console_is_upgraded_not_duplicated():
    source = make_source()
    cls = declare(
        source.root, SyntaxKind.INTERFACE_DECLARATION, "console", SymbolFlags.INTERFACE
    )
    member(cls, "table", SymbolFlags.METHOD, SyntaxKind.METHOD_SIGNATURE)

    out = _generator([source], add_console=True, style="proto").generate()

    assert out.count("function console() {};") == 1
    assert "console.prototype.log;\n" in out
    assert out.endswith("console.prototype.table;\n\n")


def test_no_files_no_console():
    assert _generator([]).generate() == ""


# --------------------------------------------------------------------------- #
# File selection
# --------------------------------------------------------------------------- #
def test_ts_files_need_allow_ts():
    sources = [
        _function_source("a.d.ts", "fromDts"),
        _function_source("b.ts", "fromTs", declaration=False),
    ]

    assert _generator(sources).generate() == "function fromDts() {};\n\n"
    assert _generator(sources, allow_ts=True, list_files=True).generate() == (
        "function fromDts() {};\n\nfunction fromTs() {};\n\n"
    )


def test_default_library_is_never_processed():
    sources = [
        _function_source("lib.d.ts", "builtin", no_default_lib=True),
        _function_source("user.d.ts", "mine"),
    ]

    out = _generator(sources, allow_ts=True, debug=True).generate()

    assert out == "function mine() {};\n\n"


def test_requested_files_are_passed_to_the_front_end():
    frontend = FakeFrontEnd([])
    gen = ExternsGenerator(["x.d.ts", "y.d.ts"], frontend_factory=lambda: frontend)
    gen.generate()

    assert frontend.requested == ["x.d.ts", "y.d.ts"]


# --------------------------------------------------------------------------- #
# Runs
# --------------------------------------------------------------------------- #
def test_runs_are_independent():
    gen = _generator([_function_source("a.d.ts", "f")], add_console=True)

    first = gen.generate()
    second = gen.generate()

    assert first == second
    assert first.count("function f() {};") == 1


def test_member_documentation_last_write_wins():
    first = make_source("one.d.ts")
    second = make_source("two.d.ts")
    a = declare(first.root, SyntaxKind.INTERFACE_DECLARATION, "Foo", SymbolFlags.INTERFACE)
    b = declare(second.root, SyntaxKind.INTERFACE_DECLARATION, "Foo", SymbolFlags.INTERFACE)
    bar_a = member(a, "bar")
    bar_b = member(b, "bar")
    docs = {bar_a.symbol: ["first"], bar_b.symbol: ["second"]}

    out = _generator(
        [first, second], frontend_kwargs={"docs": docs}, keep_comments=True
    ).generate()

    assert out == "var Foo = {\n/*second */\n\t bar: function() {}\n};\n\n"


def test_documentation_dropped_without_keep_comments():
    source = make_source()
    fn = declare(source.root, SyntaxKind.FUNCTION_DECLARATION, "f", SymbolFlags.FUNCTION)
    docs = {fn.symbol: ["Does things."]}

    assert _generator([source], {"docs": docs}).generate() == "function f() {};\n\n"
    assert _generator([source], {"docs": docs}, keep_comments=True).generate() == (
        "/*Does things. */\nfunction f() {};\n\n"
    )
