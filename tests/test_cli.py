from pathlib import Path

from click.testing import CliRunner

from dts2externs.cli import main


def _write(tmp_path: Path, name: str, text: str) -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


# --------------------------------------------------------------------------- #
# Inputs
# --------------------------------------------------------------------------- #
def test_cli_file_argument(tmp_path):
    src = _write(tmp_path, "lib.d.ts", "declare function f(): void;\n")

    result = CliRunner().invoke(main, [src])

    assert result.exit_code == 0, result.output
    assert result.stdout == "function f() {};\n\n"


def test_cli_reads_stdin_when_no_files():
    result = CliRunner().invoke(main, [], input="declare var x: number[];\n")

    assert result.exit_code == 0, result.output
    assert result.stdout == "var x = [];\n\n"


def test_cli_reads_stdin_for_dash():
    result = CliRunner().invoke(main, ["-", "-c"], input="")

    assert result.exit_code == 0, result.output
    assert result.stdout.startswith("var console = {\n\t log: function() {}\n")


def test_cli_missing_file():
    result = CliRunner().invoke(main, ["does-not-exist.d.ts"])

    assert result.exit_code == 2


def test_cli_ts_files_need_allow_ts(tmp_path):
    src = _write(tmp_path, "app.ts", "export function run(): void {}\n")

    assert CliRunner().invoke(main, [src]).stdout == ""
    result = CliRunner().invoke(main, ["-a", src])
    assert result.stdout == "function run() {};\n\n"


# --------------------------------------------------------------------------- #
# Options
# --------------------------------------------------------------------------- #
def test_cli_style_and_console(tmp_path):
    src = _write(
        tmp_path,
        "lib.d.ts",
        "interface Foo {\n    bar: string;\n}\n",
    )

    result = CliRunner().invoke(main, ["--style", "proto", "--add-console", src])

    assert result.exit_code == 0, result.output
    assert result.stdout.startswith("function console() {};\nconsole.prototype.log;\n")
    assert result.stdout.endswith("function Foo() {};\nFoo.prototype.bar;\n\n")


def test_cli_keep_comments(tmp_path):
    src = _write(tmp_path, "lib.d.ts", "/** Runs. */\ndeclare function run(): void;\n")

    plain = CliRunner().invoke(main, [src])
    kept = CliRunner().invoke(main, ["-k", src])

    assert plain.stdout == "function run() {};\n\n"
    assert kept.stdout == "/*Runs. */\nfunction run() {};\n\n"


def test_cli_output_file(tmp_path):
    src = _write(tmp_path, "lib.d.ts", "declare var v: string;\n")
    out = tmp_path / "externs.js"

    result = CliRunner().invoke(main, ["-o", str(out), src])

    assert result.exit_code == 0, result.output
    assert result.stdout == ""
    assert out.read_text(encoding="utf-8") == "var v;\n\n"


def test_cli_rejects_unknown_style(tmp_path):
    src = _write(tmp_path, "lib.d.ts", "declare var v: string;\n")

    result = CliRunner().invoke(main, ["-s", "json", src])

    assert result.exit_code == 2


def test_cli_environment_applies_to_unset_options(tmp_path, monkeypatch):
    src = _write(tmp_path, "lib.d.ts", "interface Foo {\n    bar: string;\n}\n")
    monkeypatch.setenv("DTS2EXTERNS_STYLE", "proto")

    from_env = CliRunner().invoke(main, [src])
    explicit = CliRunner().invoke(main, ["-s", "obj", src])

    assert from_env.stdout == "function Foo() {};\nFoo.prototype.bar;\n\n"
    assert explicit.stdout == "var Foo = {\n\t bar: function() {}\n};\n\n"


def test_cli_rejects_stdin_with_files(tmp_path):
    src = _write(tmp_path, "lib.d.ts", "declare var v: string;\n")

    result = CliRunner().invoke(main, ["-", src], input="declare var w: string;\n")

    assert result.exit_code == 2
