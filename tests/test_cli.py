"""
Tests for the klein command line interface.
"""

import io
import json

import pytest

from klein.__main__ import main
from klein.config import KLEIN_CONFIG, clear_cache


@pytest.fixture(autouse=True)
def no_user_config(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv(KLEIN_CONFIG, raising=False)
    clear_cache()


class TestRun:
    """Test the run subcommand."""

    def test_run_inline(self, capsys):
        assert main(["run", "-c", "for i in 1.to(3) { print(i); }"]) == 0
        assert capsys.readouterr().out == "1\n2\n3\n"

    def test_run_file(self, tmp_path, capsys):
        script = tmp_path / "hello.kl"
        script.write_text('print("hello");\n')
        assert main(["run", str(script)]) == 0
        assert capsys.readouterr().out == "hello\n"

    def test_run_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("print(42);"))
        assert main(["run", "-"]) == 0
        assert capsys.readouterr().out == "42\n"

    def test_runtime_error(self, capsys):
        assert main(["run", "-c", "print(x);"]) == 1
        err = capsys.readouterr().err
        assert "E401" in err
        assert "undefined variable 'x'" in err

    def test_runtime_error_json(self, capsys):
        assert main(["run", "--json", "-c", "print(x);"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert data["kind"] == "UndefinedVariableReference"
        assert data["code"] == "E401"

    def test_missing_file(self, tmp_path, capsys):
        assert main(["run", str(tmp_path / "missing.kl")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_config_loop_limit(self, tmp_path, capsys):
        config = tmp_path / "limits.yaml"
        config.write_text("max_loop_iterations: 5\n")
        assert main(["run", "--config", str(config), "-c", "while true { }"]) == 1
        assert "E407" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, capsys):
        config = tmp_path / "bad.yaml"
        config.write_text("nonsense: 1\n")
        assert main(["run", "--config", str(config), "-c", "print(1);"]) == 1
        assert "nonsense" in capsys.readouterr().err

    def test_malformed_config(self, tmp_path, capsys):
        config = tmp_path / "broken.yaml"
        config.write_text("max_loop_iterations: [1,\n")
        assert main(["run", "--config", str(config), "-c", "print(1);"]) == 1
        err = capsys.readouterr().err
        assert "malformed YAML" in err
        assert "Traceback" not in err


class TestOtherCommands:
    """Test tokenize, parse and check."""

    def test_tokenize(self, capsys):
        assert main(["tokenize", "-c", "print(x);"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 5
        assert lines[0].split()[:2] == ["IDENTIFIER", "print"]
        assert lines[0].endswith("@0")

    def test_tokenize_json(self, capsys):
        assert main(["tokenize", "--json", "-c", "1.to(2)"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [t["type"] for t in data] == [
            "NUMBER_LITERAL", "DOT", "IDENTIFIER", "LPAREN", "NUMBER_LITERAL", "RPAREN",
        ]

    def test_tokenize_error(self, capsys):
        assert main(["tokenize", "-c", "@@@"]) == 1
        assert "unrecognized token '@@@'" in capsys.readouterr().err

    def test_parse(self, capsys):
        assert main(["parse", "-c", "print(1); print(2);"]) == 0
        assert "2 statement(s)" in capsys.readouterr().out

    def test_parse_ast(self, capsys):
        assert main(["parse", "--ast", "-c", "print(1);"]) == 0
        out = capsys.readouterr().out
        assert "ExpressionStatement" in out
        assert "FunctionCall" in out

    def test_parse_error(self, capsys):
        assert main(["parse", "-c", "if { }"]) == 1
        assert "expected identifier, found '{'" in capsys.readouterr().err

    def test_check_ok(self, capsys):
        assert main(["check", "-c", "let x = 1; print(x);"]) == 0
        assert "no errors" in capsys.readouterr().out

    def test_check_errors(self, capsys):
        assert main(["check", "-c", "print(a); foo();"]) == 1
        assert "2 error(s)" in capsys.readouterr().err

    def test_check_json(self, capsys):
        assert main(["check", "--json", "-c", "print(a);"]) == 1
        data = json.loads(capsys.readouterr().out)
        assert data["error_count"] == 1


class TestUsage:
    """Test argument errors."""

    def test_no_source(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["run"])
        assert exc_info.value.code == 2

    def test_no_subcommand(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2
