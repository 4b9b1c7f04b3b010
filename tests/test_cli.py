# tests/test_cli.py
"""
End-to-end checks of the command line: commands, one-shot runs, exit codes
and a scripted REPL session.
"""

from __future__ import annotations

import sys
import threading

import pytest

from primeproof import cli
from primeproof.fmt import ANSI_RE


@pytest.fixture
def run(workspace, capsys):
    """Call cli.main(argv) inside a temporary workspace; return (code, stdout, stderr)."""
    def _run(*argv):
        code = cli.main(list(argv))
        out, err = capsys.readouterr()
        return code, out, err
    return _run


@pytest.fixture
def keep_hooks(monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)


def test_list(run):
    code, out, _ = run("list")
    assert code == 0
    for test_id in ("trial", "fermat", "miller-rabin", "aks"):
        assert test_id in out


def test_where(run, workspace):
    code, out, _ = run("where")
    assert code == 0
    assert str(workspace.resolve()) in out


def test_init_seeds_workspace(run, workspace):
    code, out, _ = run("init")
    assert code == 0
    assert "Workspace ready" in out
    assert (workspace / "profiles" / "classroom.toml").is_file()


def test_init_overwrite_requires_dev_flag(run, monkeypatch):
    monkeypatch.delenv("PRIMEPROOF_DEV", raising=False)
    code, out, _ = run("init", "overwrite")
    assert code == 2
    assert "Refusing" in out


def test_recommend(run):
    code, out, _ = run("recommend", "99.99", "miller-rabin")
    assert code == 0
    assert "7 round(s)" in out


def test_recommend_search_cap(run):
    code, out, _ = run("recommend", "100", "fermat")
    assert code == 0
    assert "falling back to 100 rounds" in out


def test_recommend_unknown_test(run):
    code, _, err = run("recommend", "99", "lucas")
    assert code == 2
    assert "Unknown test id" in err


def test_recommend_bad_target(run):
    code, _, err = run("recommend", "150", "fermat")
    assert code == 2
    assert "reliability target" in err


def test_compare_all(run):
    code, out, _ = run("104729", "--seed", "1")
    assert code == 0
    assert "All tests agree." in out
    for name in ("Trial division", "Fermat test", "Miller–Rabin test"):
        assert name in out


def test_single_test(run):
    code, out, _ = run("91", "--test", "trial")
    assert code == 0
    assert "Composite: witness 7 found" in out


def test_trace_flag(run):
    code, out, _ = run("97", "--test", "trial", "--trace")
    assert code == 0
    assert "Trace:" in out
    assert "no divisor up to 9" in out


def test_unknown_test_flag(run):
    code, _, err = run("97", "--test", "lucas")
    assert code == 2
    assert "Unknown test id" in err


@pytest.mark.parametrize("argv", [("0",), ("97", "--rounds", "0"), ("97", "--rounds", "101"), ("97", "98")])
def test_invalid_input_exit_code(run, argv):
    code, _, err = run(*argv)
    assert code == 2
    assert "Invalid input" in err


def test_unknown_profile(run):
    code, out, _ = run("nosuchprofile", "97")
    assert code == 2
    assert "Unknown profile" in out


def test_profile_is_remembered(run):
    code, out, _ = run("classroom", "97", "--test", "miller-rabin")
    assert code == 0
    # classroom shows traces and fixes 10 rounds
    assert "Trace:" in out
    assert "Iterations: " in out and " 10" in out
    code, out, _ = run("active")
    assert out.strip() == "Active profile: classroom"


def test_output_to_directory(run, workspace):
    code, out, _ = run("97", "--output", "results/", "--quiet", "--seed", "4")
    assert code == 0
    assert out == ""
    text = (workspace / "results" / "97.txt").read_text(encoding="utf-8")
    assert "All tests agree." in text
    assert not ANSI_RE.search(text)


def test_forbidden_output(run):
    code, _, err = run("97", "--output", "notes.md")
    assert code == 1
    assert "--output" in err


def test_debug_lines_on_stderr(run, keep_hooks):
    code, _, err = run("97", "--debug", "--seed", "2")
    assert code == 0
    assert "[debug] active profile: default" in err
    assert "[discovery]" in err
    assert "miller-rabin" in err


def test_repl_session(run, monkeypatch):
    script = iter([
        "h",
        "97",
        "trace on",
        "trial 91",
        "rounds 5",
        "seed 3",
        "test miller-rabin",
        "104729",
        "rec 99.99 fermat",
        "debug status",
        "hist",
        "0",
        "bogus",
        "classroom",
        "q",
    ])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(script))
    code, out, err = run()
    assert code == 0
    assert "Welcome to PrimeProof" in out
    assert "Composite: witness 7 found" in out
    assert "Rounds: 5." in out
    assert "14 round(s)" in out
    assert "Debug is currently OFF." in out
    assert "n=104729" in out
    assert "Applied profile: classroom" in out
    assert "Invalid input" in err           # "0"
    assert "'bogus'" in out


def test_repl_ends_on_eof(run, monkeypatch):
    def _eof(prompt=""):
        raise EOFError
    monkeypatch.setattr("builtins.input", _eof)
    code, _, _ = run()
    assert code == 0
