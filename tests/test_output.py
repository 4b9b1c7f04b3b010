# tests/test_output.py
from __future__ import annotations

import pytest

from primeproof.display import print_comparison, print_result
from primeproof.fmt import (
    abbr_int_fast,
    format_confidence,
    format_elapsed,
    strip_ansi,
    visible_len,
    wrap_after_label,
)
from primeproof.output_manager import OutputManager, _choose_split_output_path
from primeproof.runtime import APPLY

# ---------- fmt ---------------------------------------------------------------


@pytest.mark.parametrize("n,expected", [
    (0, "0"),
    (12345, "12345"),
    (-12345, "-12345"),
    (10**30 + 7, "1000000000…00007"),
])
def test_abbr_int_fast(n, expected):
    assert abbr_int_fast(n) == expected


@pytest.mark.parametrize("seconds,expected", [
    (1e-6, "0.0010 ms"),
    (0.0123456, "12.3456 ms"),
    (2.5, "2.500 s"),
    (75.25, "1:15.250"),
])
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected


@pytest.mark.parametrize("percent,expected", [
    (100.0, "100%"),
    (0.0, "0%"),
    (99.90234375, "99.9023%"),
    (99.9999999, "> 99.999%"),
])
def test_format_confidence(percent, expected):
    assert format_confidence(percent) == expected


def test_ansi_helpers():
    s = "\x1b[32mgreen\x1b[0m"
    assert strip_ansi(s) == "green"
    assert visible_len(s) == 5
    assert strip_ansi(None) == ""


def test_wrap_after_label_indents_continuation_lines():
    out = wrap_after_label("Note: ", "alpha beta gamma delta epsilon zeta", width=20)
    lines = out.split("\n")
    assert lines[0].startswith("Note: alpha")
    assert all(ln.startswith(" " * 6) for ln in lines[1:])
    assert all(len(ln) <= 20 for ln in lines)


# ---------- OutputManager -----------------------------------------------------

def test_screen_only(capsys):
    om = OutputManager()
    om.write("hello", "world")
    om.close()
    assert capsys.readouterr().out == "hello world\n"
    assert om.getvalue() == "hello world\n"
    assert om.target is None


def test_quiet_single_file(workspace, capsys):
    with OutputManager(output_file="runs/all.txt", quiet=True) as om:
        om.write("\x1b[31mred\x1b[0m")
        om.write_screen("never shown")
    assert capsys.readouterr().out == ""
    assert (workspace / "runs" / "all.txt").read_text(encoding="utf-8") == "red\n\n"


def test_split_mode_writes_on_close(workspace):
    om = OutputManager(output_file="results/", quiet=True, number=97)
    om.write("first")
    path = workspace / "results" / "97.txt"
    assert not path.exists()
    om.close()
    om.close()   # second close is a no-op
    assert path.read_text(encoding="utf-8") == "first\n"


def test_split_mode_needs_number(workspace):
    with pytest.raises(ValueError):
        OutputManager(output_file="results/")


def test_long_number_gets_short_filename(tmp_path):
    n = 10**400 + 1
    path = _choose_split_output_path(str(tmp_path), n)
    assert len(path) < 250
    assert "digits=401" in path


# ---------- display -----------------------------------------------------------

def test_print_result_block(runner):
    om = OutputManager(quiet=True)
    print_result(runner.run_test("trial", 91), om=om, show_trace=False)
    text = strip_ansi(om.getvalue())
    assert "Trial division (trial)" in text
    assert "composite" in text
    assert "Witness:" in text
    assert "Trace:" not in text


def test_trace_is_capped(runner):
    APPLY({"DISPLAY_SETTINGS": {"MAX_TRACE_LINES": 2}, "TRIAL": {"TRACE_EVERY": 1}})
    om = OutputManager(quiet=True)
    print_result(runner.run_test("trial", 7919), om=om, show_trace=True)
    text = strip_ansi(om.getvalue())
    assert "more trace line(s)" in text


def test_print_comparison_flags_disagreement(runner):
    comp = runner.run_all_tests(561, 20, seed=1)
    om = OutputManager(quiet=True)
    print_comparison(comp, om=om)
    text = strip_ansi(om.getvalue())
    assert "Candidate: 561" in text
    for name in ("Trial division", "Fermat test", "Miller–Rabin test"):
        assert name in text
    if comp.agree:
        assert "All tests agree." in text
    else:
        assert "Tests disagree" in text


def test_probable_prime_has_no_proof_row(runner):
    om = OutputManager(quiet=True)
    print_result(runner.run_test("miller-rabin", 104729, 10, seed=1), om=om, show_trace=False)
    text = strip_ansi(om.getvalue())
    assert "probably prime" in text
    assert "Proof:" not in text
    assert "Probably prime: all rounds passed" in text


def test_comparison_notes_only_the_heuristic_test(runner):
    om = OutputManager(quiet=True)
    print_comparison(runner.run_all_tests(104729, 10, seed=1), om=om)
    text = strip_ansi(om.getvalue())
    assert "aks:" in text
    assert "fermat:" not in text
    assert "miller-rabin:" not in text
