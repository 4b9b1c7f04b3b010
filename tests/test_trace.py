# tests/test_trace.py
from __future__ import annotations

import pytest

from primeproof.trace import StepKind, Trace, iterations_of, limits_hit, render, verdict_of, witness_of


def test_derived_data_comes_from_records():
    t = Trace()
    t.info("start")
    t.passed("round 1 ok", index=1, base=2, value=1)
    t.witness("round 2 fails", base=5, index=2, value=4)
    t.verdict("composite", is_prime=False, iterations=2)
    steps = t.freeze()

    assert iterations_of(steps) == 2
    assert verdict_of(steps) is False
    assert witness_of(steps) == 5
    assert limits_hit(steps) == ()
    assert [s.kind for s in steps] == [StepKind.INFO, StepKind.ROUND, StepKind.WITNESS, StepKind.VERDICT]


def test_iterations_without_verdict_uses_highest_index():
    t = Trace()
    t.passed("a", index=1)
    t.passed("b", index=3)
    assert iterations_of(t.freeze()) == 3
    assert iterations_of(()) == 0


def test_limit_names_are_collected():
    t = Trace()
    t.limit("stopped", name="aks.r_search", value=11)
    t.verdict("prime", is_prime=True, iterations=0)
    steps = t.freeze()
    assert limits_hit(steps) == ("aks.r_search",)
    assert verdict_of(steps) is True


def test_render_prefixes():
    t = Trace()
    t.warn("careful")
    t.witness("found", base=3)
    t.limit("ceiling", name="x")
    t.passed("fine", index=1)
    t.info("plain")
    assert render(t.freeze()) == ("⚠ careful", "✗ found", "! ceiling", "✓ fine", "plain")


def test_frozen_trace_rejects_new_steps():
    t = Trace()
    t.info("one")
    t.freeze()
    with pytest.raises(RuntimeError):
        t.info("two")
