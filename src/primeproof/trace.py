# src/primeproof/trace.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StepKind(str, Enum):
    INFO = "info"          # narrative line, no control data
    WARNING = "warning"    # e.g. known Carmichael number
    PROGRESS = "progress"  # throttled progress of a long loop
    ROUND = "round"        # one probabilistic round / one checked base
    WITNESS = "witness"    # compositeness proven
    LIMIT = "limit"        # a resource ceiling was hit
    VERDICT = "verdict"    # final conclusion, carries the iteration count


@dataclass(frozen=True)
class Step:
    kind: StepKind
    text: str
    index: int | None = None     # 1-based round / iteration index
    base: int | None = None      # base or divisor used
    value: int | None = None     # computed value (a^d mod n, ...)
    outcome: str | None = None   # "pass", "composite", "prime", limit name, ...

    def render(self) -> str:
        if self.kind is StepKind.WARNING:
            return f"⚠ {self.text}"
        if self.kind is StepKind.WITNESS:
            return f"✗ {self.text}"
        if self.kind is StepKind.LIMIT:
            return f"! {self.text}"
        if self.kind is StepKind.ROUND and self.outcome == "pass":
            return f"✓ {self.text}"
        return self.text


class Trace:
    """
    Append-only record of one algorithm run.

    Algorithms call the helpers below; the runner freezes the trace into a
    tuple of Step records owned by the result. Iteration counts, witnesses and
    hit limits are read from the records, never from the rendered text.
    """

    def __init__(self) -> None:
        self._steps: list[Step] = []
        self._frozen = False

    def add(self, step: Step) -> Step:
        if self._frozen:
            raise RuntimeError("trace is frozen")
        self._steps.append(step)
        return step

    def info(self, text: str) -> Step:
        return self.add(Step(StepKind.INFO, text))

    def warn(self, text: str) -> Step:
        return self.add(Step(StepKind.WARNING, text))

    def progress(self, text: str, *, index: int, value: int | None = None) -> Step:
        return self.add(Step(StepKind.PROGRESS, text, index=index, value=value))

    def passed(self, text: str, *, index: int, base: int | None = None, value: int | None = None) -> Step:
        return self.add(Step(StepKind.ROUND, text, index=index, base=base, value=value, outcome="pass"))

    def witness(self, text: str, *, base: int, index: int | None = None, value: int | None = None) -> Step:
        return self.add(Step(StepKind.WITNESS, text, index=index, base=base, value=value, outcome="composite"))

    def limit(self, text: str, *, name: str, value: int | None = None) -> Step:
        return self.add(Step(StepKind.LIMIT, text, value=value, outcome=name))

    def verdict(self, text: str, *, is_prime: bool, iterations: int) -> Step:
        return self.add(Step(StepKind.VERDICT, text, index=iterations,
                             outcome="prime" if is_prime else "composite"))

    def freeze(self) -> tuple[Step, ...]:
        self._frozen = True
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self):
        return iter(self._steps)


# --- derived data -----------------------------------------------------------

def render(steps) -> tuple[str, ...]:
    return tuple(s.render() for s in steps)


def iterations_of(steps) -> int:
    """Iteration count from the VERDICT step; else the highest recorded index (0 if none)."""
    for s in reversed(tuple(steps)):
        if s.kind is StepKind.VERDICT and s.index is not None:
            return s.index
    return max((s.index for s in steps if s.index is not None), default=0)


def verdict_of(steps) -> bool | None:
    for s in reversed(tuple(steps)):
        if s.kind is StepKind.VERDICT:
            return s.outcome == "prime"
    return None


def witness_of(steps) -> int | None:
    for s in steps:
        if s.kind is StepKind.WITNESS:
            return s.base
    return None


def limits_hit(steps) -> tuple[str, ...]:
    return tuple(s.outcome for s in steps if s.kind is StepKind.LIMIT and s.outcome)
