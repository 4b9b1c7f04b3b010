# -----------------------------------------------------------------------------
#  base.py
#  Capability interface shared by all primality tests
# -----------------------------------------------------------------------------

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass

from primeproof import probability
from primeproof.trace import Step, Trace, iterations_of, limits_hit, render, witness_of


@dataclass(frozen=True)
class TestInfo:
    id: str
    name: str
    description: str
    is_deterministic: bool
    is_proven: bool
    default_rounds: int


@dataclass(frozen=True)
class Verdict:
    """Outcome of one algorithm run; everything but the flags is derived from `steps`."""
    is_prime: bool
    steps: tuple[Step, ...]
    certain: bool = False   # decided without sampling (composite witness, exhaustive check, ...)

    @property
    def iterations(self) -> int:
        return iterations_of(self.steps)

    @property
    def witness(self) -> int | None:
        return witness_of(self.steps)

    @property
    def limits_hit(self) -> tuple[str, ...]:
        return limits_hit(self.steps)

    @property
    def lines(self) -> tuple[str, ...]:
        return render(self.steps)


class PrimalityTest(ABC):
    """
    One primality algorithm.

    Descriptor attributes (test_id, name, description, is_deterministic,
    is_proven, default_rounds, order) are set by @primality_test.
    Subclasses implement _decide(); is_prime() handles n < 2 and n == 2 so a
    direct call with any integer degrades safely.
    """

    __test__ = False  # not a pytest test class

    test_id: str = ""
    name: str = ""
    description: str = ""
    is_deterministic: bool = True
    is_proven: bool = True
    default_rounds: int = 1
    order: int = 100

    @property
    def is_heuristic(self) -> bool:
        """Deterministic answer without a correctness proof (sampled checks)."""
        return self.is_deterministic and not self.is_proven

    @property
    def info(self) -> TestInfo:
        return TestInfo(
            id=self.test_id,
            name=self.name,
            description=self.description,
            is_deterministic=self.is_deterministic,
            is_proven=self.is_proven,
            default_rounds=self.default_rounds,
        )

    def is_applicable(self, n: int) -> bool:
        return n > 0

    def error_bound(self, rounds: int) -> float:
        if self.is_deterministic:
            return 0.0
        return probability.error_bound(rounds, self.test_id)

    def probability(self, rounds: int) -> float:
        """Probability (0..1) that a 'prime' verdict after `rounds` rounds is right."""
        return 1.0 - self.error_bound(rounds)

    def is_prime(self, n: int, rounds: int = 1, rng: random.Random | None = None) -> Verdict:
        if rounds < 1:
            raise ValueError(f"rounds must be positive, got {rounds}")
        trace = Trace()
        if n < 2:
            trace.verdict(f"{n} is less than 2: not prime", is_prime=False, iterations=0)
            return Verdict(False, trace.freeze(), certain=True)
        if n == 2:
            trace.verdict("2 is prime", is_prime=True, iterations=0)
            return Verdict(True, trace.freeze(), certain=True)

        result, certain = self._decide(n, rounds, rng or random.Random(), trace)
        return Verdict(result, trace.freeze(), certain=certain or self.is_deterministic)

    @abstractmethod
    def _decide(self, n: int, rounds: int, rng: random.Random, trace: Trace) -> tuple[bool, bool]:
        """Return (is_prime, certain) for n >= 3, ending the trace with a verdict step."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.test_id!r}>"
