# -----------------------------------------------------------------------------
#  fermat.py
#  Fermat probable-prime test
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import TYPE_CHECKING

from primeproof.algorithms.base import PrimalityTest
from primeproof.intmath import korselt_carmichael, mod_pow, random_in_range
from primeproof.registry import primality_test
from primeproof.runtime import CFG

if TYPE_CHECKING:
    import random

    from primeproof.trace import Trace

# Small Carmichael numbers (OEIS A002997) flagged in the trace
KNOWN_CARMICHAEL = frozenset({561, 1105, 1729, 2465, 2821, 6601, 8911})


@primality_test(
    test_id="fermat",
    name="Fermat test",
    description=(
        "Probabilistic test based on Fermat's little theorem: a^(n-1) ≡ 1 (mod n) "
        "for prime n. Fast, but fooled by Carmichael numbers."
    ),
    deterministic=False,
    default_rounds=20,
    order=20,
)
class FermatTest(PrimalityTest):

    def is_applicable(self, n: int) -> bool:
        return n > 2 and n % 2 == 1

    def _carmichael_warning(self, n: int, trace: Trace) -> None:
        if n in KNOWN_CARMICHAEL:
            trace.warn(f"{n} is a known Carmichael number: it can pass every Fermat round")
            return
        if n <= int(CFG("FERMAT.KORSELT_LIMIT", 10**12)) and korselt_carmichael(n):
            trace.warn(f"{n} is a Carmichael number (Korselt's criterion): it can pass every Fermat round")

    def _decide(self, n: int, rounds: int, rng: random.Random, trace: Trace) -> tuple[bool, bool]:
        if n == 3:
            trace.verdict("3 is prime (no base in [2, n-2] to test)", is_prime=True, iterations=0)
            return True, True

        trace.info(f"Fermat test with {rounds} round(s): prime p satisfies a^(p-1) ≡ 1 (mod p) for 1 < a < p")
        self._carmichael_warning(n, trace)

        for i in range(1, rounds + 1):
            a = random_in_range(2, n - 2, rng)
            x = mod_pow(a, n - 1, n)
            if x != 1:
                trace.witness(f"round {i}: {a}^(n-1) mod n = {x} ≠ 1, {a} is a Fermat witness",
                              base=a, index=i, value=x)
                trace.verdict(f"{n} is composite", is_prime=False, iterations=i)
                return False, True
            trace.passed(f"round {i}: {a}^(n-1) ≡ 1 (mod n)", index=i, base=a, value=x)

        trace.verdict(f"all {rounds} round(s) passed: {n} is probably prime", is_prime=True, iterations=rounds)
        return True, False
