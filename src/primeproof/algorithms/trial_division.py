# -----------------------------------------------------------------------------
#  trial_division.py
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import TYPE_CHECKING

from primeproof.algorithms.base import PrimalityTest
from primeproof.intmath import integer_sqrt
from primeproof.registry import primality_test
from primeproof.runtime import CFG

if TYPE_CHECKING:
    import random

    from primeproof.trace import Trace


@primality_test(
    test_id="trial",
    name="Trial division",
    description=(
        "Deterministic test dividing n by 2 and by every odd number up to √n. "
        "Slow for large n, but the answer is exact."
    ),
    deterministic=True,
    default_rounds=1,
    order=10,
)
class TrialDivisionTest(PrimalityTest):

    def _decide(self, n: int, rounds: int, rng: random.Random, trace: Trace) -> tuple[bool, bool]:
        if n % 2 == 0:
            trace.witness(f"{n} is even: divisible by 2", base=2)
            trace.verdict(f"{n} is composite", is_prime=False, iterations=0)
            return False, True

        every = max(1, int(CFG("TRIAL.TRACE_EVERY", 1000)))
        limit = integer_sqrt(n)
        trace.info(f"Dividing {n} by odd numbers up to √n = {limit}")

        checked = 0
        for d in range(3, limit + 1, 2):
            checked += 1
            if n % d == 0:
                trace.witness(f"divisor found: {d}", base=d, index=checked, value=n // d)
                trace.verdict(f"{n} = {d} × {n // d} is composite ({checked} divisors tested)",
                              is_prime=False, iterations=checked)
                return False, True
            if checked % every == 0:
                trace.progress(f"{checked} divisors tested, current: {d}", index=checked, value=d)

        trace.verdict(f"no divisor up to {limit}: {n} is prime ({checked} divisors tested)",
                      is_prime=True, iterations=checked)
        return True, True
