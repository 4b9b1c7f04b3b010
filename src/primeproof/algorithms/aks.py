# -----------------------------------------------------------------------------
#  aks.py
#  AKS-style test with a sampled polynomial-identity stage
#
#  Stages 1-3 follow Agrawal–Kayal–Saxena. Stage 4 does NOT do arithmetic in
#  Z_n[x]/(x^r - 1): it checks (x + a)^n ≡ x^n + a (mod n) at a few integer
#  points x for a bounded number of bases a. Passing is therefore not a
#  proof, and the test is registered with proven=False.
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from primeproof.algorithms.base import PrimalityTest
from primeproof.intmath import gcd, integer_sqrt, mod_pow, multiplicative_order, perfect_power
from primeproof.registry import primality_test
from primeproof.runtime import CFG

if TYPE_CHECKING:
    import random

    from primeproof.trace import Trace

R_CEILING = 1_000_000
MAX_BASES = 100
BASES_PER_SQRT_R = 50
MAX_SAMPLE_X = 100
SAMPLES_PER_BASE = 10
R_SEARCH_LIMIT = "aks.r_search"


def order_bound(n: int) -> int:
    """ceil((ln n)^2); math.log accepts arbitrarily large ints."""
    ln = math.log(n)
    return math.ceil(ln * ln)


def find_r(n: int, ceiling: int) -> tuple[int, bool]:
    """
    Smallest r coprime to n with ord_r(n) > ceil((ln n)^2).
    Returns (r, False), or (current r, True) once r passes `ceiling`.
    """
    bound = order_bound(n)
    r = 2
    while True:
        if gcd(n, r) == 1:
            k = multiplicative_order(n, r)
            if k is not None and k > bound:
                return r, False
        r += 1
        if r > ceiling:
            return r, True


def identity_holds(n: int, r: int, a: int) -> bool:
    """(x + a)^n ≡ x^n + a (mod n) at sampled x in [1, min(r - 1, 100)]."""
    step = max(1, r // SAMPLES_PER_BASE)
    x = 1
    while x < r and x <= MAX_SAMPLE_X:
        if mod_pow(x + a, n, n) != (mod_pow(x, n, n) + a) % n:
            return False
        x += step
    return True


@primality_test(
    test_id="aks",
    name="AKS test (Agrawal–Kayal–Saxena, sampled)",
    description=(
        "Deterministic polynomial-time test in the AKS style: perfect-power check, "
        "search for r, small-factor sieve, then polynomial identities checked at "
        "sampled points only. Heuristic: a 'prime' answer is not a proof."
    ),
    deterministic=True,
    proven=False,
    default_rounds=1,
    order=40,
)
class AKSTest(PrimalityTest):

    def is_applicable(self, n: int) -> bool:
        return n > 1

    def _decide(self, n: int, rounds: int, rng: random.Random, trace: Trace) -> tuple[bool, bool]:
        # 1. perfect power
        trace.info("Step 1: perfect-power check")
        pp = perfect_power(n)
        if pp is not None:
            b, e = pp
            trace.witness(f"{n} = {b}^{e} is a perfect power", base=b, value=e)
            trace.verdict(f"{n} is composite", is_prime=False, iterations=0)
            return False, True
        trace.info(f"{n} is not a perfect power")

        # 2. r search
        ceiling = int(CFG("AKS.R_CEILING", R_CEILING))
        trace.info(f"Step 2: smallest r with ord_r(n) > ⌈(ln n)²⌉ = {order_bound(n)}")
        r, hit = find_r(n, ceiling)
        if hit:
            trace.limit(f"r-search stopped at the ceiling {ceiling}; continuing with r = {r}",
                        name=R_SEARCH_LIMIT, value=r)
        else:
            trace.info(f"r = {r}")

        # 3. small factors
        top = min(r, n - 1)
        trace.info(f"Step 3: divisors in [2, {top}]")
        for a in range(2, top + 1):
            if n % a == 0:
                trace.witness(f"divisor found: {a}", base=a, value=n // a)
                trace.verdict(f"{n} is composite", is_prime=False, iterations=0)
                return False, True
        if n <= r:
            trace.verdict(f"no divisor below n ≤ r = {r}: {n} is prime", is_prime=True, iterations=0)
            return True, True
        trace.info(f"no divisor in [2, {r}]")

        # 4. sampled polynomial identities
        max_a = min(MAX_BASES, integer_sqrt(r) * BASES_PER_SQRT_R)
        trace.info(f"Step 4: (x + a)^n ≡ x^n + a (mod n) at sampled x, for a = 1..{max_a}")
        for a in range(1, max_a + 1):
            if not identity_holds(n, r, a):
                trace.witness(f"identity fails for a = {a}", base=a, index=a)
                trace.verdict(f"{n} is composite", is_prime=False, iterations=a)
                return False, True
            if a % 10 == 0:
                trace.passed(f"a = 1..{a} hold", index=a, base=a)

        trace.verdict(f"all checks passed: {n} is prime (sampled identities, not a proof)",
                      is_prime=True, iterations=max_a)
        return True, True
