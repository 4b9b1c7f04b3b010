# -----------------------------------------------------------------------------
#  miller_rabin.py
#  Miller–Rabin strong probable-prime test
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import TYPE_CHECKING

from primeproof.algorithms.base import PrimalityTest
from primeproof.intmath import mod_pow, random_in_range
from primeproof.probability import miller_rabin_error
from primeproof.registry import primality_test

if TYPE_CHECKING:
    import random

    from primeproof.trace import Trace

SMALL_PRIMES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29)


def decompose(n: int) -> tuple[int, int]:
    """Return (s, d) with n - 1 = 2^s * d and d odd."""
    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1
    return s, d


@primality_test(
    test_id="miller-rabin",
    name="Miller–Rabin test",
    description=(
        "Probabilistic strong-pseudoprime test and the industry standard in cryptography. "
        "Unlike Fermat's test it is not fooled by Carmichael numbers."
    ),
    deterministic=False,
    default_rounds=40,
    order=30,
)
class MillerRabinTest(PrimalityTest):

    def is_applicable(self, n: int) -> bool:
        return n > 2 and n % 2 == 1

    def _small_prime_check(self, n: int, trace: Trace) -> bool | None:
        for p in SMALL_PRIMES:
            if n == p:
                trace.verdict(f"{n} is a small prime", is_prime=True, iterations=0)
                return True
            if n % p == 0:
                trace.witness(f"small prime factor found: {p}", base=p)
                trace.verdict(f"{n} is composite", is_prime=False, iterations=0)
                return False
        return None

    def _decide(self, n: int, rounds: int, rng: random.Random, trace: Trace) -> tuple[bool, bool]:
        pre = self._small_prime_check(n, trace)
        if pre is not None:
            return pre, True

        s, d = decompose(n)
        trace.info(f"Miller–Rabin test with {rounds} round(s)")
        trace.info(f"n - 1 = 2^{s} × {d}")
        n1 = n - 1

        for i in range(1, rounds + 1):
            a = random_in_range(2, n - 2, rng)
            x = mod_pow(a, d, n)
            if x in (1, n1):
                trace.passed(f"round {i}: a = {a}, a^d mod n = {x}", index=i, base=a, value=x)
                continue

            for r in range(1, s):
                x = mod_pow(x, 2, n)
                if x == n1:
                    trace.passed(f"round {i}: a = {a}, a^(2^{r}·d) ≡ -1 (mod n)", index=i, base=a, value=x)
                    break
                if x == 1:
                    trace.witness(f"round {i}: a = {a}, a^(2^{r}·d) ≡ 1 without passing -1: "
                                  f"{a} is a Miller–Rabin witness", base=a, index=i, value=x)
                    trace.verdict(f"{n} is composite", is_prime=False, iterations=i)
                    return False, True
            else:
                trace.witness(f"round {i}: a = {a}, squaring chain never reached n - 1: "
                              f"{a} is a Miller–Rabin witness", base=a, index=i, value=x)
                trace.verdict(f"{n} is composite", is_prime=False, iterations=i)
                return False, True

        trace.verdict(f"all {rounds} round(s) passed: {n} is probably prime "
                      f"(error ≤ 4^-{rounds} = {miller_rabin_error(rounds):.2E})",
                      is_prime=True, iterations=rounds)
        return True, False
