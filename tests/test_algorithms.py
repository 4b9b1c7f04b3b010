# tests/test_algorithms.py
"""
Algorithm-level tests: every registered primality test is called directly,
with an injected generator, and checked against sympy.isprime.

Run: pytest -v
"""

from __future__ import annotations

import random

import pytest
from sympy import isprime
from sympy.ntheory import n_order

from primeproof.algorithms import AKSTest, FermatTest, MillerRabinTest, TrialDivisionTest
from primeproof.algorithms.aks import R_SEARCH_LIMIT, find_r, order_bound
from primeproof.algorithms.miller_rabin import decompose
from primeproof.intmath import korselt_carmichael
from primeproof.runtime import APPLY
from primeproof.trace import StepKind

ALL_TESTS = [TrialDivisionTest(), FermatTest(), MillerRabinTest(), AKSTest()]
ALL_IDS = [t.test_id for t in ALL_TESTS]

PRIMES = [3, 5, 7, 31, 97, 7919, 104729]
COMPOSITES = [9, 15, 91, 561, 1105, 1729, 7917, 104731]   # 104731 = 11 * 9521


def _rounds(test) -> int:
    return 20 if not test.is_deterministic else 1


# ---------- trivial inputs ----------------------------------------------------

@pytest.mark.parametrize("test", ALL_TESTS, ids=ALL_IDS)
@pytest.mark.parametrize("n", [-7, 0, 1])
def test_below_two_is_not_prime(test, n):
    v = test.is_prime(n, 1, random.Random(0))
    assert v.is_prime is False
    assert v.certain is True


@pytest.mark.parametrize("test", ALL_TESTS, ids=ALL_IDS)
def test_two_is_prime(test):
    v = test.is_prime(2, 1, random.Random(0))
    assert v.is_prime is True
    assert v.certain is True


@pytest.mark.parametrize("test", ALL_TESTS, ids=ALL_IDS)
def test_rounds_must_be_positive(test):
    with pytest.raises(ValueError):
        test.is_prime(97, 0)


# ---------- known primes and composites ---------------------------------------

@pytest.mark.parametrize("test", ALL_TESTS, ids=ALL_IDS)
@pytest.mark.parametrize("n", PRIMES)
def test_known_primes(test, n):
    v = test.is_prime(n, _rounds(test), random.Random(n))
    assert v.is_prime is True, v.lines
    assert v.witness is None


@pytest.mark.parametrize("test", [t for t in ALL_TESTS if t.test_id != "fermat"],
                         ids=[i for i in ALL_IDS if i != "fermat"])
@pytest.mark.parametrize("n", COMPOSITES)
def test_known_composites(test, n):
    v = test.is_prime(n, _rounds(test), random.Random(n))
    assert v.is_prime is False, v.lines
    assert v.certain is True
    assert v.witness is not None


def test_oracle_small_odd_numbers():
    """Trial division, Miller-Rabin and AKS agree with sympy on every odd n < 1000."""
    trial, mr, aks = TrialDivisionTest(), MillerRabinTest(), AKSTest()
    for n in range(3, 1000, 2):
        expected = isprime(n)
        assert trial.is_prime(n).is_prime is expected, n
        assert mr.is_prime(n, 20, random.Random(n)).is_prime is expected, n
        assert aks.is_prime(n).is_prime is expected, n


def test_fermat_oracle_without_carmichael_numbers():
    fermat = FermatTest()
    for n in range(5, 3000, 2):
        if korselt_carmichael(n):
            continue
        assert fermat.is_prime(n, 20, random.Random(n)).is_prime is isprime(n), n


# ---------- trial division ----------------------------------------------------

def test_trial_iterations_count_odd_divisors():
    v = TrialDivisionTest().is_prime(7919)
    assert v.is_prime is True
    assert v.iterations == len(range(3, 88 + 1, 2))     # isqrt(7919) = 88


def test_trial_reports_first_divisor():
    v = TrialDivisionTest().is_prime(91)
    assert v.is_prime is False
    assert v.witness == 7
    assert v.iterations == 3                              # 3, 5, 7


def test_trial_even_number_witness():
    v = TrialDivisionTest().is_prime(1000)
    assert v.witness == 2
    assert v.iterations == 0


def test_trial_progress_steps_follow_profile():
    APPLY({"TRIAL": {"TRACE_EVERY": 10}})
    v = TrialDivisionTest().is_prime(104729)             # isqrt = 323 -> 161 odd divisors
    progress = [s for s in v.steps if s.kind is StepKind.PROGRESS]
    assert len(progress) == 16


# ---------- fermat ------------------------------------------------------------

@pytest.mark.parametrize("n", [561, 1105, 1729, 2465, 41041])
def test_fermat_flags_carmichael_numbers(n):
    v = FermatTest().is_prime(n, 5, random.Random(1))
    warnings = [s for s in v.steps if s.kind is StepKind.WARNING]
    assert warnings
    assert "Carmichael" in warnings[0].text


def test_fermat_korselt_check_respects_limit():
    APPLY({"FERMAT": {"KORSELT_LIMIT": 1000}})
    v = FermatTest().is_prime(41041, 5, random.Random(1))
    assert not [s for s in v.steps if s.kind is StepKind.WARNING]


def test_fermat_three_is_prime_without_rounds():
    v = FermatTest().is_prime(3, 10, random.Random(0))
    assert v.is_prime is True
    assert v.certain is True
    assert v.iterations == 0


def test_fermat_probable_prime_is_not_certain():
    v = FermatTest().is_prime(104729, 8, random.Random(3))
    assert v.is_prime is True
    assert v.certain is False
    assert v.iterations == 8
    assert sum(1 for s in v.steps if s.kind is StepKind.ROUND) == 8


def test_fermat_applicability():
    t = FermatTest()
    assert not t.is_applicable(2)
    assert not t.is_applicable(10)
    assert t.is_applicable(9)


# ---------- miller-rabin ------------------------------------------------------

@pytest.mark.parametrize("n,expected", [(561, (4, 35)), (97, (5, 3)), (7919, (1, 3959))])
def test_decompose(n, expected):
    s, d = decompose(n)
    assert (s, d) == expected
    assert (2**s) * d == n - 1 and d % 2 == 1


def test_miller_rabin_small_prime_shortcut():
    v = MillerRabinTest().is_prime(29, 40, random.Random(0))
    assert v.is_prime is True
    assert v.certain is True
    assert v.iterations == 0


def test_miller_rabin_small_factor_witness():
    v = MillerRabinTest().is_prime(33, 40, random.Random(0))
    assert v.is_prime is False
    assert v.witness == 3
    assert v.iterations == 0


def test_miller_rabin_composite_iterations_are_round_index():
    v = MillerRabinTest().is_prime((2**31 - 1) * (2**61 - 1), 40, random.Random(5))
    assert v.is_prime is False
    witness_step = next(s for s in v.steps if s.kind is StepKind.WITNESS)
    assert v.iterations == witness_step.index
    assert 1 <= v.iterations <= 40


def test_miller_rabin_strong_pseudoprime_base_two_is_caught():
    # 3215031751 is a strong pseudoprime to bases 2, 3, 5 and 7
    v = MillerRabinTest().is_prime(3215031751, 20, random.Random(11))
    assert v.is_prime is False


def test_miller_rabin_large_prime():
    p = 2**127 - 1
    v = MillerRabinTest().is_prime(p, 10, random.Random(2))
    assert v.is_prime is True
    assert v.iterations == 10


def test_seeded_runs_are_reproducible():
    t = MillerRabinTest()
    a = t.is_prime(104729, 10, random.Random(42))
    b = t.is_prime(104729, 10, random.Random(42))
    assert a.steps == b.steps


# ---------- aks ---------------------------------------------------------------

def test_aks_r_has_large_order():
    for n in (31, 97, 7919, 104729):
        r, hit = find_r(n, 1_000_000)
        assert not hit
        assert n_order(n, r) > order_bound(n)


def test_aks_perfect_power_is_composite():
    v = AKSTest().is_prime(3**7)
    assert v.is_prime is False
    assert v.witness == 3
    assert v.iterations == 0


def test_aks_small_prime_decided_by_sieve():
    v = AKSTest().is_prime(3)
    assert v.is_prime is True
    assert v.iterations == 0


def test_aks_large_prime_checks_bases():
    v = AKSTest().is_prime(104729)
    assert v.is_prime is True
    assert v.iterations > 0
    assert AKSTest.is_proven is False


def test_aks_r_search_limit_is_reported():
    APPLY({"AKS": {"R_CEILING": 3}})
    v = AKSTest().is_prime(104729)
    assert v.is_prime is True
    assert v.limits_hit == (R_SEARCH_LIMIT,)
    assert any(s.kind is StepKind.LIMIT for s in v.steps)
