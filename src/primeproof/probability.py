# -----------------------------------------------------------------------------
#  probability.py
#  Error bounds and reliability figures for the probabilistic tests
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import NamedTuple

FERMAT = "fermat"
MILLER_RABIN = "miller-rabin"
DETERMINISTIC_KINDS = frozenset({"trial", "aks"})

ROUND_SEARCH_CAP = 1000
ROUND_SEARCH_FALLBACK = 100


class Recommendation(NamedTuple):
    rounds: int
    limit_hit: bool = False   # True when the search cap was reached and `rounds` is the fallback


def fermat_error(rounds: int) -> float:
    """Upper bound 1/2^k on a Fermat false positive (Carmichael numbers excepted)."""
    return 0.5 ** rounds


def miller_rabin_error(rounds: int) -> float:
    """Upper bound 4^-k on a Miller–Rabin false positive."""
    return 4.0 ** (-rounds)


def error_bound(rounds: int, kind: str) -> float:
    """Error bound for `rounds` rounds of test `kind`; 0.0 for deterministic tests."""
    k = kind.lower()
    if k == FERMAT:
        return fermat_error(rounds)
    if k == MILLER_RABIN:
        return miller_rabin_error(rounds)
    return 0.0


def reliability(rounds: int, kind: str) -> float:
    """(1 - error) * 100; exactly 100 for deterministic kinds."""
    if kind.lower() in DETERMINISTIC_KINDS:
        return 100.0
    return (1 - error_bound(rounds, kind)) * 100


def recommend(target_reliability: float, kind: str) -> Recommendation:
    """
    Smallest round count whose error bound meets `target_reliability` (percent).

    Searches upward from 1 and gives up after ROUND_SEARCH_CAP rounds, returning
    ROUND_SEARCH_FALLBACK with limit_hit=True. Deterministic kinds need 1 round.
    """
    if kind.lower() in DETERMINISTIC_KINDS:
        return Recommendation(1)

    target_error = (100 - target_reliability) / 100.0
    rounds = 1
    while error_bound(rounds, kind) > target_error:
        rounds += 1
        if rounds > ROUND_SEARCH_CAP:
            return Recommendation(ROUND_SEARCH_FALLBACK, limit_hit=True)
    return Recommendation(rounds)


def recommend_rounds(target_reliability: float, kind: str) -> int:
    return recommend(target_reliability, kind).rounds


def format_probability(probability: float) -> str:
    """Render a probability given as a fraction in [0, 1]."""
    if probability >= 0.99999:
        return "> 99.999%"
    if probability >= 0.9999:
        return "> 99.99%"
    if probability < 0.0001:
        return f"{probability * 100:.2E}%"
    return f"{probability * 100:.4f}%"
