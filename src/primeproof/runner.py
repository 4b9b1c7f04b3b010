# src/primeproof/runner.py
from __future__ import annotations

import random
import re
import sys
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

import gmpy2
from colorama import Fore, Style

from primeproof.algorithms.base import PrimalityTest, TestInfo, Verdict
from primeproof.registry import Index, build_index, discover
from primeproof.runtime import CFG
from primeproof.runtime import current as _rt_current
from primeproof.trace import Step, render
from primeproof.utility import UserInputError

MIN_DURATION = 1e-6          # seconds; smallest reportable elapsed time
MIN_ROUNDS, MAX_ROUNDS = 1, 100
FALLBACK_ROUNDS = 10         # recommended_rounds() for ids without a default
_DIGITS_RE = re.compile(r"[0-9]+")


class UnknownTestError(UserInputError, LookupError):
    """Requested algorithm id is not registered."""

    def __init__(self, test_id: str, known: Iterable[str] = ()):
        self.test_id = test_id
        known = list(known)
        hint = f" (known: {', '.join(known)})" if known else ""
        super().__init__(f"Unknown test id: {test_id!r}{hint}")


# ---------- Data models -------------------------------------------------------

@dataclass(frozen=True)
class TestResult:
    candidate: int
    is_prime: bool
    test_id: str
    test_name: str
    elapsed: float                    # seconds, >= MIN_DURATION
    iterations: int
    confidence: float                 # percent
    message: str
    steps: tuple[Step, ...] = ()
    witness: int | None = None
    limits_hit: tuple[str, ...] = ()
    proven: bool = True               # False for heuristic deterministic tests
    error: bool = False               # degraded record from a failed run

    __test__ = False  # not a pytest test class

    @property
    def trace(self) -> tuple[str, ...]:
        return render(self.steps)

    @property
    def verdict(self) -> str:
        if self.is_prime:
            return "prime" if self.confidence >= 100 else "probably prime"
        return "composite"


@dataclass(frozen=True)
class ComparisonResult:
    candidate: int
    results: tuple[TestResult, ...] = field(default_factory=tuple)
    total_elapsed: float = MIN_DURATION

    def by_id(self, test_id: str) -> TestResult:
        for r in self.results:
            if r.test_id == test_id:
                return r
        raise KeyError(test_id)

    @property
    def agree(self) -> bool:
        """True when every non-degraded result reports the same verdict."""
        verdicts = {r.is_prime for r in self.results if not r.error}
        return len(verdicts) <= 1


# ---------- Boundary validation ----------------------------------------------

def parse_candidate(text: str) -> int:
    """Parse a candidate given as decimal text; must be a positive integer."""
    s = str(text).strip().replace("_", "")
    if not s:
        raise UserInputError("Invalid input: empty number.")
    max_digits = int(CFG("BEHAVIOUR.MAX_DIGITS", 10_000))
    if len(s) > max_digits:
        raise UserInputError(f"Invalid input: {len(s)} digits exceeds the limit of {max_digits}.")
    if s.startswith("-") and _DIGITS_RE.fullmatch(s[1:]):
        raise UserInputError("Invalid input: the number must be positive.")
    if not _DIGITS_RE.fullmatch(s):
        raise UserInputError(f"Invalid input: {text!r} is not a non-negative integer.")
    # gmpy2 parses without the interpreter's int-string digit cap
    n = int(gmpy2.mpz(s))
    if n <= 0:
        raise UserInputError("Invalid input: the number must be positive.")
    return n


def validate_rounds(rounds: int) -> int:
    if isinstance(rounds, bool) or not isinstance(rounds, int):
        try:
            rounds = int(str(rounds).strip())
        except ValueError:
            raise UserInputError(f"Invalid input: rounds must be an integer, got {rounds!r}.") from None
    if not MIN_ROUNDS <= rounds <= MAX_ROUNDS:
        raise UserInputError(f"Invalid input: rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}, got {rounds}.")
    return rounds


# ---------- Helpers -----------------------------------------------------------

def _fmt_ms(seconds: float) -> str:
    return f"{seconds * 1000.0:9.4f} ms"


def _print_debug_result(label: str, status: str, dt: float, detail: str | None = None) -> None:
    """Emit a single debug line with timing and colored status (to STDERR)."""
    if status == "OK":
        stat = f"{Fore.GREEN}{Style.BRIGHT}PRIME{Style.RESET_ALL}"
    elif status == "NO":
        stat = f"{Style.DIM}COMP {Style.RESET_ALL}"
    elif status == "SKIP":
        stat = f"{Fore.YELLOW}{Style.BRIGHT}SKIP {Style.RESET_ALL}"
    else:
        stat = f"{Fore.RED}{Style.BRIGHT}ERR  {Style.RESET_ALL}"

    line = f"{Style.DIM}[{_fmt_ms(dt)}]{Style.RESET_ALL} {stat}  {label}"
    if detail:
        line += f" — {Style.DIM}{detail}{Style.RESET_ALL}"
    sys.stderr.write(line + "\n")
    sys.stderr.flush()


def _trivial(n: int) -> tuple[bool, str] | None:
    if n < 2:
        return False, f"Trivial case: {n} is less than 2, not prime"
    if n == 2:
        return True, "Trivial case: 2 is prime"
    if n % 2 == 0:
        return False, f"Trivial case: {n} is even, composite"
    return None


# ---------- Main API ----------------------------------------------------------

class TestRunner:
    """
    Registry of primality tests plus the boundary operations used by front ends.

    The registry is fixed at construction: either the given tests (in the given
    order) or the discovered ones, ordered by their `order` attribute.
    """

    __test__ = False  # not a pytest test class

    def __init__(self, tests: Iterable[PrimalityTest | type[PrimalityTest]] | None = None,
                 *, index: Index | None = None):
        if index is None:
            index = build_index(tests) if tests is not None else discover()
        self._index = index

    @property
    def index(self) -> Index:
        return self._index

    # --- descriptors --------------------------------------------------------

    def list_available_tests(self) -> list[TestInfo]:
        return [t.info for t in self._index.tests.values()]

    def is_supported(self, test_id: str) -> bool:
        return test_id in self._index

    def recommended_rounds(self, test_id: str) -> int:
        test = self._index.tests.get(test_id)
        return test.default_rounds if test is not None else FALLBACK_ROUNDS

    def get(self, test_id: str) -> PrimalityTest:
        try:
            return self._index.tests[test_id]
        except KeyError:
            raise UnknownTestError(test_id, self._index.ids()) from None

    # --- execution ----------------------------------------------------------

    def run_test(self, test_id: str, candidate: int | str, rounds: int | None = None, *,
                 seed: int | None = None, rng: random.Random | None = None) -> TestResult:
        test = self.get(test_id)
        n = self._coerce_candidate(candidate)
        rounds = self._resolve_rounds(rounds, test)
        if rng is None:
            rng = self._make_rng(seed)
        return self._run_one(test, n, rounds, rng)

    def run_all_tests(self, candidate: int | str, rounds: int | None = None, *,
                      seed: int | None = None, rng: random.Random | None = None) -> ComparisonResult:
        """
        Run every registered test in registry order.
        A failing test becomes a degraded result; the batch always completes.
        """
        n = self._coerce_candidate(candidate)
        if rounds is not None:
            rounds = validate_rounds(rounds)
        results: list[TestResult] = []
        t_start = time.perf_counter()

        for test_id, test in self._index.tests.items():
            try:
                r = self._resolve_rounds(rounds, test)
                gen = rng if rng is not None else self._make_rng(seed)
                results.append(self._run_one(test, n, r, gen))
            except Exception as e:
                if _rt_current().debug:
                    _print_debug_result(test_id, "ERR", 0.0, f"{e.__class__.__name__}: {e}")
                results.append(self._degraded(test, n, e))

        total = max(time.perf_counter() - t_start, MIN_DURATION)
        return ComparisonResult(candidate=n, results=tuple(results), total_elapsed=total)

    # --- internals ----------------------------------------------------------

    @staticmethod
    def _coerce_candidate(candidate: int | str) -> int:
        if isinstance(candidate, bool):
            raise UserInputError(f"Invalid input: {candidate!r} is not an integer.")
        if isinstance(candidate, int):
            return candidate
        return parse_candidate(candidate)

    def _resolve_rounds(self, rounds: int | None, test: PrimalityTest) -> int:
        if rounds is None:
            rounds = int(CFG("ROUNDS.DEFAULT", 0) or 0) or test.default_rounds
        return validate_rounds(rounds)

    @staticmethod
    def _make_rng(seed: int | None) -> random.Random:
        if seed is None:
            cfg_seed = CFG("RANDOM.SEED", None)
            if cfg_seed not in (None, ""):
                seed = int(cfg_seed)
        return random.Random(seed)

    def _run_one(self, test: PrimalityTest, n: int, rounds: int, rng: random.Random) -> TestResult:
        debug = _rt_current().debug

        trivial = _trivial(n)
        if trivial is not None:
            is_prime, msg = trivial
            if debug:
                _print_debug_result(test.test_id, "OK" if is_prime else "NO", MIN_DURATION, msg)
            return TestResult(
                candidate=n, is_prime=is_prime, test_id=test.test_id, test_name=test.name,
                elapsed=MIN_DURATION, iterations=1, confidence=100.0, message=msg,
                proven=True,
            )

        if not test.is_applicable(n):
            msg = f"{test.name} is not applicable to {n}"
            if debug:
                _print_debug_result(test.test_id, "SKIP", 0.0, msg)
            return TestResult(
                candidate=n, is_prime=False, test_id=test.test_id, test_name=test.name,
                elapsed=MIN_DURATION, iterations=0, confidence=0.0, message=msg,
                proven=not test.is_heuristic,
            )

        t0 = time.perf_counter()
        verdict = test.is_prime(n, rounds, rng)
        dt = max(time.perf_counter() - t0, MIN_DURATION)

        confidence = self._confidence(test, verdict, rounds)
        result = TestResult(
            candidate=n,
            is_prime=verdict.is_prime,
            test_id=test.test_id,
            test_name=test.name,
            elapsed=dt,
            iterations=verdict.iterations,
            confidence=confidence,
            message=self._message(test, verdict),
            steps=verdict.steps,
            witness=verdict.witness,
            limits_hit=verdict.limits_hit,
            proven=not test.is_heuristic,
        )
        if debug:
            detail = f"{result.iterations} iteration(s), {confidence:.6g}%"
            if result.limits_hit:
                detail += f", limits hit: {', '.join(result.limits_hit)}"
            _print_debug_result(test.test_id, "OK" if verdict.is_prime else "NO", dt, detail)
        return result

    @staticmethod
    def _confidence(test: PrimalityTest, verdict: Verdict, rounds: int) -> float:
        if test.is_deterministic or not verdict.is_prime or verdict.certain:
            return 100.0
        return test.probability(rounds) * 100

    @staticmethod
    def _message(test: PrimalityTest, verdict: Verdict) -> str:
        if not verdict.is_prime:
            if verdict.witness is not None:
                return f"Composite: witness {verdict.witness} found"
            return "Composite"
        if verdict.limits_hit:
            return "Prime (heuristic; resource limit hit: " + ", ".join(verdict.limits_hit) + ")"
        if test.is_heuristic:
            return "Prime (heuristic: sampled checks, not a proof)"
        if test.is_deterministic or verdict.certain:
            return "Prime"
        return "Probably prime: all rounds passed"

    @staticmethod
    def _degraded(test: PrimalityTest, n: int, exc: Exception) -> TestResult:
        return TestResult(
            candidate=n, is_prime=False, test_id=test.test_id, test_name=test.name,
            elapsed=MIN_DURATION, iterations=0, confidence=0.0,
            message=f"Execution error: {exc.__class__.__name__}: {exc}",
            proven=False, error=True,
        )
