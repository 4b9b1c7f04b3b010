# -----------------------------------------------------------------------------
#  intmath.py
#  Arbitrary-precision integer helpers shared by every primality test
# -----------------------------------------------------------------------------

from __future__ import annotations

import random

import gmpy2
from sympy import factorint

from primeproof.runtime import CFG


class NoInverseError(ArithmeticError, ValueError):
    """Raised by mod_inverse when gcd(a, n) != 1."""


def _z(x: int):
    """Promote to gmpy2.mpz when ARITHMETIC.USE_GMPY2 is on (default)."""
    if CFG("ARITHMETIC.USE_GMPY2", True):
        return gmpy2.mpz(x)
    return int(x)


def integer_sqrt(n: int) -> int:
    """
    Largest r with r*r <= n.

    Newton's iteration seeded from 1 << (bit_length(n) // 2), stopped as soon
    as r*r <= n < (r+1)*(r+1).
    """
    if n < 0:
        raise ValueError(f"integer_sqrt of negative number {n}")
    if n == 0:
        return 0
    nz = _z(n)
    r = _z(1) << (int(n).bit_length() // 2)
    while not (r * r <= nz < (r + 1) * (r + 1)):
        r = (r + nz // r) // 2
    return int(r)


def mod_pow(base: int, exponent: int, modulus: int) -> int:
    """(base ** exponent) % modulus by square-and-multiply."""
    if modulus <= 0:
        raise ValueError(f"modulus must be positive, got {modulus}")
    if exponent < 0:
        raise ValueError("negative exponents are not supported")
    if modulus == 1:
        return 0

    m = _z(modulus)
    b = _z(base) % m
    e = _z(exponent)
    result = _z(1)
    while e > 0:
        if e & 1:
            result = (result * b) % m
        e >>= 1
        b = (b * b) % m
    return int(result)


def gcd(a: int, b: int) -> int:
    a, b = abs(int(a)), abs(int(b))
    while b:
        a, b = b, a % b
    return a


def mod_inverse(a: int, n: int) -> int:
    """a^-1 mod n via the extended Euclidean algorithm."""
    if n <= 0:
        raise ValueError(f"modulus must be positive, got {n}")
    t, new_t = 0, 1
    r, new_r = n, a % n
    while new_r:
        q = r // new_r
        t, new_t = new_t, t - q * new_t
        r, new_r = new_r, r - q * new_r
    if r != 1:
        raise NoInverseError(f"{a} has no inverse modulo {n} (gcd = {r})")
    return t % n


def random_in_range(lo: int, hi: int, rng: random.Random) -> int:
    """
    Uniform integer in [lo, hi] drawn from `rng`.

    Bytes are sized to the bit length of the span, excess top bits are masked
    off and out-of-range draws are rejected, so every value is equally likely.
    """
    if lo > hi:
        raise ValueError(f"empty range [{lo}, {hi}]")
    span = hi - lo + 1
    if span == 1:
        return lo
    bits = (span - 1).bit_length()
    nbytes = (bits + 7) // 8
    mask = (1 << bits) - 1
    while True:
        v = int.from_bytes(rng.randbytes(nbytes), "little") & mask
        if v < span:
            return lo + v


def multiplicative_order(n: int, r: int) -> int | None:
    """
    Smallest k >= 1 with n**k == 1 (mod r), by incremental search.
    None when gcd(n, r) != 1 (no such k exists).
    """
    if r < 1:
        raise ValueError(f"modulus must be positive, got {r}")
    if r == 1:
        return 1
    if gcd(n, r) != 1:
        return None
    k = 1
    x = n % r
    # the order divides phi(r) < r, so the loop always ends before k == r
    while x != 1 and k < r:
        x = (x * n) % r
        k += 1
    return k


def perfect_power(n: int) -> tuple[int, int] | None:
    """
    (b, e) with b**e == n and b, e >= 2, or None.

    Exponents run from 2 to ceil(log2 n); each base is found by binary search.
    """
    if n < 4:
        return None
    bl = n.bit_length()
    for e in range(2, bl + 1):
        lo, hi = 2, 1 << (bl // e + 1)
        while lo <= hi:
            mid = (lo + hi) // 2
            p = mid ** e
            if p == n:
                return mid, e
            if p < n:
                lo = mid + 1
            else:
                hi = mid - 1
    return None


def korselt_carmichael(n: int) -> bool:
    """
    Korselt's criterion: n is composite, square-free, has at least three prime
    factors and (p - 1) | (n - 1) for every prime p | n.
    """
    if n < 3 or n % 2 == 0:
        return False
    fac = factorint(n)
    if len(fac) < 3 or any(e != 1 for e in fac.values()):
        return False
    return all((n - 1) % (p - 1) == 0 for p in fac)
