# src/primeproof/fmt.py
from __future__ import annotations

import re

from primeproof.probability import format_probability
from primeproof.runtime import CFG
from primeproof.utility import dec_digits, get_terminal_width

# Single source of truth for ANSI stripping
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def abbr_int_fast(n: int, head: int = 10, tail: int = 5, threshold: int = 15, ellipsis: str = "…") -> str:
    """Abbreviate very large ints as first<head>…last<tail> without str(n)."""
    if not isinstance(n, int):
        return str(n)
    if n == 0:
        return "0"

    sign = "-" if n < 0 else ""
    a = -n if n < 0 else n

    d = dec_digits(a)
    if d <= threshold or head + tail >= d:
        return sign + str(a)

    first = a // (10 ** (d - head))
    last = a % (10 ** tail)
    return f"{sign}{first}{ellipsis}{last:0{tail}d}"


def abbr_number(n: int) -> str:
    """abbr_int_fast() with the FORMATTING.* profile settings."""
    return abbr_int_fast(
        n,
        head=int(CFG("FORMATTING.NUM_ABBR_HEAD", 10)),
        tail=int(CFG("FORMATTING.NUM_ABBR_TAIL", 5)),
        threshold=int(CFG("FORMATTING.NUM_ABBR_THRESHOLD", 15)),
        ellipsis=str(CFG("FORMATTING.ELLIPSIS", "…")),
    )


def strip_ansi(s: str | None) -> str:
    """Return s with ANSI escape sequences removed."""
    return "" if s is None else ANSI_RE.sub("", s)


def visible_len(s: str | None) -> int:
    """Printable length (without ANSI)."""
    return len(strip_ansi(s))


def format_elapsed(seconds: float) -> str:
    """Milliseconds with 4 decimals below 1 s; s with millis below 60 s; else mm:ss.mmm."""
    MAX_SECONDS = 60
    if seconds < 1:
        return f"{seconds * 1000:.4f} ms"
    if seconds < MAX_SECONDS:
        return f"{seconds:.3f} s"
    m, s = divmod(seconds, MAX_SECONDS)
    return f"{int(m)}:{s:06.3f}"


def format_confidence(percent: float) -> str:
    """Confidence percentage for display; 100 is shown as-is, the rest via format_probability."""
    if percent >= 100:
        return "100%"
    if percent <= 0:
        return "0%"
    return format_probability(percent / 100.0)


def wrap_after_label(label: str, text: str, *, width: int | None = None) -> str:
    """
    ANSI-safe wrap: first line starts after `label`, following lines are
    indented under it. Long tokens move whole to the next line.
    """
    W = max(20, int(width or get_terminal_width()))
    start = visible_len(label)
    cap = max(5, W - start)

    if not text:
        return label

    lines: list[str] = []
    cur, cur_len = "", 0
    for tok in re.split(r"(\s+)", text):
        vis = visible_len(tok)
        is_space = tok.strip() == ""
        if cur_len == 0 and is_space:
            continue
        if cur_len + vis <= cap:
            cur += tok
            cur_len += vis
            continue
        lines.append(cur)
        cur, cur_len = ("", 0) if is_space else (tok, vis)

    if cur or not lines:
        lines.append(cur)

    indent = " " * start
    return label + lines[0] + "".join("\n" + indent + ln for ln in lines[1:])
