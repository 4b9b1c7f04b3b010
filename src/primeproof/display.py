# src/primeproof/display.py
from __future__ import annotations

from typing import TYPE_CHECKING

from colorama import Fore, Style

from primeproof import __version__
from primeproof.config import list_profiles_with_descriptions, read_current_profile
from primeproof.fmt import (
    abbr_number,
    format_confidence,
    format_elapsed,
    visible_len,
    wrap_after_label,
)
from primeproof.probability import error_bound, format_probability
from primeproof.runtime import CFG
from primeproof.utility import dec_digits, get_terminal_width

if TYPE_CHECKING:
    from primeproof.output_manager import OutputManager
    from primeproof.probability import Recommendation
    from primeproof.runner import ComparisonResult, TestResult, TestRunner


def _screen_header() -> str:
    return (f"{Fore.YELLOW}{Style.BRIGHT}"
            f"PrimeProof v{__version__} — Primality Tests Side by Side"
            f"{Style.RESET_ALL}")


def _pad(s: str, width: int) -> str:
    """ljust() on visible width, so coloured cells line up."""
    return s + " " * max(0, width - visible_len(s))


def _verdict_text(result: TestResult) -> str:
    if result.error:
        return f"{Fore.YELLOW}{Style.BRIGHT}error{Style.RESET_ALL}"
    if result.confidence <= 0 and not result.is_prime:
        return f"{Fore.YELLOW}n/a{Style.RESET_ALL}"
    if result.verdict == "prime":
        return f"{Fore.GREEN}{Style.BRIGHT}prime{Style.RESET_ALL}"
    if result.verdict == "probably prime":
        return f"{Fore.GREEN}probably prime{Style.RESET_ALL}"
    return f"{Fore.RED}{Style.BRIGHT}composite{Style.RESET_ALL}"


def _show_trace(explicit: bool | None) -> bool:
    if explicit is not None:
        return explicit
    return bool(CFG("DISPLAY_SETTINGS.SHOW_TRACE", False))


def _write_trace(result: TestResult, om: OutputManager, width: int) -> None:
    lines = result.trace
    if not lines:
        return
    cap = int(CFG("DISPLAY_SETTINGS.MAX_TRACE_LINES", 40))
    shown = lines if cap <= 0 else lines[:cap]

    om.write(f"{Style.DIM}    Trace:{Style.RESET_ALL}")
    for ln in shown:
        om.write(f"{Style.DIM}{wrap_after_label('      ', ln, width=width)}{Style.RESET_ALL}")
    hidden = len(lines) - len(shown)
    if hidden > 0:
        om.write(
            f"{Fore.WHITE}{Style.DIM}      … {hidden} more trace line(s); "
            f"increase MAX_TRACE_LINES in your profile to see all.{Style.RESET_ALL}"
        )


def print_result(result: TestResult, *, om: OutputManager, show_trace: bool | None = None) -> None:
    """Detailed block for one algorithm run."""
    width = get_terminal_width()
    om.write(f"{Style.BRIGHT}{Fore.CYAN}{result.test_name}{Style.RESET_ALL} ({result.test_id})")

    rows = [
        ("Candidate", f"{abbr_number(result.candidate)} ({dec_digits(result.candidate)} digits)"),
        ("Verdict", _verdict_text(result)),
        ("Confidence", format_confidence(result.confidence)),
        ("Iterations", str(result.iterations)),
        ("Elapsed", format_elapsed(result.elapsed)),
    ]
    if result.witness is not None:
        rows.append(("Witness", abbr_number(result.witness)))
    if result.limits_hit:
        rows.append(("Limits hit", f"{Fore.YELLOW}{', '.join(result.limits_hit)}{Style.RESET_ALL}"))
    if not result.proven and result.is_prime:
        rows.append(("Proof", f"{Fore.YELLOW}none (heuristic result){Style.RESET_ALL}"))

    label_w = max(len(k) for k, _ in rows) + 2
    for key, val in rows:
        om.write(f"  {(key + ':').ljust(label_w)} {val}")

    color = Fore.RED if result.error else Fore.GREEN
    om.write(f"{color}{wrap_after_label('  ' + 'Message:'.ljust(label_w) + ' ', result.message, width=width)}"
             f"{Style.RESET_ALL}")

    if _show_trace(show_trace):
        _write_trace(result, om, width)


def print_comparison(comparison: ComparisonResult, *, om: OutputManager,
                     show_trace: bool | None = None) -> None:
    """Side-by-side table of every algorithm's result for one candidate."""
    width = get_terminal_width()
    n = comparison.candidate
    om.write(f"\n{Style.BRIGHT}Candidate:{Style.RESET_ALL} {abbr_number(n)} ({dec_digits(n)} digits)\n")

    headers = ("Test", "Verdict", "Confidence", "Iterations", "Elapsed")
    table = [
        (
            r.test_name,
            _verdict_text(r),
            format_confidence(r.confidence),
            str(r.iterations),
            format_elapsed(r.elapsed),
        )
        for r in comparison.results
    ]
    widths = [max(visible_len(h), *(visible_len(row[i]) for row in table)) if table else visible_len(h)
              for i, h in enumerate(headers)]

    om.write(f"{Fore.CYAN}{Style.BRIGHT}" + "  ".join(_pad(h, w) for h, w in zip(headers, widths))
             + Style.RESET_ALL)
    om.write("  ".join("-" * w for w in widths))
    for row in table:
        om.write("  ".join(_pad(cell, w) for cell, w in zip(row, widths)))
    om.write("")

    for r in comparison.results:
        if r.error or r.witness is not None or r.limits_hit or not r.proven:
            om.write(wrap_after_label(f"  {Style.BRIGHT}{r.test_id}:{Style.RESET_ALL} ", r.message, width=width))

    if comparison.agree:
        om.write(f"{Fore.GREEN}All tests agree.{Style.RESET_ALL}")
    else:
        om.write(f"{Fore.RED}{Style.BRIGHT}Tests disagree: compare confidence and witnesses above.{Style.RESET_ALL}")
    om.write(f"{Style.DIM}Total time: {format_elapsed(comparison.total_elapsed)}{Style.RESET_ALL}")

    if _show_trace(show_trace):
        for r in comparison.results:
            if r.trace:
                om.write("")
                om.write(f"{Style.BRIGHT}{Fore.CYAN}{r.test_name}{Style.RESET_ALL}")
                _write_trace(r, om, width)


def print_recommendation(target: float, test_id: str, rec: Recommendation, om: OutputManager | None = None) -> None:
    out = om.write if om is not None else print
    out(f"Target reliability: {target}%")
    if rec.limit_hit:
        out(f"{Fore.YELLOW}No round count up to the search cap reaches this target; "
            f"falling back to {rec.rounds} rounds.{Style.RESET_ALL}")
        return
    err = error_bound(rec.rounds, test_id)
    out(f"{Fore.GREEN}{Style.BRIGHT}{test_id}: {rec.rounds} round(s){Style.RESET_ALL}"
        f" (error bound {err:.3E}, reliability {format_probability(1 - err)})")


def show_test_list(runner: TestRunner) -> None:
    width = get_terminal_width()
    infos = runner.list_available_tests()
    print(_screen_header())
    print()
    print(f"{Fore.YELLOW}Available tests: {len(infos)}{Style.RESET_ALL}")
    print()
    for info in infos:
        kind = "deterministic" if info.is_deterministic else "probabilistic"
        if info.is_deterministic and not info.is_proven:
            kind += ", heuristic"
        print(f"  {Fore.GREEN}{info.id}{Style.RESET_ALL} — {info.name}")
        print(f"{Style.DIM}    {kind}; default rounds: {info.default_rounds}{Style.RESET_ALL}")
        if info.description:
            print(wrap_after_label("    ", info.description, width=width))
        print()


def show_intro_help(runner: TestRunner, om: OutputManager | None = None) -> None:
    out = om.write if om is not None else print
    ids = ", ".join(info.id for info in runner.list_available_tests())
    lines = [
        "",
        f"{Fore.GREEN}Welcome to PrimeProof{Style.RESET_ALL}",
        f"{'-' * 78}",
        f"{Fore.LIGHTWHITE_EX}Run several primality tests on the same number and compare them.{Style.RESET_ALL}",
        "",
        f"{Fore.YELLOW}Tests:{Style.RESET_ALL} {ids}",
        "",
        f"{Fore.MAGENTA + Style.BRIGHT}Usage in interactive mode:{Style.RESET_ALL}",
        " • Enter a positive integer to run every test on it.",
        "   Underscores are allowed as thousand separators.",
        "",
        " • Valid commands are:",
        "   <id> <integer>      to run a single test once, e.g. miller-rabin 561.",
        "   test <id>|all       to switch between one test and the full comparison.",
        "   rounds <n>|auto     to fix the round count or use each test's recommendation.",
        "   seed <s>|off        to make random bases reproducible or draw fresh ones.",
        "   trace on|off        to show or hide the step-by-step trace.",
        "   debug on|off|status to switch debug mode on, off or show current status.",
        "   rec <target> <id>   to recommend rounds for a reliability target in percent.",
        "   l or list           to list the available tests.",
        "   hist                to show a history of entered numbers.",
        "   p                   to show a list of available profiles.",
        "   h or help           to show this help screen.",
        "   q or quit           to quit PrimeProof.",
        "",
        " • Enter a profile name to switch to that profile.",
        "",
        f"{Fore.CYAN}Tips:{Style.RESET_ALL}",
        " • For command-line options, run: primeproof -h or --help",
        " • Carmichael numbers such as 561, 1105 and 1729 fool the Fermat test.",
        "",
    ]
    for ln in lines:
        out(ln)


def print_profiles_with_descriptions() -> None:
    try:
        pairs = list_profiles_with_descriptions()
    except Exception:
        pairs = []

    if not pairs:
        print("\nAvailable profiles: (none)")
        return

    current = None
    try:
        current = read_current_profile()
    except Exception:
        pass

    lines = []
    for name, desc in pairs:
        mark = "🡆" if current and name == current else " "
        lines.append(f"{mark} {name:13} — {desc}")
    print("\nAvailable profiles:\n  " + "\n  ".join(lines))
