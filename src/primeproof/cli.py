# src/primeproof/cli.py

"""
PrimeProof - primality tests side by side

Description:
    Runs trial division, Fermat, Miller-Rabin and an AKS-style test on the
    same candidate and compares verdict, confidence, iterations and timing.

usage: see primeproof -h
"""

from __future__ import annotations

import argparse
import faulthandler
import os
import platform
import re
import sys
import textwrap
import threading
import time
import traceback
from importlib.resources import files as pkg_files
from typing import NamedTuple

from colorama import Fore, Style
from colorama import init as colorama_init

from primeproof import __version__ as _ver
from primeproof.display import (
    print_comparison,
    print_profiles_with_descriptions,
    print_recommendation,
    print_result,
    show_intro_help,
    show_test_list,
)
from primeproof.output_manager import OutputManager
from primeproof.probability import recommend
from primeproof.registry import discover, discover_with_report
from primeproof.runner import TestRunner, UnknownTestError, parse_candidate, validate_rounds
from primeproof.runtime import APPLY, CFG, ensure_runtime_deps
from primeproof.runtime import current as _rt_current
from primeproof.utility import (
    UserInputError,
    clear_screen,
    flatten_dotted,
    get_terminal_height,
    get_terminal_width,
    typename,
    validate_output_setting,
)
from primeproof.workspace import ensure_workspace_seeded, seed_workspace, workspace_dir

_NUMERIC_RE = re.compile(r"-?[\d_]+")
_COMMANDS = {"active", "init", "list", "where", "recommend"}
_MIN_STR_DIGITS = 4300  # interpreter default for int <-> str conversion
_TWO_ARGS, _THREE_ARGS = 2, 3


# In memory session history
class HistoryItem(NamedTuple):
    n: int
    profile: str | None
    test_id: str | None
    timestamp: float


_HISTORY: list[HistoryItem] = []


def add_to_history(n: int, profile: str | None = None, test_id: str | None = None) -> None:
    _HISTORY.append(HistoryItem(n=n, profile=profile, test_id=test_id, timestamp=time.time()))


def get_history() -> list[HistoryItem]:
    return list(_HISTORY)


def _install_loud_error_handlers(debug: bool) -> None:
    if not debug:
        return
    # Always show full Python tracebacks
    try:
        faulthandler.enable()
    except (OSError, ValueError):
        pass  # stderr without a file descriptor (captured or redirected)

    def _excepthook(exc_type, exc, tb):
        sys.stderr.write("\n[UNCAUGHT EXCEPTION]\n")
        traceback.print_exception(exc_type, exc, tb, file=sys.stderr)
        sys.stderr.flush()
    sys.excepthook = _excepthook

    def _thread_excepthook(args):
        sys.stderr.write("\n[UNCAUGHT THREAD EXCEPTION]\n")
        traceback.print_exception(args.exc_type, args.exc_value, args.exc_traceback, file=sys.stderr)
        sys.stderr.flush()
    threading.excepthook = _thread_excepthook


def _print_user_error(msg: str) -> None:
    """Uniform, one-line friendly error."""
    prefix = f"{Fore.RED}Error:{Style.RESET_ALL}"
    if msg.startswith("Invalid input:"):
        msg = msg.replace("Invalid input:", f"{Fore.RED}Invalid input:{Style.RESET_ALL}", 1)
    elif not msg.startswith("Error:"):
        msg = f"{prefix} {msg}"
    print(msg, file=sys.stderr)


def _resolve_inputs(items: list[str]) -> tuple[str | None, str | None]:
    """Return (profile, number text) based on the first two positionals.

    Rules:
      - One item: numeric -> number, else -> profile
      - Two items: (profile, number); a non-numeric second item is an error
    """
    if not items:
        return None, None

    if len(items) == 1:
        s = items[0]
        return (None, s) if _NUMERIC_RE.fullmatch(s) else (s, None)

    a, b = items[0], items[1]
    if _NUMERIC_RE.fullmatch(a):
        raise UserInputError(f"Invalid input: unexpected argument {b!r} after the number.")
    return a, b


def _parse_target(text: str) -> float:
    try:
        target = float(text)
    except ValueError:
        raise UserInputError(f"Invalid input: reliability target must be a number, got {text!r}.") from None
    if not 0 < target <= 100:
        raise UserInputError(f"Invalid input: reliability target must be in (0, 100], got {target}.")
    return target


# ---- argparse ----
def _build_parser() -> argparse.ArgumentParser:

    epilog = textwrap.dedent("""\
    commands:
      init
          Create workspace folders and copy packaged profiles if missing.

      init overwrite
          Meant for developers. Requires environment variable PRIMEPROOF_DEV=1.
          Copies all packaged profiles over the workspace copies.

      list
          List all available primality tests.

      where
          Show the workspace and package paths.

      active
          Show the last used profile.

      recommend <target> <test>
          Smallest round count reaching a reliability target (percent),
          e.g. recommend 99.99 miller-rabin.
    """)

    p = argparse.ArgumentParser(
        description="PrimeProof — primality tests side by side",
        usage=(
            "primeproof [[profile] [integer]] [--test ID | --all] [--rounds N] [--seed S]\n"
            "                  [--trace] [--output OUTPUT] [--quiet] [--debug]\n"
            "       primeproof -h | --help\n"
            "       primeproof init [overwrite] | list | where | active | recommend TARGET TEST\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )
    p.add_argument("items", nargs="*", metavar="[[profile] integer]]",
                   help="optional profile name followed by a positive integer to test")
    which = p.add_mutually_exclusive_group()
    which.add_argument("--test", default=None, metavar="ID", help="Run a single test (see 'primeproof list')")
    which.add_argument("--all", action="store_true", help="Run every test and compare (default)")
    p.add_argument("--rounds", type=int, default=None,
                   help="Rounds for probabilistic tests (1-100; default: profile or per-test recommendation)")
    p.add_argument("--seed", type=int, default=None, help="Seed for reproducible random bases")
    p.add_argument("--trace", action="store_true", help="Show the step-by-step trace of each test")
    p.add_argument("--output", default=None, help="Write results to a file (also prints unless --quiet)")
    p.add_argument("--quiet", action="store_true", help="Suppress screen output")
    p.add_argument("--debug", action="store_true", help="Show per-test timings and internal trace info")

    return p


def main(argv=None) -> int:
    """Thin wrapper: catch friendly errors, hide tracebacks unless debug."""
    try:
        return _main_impl(argv)
    except UserInputError as e:
        _print_user_error(str(e))
        return 2
    except KeyboardInterrupt:
        print("Aborted by user.", file=sys.stderr)
        return 130
    except Exception as e:
        debug = ("--debug" in (argv or sys.argv))
        if debug:
            raise
        print(f"Unexpected error: {e.__class__.__name__}: {e}", file=sys.stderr)
        print("Run with --debug for a full traceback.", file=sys.stderr)
        return 1


def _configure_text_streams() -> None:
    if os.environ.get("PYTHONIOENCODING"):
        return

    try:
        # Only touch redirected output (pipes/files), leave TTY as-is
        if not sys.stdout.isatty():
            enc = (sys.stdout.encoding or "").lower()
            if platform.system() == "Windows" or enc in ("", "ascii", "us-ascii"):
                sys.stdout.reconfigure(encoding="utf-8", errors="replace")
                sys.stderr.reconfigure(encoding="utf-8", errors="replace")
    except (AttributeError, OSError, ValueError):
        pass


def _debug_dump_settings(profile_name: str, selected) -> None:
    print(f"[debug] active profile: {profile_name}", file=sys.stderr)
    src_path = getattr(selected, "_source", None)
    if src_path:
        print(f"[debug] profile file: {src_path}", file=sys.stderr)
    flat = flatten_dotted(selected.as_dict())
    print("[debug] profile keys (runtime value/type):", file=sys.stderr)
    for k in sorted(flat.keys(), key=str.lower):
        runtime_val = CFG(k, None)
        print(f"        {k:.<50} {runtime_val!r} ({typename(runtime_val)})", file=sys.stderr)
    print(file=sys.stderr)


def _apply_int_digit_limit() -> None:
    if os.environ.get("PYTHONINTMAXSTRDIGITS"):
        return
    limit = int(CFG("BEHAVIOUR.MAX_DIGITS", 10_000))
    sys.set_int_max_str_digits(max(limit, _MIN_STR_DIGITS))


def _run_command(cmd: str, items: list[str], runner: TestRunner, CONFIG) -> int:
    if cmd == "active":
        print(f"Active profile: {CONFIG.read_current_profile() or 'default'}")
        return 0

    if cmd == "init":
        if len(items) == _TWO_ARGS and items[1] == "overwrite":
            if os.environ.get("PRIMEPROOF_DEV") != "1":
                print("Refusing to overwrite: set PRIMEPROOF_DEV=1 to enable developer overwrite.")
                return 2
            ws, copied = seed_workspace(overwrite=True)
            print(f"Workspace ready at: {ws} (overwrote existing files)")
            print(f"Copied -> profiles: {copied}")
            return 0
        ws, _seeded, copied = ensure_workspace_seeded()
        print(f"Workspace ready at: {ws}")
        print(f"Copied -> profiles: {copied}")
        return 0

    if cmd == "list":
        show_test_list(runner)
        return 0

    if cmd == "where":
        print(f"Workspace: {workspace_dir()}")
        print(f"Package:   {pkg_files('primeproof')}")
        return 0

    # recommend <target> <test>
    if len(items) != _THREE_ARGS:
        raise UserInputError("Invalid input: usage is 'recommend <target> <test>'.")
    target = _parse_target(items[1])
    test_id = items[2]
    if not runner.is_supported(test_id):
        raise UnknownTestError(test_id, runner.index.ids())
    print_recommendation(target, test_id, recommend(target, test_id))
    return 0


# ---- main ----
def _main_impl(argv=None) -> int:

    colorama_init(autoreset=True)
    _configure_text_streams()

    import primeproof.config as CONFIG

    parser = _build_parser()
    args = parser.parse_args(argv)
    rt = _rt_current()
    rt.debug = bool(args.debug)

    _install_loud_error_handlers(args.debug)

    if not ensure_runtime_deps(strict=True):
        return 1

    # Ensure a first-run workspace seed silently
    ensure_workspace_seeded()

    # --- discovery ---
    if args.debug:
        print()
        print(f"Terminal {get_terminal_width()}x{get_terminal_height()}")
        index, rep = discover_with_report()
        print(f"[debug] discovered tests: {len(index)} ({', '.join(index.ids())})", file=sys.stderr)
        for name, cnt in rep.loaded:
            print(f"[discovery] {Fore.GREEN}OK{Style.RESET_ALL} {name}: {cnt} test(s)", file=sys.stderr)
        for name, err in rep.failed:
            print(f"[discovery] {Fore.RED}FAIL{Style.RESET_ALL} {name}: {err}", file=sys.stderr)
        for test_id, name in rep.skipped_duplicates:
            print(f"[discovery] {Fore.YELLOW}SKIP{Style.RESET_ALL} duplicate id {test_id!r} in {name}",
                  file=sys.stderr)
    else:
        index = discover()
    runner = TestRunner(index=index)

    # --- commands ---
    if args.items and args.items[0] in _COMMANDS:
        return _run_command(args.items[0], args.items, runner, CONFIG)

    profile, number_text = _resolve_inputs(args.items)

    # Validate explicit profile (if given)
    if profile and not CONFIG.has_profile(profile):
        print(f"Unknown profile: '{profile}'")
        print("Available profiles:", ", ".join(CONFIG.list_all_profiles()))
        return 2

    # Choose profile: explicit → last-used → default
    profile_name = profile
    if not profile_name:
        last = CONFIG.read_current_profile()
        profile_name = last if last and CONFIG.has_profile(last) else "default"

    selected = CONFIG.load_settings(profile_name)
    APPLY(selected)
    rt.debug = bool(args.debug) or rt.debug  # APPLY() reads BEHAVIOUR.DEBUG
    _apply_int_digit_limit()
    if profile:
        CONFIG.write_current_profile(profile)
    if rt.debug:
        _debug_dump_settings(profile_name, selected)

    # --- run options (CLI flags override profile) ---
    test_id = args.test
    if test_id is not None and not runner.is_supported(test_id):
        raise UnknownTestError(test_id, runner.index.ids())
    rounds = validate_rounds(args.rounds) if args.rounds is not None else None
    seed = args.seed
    show_trace = True if args.trace else None

    # --- output routing (CLI --output overrides profile OUTPUT_FILE) ---
    try:
        cli_output_target = validate_output_setting(args.output)
    except ValueError as e:
        print(f"Fatal error in --output: {e}", file=sys.stderr)
        return 1

    def make_output_manager(n=None) -> OutputManager:
        # read OUTPUT_FILE from runtime each time so profile switches take effect
        target = cli_output_target if cli_output_target is not None else CFG("OUTPUT.OUTPUT_FILE", None)
        return OutputManager(output_file=target, quiet=args.quiet, number=n)

    def evaluate(n: int) -> None:
        om = make_output_manager(n)
        try:
            if test_id:
                result = runner.run_test(test_id, n, rounds, seed=seed)
                print_result(result, om=om, show_trace=show_trace)
            else:
                comparison = runner.run_all_tests(n, rounds, seed=seed)
                print_comparison(comparison, om=om, show_trace=show_trace)
        finally:
            om.close()

    # --- one-shot number path ---
    if number_text is not None:
        evaluate(parse_candidate(number_text))
        return 0

    # --- REPL ---
    if not rt.debug:
        clear_screen()
    print(f"{Fore.YELLOW}{Style.BRIGHT}PrimeProof v{_ver} — Primality Tests Side by Side{Style.RESET_ALL}")

    current_profile = profile_name
    while True:
        try:
            mode = test_id or "all"
            prompt = (f"\nProfile: {current_profile}, test: {mode} — "
                      f"Enter an integer, command or profile (h=Help, q=Quit): ")
            user_input = input(prompt).strip()

            low = user_input.lower()
            parts = low.split()
            if low in {"", "q", "quit"}:
                break

            if low in {"h", "help"}:
                show_intro_help(runner)
                continue

            if low in {"l", "list"}:
                show_test_list(runner)
                continue

            if low in {"p", "list profiles"}:
                print_profiles_with_descriptions()
                continue

            if low in {"hist", "history"}:
                hist = get_history()
                if not hist:
                    print("History is empty.")
                for item in hist:
                    ts = time.strftime("%H:%M:%S", time.localtime(item.timestamp))
                    print(f"{ts}  n={item.n:<15}  test={item.test_id or 'all':<13} profile={item.profile or '-'}")
                continue

            if parts[0] == "debug":
                rt = _rt_current()
                if len(parts) == 1 or parts[1] == "status":
                    print(f"Debug is currently {'ON' if rt.debug else 'OFF'}.")
                elif parts[1] == "on":
                    rt.debug = True
                    print("Debug mode enabled for this session.")
                elif parts[1] == "off":
                    rt.debug = False
                    print("Debug mode disabled for this session.")
                else:
                    print("Usage: DEBUG [on|off|status]")
                continue

            if parts[0] == "trace":
                if len(parts) == _TWO_ARGS and parts[1] in {"on", "off"}:
                    show_trace = parts[1] == "on"
                    print(f"Trace {'shown' if show_trace else 'hidden'}.")
                else:
                    print("Usage: TRACE [on|off]")
                continue

            if parts[0] == "rounds":
                if len(parts) == _TWO_ARGS and parts[1] == "auto":
                    rounds = None
                    print("Rounds: per-test recommendation.")
                elif len(parts) == _TWO_ARGS:
                    rounds = validate_rounds(parts[1])
                    print(f"Rounds: {rounds}.")
                else:
                    print("Usage: ROUNDS <1-100>|auto")
                continue

            if parts[0] == "seed":
                if len(parts) == _TWO_ARGS and parts[1] == "off":
                    seed = None
                    print("Seed off: random bases are drawn fresh each run.")
                elif len(parts) == _TWO_ARGS and _NUMERIC_RE.fullmatch(parts[1]):
                    seed = int(parts[1])
                    print(f"Seed: {seed}.")
                else:
                    print("Usage: SEED <integer>|off")
                continue

            if parts[0] in {"rec", "recommend"}:
                if len(parts) != _THREE_ARGS:
                    print("Usage: REC <target> <test>")
                    continue
                target = _parse_target(parts[1])
                if not runner.is_supported(parts[2]):
                    raise UnknownTestError(parts[2], runner.index.ids())
                print_recommendation(target, parts[2], recommend(target, parts[2]))
                continue

            if parts[0] == "test":
                if len(parts) == _TWO_ARGS and parts[1] == "all":
                    test_id = None
                elif len(parts) == _TWO_ARGS and runner.is_supported(parts[1]):
                    test_id = parts[1]
                else:
                    print(f"Usage: TEST all|{'|'.join(runner.index.ids())}")
                    continue
                print(f"Test: {test_id or 'all'}.")
                continue

            # "<id> <integer>" runs a single test once
            if len(parts) == _TWO_ARGS and runner.is_supported(parts[0]):
                n = parse_candidate(parts[1])
                om = make_output_manager(n)
                try:
                    result = runner.run_test(parts[0], n, rounds, seed=seed)
                    print_result(result, om=om, show_trace=show_trace)
                finally:
                    om.close()
                add_to_history(n, current_profile, parts[0])
                continue

            # number?
            if _NUMERIC_RE.fullmatch(user_input):
                n = parse_candidate(user_input)
                evaluate(n)
                add_to_history(n, current_profile, test_id)
                continue

            # treat as profile switch
            if CONFIG.has_profile(user_input):
                try:
                    APPLY(CONFIG.load_settings(user_input))
                    _apply_int_digit_limit()
                    CONFIG.write_current_profile(user_input)
                    current_profile = user_input
                    print(f"Applied profile: {current_profile}")
                except (UserInputError, OSError) as e:
                    print(f"{Fore.RED}Failed to load profile {Style.RESET_ALL}'{user_input}': {e}", file=sys.stderr)
                continue

            print(f"{Fore.RED}Invalid input: {Style.RESET_ALL}'{user_input}'. Type H for help.")
        except UserInputError as e:
            _print_user_error(str(e))
        except (EOFError, KeyboardInterrupt):
            print()
            break
        except Exception as e:
            if _rt_current().debug:
                traceback.print_exc()
            else:
                _print_user_error(f"{e.__class__.__name__}: {e}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
