# -----------------------------------------------------------------------------
#  Utility functions
# -----------------------------------------------------------------------------

from __future__ import annotations

import os
import shutil
import sys


class UserInputError(Exception):
    pass


def dec_digits(n: int) -> int:
    """Exact decimal digit count without str(); handles n >= 0."""
    n = abs(n)
    if n == 0:
        return 1
    # floor(log10(n)) ~= floor(bitlen*log10(2))
    bl = n.bit_length()
    est = int((bl * 30103) // 100000)
    # bring into correct decade with at most a couple of steps
    p10 = 10 ** est
    if n < p10:
        while n < p10:
            est -= 1
            p10 //= 10
    else:
        p10 *= 10
        while n >= p10:
            est += 1
            p10 *= 10
    return est + 1


def clear_screen(keep_scrollback: bool = False) -> None:
    """
    Clear the terminal screen.
    - On Windows: uses 'cls'
    - On POSIX: ANSI sequences; optionally clear scrollback
    """
    if os.name == "nt":
        os.system("cls")
        return
    seq = "\033[H\033[2J" if keep_scrollback else "\033[3J\033[H\033[2J"
    sys.stdout.write(seq)
    sys.stdout.flush()


def get_terminal_width(default=80):
    """
    Return the terminal's character width if detected, else the default
    value (80 by default).
    """
    try:
        return shutil.get_terminal_size().columns
    except (OSError, ValueError):
        return default


def get_terminal_height(default=24):
    """
    Get the number of terminal lines.
    """
    try:
        return shutil.get_terminal_size().lines
    except (OSError, ValueError):
        return default


def validate_output_setting(output_file: str | None) -> str | None:
    """
    Validate output setting.
    - None / "" => ok (screen only)
    - "." / "./" / trailing "/" => ok (per-number directory mode)
    - path/to/file => must not be in forbidden base names or extensions
    Returns the (possibly normalized) output_file, or raises ValueError.
    """
    FORBIDDEN_FILENAMES = {
        ".gitignore",
        "LICENSE",
        "pyproject.toml",
        # Windows reserved device names (case-insensitive on Windows)
        "con", "prn", "aux", "nul",
        "com1", "com2", "com3", "com4", "com5", "com6", "com7", "com8", "com9",
        "lpt1", "lpt2", "lpt3", "lpt4", "lpt5", "lpt6", "lpt7", "lpt8", "lpt9",
    }

    FORBIDDEN_EXTENSIONS = {".py", ".md", ".toml"}

    if not output_file:
        return output_file  # screen only

    # directory/per-number modes are allowed as-is
    if output_file in (".", "./") or output_file.endswith("/"):
        return output_file

    basename = os.path.basename(output_file)
    name_no_ext, ext = os.path.splitext(basename)
    ext = ext.lower()

    if basename.lower() in FORBIDDEN_FILENAMES or name_no_ext.lower() in FORBIDDEN_FILENAMES:
        raise ValueError(f"Forbidden output filename: {basename}")

    if ext in FORBIDDEN_EXTENSIONS:
        raise ValueError(f"Forbidden output file extension: {ext}")

    return output_file


def typename(v: object) -> str:
    return type(v).__name__


def flatten_dotted(d: dict, prefix: str = "") -> dict[str, object]:
    out: dict[str, object] = {}
    for k, v in (d or {}).items():
        key = f"{prefix}.{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(flatten_dotted(v, key))
        else:
            out[key] = v
    return out
