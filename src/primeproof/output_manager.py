# output_manager.py

import hashlib
import os
import re

from primeproof.fmt import strip_ansi
from primeproof.workspace import workspace_dir

_SAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._=-]+")


def resolve_output_path(path: str, workspace_root: str) -> str:
    """
    Resolve user-provided output path.

    Rules:
    - '~' expanded to user home
    - Absolute paths unchanged
    - Relative paths are relative to workspace_root
    """
    if not path:
        raise ValueError("Output path is empty")

    path = os.path.expanduser(path)
    if os.path.isabs(path):
        return os.path.normpath(path)
    return os.path.normpath(os.path.join(workspace_root, path))


def _fallback_filename_for_number(n: int, ext: str = ".txt", head: int = 12, tail: int = 12) -> str:
    """
    Filesystem-safe shortened filename that still lets you recognize the number.

    Format:
      digits=<ndigits>_<head>...<tail>_sha=<sha12>.txt
    """
    s = str(n)
    sha12 = hashlib.sha256(s.encode("utf-8")).hexdigest()[:12]
    tail_part = s[-tail:] if len(s) > tail else s
    stem = f"digits={len(s)}_{s[:head]}...{tail_part}_sha={sha12}"
    stem = _SAFE_CHARS_RE.sub("_", stem).strip("._-=")
    return stem + ext


def _choose_split_output_path(directory: str, number: int, ext: str = ".txt", max_full_path_len: int = 250) -> str:
    """
    Use '<number>.txt' when the FULL path length is < max_full_path_len.
    Otherwise use a shortened, recognizable name.
    """
    original = os.path.join(directory, f"{number}{ext}")
    if len(original) < max_full_path_len:
        return original
    return os.path.join(directory, _fallback_filename_for_number(number, ext=ext))


class OutputManager:
    """
    Handles all printing/output, including to screen and/or file.

    Usage:
        # Split mode (per-number file):
        om = OutputManager(output_file="results/", number=97)
        om.write("Hello")   # prints and buffers; file written on close()
        om.close()

        # Single file (append all runs to one file):
        om = OutputManager(output_file="results/all.txt")
        om.write("Hello")   # prints and appends
        om.close()
    """

    def __init__(self, output_file: str | None = None, quiet: bool = False, number: int | None = None):
        """
        Parameters:
            output_file:
                None or ""       => screen only
                "." or "./"      => per-number files in the workspace
                endswith "/"     => per-number files in specified dir
                path/to/file.txt => append all runs to this file
            quiet: if True, no output to screen (only to file)
            number: integer, used for filename in per-number mode
        """
        self.quiet = quiet
        self.output_file = output_file or ""
        self.number = number
        self._buffer: list[str] = []
        self._closed = False

        self._mode: str = "none"     # "none" | "split" | "single"
        self._split_path: str | None = None
        self._single_path: str | None = None

        if self.output_file in (".", "./") or self.output_file.endswith("/"):
            if number is None:
                raise ValueError("A number must be provided when outputting to a directory.")
            directory = resolve_output_path(self.output_file, str(workspace_dir()))
            os.makedirs(directory, exist_ok=True)
            self._mode = "split"
            self._split_path = _choose_split_output_path(directory, number)

        elif self.output_file:
            path = resolve_output_path(self.output_file, str(workspace_dir()))
            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self._mode = "single"
            self._single_path = path

    @property
    def target(self) -> str | None:
        return self._split_path or self._single_path

    def write(self, *args, sep: str = " ", end: str = "\n") -> None:
        """Write to screen and file (if configured)."""
        text = sep.join(str(a) for a in args) + end
        self._buffer.append(text)

        if not self.quiet:
            print(text, end="")

        if self._mode == "single" and self._single_path:
            with open(self._single_path, "a", encoding="utf-8") as fh:
                fh.write(strip_ansi(text))
        # split mode writes once on close()

    def write_screen(self, *args, sep: str = " ", end: str = "\n", flush: bool = True) -> None:
        """Write only to the screen, never to the file."""
        if self.quiet:
            return
        print(*args, sep=sep, end=end, flush=flush)

    def getvalue(self) -> str:
        """Returns everything printed (with color codes)."""
        return "".join(self._buffer)

    def close(self) -> None:
        """Flush buffered output to per-number file (split mode) and add separator in single-file mode."""
        if self._closed:
            return
        self._closed = True
        if self._mode == "split" and self._split_path and self._buffer:
            content = strip_ansi("".join(self._buffer))
            with open(self._split_path, "w", encoding="utf-8") as fh:
                fh.write(content)
            return

        if self._mode == "single" and self._single_path and self._buffer:
            with open(self._single_path, "a", encoding="utf-8") as fh:
                fh.write("\n")  # one empty line between runs

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
