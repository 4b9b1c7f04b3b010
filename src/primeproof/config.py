from __future__ import annotations

import tomllib as toml
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from primeproof.utility import UserInputError
from primeproof.workspace import ensure_workspace_seeded, workspace_dir

# Integer-valued settings; profiles may write them as TOML ints or numeric strings
_INT_KEYS = {
    "BEHAVIOUR": ("MAX_DIGITS",),
    "TRIAL": ("TRACE_EVERY",),
    "FERMAT": ("KORSELT_LIMIT",),
    "AKS": ("R_CEILING",),
    "ROUNDS": ("DEFAULT",),
    "DISPLAY_SETTINGS": ("MAX_TRACE_LINES",),
    "FORMATTING": ("NUM_ABBR_THRESHOLD", "NUM_ABBR_HEAD", "NUM_ABBR_TAIL"),
}


@dataclass
class Settings:
    """
    Wrap the full TOML dict (without the [_PROFILE_] section).
    .as_dict() feeds runtime.apply().

      - name:        resolved profile name (FILE.stem if not provided in [_PROFILE_])
      - description: one-line description from [_PROFILE_] or "(no description)"
    """
    data: dict[str, Any]
    name: str
    description: str
    _source: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.data


# --- Paths -----------------------------------------------------------------

def _profiles_dir() -> Path:
    return workspace_dir() / "profiles"


def _profile_path(name: str) -> Path:
    return _profiles_dir() / f"{name}.toml"


# --- I/O -------------------------------------------------------------------


def _load_toml(path: Path) -> dict[str, object]:
    try:
        with path.open("rb") as f:
            return toml.load(f)
    except Exception as e:
        lineno = getattr(e, "lineno", None)
        colno = getattr(e, "colno", None)
        msg = getattr(e, "msg", str(e))
        where = []
        if lineno is not None:
            where.append(f"line {lineno}")
        if colno is not None:
            where.append(f"column {colno}")
        loc = f" (at {', '.join(where)})" if where else ""
        # No traceback chaining
        raise UserInputError(f"reading {path.name}: {msg}{loc}.") from None


# --- Metadata handling -----------------------------------------------------


def _sanitize_oneline(s: str) -> str:
    return " ".join(str(s).split()) or "(no description)"


def _split_profile_data(raw: dict[str, Any], fallback_name: str) -> tuple[dict[str, Any], str, str]:
    """
    Extract [_PROFILE_] meta (name, description) and return:
      (settings_without_profile, resolved_name, resolved_description)
    """
    meta = raw.get("_PROFILE_") or {}
    if "_PROFILE_" in raw:
        raw = {k: v for k, v in raw.items() if k != "_PROFILE_"}

    name = str(meta.get("name") or fallback_name)
    description = _sanitize_oneline(str(meta.get("description") or ""))

    return raw, name, description


def _coerce_ints(data: dict[str, Any], source: str) -> dict[str, Any]:
    for section, keys in _INT_KEYS.items():
        block = data.get(section)
        if not isinstance(block, dict):
            continue
        for key in keys:
            if key not in block or isinstance(block[key], bool):
                continue
            try:
                block[key] = int(block[key])
            except (TypeError, ValueError):
                raise UserInputError(
                    f"reading {source}: {section}.{key} must be an integer, got {block[key]!r}."
                ) from None
    return data


# --- Public API ------------------------------------------------------------


def list_all_profiles() -> list[str]:
    """Return the list of available profile *names* (filename stems)."""
    ensure_workspace_seeded()
    pdir = _profiles_dir()
    if not pdir.exists():
        return []
    return sorted(p.stem for p in pdir.glob("*.toml"))


def list_profiles_with_descriptions() -> list[tuple[str, str]]:
    """
    Return [(name, description), ...] for all profiles.
    Profiles lacking [_PROFILE_] get "(no description)".
    """
    items: list[tuple[str, str]] = []
    for p in _profiles_dir().glob("*.toml"):
        try:
            raw = _load_toml(p)
            _, nm, desc = _split_profile_data(raw, p.stem)
            items.append((nm, desc))
        except UserInputError:
            # Best-effort listing; fall back to filename
            items.append((p.stem, "(unreadable profile)"))
    return sorted(items, key=lambda t: t[0].lower())


def has_profile(name: str) -> bool:
    return _profile_path(name).exists()


def load_settings(name: str | None) -> Settings:
    """
    Load a profile by name (default 'default'), strip the [_PROFILE_] metadata,
    coerce the integer limits and return
    Settings(data=..., name=..., description=..., _source=path).
    """
    if not name:
        name = "default"

    path = _profile_path(name)
    if not path.exists():
        raise FileNotFoundError(f"Profile '{name}' not found at {path}")

    raw = _load_toml(path)
    data, resolved_name, description = _split_profile_data(raw, path.stem)
    data = _coerce_ints(data, path.name)

    return Settings(
        data=data,
        name=resolved_name,
        description=description,
        _source=path,
    )


def _current_profile_path() -> Path:
    p = _profiles_dir()
    p.mkdir(parents=True, exist_ok=True)
    return p / ".current"


def read_current_profile() -> str | None:
    try:
        s = _current_profile_path().read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return s[:-5] if s.lower().endswith(".toml") else (s or None)


def write_current_profile(name: str) -> None:
    nm = (name or "").strip()
    if nm.lower().endswith(".toml"):
        nm = nm[:-5]
    _current_profile_path().write_text(nm, encoding="utf-8")
