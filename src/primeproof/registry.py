# src/primeproof/registry.py
from __future__ import annotations

import inspect
from collections import OrderedDict
from dataclasses import dataclass, field
from importlib import import_module
from importlib.resources import as_file
from importlib.resources import files as pkg_files
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from primeproof.algorithms.base import PrimalityTest


# --------------------- Discovery → Index (immutable) ----------------------


@dataclass(frozen=True)
class Index:
    tests: Mapping[str, PrimalityTest]           # id -> instance, registry order

    def ids(self) -> list[str]:
        return list(self.tests)

    def __contains__(self, test_id: object) -> bool:
        return test_id in self.tests

    def __len__(self) -> int:
        return len(self.tests)


@dataclass
class DiscoveryReport:
    loaded: list[tuple[str, int]] = field(default_factory=list)             # (module.name, count)
    failed: list[tuple[str, str]] = field(default_factory=list)             # (module.name, error)
    skipped_duplicates: list[tuple[str, str]] = field(default_factory=list)  # (test id, module.name)


def _is_primality_test(obj) -> bool:
    return inspect.isclass(obj) and getattr(obj, "__is_primality_test__", False) and not inspect.isabstract(obj)


def _collect_from_module(mod) -> list[type]:
    # only classes defined in the module itself, not re-exported ones
    return [o for _, o in inspect.getmembers(mod)
            if _is_primality_test(o) and o.__module__ == mod.__name__]


# ---------- Decorator (only tags the class; no side effects) ----------


def primality_test(*, test_id: str, name: str, description: str = "",
                   deterministic: bool, proven: bool | None = None,
                   default_rounds: int = 1, order: int = 100):
    """
    Tag a PrimalityTest subclass with its descriptor.

    `proven` defaults to `deterministic`; a deterministic but heuristic test
    passes proven=False. `order` fixes the position in the registry.
    """
    def deco(cls):
        cls.__is_primality_test__ = True
        cls.test_id = test_id
        cls.name = name
        cls.description = description
        cls.is_deterministic = bool(deterministic)
        cls.is_proven = bool(deterministic if proven is None else proven)
        cls.default_rounds = int(default_rounds)
        cls.order = int(order)
        return cls
    return deco


def build_index(tests) -> Index:
    """Freeze instances (or classes) into an Index, keeping the given order; first id wins."""
    out: OrderedDict[str, PrimalityTest] = OrderedDict()
    for t in tests:
        inst = t() if inspect.isclass(t) else t
        if inst.test_id in out:
            continue
        out[inst.test_id] = inst
    return Index(tests=MappingProxyType(dict(out)))


def discover_with_report() -> tuple[Index, DiscoveryReport]:
    """Import every module of primeproof.algorithms and register the tagged classes by `order`."""
    report = DiscoveryReport()
    found: list[type] = []
    seen: set[str] = set()

    pkg_dir = pkg_files("primeproof") / "algorithms"
    with as_file(pkg_dir) as real:
        for file in sorted(Path(real).glob("*.py")):
            if file.name == "__init__.py":
                continue
            modname = f"primeproof.algorithms.{file.stem}"
            try:
                mod = import_module(modname)
            except Exception as e:
                report.failed.append((modname, f"{type(e).__name__}: {e}"))
                continue
            classes = _collect_from_module(mod)
            count = 0
            for cls in classes:
                if cls.test_id in seen:
                    report.skipped_duplicates.append((cls.test_id, modname))
                    continue
                seen.add(cls.test_id)
                found.append(cls)
                count += 1
            report.loaded.append((modname, count))

    found.sort(key=lambda c: (c.order, c.test_id))
    return build_index(found), report


def discover() -> Index:
    idx, _ = discover_with_report()
    return idx
