from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from longmath.ledger import LedgerStore  # noqa: E402


class ScriptedRandom:
    """Random source replaying a fixed sequence of draws.

    Integers feed `randint` and floats feed `random`; a draw of the wrong type
    or outside the requested range fails the test immediately.
    """

    def __init__(self, values: list[int | float]) -> None:
        self._values = list(values)
        self.calls: list[str] = []

    def randint(self, a: int, b: int) -> int:
        value = self._next()
        assert isinstance(value, int), f"expected int draw, got {value!r}"
        assert a <= value <= b, f"scripted value {value} outside [{a}, {b}]"
        self.calls.append(f"randint({a}, {b})")
        return value

    def random(self) -> float:
        value = self._next()
        assert isinstance(value, float), f"expected float draw, got {value!r}"
        self.calls.append("random()")
        return value

    def _next(self) -> int | float:
        assert self._values, "scripted random source exhausted"
        return self._values.pop(0)


@pytest.fixture
def scripted_random() -> Callable[..., ScriptedRandom]:
    """Build a scripted random source: `scripted_random(42, 7, 0.9)`."""

    def build(*values: int | float) -> ScriptedRandom:
        return ScriptedRandom(list(values))

    return build


@pytest.fixture
def store() -> Iterator[LedgerStore]:
    ledger_store = LedgerStore(":memory:")
    try:
        yield ledger_store
    finally:
        ledger_store.close()
