"""Random practice problem generation within difficulty bands."""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Protocol
from uuid import uuid4

from .models import Difficulty, Problem, ProblemKind

Band = tuple[int, int]

ONE_DIGIT_DIVISORS: Band = (2, 9)
TWO_DIGIT_DIVISORS: Band = (10, 89)

# (left operand band, right operand band), inclusive.
DIVISION_BANDS: dict[Difficulty, tuple[Band, Band]] = {
    Difficulty.EASY: ((10, 99), ONE_DIGIT_DIVISORS),
    Difficulty.MEDIUM: ((100, 999), TWO_DIGIT_DIVISORS),
    Difficulty.HARD: ((1000, 9999), TWO_DIGIT_DIVISORS),
}
MULTIPLICATION_BANDS: dict[Difficulty, tuple[Band, Band]] = {
    Difficulty.EASY: ((10, 99), (2, 9)),
    Difficulty.MEDIUM: ((10, 99), (10, 99)),
    Difficulty.HARD: ((100, 999), (10, 99)),
}

IdFactory = Callable[[ProblemKind], str]


class RandomSource(Protocol):
    """Subset of `random.Random` the generator draws from."""

    def randint(self, a: int, b: int) -> int:
        """Return an integer in the inclusive range [a, b]."""
        ...

    def random(self) -> float:
        """Return a float in [0, 1)."""
        ...


def _default_problem_id(kind: ProblemKind) -> str:
    prefix = "div" if kind is ProblemKind.DIVISION else "mul"
    return f"{prefix}_{uuid4().hex}"


class ProblemGenerator:
    """Draws operand pairs uniformly within each difficulty band.

    Draw order is fixed so a scripted random source reproduces exact problems:
    medium division draws `random()` first to choose the divisor band
    (`< 0.5` picks one-digit divisors), then every problem draws its left
    operand followed by its right operand.
    """

    def __init__(self, rng: RandomSource | None = None, id_factory: IdFactory | None = None) -> None:
        self._rng: RandomSource = rng if rng is not None else random.Random()
        self._id_factory = id_factory or _default_problem_id

    def generate(self, kind: ProblemKind | str, difficulty: Difficulty | str) -> Problem:
        """Generate a problem of the given kind."""
        if ProblemKind.parse(kind) is ProblemKind.DIVISION:
            return self.generate_division(difficulty)
        return self.generate_multiplication(difficulty)

    def generate_division(self, difficulty: Difficulty | str) -> Problem:
        """Generate a dividend/divisor pair; the quotient need not be exact."""
        level = Difficulty.parse(difficulty)
        dividend_band, divisor_band = DIVISION_BANDS[level]
        if level is Difficulty.MEDIUM and self._rng.random() < 0.5:
            divisor_band = ONE_DIGIT_DIVISORS
        dividend = self._draw(dividend_band)
        divisor = self._draw(divisor_band)
        return self._problem(ProblemKind.DIVISION, (dividend, divisor), level)

    def generate_multiplication(self, difficulty: Difficulty | str) -> Problem:
        """Generate a multiplicand/multiplier pair."""
        level = Difficulty.parse(difficulty)
        multiplicand_band, multiplier_band = MULTIPLICATION_BANDS[level]
        multiplicand = self._draw(multiplicand_band)
        multiplier = self._draw(multiplier_band)
        return self._problem(ProblemKind.MULTIPLICATION, (multiplicand, multiplier), level)

    def _draw(self, band: Band) -> int:
        low, high = band
        return self._rng.randint(low, high)

    def _problem(self, kind: ProblemKind, operands: tuple[int, int], level: Difficulty) -> Problem:
        return Problem(id=self._id_factory(kind), kind=kind, operands=operands, difficulty=level)
