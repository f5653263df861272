"""Core domain models for long division and long multiplication practice."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TypeVar


class ConfigurationError(ValueError):
    """Raised when a caller passes an unsupported difficulty, kind, or mode tag."""


class ProblemKind(str, Enum):
    """Which pencil-and-paper algorithm a problem exercises."""

    DIVISION = "division"
    MULTIPLICATION = "multiplication"

    @classmethod
    def parse(cls, tag: ProblemKind | str) -> ProblemKind:
        """Return the kind for a tag, raising ConfigurationError when unknown."""
        return parse_tag(cls, tag, "problem kind")


class Difficulty(str, Enum):
    """Difficulty band controlling operand digit counts."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def parse(cls, tag: Difficulty | str) -> Difficulty:
        """Return the difficulty for a tag, raising ConfigurationError when unknown."""
        return parse_tag(cls, tag, "difficulty")


_E = TypeVar("_E", bound=Enum)


def parse_tag(enum_cls: type[_E], tag: object, label: str) -> _E:
    """Resolve a tag to a member of `enum_cls`, raising ConfigurationError when unknown."""
    if isinstance(tag, enum_cls):
        return tag
    if isinstance(tag, str):
        try:
            return enum_cls(tag.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(str(member.value) for member in enum_cls)
    raise ConfigurationError(f"Unknown {label} {tag!r}; expected one of: {allowed}.")


@dataclass(frozen=True)
class Problem:
    """One generated practice problem.

    `operands` is `(dividend, divisor)` for division and
    `(multiplicand, multiplier)` for multiplication.
    """

    id: str
    kind: ProblemKind
    operands: tuple[int, int]
    difficulty: Difficulty

    def __post_init__(self) -> None:
        left, right = self.operands
        if left < 1 or right < 1:
            raise ValueError(f"operands must be positive integers, got {self.operands}")
        if self.kind is ProblemKind.DIVISION and right < 2:
            raise ValueError(f"divisor must be at least 2, got {right}")

    @property
    def dividend(self) -> int:
        self._require(ProblemKind.DIVISION, "dividend")
        return self.operands[0]

    @property
    def divisor(self) -> int:
        self._require(ProblemKind.DIVISION, "divisor")
        return self.operands[1]

    @property
    def multiplicand(self) -> int:
        self._require(ProblemKind.MULTIPLICATION, "multiplicand")
        return self.operands[0]

    @property
    def multiplier(self) -> int:
        self._require(ProblemKind.MULTIPLICATION, "multiplier")
        return self.operands[1]

    def _require(self, kind: ProblemKind, name: str) -> None:
        if self.kind is not kind:
            raise AttributeError(f"{self.kind.value} problem has no {name}")


@dataclass(frozen=True)
class DivisionStep:
    """One bring-down/divide/multiply/subtract cycle of long division."""

    step_number: int
    current_number: int
    quotient_digit: int
    product: int
    remainder: int
    brought_down_digit: int


@dataclass(frozen=True)
class DivisionWorking:
    """Full long-division working: ordered steps plus the final result."""

    steps: tuple[DivisionStep, ...]
    quotient: int
    remainder: int


@dataclass(frozen=True)
class PartialProduct:
    """Multiplicand times one multiplier digit, before shifting."""

    digit: int
    value: int
    position: int

    @property
    def shifted_value(self) -> int:
        """Value moved left by `position` decimal places."""
        return self.value * 10**self.position


@dataclass(frozen=True)
class MultiplicationWorking:
    """Partial products (ones digit first) and the independently computed product."""

    partials: tuple[PartialProduct, ...]
    product: int

    def partial_sum(self) -> int:
        """Sum of shifted partial products."""
        return sum(partial.shifted_value for partial in self.partials)
