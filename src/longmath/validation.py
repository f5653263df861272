"""Ground-truth answers and learner submission checks.

Two granularities share the same computation: whole-answer checks compare
against `correct_answer`, stepwise checks compare against the fields of
`steps.working_for`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .models import (
    DivisionStep,
    DivisionWorking,
    MultiplicationWorking,
    PartialProduct,
    Problem,
    ProblemKind,
    parse_tag,
)
from .steps import working_for

DIVISION_STEP_FIELDS = ("quotient_digit", "product", "remainder")
MULTIPLICATION_STEP_FIELDS = ("value",)

Working = DivisionWorking | MultiplicationWorking
StepEntries = tuple[DivisionStep, ...] | tuple[PartialProduct, ...]

# Optional sign, then ASCII digits; no underscores or non-ASCII digits.
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")


class ValidationMode(str, Enum):
    """How a submission is compared against the working."""

    WHOLE = "whole"
    STEPWISE = "stepwise"

    @classmethod
    def parse(cls, tag: ValidationMode | str) -> ValidationMode:
        """Return the mode for a tag, raising ConfigurationError when unknown."""
        return parse_tag(cls, tag, "validation mode")


@dataclass(frozen=True)
class StepSubmission:
    """Learner values for one step.

    Division steps read `quotient_digit`, `product` and `remainder`;
    multiplication steps read `value` (the partial product). Values may be raw
    text as typed.
    """

    index: int
    quotient_digit: object = None
    product: object = None
    remainder: object = None
    value: object = None


@dataclass(frozen=True)
class StepCheck:
    """Outcome of checking one step submission."""

    matched: bool
    mismatched_fields: tuple[str, ...]


def division_answer(dividend: int, divisor: int) -> int:
    """Truncated quotient."""
    return dividend // divisor


def multiplication_answer(multiplicand: int, multiplier: int) -> int:
    return multiplicand * multiplier


def correct_answer(problem: Problem) -> int:
    """Return the final answer a learner must give for a problem."""
    if problem.kind is ProblemKind.DIVISION:
        return division_answer(problem.dividend, problem.divisor)
    return multiplication_answer(problem.multiplicand, problem.multiplier)


def parse_submission(value: object) -> int | None:
    """Parse learner input into an integer, returning None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    if not _INTEGER_TEXT.fullmatch(stripped):
        return None
    return int(stripped)


def check_answer(problem: Problem, submission: object) -> bool:
    """Whole-answer check: exact match with the final answer."""
    parsed = parse_submission(submission)
    return parsed is not None and parsed == correct_answer(problem)


def check_step(problem: Problem, submission: StepSubmission) -> StepCheck:
    """Stepwise check of one submission against the matching step."""
    return _check_against(working_for(problem), submission)


def validate(problem: Problem, submission: object, mode: ValidationMode | str = ValidationMode.WHOLE) -> bool:
    """Return whether a submission is correct in the requested mode."""
    resolved = ValidationMode.parse(mode)
    if resolved is ValidationMode.WHOLE:
        return check_answer(problem, submission)
    if not isinstance(submission, StepSubmission):
        return False
    return check_step(problem, submission).matched


def _entries(working: Working) -> tuple[StepEntries, tuple[str, ...]]:
    """Return the ordered step records and the fields a learner fills in for each."""
    if isinstance(working, DivisionWorking):
        return working.steps, DIVISION_STEP_FIELDS
    return working.partials, MULTIPLICATION_STEP_FIELDS


def _check_against(working: Working, submission: StepSubmission) -> StepCheck:
    entries, fields = _entries(working)
    if not 0 <= submission.index < len(entries):
        return StepCheck(matched=False, mismatched_fields=fields)
    expected = entries[submission.index]
    mismatched = tuple(
        name for name in fields if parse_submission(getattr(submission, name)) != getattr(expected, name)
    )
    return StepCheck(matched=not mismatched, mismatched_fields=mismatched)


class StepwiseSession:
    """Walks a learner through a problem's steps, advancing only on exact matches."""

    def __init__(self, problem: Problem) -> None:
        self.problem = problem
        self.working = working_for(problem)
        self._entries, _ = _entries(self.working)
        self._index = 0
        self._attempts = 0

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def step_count(self) -> int:
        return len(self._entries)

    @property
    def current_step(self) -> DivisionStep | PartialProduct | None:
        """Step awaiting input, or None once every step has matched."""
        if self.is_complete:
            return None
        return self._entries[self._index]

    @property
    def attempts(self) -> int:
        """Submissions made on the current step so far."""
        return self._attempts

    @property
    def is_complete(self) -> bool:
        return self._index >= len(self._entries)

    def submit(
        self,
        *,
        quotient_digit: object = None,
        product: object = None,
        remainder: object = None,
        value: object = None,
    ) -> StepCheck:
        """Check values for the current step and advance when all of them match."""
        if self.is_complete:
            raise RuntimeError("All steps are already complete.")
        submission = StepSubmission(
            index=self._index,
            quotient_digit=quotient_digit,
            product=product,
            remainder=remainder,
            value=value,
        )
        result = _check_against(self.working, submission)
        if result.matched:
            self._index += 1
            self._attempts = 0
        else:
            self._attempts += 1
        return result
