"""Step decomposition of the pencil-and-paper long division and multiplication algorithms."""

from __future__ import annotations

from .models import (
    DivisionStep,
    DivisionWorking,
    MultiplicationWorking,
    PartialProduct,
    Problem,
    ProblemKind,
)


def division_steps(dividend: int, divisor: int) -> DivisionWorking:
    """Work long division one dividend digit at a time, left to right.

    Every dividend digit yields a step, so leading zero quotient digits are
    kept (`5 / 7` is one step with quotient digit 0).
    """
    if dividend < 0:
        raise ValueError(f"dividend must be non-negative, got {dividend}")
    if divisor < 1:
        raise ValueError(f"divisor must be positive, got {divisor}")

    steps: list[DivisionStep] = []
    quotient_digits: list[str] = []
    carry = 0
    for number, char in enumerate(str(dividend), start=1):
        digit = int(char)
        current = carry * 10 + digit
        quotient_digit = current // divisor
        product = quotient_digit * divisor
        remainder = current - product
        steps.append(
            DivisionStep(
                step_number=number,
                current_number=current,
                quotient_digit=quotient_digit,
                product=product,
                remainder=remainder,
                brought_down_digit=digit,
            )
        )
        quotient_digits.append(str(quotient_digit))
        carry = remainder

    return DivisionWorking(steps=tuple(steps), quotient=int("".join(quotient_digits)), remainder=carry)


def multiplication_steps(multiplicand: int, multiplier: int) -> MultiplicationWorking:
    """Return one partial product per multiplier digit, ones place first."""
    if multiplicand < 1 or multiplier < 1:
        raise ValueError(f"operands must be positive, got {multiplicand} and {multiplier}")

    partials = tuple(
        PartialProduct(digit=int(char), value=multiplicand * int(char), position=position)
        for position, char in enumerate(reversed(str(multiplier)))
    )
    return MultiplicationWorking(partials=partials, product=multiplicand * multiplier)


def working_for(problem: Problem) -> DivisionWorking | MultiplicationWorking:
    """Return the step working for a problem of either kind."""
    if problem.kind is ProblemKind.DIVISION:
        return division_steps(problem.dividend, problem.divisor)
    return multiplication_steps(problem.multiplicand, problem.multiplier)
