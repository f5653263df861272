import random
from pathlib import Path

import pytest

from longmath.generator import ProblemGenerator
from longmath.ledger import LedgerStore, default_ledger
from longmath.models import ConfigurationError, DivisionWorking, MultiplicationWorking, ProblemKind
from longmath.service import TutorService
from longmath.validation import StepSubmission, ValidationMode


def _service(rng) -> TutorService:
    return TutorService(LedgerStore(":memory:"), ProblemGenerator(rng))


def test_division_flow_with_scripted_problem(scripted_random) -> None:
    service = _service(scripted_random(84, 3))
    problem = service.generate_problem("division", "easy")

    working = service.steps(problem)
    assert isinstance(working, DivisionWorking)
    assert [step.quotient_digit for step in working.steps] == [2, 8]
    assert service.answer(problem) == 28
    assert service.validate(problem, "28") is True
    assert service.validate(problem, StepSubmission(index=1, quotient_digit=8, product=24, remainder=0), "stepwise")


def test_multiplication_flow_with_scripted_problem(scripted_random) -> None:
    service = _service(scripted_random(23, 12))
    problem = service.generate_problem(ProblemKind.MULTIPLICATION, "medium")

    working = service.steps(problem)
    assert isinstance(working, MultiplicationWorking)
    rows = [(partial.digit, partial.value, partial.position) for partial in working.partials]
    assert rows == [(2, 46, 0), (1, 23, 1)]
    assert working.partial_sum() == service.answer(problem) == 276
    assert service.validate(problem, "267", ValidationMode.WHOLE) is False


def test_submit_answer_records_correct_and_incorrect_attempts(scripted_random) -> None:
    service = _service(scripted_random(84, 3, 23, 12))
    division = service.generate_problem("division", "easy")
    multiplication = service.generate_problem("multiplication", "medium")

    assert service.submit_answer(division, "28", 15) is True
    assert service.submit_answer(multiplication, "oops", 40) is False

    ledger = service.load_ledger()
    assert ledger.total_problems == 2
    assert ledger.correct_problems == 1
    assert ledger.accuracy_rate == 50
    assert ledger.time_spent == 55
    assert ledger.current_streak == 0
    assert ledger.max_streak == 1
    assert service.stats("division").rate == 100
    assert service.stats("multiplication").rate == 0


def test_stepwise_completion_then_record(scripted_random) -> None:
    service = _service(scripted_random(84, 3))
    problem = service.generate_problem("division", "easy")
    session = service.start_stepwise(problem)

    session.submit(quotient_digit="2", product="6", remainder="2")
    session.submit(quotient_digit="8", product="24", remainder="0")
    assert session.is_complete is True

    ledger = service.record_attempt(problem.kind, session.is_complete, 20)
    assert ledger.division.correct == 1
    assert service.streak() == (1, 1)
    assert service.accuracy() == 100


def test_record_attempt_sequence_scenario() -> None:
    service = _service(random.Random(5))
    for outcome in [True, True, False, True]:
        service.record_attempt("division", outcome, 1)

    ledger = service.load_ledger()
    assert (ledger.total_problems, ledger.correct_problems, ledger.accuracy_rate) == (4, 3, 75)
    assert (ledger.current_streak, ledger.max_streak) == (1, 2)


def test_reset_progress() -> None:
    service = _service(random.Random(5))
    service.record_attempt("multiplication", True, 3)
    assert service.reset_progress() == default_ledger()
    assert service.load_ledger() == default_ledger()


def test_invalid_tags_propagate_configuration_error() -> None:
    service = _service(random.Random(5))
    with pytest.raises(ConfigurationError):
        service.generate_problem("division", "impossible")
    problem = service.generate_problem("division", "hard")
    with pytest.raises(ConfigurationError):
        service.validate(problem, "1", "fuzzy")


def test_open_creates_database_file(tmp_path: Path) -> None:
    db_path = tmp_path / "state" / "progress.db"
    service = TutorService.open(db_path, rng=random.Random(1))
    try:
        problem = service.generate_problem("multiplication", "hard")
        service.submit_answer(problem, str(service.answer(problem)), 9)
    finally:
        service.close()

    assert db_path.exists()
    reopened = TutorService.open(db_path)
    try:
        assert reopened.load_ledger().total_problems == 1
        assert reopened.stats("multiplication").correct == 1
    finally:
        reopened.close()
