"""Application service for problem generation, answer checking, and progress."""

from __future__ import annotations

import logging
from pathlib import Path

from .generator import ProblemGenerator, RandomSource
from .ledger import Ledger, LedgerStore, TypeStats
from .models import Difficulty, DivisionWorking, MultiplicationWorking, Problem, ProblemKind
from .steps import working_for
from .validation import StepwiseSession, ValidationMode, correct_answer, validate

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(".longmath") / "progress.db"


class TutorService:
    """Coordinates problem generation, checking, and the progress ledger."""

    def __init__(self, store: LedgerStore, generator: ProblemGenerator | None = None) -> None:
        """Initialize service with an injected ledger store and optional generator."""
        self.store = store
        self.generator = generator or ProblemGenerator()

    @classmethod
    def open(cls, db_path: Path | str = DEFAULT_DB_PATH, rng: RandomSource | None = None) -> TutorService:
        """Create a service backed by a local database file."""
        return cls(LedgerStore(db_path), ProblemGenerator(rng))

    def generate_problem(self, kind: ProblemKind | str, difficulty: Difficulty | str) -> Problem:
        """Generate a new problem."""
        return self.generator.generate(kind, difficulty)

    def steps(self, problem: Problem) -> DivisionWorking | MultiplicationWorking:
        """Return the ordered step working for a problem."""
        return working_for(problem)

    def answer(self, problem: Problem) -> int:
        return correct_answer(problem)

    def validate(
        self, problem: Problem, submission: object, mode: ValidationMode | str = ValidationMode.WHOLE
    ) -> bool:
        """Check a whole answer or a single step submission."""
        return validate(problem, submission, mode)

    def start_stepwise(self, problem: Problem) -> StepwiseSession:
        """Begin step-by-step checking of a problem."""
        return StepwiseSession(problem)

    def submit_answer(self, problem: Problem, submission: object, time_spent: int) -> bool:
        """Check a whole answer, record the attempt, and return correctness."""
        correct = validate(problem, submission, ValidationMode.WHOLE)
        self.store.record_attempt(problem.kind, correct, time_spent)
        logger.info("Problem %s answered correct=%s", problem.id, correct)
        return correct

    def record_attempt(self, kind: ProblemKind | str, is_correct: bool, time_spent: int) -> Ledger:
        """Record one attempt and return the updated ledger."""
        return self.store.record_attempt(kind, is_correct, time_spent)

    def load_ledger(self) -> Ledger:
        return self.store.load()

    def stats(self, kind: ProblemKind | str) -> TypeStats:
        """Return total, correct and rate for one problem kind."""
        return self.store.stats(kind)

    def streak(self) -> tuple[int, int]:
        """Return (current, max) streak."""
        return self.store.streak()

    def accuracy(self) -> int:
        return self.store.accuracy()

    def reset_progress(self) -> Ledger:
        """Clear all recorded progress."""
        return self.store.reset()

    def close(self) -> None:
        """Close resources."""
        self.store.close()
