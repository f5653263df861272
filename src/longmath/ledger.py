"""Performance ledger: aggregate rules plus SQLite key-value persistence."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import cast

from .models import ProblemKind

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
LEDGER_KEY = "progress"


class LedgerFormatError(ValueError):
    """Raised when a stored ledger record cannot be decoded."""


@dataclass(frozen=True)
class Tally:
    """Attempt counts for one problem kind."""

    total: int = 0
    correct: int = 0


@dataclass(frozen=True)
class TypeStats:
    """Per-kind summary shown to learners."""

    total: int
    correct: int
    rate: int


@dataclass(frozen=True)
class Ledger:
    """Aggregate performance across every recorded attempt."""

    total_problems: int = 0
    correct_problems: int = 0
    accuracy_rate: int = 0
    time_spent: int = 0
    division: Tally = Tally()
    multiplication: Tally = Tally()
    current_streak: int = 0
    max_streak: int = 0

    def tally(self, kind: ProblemKind) -> Tally:
        return self.division if kind is ProblemKind.DIVISION else self.multiplication


def default_ledger() -> Ledger:
    """Return the all-zero ledger."""
    return Ledger()


def percentage(correct: int, total: int) -> int:
    """Whole-number percentage with halves rounded up; 0 when nothing was attempted."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def apply_attempt(ledger: Ledger, kind: ProblemKind, is_correct: bool, time_spent: int) -> Ledger:
    """Return the ledger after one more recorded attempt."""
    if time_spent < 0:
        raise ValueError(f"time_spent must be non-negative, got {time_spent}")

    tally = ledger.tally(kind)
    if is_correct:
        correct_problems = ledger.correct_problems + 1
        tally = Tally(total=tally.total + 1, correct=tally.correct + 1)
        current_streak = ledger.current_streak + 1
        max_streak = max(ledger.max_streak, current_streak)
    else:
        correct_problems = ledger.correct_problems
        tally = Tally(total=tally.total + 1, correct=tally.correct)
        current_streak = 0
        max_streak = ledger.max_streak

    total_problems = ledger.total_problems + 1
    updated = replace(
        ledger,
        total_problems=total_problems,
        correct_problems=correct_problems,
        accuracy_rate=percentage(correct_problems, total_problems),
        time_spent=ledger.time_spent + int(time_spent),
        current_streak=current_streak,
        max_streak=max_streak,
    )
    if kind is ProblemKind.DIVISION:
        return replace(updated, division=tally)
    return replace(updated, multiplication=tally)


def stats(ledger: Ledger, kind: ProblemKind) -> TypeStats:
    """Return total, correct and rate for one problem kind."""
    tally = ledger.tally(kind)
    return TypeStats(total=tally.total, correct=tally.correct, rate=percentage(tally.correct, tally.total))


def ledger_to_dict(ledger: Ledger) -> dict[str, object]:
    """Return the persisted record shape."""
    return {
        "totalProblems": ledger.total_problems,
        "correctProblems": ledger.correct_problems,
        "accuracyRate": ledger.accuracy_rate,
        "timeSpent": ledger.time_spent,
        "problemsByType": {
            ProblemKind.DIVISION.value: {"total": ledger.division.total, "correct": ledger.division.correct},
            ProblemKind.MULTIPLICATION.value: {
                "total": ledger.multiplication.total,
                "correct": ledger.multiplication.correct,
            },
        },
        "currentStreak": ledger.current_streak,
        "maxStreak": ledger.max_streak,
    }


def ledger_from_dict(raw: object) -> Ledger:
    """Build a ledger from a decoded record, raising LedgerFormatError when malformed.

    Counters must be non-negative integers that agree with each other: per-kind
    tallies add up to the totals, no tally has more correct than total
    attempts, the stored accuracy matches the counts, and the current streak
    never exceeds the best streak.
    """
    record = _require_mapping(raw, "ledger record")
    by_type = _require_mapping(record.get("problemsByType"), "problemsByType")
    ledger = Ledger(
        total_problems=_require_count(record, "totalProblems"),
        correct_problems=_require_count(record, "correctProblems"),
        accuracy_rate=_require_count(record, "accuracyRate"),
        time_spent=_require_count(record, "timeSpent"),
        division=_tally_from_dict(by_type.get(ProblemKind.DIVISION.value), ProblemKind.DIVISION.value),
        multiplication=_tally_from_dict(
            by_type.get(ProblemKind.MULTIPLICATION.value), ProblemKind.MULTIPLICATION.value
        ),
        current_streak=_require_count(record, "currentStreak"),
        max_streak=_require_count(record, "maxStreak"),
    )
    _check_consistent(ledger)
    return ledger


def _check_consistent(ledger: Ledger) -> None:
    if ledger.correct_problems > ledger.total_problems:
        raise LedgerFormatError(
            f"correctProblems {ledger.correct_problems} exceeds totalProblems {ledger.total_problems}."
        )
    if ledger.division.total + ledger.multiplication.total != ledger.total_problems:
        raise LedgerFormatError("problemsByType totals do not add up to totalProblems.")
    if ledger.division.correct + ledger.multiplication.correct != ledger.correct_problems:
        raise LedgerFormatError("problemsByType correct counts do not add up to correctProblems.")
    expected_rate = percentage(ledger.correct_problems, ledger.total_problems)
    if ledger.accuracy_rate != expected_rate:
        raise LedgerFormatError(f"accuracyRate {ledger.accuracy_rate} does not match counts ({expected_rate}).")
    if ledger.current_streak > ledger.max_streak:
        raise LedgerFormatError(f"currentStreak {ledger.current_streak} exceeds maxStreak {ledger.max_streak}.")


def dumps_ledger(ledger: Ledger) -> str:
    return json.dumps(ledger_to_dict(ledger), sort_keys=True)


def loads_ledger(text: str) -> Ledger:
    """Decode a stored ledger blob."""
    try:
        raw: object = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise LedgerFormatError(f"Ledger blob is not valid JSON: {exc}") from exc
    return ledger_from_dict(raw)


def _require_mapping(raw: object, label: str) -> dict[str, object]:
    if not isinstance(raw, dict):
        raise LedgerFormatError(f"{label} must be a JSON object.")
    return cast(dict[str, object], raw)


def _require_count(record: dict[str, object], key: str) -> int:
    value = record.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise LedgerFormatError(f"{key} must be an integer, got {value!r}.")
    if value < 0:
        raise LedgerFormatError(f"{key} must be non-negative, got {value}.")
    return value


def _tally_from_dict(raw: object, label: str) -> Tally:
    record = _require_mapping(raw, f"problemsByType.{label}")
    tally = Tally(total=_require_count(record, "total"), correct=_require_count(record, "correct"))
    if tally.correct > tally.total:
        raise LedgerFormatError(f"problemsByType.{label} has more correct than total attempts.")
    return tally


class LedgerStore:
    """Holds the one persisted ledger record in a SQLite key-value table.

    The ledger is read lazily on first use and cached. Every write is one
    upsert inside one transaction, and the cache only moves forward once that
    write commits, so `load()` never returns a state that was not persisted.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Open the database and bring its schema up to date."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._cached: Ledger | None = None
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        """Create the key-value table holding the ledger blob."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS ledger (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)

    def load(self) -> Ledger:
        """Return the persisted ledger, or the default when absent or unreadable.

        A failed database read is not cached, so the next call reads again.
        """
        if self._cached is not None:
            return self._cached
        try:
            row = self._conn.execute("SELECT value FROM ledger WHERE key = ?", (LEDGER_KEY,)).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Could not read ledger, using defaults: %s", exc)
            return default_ledger()
        self._cached = self._decode(row)
        return self._cached

    def _decode(self, row: sqlite3.Row | None) -> Ledger:
        if row is None:
            return default_ledger()
        try:
            return loads_ledger(str(row["value"]))
        except LedgerFormatError as exc:
            logger.debug("Discarding unreadable ledger record: %s", exc)
            return default_ledger()

    def save(self, ledger: Ledger) -> bool:
        """Persist a ledger atomically; return False when the write failed."""
        now = datetime.now(UTC).isoformat()
        try:
            with self._conn:
                self._conn.execute(
                    """
                    INSERT INTO ledger (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (LEDGER_KEY, dumps_ledger(ledger), now),
                )
        except sqlite3.Error:
            logger.exception("Failed to save ledger; this update is lost.")
            return False
        self._cached = ledger
        return True

    def record_attempt(self, kind: ProblemKind | str, is_correct: bool, time_spent: int) -> Ledger:
        """Record one attempt, correct or not, and persist the updated ledger.

        Returns the updated ledger even when persisting it failed.
        """
        resolved = ProblemKind.parse(kind)
        updated = apply_attempt(self.load(), resolved, is_correct, time_spent)
        self.save(updated)
        logger.debug(
            "Recorded %s attempt correct=%s streak=%d total=%d",
            resolved.value,
            is_correct,
            updated.current_streak,
            updated.total_problems,
        )
        return updated

    def reset(self) -> Ledger:
        """Persist and return the default ledger."""
        ledger = default_ledger()
        self.save(ledger)
        return ledger

    def stats(self, kind: ProblemKind | str) -> TypeStats:
        return stats(self.load(), ProblemKind.parse(kind))

    def streak(self) -> tuple[int, int]:
        """Return (current, max) streak."""
        ledger = self.load()
        return (ledger.current_streak, ledger.max_streak)

    def accuracy(self) -> int:
        return self.load().accuracy_rate

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass
