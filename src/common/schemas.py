# ABOUTME: Defines canonical data structures shared by the generator and analytics.
# ABOUTME: Centralizes fact, answered-fact, session, settings, and problem-set definitions.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Tuple

MIN_OPERAND = 1
MAX_OPERAND = 12
OPERAND_RANGE: Tuple[int, ...] = tuple(range(MIN_OPERAND, MAX_OPERAND + 1))
KEY_SEPARATOR = "×"

FrequencyMap = Dict[int, int]


@dataclass(frozen=True)
class MultiplicationFact:
    """Unscored multiplication problem as presented on a card."""

    operand1: int
    operand2: int

    @property
    def correct_answer(self) -> int:
        return self.operand1 * self.operand2

    @property
    def key(self) -> str:
        return fact_key(self.operand1, self.operand2)


def fact_key(operand1: int, operand2: int) -> str:
    """Canonical textual key used to deduplicate facts within a session."""
    return f"{operand1}{KEY_SEPARATOR}{operand2}"


@dataclass(frozen=True)
class AnsweredFact:
    """A fact after the learner responded.

    ``counts_toward_score`` is None for records written before the flag
    existed; those are treated as counting. A shown visualization never
    counts, whatever the flag says.
    """

    operand1: int
    operand2: int
    user_answer: Optional[int]
    is_correct: Optional[bool]
    visualization_shown: bool = False
    counts_toward_score: Optional[bool] = None

    @property
    def correct_answer(self) -> int:
        return self.operand1 * self.operand2

    @property
    def key(self) -> str:
        return fact_key(self.operand1, self.operand2)

    @property
    def counts(self) -> bool:
        return self.counts_toward_score is not False and not self.visualization_shown

    @classmethod
    def record(
        cls, fact: MultiplicationFact, user_answer: int, visualization_shown: bool = False
    ) -> "AnsweredFact":
        """Score a learner response; a shown visualization removes it from scoring."""
        return cls(
            operand1=fact.operand1,
            operand2=fact.operand2,
            user_answer=user_answer,
            is_correct=user_answer == fact.correct_answer,
            visualization_shown=visualization_shown,
            counts_toward_score=not visualization_shown,
        )


@dataclass(frozen=True)
class PracticeSession:
    """A completed practice session as handed over by the host."""

    user_id: str
    session_id: str
    timestamp: datetime
    facts: List[AnsweredFact] = field(default_factory=list)
    score: int = 0
    total_cards: int = 0
    finish_time: Optional[float] = None
    timed_out: bool = False


@dataclass(frozen=True)
class SessionSettings:
    """Learner-facing settings for one practice session."""

    included_numbers: List[int] = field(default_factory=lambda: list(OPERAND_RANGE))
    cards_per_session: int = 20
    time_limit: int = 300


@dataclass(frozen=True)
class SessionSummary:
    """Aggregate statistics across several sessions."""

    total_sessions: int
    average_score: float
    total_cards: int
    correct_answers: int
    incorrect_answers: int
    best_score: float
    worst_score: float


@dataclass(frozen=True)
class SessionProblemSet:
    """Deduplicated facts for one session plus the requested count.

    ``max_unique`` is the size of the reachable fact space, so callers can
    tell a configuration limit apart from any other shortfall.
    """

    requested: int
    problems: Tuple[MultiplicationFact, ...]
    max_unique: int

    @property
    def actual(self) -> int:
        return len(self.problems)

    @property
    def shortfall(self) -> int:
        return max(0, self.requested - self.actual)

    @property
    def is_complete(self) -> bool:
        return self.shortfall == 0

    def keys(self) -> List[str]:
        return [fact.key for fact in self.problems]

    def __iter__(self) -> Iterator[MultiplicationFact]:
        return iter(self.problems)

    def __len__(self) -> int:
        return len(self.problems)
