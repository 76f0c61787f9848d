# ABOUTME: Scores practice sessions and summarizes performance across sessions.
# ABOUTME: Facts answered with a visualization are excluded from every count.

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .schemas import OPERAND_RANGE, AnsweredFact, PracticeSession, SessionSummary


def _scored(facts: Optional[Sequence[AnsweredFact]]) -> List[AnsweredFact]:
    return [f for f in facts or [] if f is not None and f.counts]


def calculate_score(facts: Optional[Sequence[AnsweredFact]]) -> int:
    """Correct answers that count toward the score."""
    return sum(1 for f in _scored(facts) if f.is_correct is True)


def calculate_percentage(facts: Optional[Sequence[AnsweredFact]]) -> float:
    """Percentage of all cards answered correctly (0-100)."""
    if not facts:
        return 0.0
    return calculate_score(facts) / len(facts) * 100


def summarize_session(session: PracticeSession) -> Dict[str, object]:
    if session is None:
        raise ValueError("Invalid session provided.")

    facts = session.facts or []
    scored = _scored(facts)
    correct = calculate_score(facts)
    return {
        "total_cards": session.total_cards or len(facts),
        "score": correct,
        "percentage": calculate_percentage(facts),
        "correct_count": correct,
        "incorrect_count": sum(1 for f in scored if f.is_correct is False),
        "excluded_count": len(facts) - len(scored),
        "timed_out": session.timed_out,
        "finish_time": session.finish_time,
        "timestamp": session.timestamp,
    }


def aggregate_session_stats(sessions: Optional[Sequence[PracticeSession]]) -> SessionSummary:
    if not sessions:
        return SessionSummary(0, 0.0, 0, 0, 0, 0.0, 0.0)

    total_cards = 0
    correct = 0
    incorrect = 0
    percentages: List[float] = []
    for session in sessions:
        facts = session.facts or []
        total_cards += len(facts)
        correct += calculate_score(facts)
        incorrect += sum(1 for f in _scored(facts) if f.is_correct is False)
        percentages.append(calculate_percentage(facts))

    return SessionSummary(
        total_sessions=len(sessions),
        average_score=round(sum(percentages) / len(percentages), 1),
        total_cards=total_cards,
        correct_answers=correct,
        incorrect_answers=incorrect,
        best_score=round(max(percentages), 1),
        worst_score=round(min(percentages), 1),
    )


def find_most_missed_problem(sessions: Sequence[PracticeSession]) -> Optional[str]:
    """Key of the fact missed most often; first seen wins ties."""
    missed: Counter = Counter()
    for session in sessions:
        for fact in _scored(session.facts):
            if fact.is_correct is False:
                missed[fact.key] += 1
    if not missed:
        return None
    return missed.most_common(1)[0][0]


def find_strong_numbers(sessions: Sequence[PracticeSession], limit: int = 5) -> List[int]:
    """Operands that appear most often in correct answers, most frequent first."""
    solved: Counter = Counter()
    for session in sessions:
        for fact in _scored(session.facts):
            if fact.is_correct is not True:
                continue
            for operand in (fact.operand1, fact.operand2):
                if isinstance(operand, int) and not isinstance(operand, bool) and operand in OPERAND_RANGE:
                    solved[operand] += 1
    if limit <= 0:
        return []
    return [number for number, _ in solved.most_common(limit)]


def number_accuracy(sessions: Sequence[PracticeSession], number: int) -> float:
    total = 0
    correct = 0
    for session in sessions:
        for fact in _scored(session.facts):
            if number in (fact.operand1, fact.operand2):
                total += 1
                if fact.is_correct is True:
                    correct += 1
    return correct / total * 100 if total else 0.0


def number_accuracies(sessions: Sequence[PracticeSession]) -> Dict[int, float]:
    return {number: number_accuracy(sessions, number) for number in OPERAND_RANGE}


def average_completion_time(sessions: Optional[Sequence[PracticeSession]]) -> Optional[int]:
    """Mean finish time in seconds over sessions that finished before the timer."""
    times = [
        s.finish_time
        for s in sessions or []
        if s.finish_time is not None and s.finish_time > 0 and not s.timed_out
    ]
    if not times:
        return None
    return round(sum(times) / len(times))


def completion_rate(sessions: Optional[Sequence[PracticeSession]]) -> float:
    """Percentage of sessions finished before the timer ran out."""
    if not sessions:
        return 0.0
    finished = sum(1 for s in sessions if not s.timed_out)
    return finished / len(sessions) * 100


def improvement_trend(sessions: Optional[Sequence[PracticeSession]]) -> float:
    """
    Second-half average score minus first-half average score.

    Sessions must be in chronological order; a positive value means the
    learner improved.
    """
    if not sessions or len(sessions) < 2:
        return 0.0
    midpoint = len(sessions) // 2
    first = aggregate_session_stats(sessions[:midpoint])
    second = aggregate_session_stats(sessions[midpoint:])
    return round(second.average_score - first.average_score, 1)


def perfect_streak(sessions: Sequence[PracticeSession]) -> int:
    """Consecutive perfect sessions counting from the newest."""
    streak = 0
    for session in sessions:
        facts = session.facts or []
        if facts and calculate_score(facts) == len(facts):
            streak += 1
        else:
            break
    return streak


def session_stats_frame(sessions: Sequence[PracticeSession]) -> pd.DataFrame:
    columns = [
        "session_id",
        "timestamp",
        "total_cards",
        "score",
        "percentage",
        "incorrect_count",
        "excluded_count",
        "timed_out",
        "finish_time",
    ]
    rows = []
    for session in sessions:
        summary = summarize_session(session)
        rows.append({"session_id": session.session_id, **{k: summary[k] for k in columns[1:]}})
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns).sort_values("timestamp", kind="mergesort").reset_index(drop=True)
