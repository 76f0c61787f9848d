# ABOUTME: Read-only access to a learner's completed practice sessions.
# ABOUTME: Provides the history protocol, an in-memory store, and pandas adapters for answer tables.

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

import pandas as pd

from .schemas import AnsweredFact, PracticeSession

logger = logging.getLogger(__name__)

ANSWER_COLUMNS = [
    "user_id",
    "session_id",
    "timestamp",
    "operand1",
    "operand2",
    "user_answer",
    "is_correct",
    "visualization_shown",
    "counts_toward_score",
    "finish_time",
    "timed_out",
]
REQUIRED_COLUMNS = {"user_id", "session_id", "timestamp", "operand1", "operand2", "is_correct"}


class SessionHistory(Protocol):
    def fetch_recent_sessions(self, learner_id: str, count: int) -> List[PracticeSession]:
        """Newest-first completed sessions for ``learner_id``, at most ``count``."""
        ...


class InMemorySessionHistory:
    """Session store held in memory; the reference host for the generator and CLI."""

    def __init__(self, sessions: Optional[Iterable[PracticeSession]] = None) -> None:
        self._sessions: List[PracticeSession] = []
        for session in sessions or []:
            self.add_session(session)

    def add_session(self, session: PracticeSession) -> None:
        self._sessions.append(session)

    def sessions_for(self, learner_id: str) -> List[PracticeSession]:
        owned = [s for s in self._sessions if s.user_id == learner_id]
        return sorted(owned, key=lambda s: s.timestamp, reverse=True)

    def fetch_recent_sessions(self, learner_id: str, count: int) -> List[PracticeSession]:
        if not isinstance(learner_id, str) or not learner_id:
            logger.warning("[history] fetch_recent_sessions: invalid learner id %r", learner_id)
            return []
        if not isinstance(count, int) or isinstance(count, bool) or count < 1:
            logger.warning("[history] fetch_recent_sessions: invalid count %r", count)
            return []
        return self.sessions_for(learner_id)[:count]

    def __len__(self) -> int:
        return len(self._sessions)

    @classmethod
    def from_frame(cls, answers: pd.DataFrame) -> "InMemorySessionHistory":
        return cls(sessions_from_frame(answers))


def _optional_bool(value) -> Optional[bool]:
    if value is None or (isinstance(value, float) and pd.isna(value)) or value is pd.NA:
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes"}:
            return True
        if lowered in {"false", "0", "no"}:
            return False
        return None
    return bool(value)


def _optional_int(value) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    return int(value)


def _operand(value):
    """Integral values become ints; anything else is kept raw so analysis can skip it."""
    if value is None or value is pd.NA or (isinstance(value, float) and pd.isna(value)):
        return None
    if isinstance(value, bool):
        return value
    try:
        as_float = float(value)
    except (TypeError, ValueError):
        return value
    if as_float.is_integer():
        return int(as_float)
    return as_float


def sessions_from_frame(answers: pd.DataFrame) -> List[PracticeSession]:
    """
    Group one-row-per-answer data into PracticeSession objects.

    Expected columns: user_id, session_id, timestamp, operand1, operand2,
    is_correct; optional user_answer, visualization_shown,
    counts_toward_score, finish_time, timed_out. Row order within a session
    is kept as the answer order.
    """

    if answers is None or answers.empty:
        return []
    missing = REQUIRED_COLUMNS - set(answers.columns)
    if missing:
        raise ValueError(f"Answer table is missing columns: {', '.join(sorted(missing))}")

    df = answers.copy()
    if not pd.api.types.is_datetime64_any_dtype(df["timestamp"]):
        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True, errors="coerce")

    # session ids are only unique per learner
    grouped: Dict[Tuple[str, str], List[dict]] = defaultdict(list)
    for row in df.to_dict(orient="records"):
        grouped[(str(row["user_id"]), str(row["session_id"]))].append(row)

    sessions: List[PracticeSession] = []
    for (user_id, session_id), rows in grouped.items():
        facts = []
        for row in rows:
            visualization_shown = bool(_optional_bool(row.get("visualization_shown")))
            counts = _optional_bool(row.get("counts_toward_score"))
            if visualization_shown and counts is None:
                counts = False
            facts.append(
                AnsweredFact(
                    operand1=_operand(row["operand1"]),
                    operand2=_operand(row["operand2"]),
                    user_answer=_optional_int(row.get("user_answer")),
                    is_correct=_optional_bool(row["is_correct"]),
                    visualization_shown=visualization_shown,
                    counts_toward_score=counts,
                )
            )
        first = rows[0]
        finish_time = first.get("finish_time")
        sessions.append(
            PracticeSession(
                user_id=user_id,
                session_id=session_id,
                timestamp=pd.Timestamp(first["timestamp"]).to_pydatetime(),
                facts=facts,
                score=sum(1 for f in facts if f.is_correct is True and f.counts),
                total_cards=len(facts),
                finish_time=None if finish_time is None or pd.isna(finish_time) else float(finish_time),
                timed_out=bool(_optional_bool(first.get("timed_out"))),
            )
        )
    return sessions


def sessions_to_frame(sessions: Iterable[PracticeSession]) -> pd.DataFrame:
    rows = []
    for session in sessions:
        for fact in session.facts:
            rows.append(
                {
                    "user_id": session.user_id,
                    "session_id": session.session_id,
                    "timestamp": session.timestamp,
                    "operand1": fact.operand1,
                    "operand2": fact.operand2,
                    "user_answer": fact.user_answer,
                    "is_correct": fact.is_correct,
                    "visualization_shown": fact.visualization_shown,
                    "counts_toward_score": fact.counts_toward_score,
                    "finish_time": session.finish_time,
                    "timed_out": session.timed_out,
                }
            )
    if not rows:
        return pd.DataFrame(columns=ANSWER_COLUMNS)
    return pd.DataFrame(rows, columns=ANSWER_COLUMNS)


def load_answer_frame(path: Path) -> pd.DataFrame:
    """Read an answer table from parquet, csv, or json (records)."""
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix == ".csv":
        return pd.read_csv(path)
    if suffix == ".json":
        return pd.read_json(path, orient="records")
    raise ValueError(f"Unsupported answer file '{path}'. Expected .parquet, .csv, or .json.")
