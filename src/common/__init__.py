# ABOUTME: Makes the shared common package importable across the engine and CLI.
# ABOUTME: Re-exports schema types, errors, and the history collaborator for convenience.

from .errors import (
    EmptyOperandSet,
    FlashcardError,
    InvalidConfig,
    InvalidLearnerId,
    InvalidPriority,
    NegativePriority,
)
from .history import InMemorySessionHistory, SessionHistory, sessions_from_frame
from .schemas import (
    AnsweredFact,
    MultiplicationFact,
    PracticeSession,
    SessionProblemSet,
    SessionSettings,
    SessionSummary,
)

__all__ = [
    "AnsweredFact",
    "EmptyOperandSet",
    "FlashcardError",
    "InMemorySessionHistory",
    "InvalidConfig",
    "InvalidLearnerId",
    "InvalidPriority",
    "MultiplicationFact",
    "NegativePriority",
    "PracticeSession",
    "SessionHistory",
    "SessionProblemSet",
    "SessionSettings",
    "SessionSummary",
    "sessions_from_frame",
]
