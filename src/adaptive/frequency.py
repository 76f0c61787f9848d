# ABOUTME: Mines recent practice sessions into per-operand wrong-answer frequencies.
# ABOUTME: Ranks weak operands through the max-heap for reporting.

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence, Tuple

from src.common.schemas import MAX_OPERAND, MIN_OPERAND, OPERAND_RANGE, FrequencyMap, PracticeSession

from .heap import MaxHeap

logger = logging.getLogger(__name__)


def empty_frequency_map() -> FrequencyMap:
    return {operand: 0 for operand in OPERAND_RANGE}


def is_valid_operand(value: object) -> bool:
    """True for integers 1-12; bools are rejected even though they subclass int."""
    return isinstance(value, int) and not isinstance(value, bool) and MIN_OPERAND <= value <= MAX_OPERAND


def analyze_wrong_answers(sessions: Optional[Sequence[PracticeSession]]) -> FrequencyMap:
    """
    Count how often each operand 1-12 appears in incorrectly answered facts.

    Facts are skipped when their correctness flag is not a bool or when they
    were answered with a visualization (``AnsweredFact.counts`` is False). Each
    valid operand of a wrong fact adds one, so 7×7 adds two to slot 7.
    """

    frequencies = empty_frequency_map()
    if sessions is None or isinstance(sessions, (str, bytes)) or not isinstance(sessions, Sequence):
        logger.warning("[adaptive] Invalid sessions collection provided: %r", type(sessions).__name__)
        return frequencies

    for session in sessions:
        facts = getattr(session, "facts", None)
        if not facts:
            continue
        for fact in facts:
            if fact is None or not isinstance(fact.is_correct, bool):
                continue
            if not fact.counts:
                continue
            if fact.is_correct:
                continue
            if is_valid_operand(fact.operand1):
                frequencies[fact.operand1] += 1
            if is_valid_operand(fact.operand2):
                frequencies[fact.operand2] += 1

    return frequencies


def has_wrong_answers(frequencies: Mapping[int, int]) -> bool:
    return any(frequencies.get(operand, 0) > 0 for operand in OPERAND_RANGE)


def rank_weak_operands(frequencies: Mapping[int, int], limit: int = 5) -> List[Tuple[int, int]]:
    """Top ``limit`` operands by wrong-answer count, highest first; zeros dropped."""
    if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
        limit = 5

    heap: MaxHeap[int] = MaxHeap()
    heap.build_from_pairs(
        (operand, frequencies.get(operand, 0)) for operand in OPERAND_RANGE if frequencies.get(operand, 0) > 0
    )

    ranked: List[Tuple[int, int]] = []
    while len(ranked) < limit and not heap.is_empty():
        count = heap.peek_priority()
        operand = heap.extract_max()
        ranked.append((operand, int(count)))
    return ranked
