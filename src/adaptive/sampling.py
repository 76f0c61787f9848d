# ABOUTME: Draws multiplication operands biased toward frequently missed numbers.
# ABOUTME: Roulette-wheel selection with frequency + 1 weights over the 1-12 range.

from __future__ import annotations

import random
from typing import List, Mapping, Optional, Sequence

from src.common.errors import EmptyOperandSet
from src.common.schemas import OPERAND_RANGE, MultiplicationFact

from .frequency import has_wrong_answers, is_valid_operand

_default_rng = random.Random()


def resolve_rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else _default_rng


def filter_operands(operands: Optional[Sequence[object]]) -> List[int]:
    if not operands:
        return []
    return [value for value in operands if is_valid_operand(value)]


def select_weighted(
    candidates: Sequence[int],
    frequencies: Mapping[int, int],
    rng: Optional[random.Random] = None,
) -> int:
    """
    Pick one candidate with probability proportional to ``frequency + 1``.

    The +1 keeps numbers with no recorded misses reachable. A draw in
    [0, total) is walked down the candidate list until the remainder is
    <= 0; if rounding never gets there, the last candidate is returned.
    """

    if not candidates:
        raise ValueError("Cannot select from an empty candidate list.")

    rng = resolve_rng(rng)
    weights = [max(frequencies.get(candidate, 0), 0) + 1 for candidate in candidates]
    remainder = rng.random() * sum(weights)

    for candidate, weight in zip(candidates, weights):
        remainder -= weight
        if remainder <= 0:
            return candidate
    return candidates[-1]


def generate_weighted_problem(
    included_operands: Sequence[int],
    frequencies: Mapping[int, int],
    rng: Optional[random.Random] = None,
) -> MultiplicationFact:
    """
    Build one fact: operand1 uniform over the included numbers, operand2 over 1-12.

    operand2 is uniform when no operand has a recorded miss and weighted by
    ``select_weighted`` otherwise.
    """

    if not isinstance(frequencies, Mapping):
        raise TypeError("frequencies must be a mapping of operand to count.")

    valid = filter_operands(included_operands)
    if not valid:
        raise EmptyOperandSet("included operands must contain at least one integer between 1 and 12.")

    rng = resolve_rng(rng)
    operand1 = rng.choice(valid)
    if has_wrong_answers(frequencies):
        operand2 = select_weighted(OPERAND_RANGE, frequencies, rng)
    else:
        operand2 = rng.choice(OPERAND_RANGE)
    return MultiplicationFact(operand1, operand2)
