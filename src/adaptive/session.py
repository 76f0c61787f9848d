# ABOUTME: Assembles the deduplicated, shuffled fact list for one practice session.
# ABOUTME: Weighted draws first, uniform fill-in when the attempt budget runs out.

from __future__ import annotations

import logging
import random
from typing import List, MutableSequence, Optional, Set, TypeVar

from src.common.errors import InvalidConfig, InvalidLearnerId
from src.common.history import SessionHistory
from src.common.schemas import OPERAND_RANGE, MultiplicationFact, SessionProblemSet, SessionSettings

from .config import DEFAULT_CONFIG, GeneratorConfig
from .frequency import analyze_wrong_answers
from .sampling import filter_operands, generate_weighted_problem, resolve_rng

logger = logging.getLogger(__name__)

T = TypeVar("T")


def shuffle_facts(items: List[T], rng: Optional[random.Random] = None) -> List[T]:
    """Fisher-Yates shuffle of a copy; the input list is left alone."""
    rng = resolve_rng(rng)
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _validate_request(settings: SessionSettings, learner_id: str, config: GeneratorConfig) -> List[int]:
    if settings is None:
        raise InvalidConfig("Session settings are required.")
    if not isinstance(learner_id, str) or not learner_id.strip():
        raise InvalidLearnerId("Learner id must be a non-empty string.")

    if not settings.included_numbers:
        raise InvalidConfig("No numbers included in settings.")

    requested = settings.cards_per_session
    if not isinstance(requested, int) or isinstance(requested, bool) or requested <= 0:
        raise InvalidConfig(f"cards_per_session must be a positive integer, got {requested!r}")
    if requested > config.max_cards_per_session:
        raise InvalidConfig(
            f"cards_per_session cannot exceed {config.max_cards_per_session}, got {requested}"
        )

    valid = filter_operands(settings.included_numbers)
    if not valid:
        raise InvalidConfig("Settings must include at least one valid number (1-12).")
    return valid


def _append_unique(fact: MultiplicationFact, problems: MutableSequence[MultiplicationFact], seen: Set[str]) -> bool:
    if fact.key in seen:
        return False
    seen.add(fact.key)
    problems.append(fact)
    return True


def generate_session_problems(
    settings: SessionSettings,
    learner_id: str,
    history: SessionHistory,
    rng: Optional[random.Random] = None,
    config: Optional[GeneratorConfig] = None,
) -> SessionProblemSet:
    """
    Build the problem set for one session.

    Steps:
    - Pull the learner's most recent sessions and count wrong answers per operand.
    - Draw weighted facts, skipping duplicates, until the request is met or the
      attempt budget (requested × multiplier, capped) runs out.
    - Fill any remainder uniformly from the unused facts in included × 1-12.
    - Shuffle so weighting picks which facts appear, not their order.

    The result carries both the requested and actual counts; it falls short
    only when the included numbers cannot supply enough distinct facts.
    """

    config = config or DEFAULT_CONFIG
    valid = _validate_request(settings, learner_id, config)
    rng = resolve_rng(rng)
    requested = settings.cards_per_session

    # included numbers may repeat; the reachable space counts distinct first operands.
    distinct_first = sorted(set(valid))
    max_unique = len(distinct_first) * len(OPERAND_RANGE)
    if requested > max_unique:
        logger.warning(
            "[adaptive] Requested %d cards but only %d unique combinations possible. Generating maximum possible.",
            requested,
            max_unique,
        )

    recent = history.fetch_recent_sessions(learner_id, config.history_window)
    frequencies = analyze_wrong_answers(recent)

    problems: List[MultiplicationFact] = []
    seen: Set[str] = set()
    target = min(requested, max_unique)

    attempts = 0
    budget = config.attempt_budget(requested)
    while len(problems) < target and attempts < budget:
        attempts += 1
        _append_unique(generate_weighted_problem(valid, frequencies, rng), problems, seen)

    if len(problems) < target:
        remaining = [
            MultiplicationFact(operand1, operand2)
            for operand1 in distinct_first
            for operand2 in OPERAND_RANGE
            if MultiplicationFact(operand1, operand2).key not in seen
        ]
        logger.info(
            "[adaptive] Weighted phase produced %d/%d after %d attempts; filling %d uniformly.",
            len(problems),
            target,
            attempts,
            target - len(problems),
        )
        for fact in rng.sample(remaining, target - len(problems)):
            _append_unique(fact, problems, seen)

    if len(problems) < requested:
        logger.warning(
            "[adaptive] Could only generate %d unique problems out of %d requested",
            len(problems),
            requested,
        )

    return SessionProblemSet(
        requested=requested,
        problems=tuple(shuffle_facts(problems, rng)),
        max_unique=max_unique,
    )
