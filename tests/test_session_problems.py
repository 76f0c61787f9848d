# ABOUTME: Tests session problem-set assembly end to end against an in-memory history.
# ABOUTME: Checks uniqueness, counts, fallback on small operand spaces, validation, and weighting.

import logging
import random
import unittest
from collections import Counter
from datetime import datetime, timedelta

from src.adaptive.config import GeneratorConfig
from src.adaptive.frequency import analyze_wrong_answers
from src.adaptive.session import generate_session_problems, shuffle_facts
from src.common.errors import InvalidConfig, InvalidLearnerId
from src.common.history import InMemorySessionHistory
from src.common.schemas import AnsweredFact, PracticeSession, SessionSettings


def _wrong(a, b):
    return AnsweredFact(operand1=a, operand2=b, user_answer=a * b + 1, is_correct=False, counts_toward_score=True)


def _session(user_id, facts, day):
    return PracticeSession(
        user_id=user_id,
        session_id=f"{user_id}-{day}",
        timestamp=datetime(2024, 3, 1) + timedelta(days=day),
        facts=facts,
        total_cards=len(facts),
    )


class RecordingHistory(InMemorySessionHistory):
    def __init__(self, sessions=None):
        super().__init__(sessions)
        self.calls = []

    def fetch_recent_sessions(self, learner_id, count):
        self.calls.append((learner_id, count))
        return super().fetch_recent_sessions(learner_id, count)


class TestSessionProblemScenarios(unittest.TestCase):
    def setUp(self):
        self.history = InMemorySessionHistory()
        self.rng = random.Random(2024)

    def test_five_numbers_ten_cards(self):
        settings = SessionSettings(included_numbers=[1, 2, 3, 4, 5], cards_per_session=10)
        result = generate_session_problems(settings, "u1", self.history, rng=self.rng)

        self.assertEqual(result.requested, 10)
        self.assertEqual(result.actual, 10)
        self.assertTrue(result.is_complete)
        for fact in result:
            self.assertIn(fact.operand1, [1, 2, 3, 4, 5])
            self.assertTrue(1 <= fact.operand2 <= 12)
            self.assertEqual(fact.correct_answer, fact.operand1 * fact.operand2)
        self.assertEqual(len(set(result.keys())), 10)

    def test_single_number_five_cards(self):
        settings = SessionSettings(included_numbers=[1], cards_per_session=5)
        result = generate_session_problems(settings, "u1", self.history, rng=self.rng)

        self.assertEqual(len(result), 5)
        self.assertTrue(all(fact.operand1 == 1 for fact in result))
        self.assertEqual(len({fact.operand2 for fact in result}), 5)

    def test_request_above_unique_space_is_capped(self):
        settings = SessionSettings(included_numbers=[1, 2], cards_per_session=30)
        with self.assertLogs("src.adaptive.session", level=logging.WARNING):
            result = generate_session_problems(settings, "u1", self.history, rng=self.rng)

        self.assertEqual(result.max_unique, 24)
        self.assertEqual(result.actual, 24)
        self.assertEqual(result.shortfall, 6)
        self.assertFalse(result.is_complete)
        self.assertEqual(len(set(result.keys())), 24)

    def test_full_space_is_covered_when_requested_exactly(self):
        settings = SessionSettings(included_numbers=[3], cards_per_session=12)
        result = generate_session_problems(settings, "u1", self.history, rng=self.rng)
        self.assertEqual(sorted(fact.operand2 for fact in result), list(range(1, 13)))

    def test_fallback_fills_when_attempt_budget_is_tiny(self):
        config = GeneratorConfig(attempt_multiplier=1, max_attempts=1)
        settings = SessionSettings(included_numbers=[4, 5], cards_per_session=20)
        result = generate_session_problems(settings, "u1", self.history, rng=self.rng, config=config)
        self.assertEqual(result.actual, 20)
        self.assertEqual(len(set(result.keys())), 20)

    def test_duplicate_included_numbers_do_not_inflate_space(self):
        settings = SessionSettings(included_numbers=[2, 2, 2], cards_per_session=20)
        result = generate_session_problems(settings, "u1", self.history, rng=self.rng)
        self.assertEqual(result.max_unique, 12)
        self.assertEqual(result.actual, 12)

    def test_invalid_numbers_are_filtered(self):
        settings = SessionSettings(included_numbers=[0, 6, 13], cards_per_session=4)
        result = generate_session_problems(settings, "u1", self.history, rng=self.rng)
        self.assertTrue(all(fact.operand1 == 6 for fact in result))


class TestSessionProblemValidation(unittest.TestCase):
    def setUp(self):
        self.history = InMemorySessionHistory()

    def test_blank_learner_id(self):
        settings = SessionSettings(included_numbers=[1], cards_per_session=5)
        for learner_id in ("", "   ", None):
            with self.assertRaises(InvalidLearnerId):
                generate_session_problems(settings, learner_id, self.history)

    def test_empty_or_invalid_numbers(self):
        for numbers in ([], [0, 13]):
            with self.assertRaises(InvalidConfig):
                generate_session_problems(SessionSettings(included_numbers=numbers, cards_per_session=5), "u1", self.history)

    def test_card_count_bounds(self):
        for cards in (0, -3, 2.5, 1001, True):
            with self.assertRaises(InvalidConfig):
                generate_session_problems(SessionSettings(included_numbers=[1], cards_per_session=cards), "u1", self.history)

    def test_thousand_cards_is_allowed(self):
        settings = SessionSettings(included_numbers=list(range(1, 13)), cards_per_session=1000)
        result = generate_session_problems(settings, "u1", self.history, rng=random.Random(0))
        self.assertEqual(result.actual, 144)

    def test_missing_settings(self):
        with self.assertRaises(InvalidConfig):
            generate_session_problems(None, "u1", self.history)


class TestSessionProblemHistory(unittest.TestCase):
    def test_fetches_three_recent_sessions_for_learner(self):
        history = RecordingHistory()
        settings = SessionSettings(included_numbers=[1, 2], cards_per_session=3)
        generate_session_problems(settings, "learner-7", history, rng=random.Random(1))
        self.assertEqual(history.calls, [("learner-7", 3)])

    def test_history_window_comes_from_config(self):
        history = RecordingHistory()
        settings = SessionSettings(included_numbers=[1], cards_per_session=3)
        generate_session_problems(settings, "u1", history, rng=random.Random(1), config=GeneratorConfig(history_window=5))
        self.assertEqual(history.calls, [("u1", 5)])

    def test_wrong_answers_bias_operand_two(self):
        # five misses all involving 2
        facts = [_wrong(2, 7), _wrong(3, 2), _wrong(2, 9), _wrong(5, 2), _wrong(2, 11)]
        history = InMemorySessionHistory([_session("u1", facts, 0)])
        settings = SessionSettings(included_numbers=[1, 2, 3, 4, 5], cards_per_session=5)
        rng = random.Random(99)

        counts = Counter()
        for _ in range(200):
            for fact in generate_session_problems(settings, "u1", history, rng=rng):
                counts[fact.operand2] += 1
        self.assertGreater(counts[2], counts[1])

    def test_only_recent_window_is_weighted(self):
        # the heavy misses on 12 sit outside the three most recent sessions
        old = _session("u1", [_wrong(12, 12)] * 20, 0)
        recent = [_session("u1", [], day) for day in (1, 2, 3)]
        history = InMemorySessionHistory([old] + recent)
        window = history.fetch_recent_sessions("u1", 3)
        self.assertEqual([s.session_id for s in window], ["u1-3", "u1-2", "u1-1"])
        self.assertEqual(sum(analyze_wrong_answers(window).values()), 0)

        settings = SessionSettings(included_numbers=[1], cards_per_session=1)
        result = generate_session_problems(settings, "u1", history, rng=random.Random(5))
        self.assertEqual(result.actual, 1)


class TestShuffle(unittest.TestCase):
    def test_shuffle_returns_permutation_without_mutating(self):
        items = list(range(20))
        shuffled = shuffle_facts(items, random.Random(3))
        self.assertEqual(items, list(range(20)))
        self.assertEqual(sorted(shuffled), items)
        self.assertNotEqual(shuffled, items)

    def test_shuffle_small_inputs(self):
        self.assertEqual(shuffle_facts([], random.Random(0)), [])
        self.assertEqual(shuffle_facts(["only"], random.Random(0)), ["only"])

    def test_session_order_varies_with_seed(self):
        settings = SessionSettings(included_numbers=[7], cards_per_session=12)
        first = generate_session_problems(settings, "u1", InMemorySessionHistory(), rng=random.Random(1))
        second = generate_session_problems(settings, "u1", InMemorySessionHistory(), rng=random.Random(2))
        self.assertEqual(sorted(first.keys()), sorted(second.keys()))
        self.assertNotEqual(first.keys(), second.keys())


if __name__ == "__main__":
    unittest.main()
