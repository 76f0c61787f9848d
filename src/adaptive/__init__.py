# ABOUTME: Exposes the adaptive problem-selection engine.
# ABOUTME: Groups the priority heap, wrong-answer analysis, weighted sampling, and session assembly.

from .config import GeneratorConfig, load_generator_config
from .frequency import analyze_wrong_answers, rank_weak_operands
from .heap import MaxHeap
from .sampling import generate_weighted_problem, select_weighted
from .session import generate_session_problems, shuffle_facts

__all__ = [
    "GeneratorConfig",
    "MaxHeap",
    "analyze_wrong_answers",
    "generate_session_problems",
    "generate_weighted_problem",
    "load_generator_config",
    "rank_weak_operands",
    "select_weighted",
    "shuffle_facts",
]
