# ABOUTME: Loads generator tunables (history window, attempt budget, seed) from YAML.
# ABOUTME: Missing keys fall back to defaults so partial configs stay valid.

from __future__ import annotations

import random
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from src.common.errors import InvalidConfig


@dataclass(frozen=True)
class GeneratorConfig:
    """Knobs for session problem assembly."""

    history_window: int = 3
    attempt_multiplier: int = 10
    max_attempts: int = 10000
    max_cards_per_session: int = 1000
    seed: Optional[int] = None

    def attempt_budget(self, requested: int) -> int:
        return min(requested * self.attempt_multiplier, self.max_attempts)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_CONFIG = GeneratorConfig()


def generator_config_from_dict(raw: Optional[Dict[str, Any]]) -> GeneratorConfig:
    raw = raw or {}
    if not isinstance(raw, dict):
        raise InvalidConfig("Generator config must be a mapping.")

    # Configs may nest everything under a top-level "generator" section.
    section = raw.get("generator", raw) or {}
    if not isinstance(section, dict):
        raise InvalidConfig("generator section must be a mapping.")
    known = {f.name for f in fields(GeneratorConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise InvalidConfig(f"Unknown generator config keys: {', '.join(unknown)}")

    config = GeneratorConfig(**section)
    for name in ("history_window", "attempt_multiplier", "max_attempts", "max_cards_per_session"):
        value = getattr(config, name)
        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise InvalidConfig(f"{name} must be a positive integer, got {value!r}")
    if config.seed is not None and (not isinstance(config.seed, int) or isinstance(config.seed, bool)):
        raise InvalidConfig(f"seed must be an integer or null, got {config.seed!r}")
    return config


def load_generator_config(config_path: Path) -> GeneratorConfig:
    """Read a YAML file into a GeneratorConfig."""
    with open(config_path) as f:
        cfg = yaml.safe_load(f)
    return generator_config_from_dict(cfg)


def make_rng(config: GeneratorConfig = DEFAULT_CONFIG) -> random.Random:
    return random.Random(config.seed)
