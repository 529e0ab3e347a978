"""
Shared test fixtures
====================
"""

import os
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import EngineConfig
from core.logging import reset_logging, clear_log_context
from rules.script import parse_script
from services.responder import ResponseEngine


def script_lines(
    patterns=("i am *",),
    templates=("Why are you 1 ?",),
    post=("sad\tunhappy",),
):
    """Build a small text script around a single 'sad' keyword."""
    lines = [
        ";Welcome",
        "Hello there.",
        "Nice to meet you.",
        ";Final",
        "Goodbye.",
        "Farewell.",
        ";Pre",
        "I'm\tI am",
        ";Post",
        *post,
        ";Keywords",
        "k:sad 3",
        "d:" + "/".join(patterns),
        *("r:" + template for template in templates),
        ";Other",
        "Please go on.",
        "Tell me more.",
        "Go on.",
        ";Quit",
        "bye",
        "Goodbye",
    ]
    return [line + "\n" for line in lines]


@pytest.fixture
def lines_factory():
    """Factory for the lines of the small script."""
    return script_lines


@pytest.fixture
def make_engine():
    """Factory for engines over the small script, typos off by default."""
    def factory(typo_odds=0, seed=1, **script_kwargs):
        rng = random.Random(seed)
        script = parse_script(script_lines(**script_kwargs), rng)
        return ResponseEngine(script, EngineConfig(typo_odds=typo_odds), rng)
    return factory


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep tests away from the user's config directory and ELIZA_* variables."""
    for name in list(os.environ):
        if name.startswith("ELIZA_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("ELIZA_CONFIG_DIR", str(tmp_path / "config"))
    yield
    reset_logging()
    clear_log_context()
