"""
Test Console Session
====================

Unit tests for the interactive conversation loop.
"""

import io
import random
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import ConsoleConfig
from core.logging import ContextFilter
from ui.terminal.app import ConsoleSession


def scripted_input(lines):
    """Input function that replays lines, then signals end of input."""
    remaining = list(lines)
    prompts = []

    def read(prompt):
        prompts.append(prompt)
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    read.prompts = prompts
    return read


class TestConsoleSession:
    """Tests for ConsoleSession."""

    def test_conversation_until_quit(self, make_engine):
        """Test the loop greets, replies and stops on a quit phrase."""
        output = io.StringIO()
        read = scripted_input(["I am sad", "bye", "never read"])
        session = ConsoleSession(make_engine(), input_func=read, output=output)

        assert session.run() == 2

        lines = output.getvalue().splitlines()
        assert lines[0] in ("Eliza: Hello there.", "Eliza: Nice to meet you.")
        assert lines[1] == "Eliza: Why are you unhappy ?"
        assert lines[2] in ("Eliza: Goodbye.", "Eliza: Farewell.")
        assert len(lines) == 3
        assert read.prompts == [">>", ">>"]

    def test_end_of_input(self, make_engine):
        """Test the loop ends quietly when input runs out."""
        output = io.StringIO()
        session = ConsoleSession(make_engine(), input_func=scripted_input(["hello"]), output=output)

        assert session.run() == 1
        assert len(output.getvalue().splitlines()) == 2

    def test_empty_line_skipped(self, make_engine):
        """Test an empty line gets no reply."""
        output = io.StringIO()
        session = ConsoleSession(make_engine(), output=output)

        assert session.step("") is None
        assert session.turns == 0
        assert output.getvalue() == ""

    def test_custom_prefixes(self, make_engine):
        """Test prompt decoration comes from the console settings."""
        output = io.StringIO()
        read = scripted_input(["bye"])
        config = ConsoleConfig(agent_prefix="Doc> ", user_prefix="You> ")
        ConsoleSession(make_engine(), config, input_func=read, output=output).run()

        assert all(line.startswith("Doc> ") for line in output.getvalue().splitlines())
        assert read.prompts == ["You> "]

    def test_delay_measured_from_input(self, make_engine):
        """Test time spent replying counts toward the delay."""
        slept = []
        clock = iter([10.0, 10.5]).__next__
        config = ConsoleConfig(sleep_enabled=True, min_delay_ms=1500, max_delay_ms=1500)
        session = ConsoleSession(
            make_engine(), config,
            output=io.StringIO(), sleep=slept.append, clock=clock,
            rng=random.Random(0),
        )

        session.step("I am sad")
        assert slept == [1.0]

    def test_no_sleep_when_reply_slow(self, make_engine):
        """Test nothing is slept once the delay has already elapsed."""
        slept = []
        clock = iter([10.0, 13.0]).__next__
        config = ConsoleConfig(sleep_enabled=True, min_delay_ms=1500, max_delay_ms=2000)
        session = ConsoleSession(
            make_engine(), config,
            output=io.StringIO(), sleep=slept.append, clock=clock,
        )

        session.step("hello")
        assert slept == []

    def test_delay_disabled(self, make_engine):
        """Test the default settings never sleep."""
        slept = []
        session = ConsoleSession(make_engine(), output=io.StringIO(), sleep=slept.append)

        session.step("hello")
        session.step("I am sad")
        assert slept == []

    def test_turn_logged_in_context(self, make_engine):
        """Test the turn number is attached to log records and cleared at exit."""
        session = ConsoleSession(make_engine(), output=io.StringIO())
        session.step("hello")
        session.step("hello")
        assert ContextFilter.get_context() == {"turn": 2}

        session.input_func = scripted_input([])
        session.run()
        assert ContextFilter.get_context() == {}
