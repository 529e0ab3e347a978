"""
Console Application - Line-oriented conversation loop
=====================================================

This module implements the interactive loop: print a welcome message,
read a line, reply, and repeat until the engine recognizes a quit
phrase or input ends.
"""

import random
import sys
import time
from typing import Callable, Optional, TextIO

from core.config import ConsoleConfig
from core.logging import get_logger, set_log_context, clear_log_context
from services.responder import ResponseEngine

logger = get_logger("ui.terminal")


class ConsoleSession:
    """
    One interactive conversation on a text console.

    Example:
        session = ConsoleSession(engine, config.console)
        session.run()
    """

    def __init__(
        self,
        engine: ResponseEngine,
        config: Optional[ConsoleConfig] = None,
        input_func: Callable[[str], str] = input,
        output: Optional[TextIO] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the session.

        Args:
            engine: Response engine for this conversation
            config: Console settings
            input_func: Reads one line given a prompt
            output: Stream replies are written to (stdout by default)
            sleep: Used for the artificial reply delay
            clock: Monotonic clock in seconds
            rng: Random source for the delay length
        """
        self.engine = engine
        self.config = config or ConsoleConfig()
        self.input_func = input_func
        self.output = output or sys.stdout
        self.sleep = sleep
        self.clock = clock
        self.rng = rng or random.Random()
        self.turns = 0

    def say(self, text: str) -> None:
        """Print a line from the agent."""
        print(f"{self.config.agent_prefix}{text}", file=self.output, flush=True)

    def delay(self, started: float) -> None:
        """
        Wait until a random delay has passed since input was received.

        Args:
            started: Clock reading taken when input arrived
        """
        if not self.config.sleep_enabled:
            return
        delay_ms = self.rng.randint(self.config.min_delay_ms, self.config.max_delay_ms)
        remaining = delay_ms / 1000.0 - (self.clock() - started)
        if remaining > 0:
            self.sleep(remaining)

    def step(self, line: str) -> Optional[str]:
        """
        Handle one line of input.

        Args:
            line: Raw user input

        Returns:
            The reply, or None if the line was empty
        """
        if line == "":
            return None

        self.turns += 1
        set_log_context(turn=self.turns)

        started = self.clock()
        response = self.engine.generate_response(line)
        self.delay(started)
        self.say(response)
        return response

    def run(self) -> int:
        """
        Run the conversation until it ends.

        Returns:
            Number of turns answered
        """
        self.say(self.engine.get_welcome_message())

        try:
            while self.engine.is_active():
                try:
                    line = self.input_func(self.config.user_prefix)
                except EOFError:
                    logger.debug("Input closed")
                    break
                self.step(line)
        finally:
            clear_log_context()

        return self.turns


def run_console(engine: ResponseEngine, config: Optional[ConsoleConfig] = None) -> int:
    """Run an interactive conversation on stdin/stdout."""
    return ConsoleSession(engine, config).run()
