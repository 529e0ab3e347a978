"""
Response Engine - Script-driven reply generation
================================================

This module turns user input into a reply by running it through the
loaded script: pre-substitution, sentence splitting, quit detection,
keyword selection, decomposition and reassembly, with fallback
responses when no keyword applies.
"""

import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from core.config import EngineConfig
from core.logging import get_logger
from rules.script import ElizaScript

logger = get_logger("services.responder")


# Kept besides letters; str.isalpha() excludes digits, underscores and other numerics
_KEPT_PUNCTUATION = frozenset(" .,:;!?'-")
_MULTI_SPACE = re.compile(r" {2,}")
_SENTENCE_SEPARATOR = re.compile(r"[.,:;!?] *")


class ConversationState(Enum):
    """Lifecycle of a conversation."""
    ACTIVE = "active"
    TERMINATED = "terminated"


class ResponseSource(Enum):
    """Where a reply came from."""
    KEYWORD = "keyword"
    FALLBACK = "fallback"
    FINAL = "final"


@dataclass
class ResponseResult:
    """
    Result of response generation.

    Attributes:
        response (str): Reply text
        source (ResponseSource): Keyword, fallback or final message
        keyword (str): Winning keyword, if any
        sentence (str): Sentence the keyword matched, if any
        typo (bool): Whether a typo was injected
    """
    response: str
    source: ResponseSource
    keyword: Optional[str] = None
    sentence: Optional[str] = None
    typo: bool = False


def normalize(text: str) -> str:
    """Lowercase and trim."""
    return text.strip().lower()


def clean(text: str) -> str:
    """Drop unsupported characters and collapse runs of spaces."""
    kept = "".join(ch for ch in text if ch.isalpha() or ch in _KEPT_PUNCTUATION)
    return _MULTI_SPACE.sub(" ", kept)


def split_sentences(text: str) -> List[str]:
    """Split on sentence punctuation, dropping empty sentences."""
    sentences = (part.strip() for part in _SENTENCE_SEPARATOR.split(text))
    return [sentence for sentence in sentences if sentence]


def inject_typo(text: str, rng: Optional[random.Random] = None) -> str:
    """
    Swap one pair of adjacent characters.

    Args:
        text: Reply text
        rng: Random source

    Returns:
        Text with one adjacent swap; unchanged if shorter than two characters
    """
    rng = rng or random
    length = len(text)
    if length < 2:
        return text
    if length == 2:
        return text[1] + text[0]

    index = rng.randrange(length)
    if index == 0:
        other = 1
    elif index == length - 1:
        other = length - 2
    else:
        other = index - 1 if rng.randrange(2) == 1 else index + 1

    chars = list(text)
    chars[index], chars[other] = chars[other], chars[index]
    return "".join(chars)


class ResponseEngine:
    """
    Conversation engine driven by a script.

    The engine is single-threaded and owns the script's choosers; give
    each concurrent conversation its own engine built from its own
    loaded script.

    Example:
        script = load_script("doctor.txt")
        engine = ResponseEngine(script)

        print(engine.get_welcome_message())
        while engine.is_active():
            print(engine.generate_response(input("> ")))
    """

    def __init__(
        self,
        script: ElizaScript,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the engine.

        Args:
            script: Loaded conversation script
            config: Engine settings (typo odds, seed)
            rng: Random source; seeded from config when omitted
        """
        self.script = script
        self.config = config or EngineConfig()
        self.rng = rng if rng is not None else random.Random(self.config.seed)
        self.state = ConversationState.ACTIVE

    def is_active(self) -> bool:
        """False once a quit phrase has been recognized."""
        return self.state == ConversationState.ACTIVE

    def get_welcome_message(self) -> str:
        """Return a randomly chosen opening line."""
        return self.rng.choice(self.script.welcome_messages)

    def generate_response(self, text: str) -> str:
        """
        Generate a reply to one line of user input.

        Args:
            text: Raw user input, possibly several sentences

        Returns:
            Reply text
        """
        return self.respond(text).response

    def respond(self, text: str) -> ResponseResult:
        """
        Generate a reply with details about how it was produced.

        Args:
            text: Raw user input

        Returns:
            ResponseResult
        """
        if not self.is_active():
            return self._final()

        text = self.script.pre_substitutions.apply(normalize(text)).lower()
        sentences = split_sentences(clean(text))

        if any(self._is_quit(sentence) for sentence in sentences):
            self.state = ConversationState.TERMINATED
            logger.info("Quit phrase recognized, conversation terminated")
            return self._final()

        found = self.script.keywords.select(sentences, self.rng)
        if found is None:
            logger.debug("No keyword matched, using fallback response")
            return ResponseResult(
                response=self.script.fallback.next(),
                source=ResponseSource.FALLBACK,
            )

        response = found.apply(self._post_substitute)
        result = ResponseResult(
            response=response,
            source=ResponseSource.KEYWORD,
            keyword=found.entry.trigger,
            sentence=found.sentence,
        )

        odds = self.config.typo_odds
        if odds and self.rng.randrange(odds) == 0:
            result.response = inject_typo(response, self.rng)
            result.typo = True
            logger.debug("Typo injected")

        return result

    def _final(self) -> ResponseResult:
        return ResponseResult(
            response=self.rng.choice(self.script.final_messages),
            source=ResponseSource.FINAL,
        )

    def _post_substitute(self, fragment: str) -> str:
        return self.script.post_substitutions.apply(fragment).strip()

    def _is_quit(self, sentence: str) -> bool:
        for phrase in self.script.quit_phrases:
            if re.search(r"\b" + re.escape(phrase) + r"\b", sentence):
                return True
        return False
