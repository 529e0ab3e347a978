"""
Keyword Index - Priority-ordered keyword lookup
===============================================

Keywords make decomposition rules eligible. Each keyword has a priority
(1 is the most urgent, 10 the least); the index scans keywords in
priority order and picks among the most urgent ones that match.
"""

import random
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from core.logging import get_logger
from .decomposition import PatternRule

logger = get_logger("rules.keywords")


MOST_URGENT = 1
LEAST_URGENT = 10

# Worse than any real priority; the starting point of every scan
PRIORITY_SENTINEL = LEAST_URGENT + 1


@dataclass(eq=False)
class KeywordEntry:
    """
    A trigger word with its priority and decomposition rules.

    Entries compare by identity: two entries with the same spelling are
    distinct keywords.

    Attributes:
        trigger (str): Word that must appear in the sentence
        priority (int): Urgency, lower is more urgent
        rules (list): Decomposition rules tried in order
    """
    trigger: str
    priority: int
    rules: List[PatternRule] = field(default_factory=list)

    def __post_init__(self):
        self._trigger_regex = re.compile(r"\b" + re.escape(self.trigger) + r"\b", re.IGNORECASE)

    def contains_trigger(self, sentence: str) -> bool:
        """Check for the trigger as a whole word."""
        return self._trigger_regex.search(sentence) is not None

    def find_rule(self, sentence: str) -> Optional[PatternRule]:
        """Return the first decomposition rule matching the sentence."""
        for rule in self.rules:
            if rule.matches(sentence, self.trigger):
                return rule
        return None

    def matches(self, sentence: str) -> bool:
        """
        Check whether this keyword applies to a sentence.

        Args:
            sentence: Normalized sentence

        Returns:
            True if the trigger is present and a decomposition rule matches
        """
        if not self.contains_trigger(sentence):
            return False
        return self.find_rule(sentence) is not None

    def apply(
        self,
        sentence: str,
        post_substitute: Callable[[str], str] = lambda fragment: fragment
    ) -> Optional[str]:
        """
        Reassemble a reply with the first matching decomposition rule.

        Args:
            sentence: Sentence this keyword matched
            post_substitute: Applied to captured fragments

        Returns:
            Reply text, or None if no rule matches the sentence
        """
        rule = self.find_rule(sentence)
        if rule is None:
            return None
        return rule.reassemble(sentence, self.trigger, post_substitute)

    def __repr__(self) -> str:
        return f"KeywordEntry({self.trigger!r}, priority={self.priority})"


@dataclass
class KeywordMatch:
    """
    Result of a keyword search.

    Attributes:
        entry (KeywordEntry): Winning keyword
        sentence (str): Sentence it matched
    """
    entry: KeywordEntry
    sentence: str

    def apply(self, post_substitute: Callable[[str], str] = lambda fragment: fragment) -> Optional[str]:
        return self.entry.apply(self.sentence, post_substitute)


class KeywordIndex:
    """
    Keywords sorted once by ascending priority value.

    The order is fixed at construction; the scan relies on it to stop
    early once it reaches keywords less urgent than the best match so far.
    Entries with equal priority keep their declaration order.

    Example:
        index = KeywordIndex(entries)
        found = index.select(["i am sad"], rng)
        if found:
            reply = found.apply()
    """

    def __init__(self, entries: Iterable[KeywordEntry] = ()):
        self._entries: Tuple[KeywordEntry, ...] = tuple(
            sorted(entries, key=lambda entry: entry.priority)
        )

    @property
    def entries(self) -> Tuple[KeywordEntry, ...]:
        return self._entries

    def select(
        self,
        sentences: Sequence[str],
        rng: Optional[random.Random] = None
    ) -> Optional[KeywordMatch]:
        """
        Find the most urgent keyword matching any of the sentences.

        For each sentence the scan stops at the first keyword less urgent
        than the best priority recorded so far. When one keyword matches
        several sentences, the last of them is kept. Ties at the best
        priority are broken uniformly at random.

        Args:
            sentences: Candidate sentences in input order
            rng: Random source for tie-breaking

        Returns:
            KeywordMatch, or None if nothing matched
        """
        best = PRIORITY_SENTINEL
        matched: Dict[KeywordEntry, str] = {}

        for sentence in sentences:
            for entry in self._entries:
                if entry.priority > best:
                    break
                if entry.matches(sentence):
                    matched[entry] = sentence
                    best = entry.priority

        if not matched:
            return None

        tied = [entry for entry in matched if entry.priority == best]
        winner = (rng or random).choice(tied)

        logger.debug(
            f"Keyword '{winner.trigger}' selected at priority {best} "
            f"from {len(tied)} candidate(s)"
        )
        return KeywordMatch(entry=winner, sentence=matched[winner])

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)
