"""
Substitution Tables - Ordered word-boundary find/replace passes
===============================================================

Substitution tables rewrite text phrase by phrase. The engine keeps two
of them: one normalizes raw input before keyword search, the other
reflects captured fragments before they are placed into a reply.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from core.logging import get_logger

logger = get_logger("rules.substitution")


# Replacement value meaning "delete the matched phrase"
DELETE_SENTINEL = "_"

# Word character prefixed to inserted words so later rules cannot see a
# word boundary in front of them; stripped once the whole table has run.
_MARKER = "_"

_MULTI_SPACE = re.compile(r" {2,}")


@dataclass(frozen=True)
class SubstitutionRule:
    """
    A single find/replace pair.

    Attributes:
        find (str): Phrase to look for, matched as whole words
        replace (str): Replacement text, or "_" to delete the phrase
    """
    find: str
    replace: str

    @property
    def deletes(self) -> bool:
        """True when the rule removes the phrase instead of replacing it."""
        return self.replace == DELETE_SENTINEL

    def pattern(self) -> "re.Pattern":
        """Case-insensitive whole-word matcher for the find phrase."""
        return re.compile(r"\b" + re.escape(self.find.lower()) + r"\b", re.IGNORECASE)

    def marked_replacement(self) -> str:
        """Replacement text with every word shielded by the marker."""
        if self.deletes:
            return ""
        return _MARKER + self.replace.replace(" ", " " + _MARKER)

    def to_list(self) -> List[str]:
        return [self.find, self.replace]


class SubstitutionTable:
    """
    Ordered collection of substitution rules applied as a single pass.

    Rules run in declaration order and may cascade: an earlier rule can
    rewrite text that a later rule would otherwise have matched. Text
    inserted by a rule is never rematched by a later rule of the same
    pass.

    Example:
        table = SubstitutionTable([
            SubstitutionRule("i'm", "i am"),
            SubstitutionRule("am", "happen to be"),
        ])
        table.apply("i'm here")  # "i am here"
    """

    def __init__(self, rules: Iterable[SubstitutionRule] = ()):
        self._rules: Tuple[SubstitutionRule, ...] = tuple(rules)
        self._patterns = tuple(rule.pattern() for rule in self._rules)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "SubstitutionTable":
        """Build a table from (find, replace) tuples."""
        return cls(SubstitutionRule(find, replace) for find, replace in pairs)

    @property
    def rules(self) -> Tuple[SubstitutionRule, ...]:
        return self._rules

    def apply(self, text: str) -> str:
        """
        Run every rule over the text.

        Args:
            text: Text to rewrite

        Returns:
            Rewritten text with runs of spaces collapsed to one
        """
        for rule, pattern in zip(self._rules, self._patterns):
            if rule.find.lower() not in text:
                continue

            replacement = rule.marked_replacement()
            text, count = pattern.subn(lambda _match: replacement, text)
            if count:
                logger.debug(f"Substituted '{rule.find}' x{count}")

        text = text.replace(_MARKER, "")
        return _MULTI_SPACE.sub(" ", text)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self):
        return iter(self._rules)
