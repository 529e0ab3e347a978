"""
Decomposition Rules - Wildcard sentence patterns and reassembly
===============================================================

A decomposition pattern describes the shape of a whole sentence:

- ``$`` stands for the keyword that triggered the rule
- ``*`` captures any run of characters (possibly empty)
- a space matches one whitespace character
- anything else is matched literally, ignoring case

When a pattern matches, one of its reassembly templates is chosen and
filled in: ``$`` becomes the keyword, ``1`` and ``2`` become the first
and second captured fragments after post-substitution.
"""

import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .chooser import NonRepeatingChooser


KEYWORD_SYNONYM = "$"
WILDCARD = "*"
FIRST_GROUP = "1"
SECOND_GROUP = "2"

_TOKEN_SPLIT = re.compile(r"([$* ])")


class TokenKind(Enum):
    """Kinds of tokens in a decomposition pattern."""
    LITERAL = "literal"
    KEYWORD = "keyword"
    WILDCARD = "wildcard"
    SPACE = "space"


@dataclass(frozen=True)
class PatternToken:
    """One token of a parsed decomposition pattern."""
    kind: TokenKind
    text: str = ""

    def to_regex(self, keyword: str) -> str:
        if self.kind == TokenKind.KEYWORD:
            return re.escape(keyword)
        if self.kind == TokenKind.WILDCARD:
            return "(.*)"
        if self.kind == TokenKind.SPACE:
            return r"\s"
        return re.escape(self.text)


def tokenize(pattern: str) -> Tuple[PatternToken, ...]:
    """
    Split a decomposition pattern into tokens.

    Args:
        pattern: Pattern text such as ``* i am *``

    Returns:
        Tuple of PatternToken
    """
    tokens: List[PatternToken] = []
    for piece in _TOKEN_SPLIT.split(pattern.lower()):
        if not piece:
            continue
        if piece == KEYWORD_SYNONYM:
            tokens.append(PatternToken(TokenKind.KEYWORD))
        elif piece == WILDCARD:
            tokens.append(PatternToken(TokenKind.WILDCARD))
        elif piece == " ":
            tokens.append(PatternToken(TokenKind.SPACE))
        else:
            tokens.append(PatternToken(TokenKind.LITERAL, piece))
    return tuple(tokens)


class PatternRule:
    """
    A decomposition pattern with its pool of reassembly templates.

    Compiled regexes are cached per keyword, since one rule may be shared
    by several keywords declared together.

    Attributes:
        pattern (str): Pattern text as written in the script
        templates (tuple): Reassembly templates in declaration order
        tokens (tuple): Parsed pattern
    """

    def __init__(
        self,
        pattern: str,
        templates: Sequence[str],
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the rule.

        Args:
            pattern: Decomposition pattern
            templates: Reassembly templates (at least one)
            rng: Random source for template selection

        Raises:
            ValueError: If templates is empty
        """
        if not templates:
            raise ValueError(f"Decomposition '{pattern}' has no reassembly templates")

        self.pattern = pattern
        self.templates: Tuple[str, ...] = tuple(templates)
        self.tokens = tokenize(pattern)
        self._chooser = NonRepeatingChooser(self.templates, rng)
        self._compiled: Dict[str, "re.Pattern"] = {}

    @property
    def group_count(self) -> int:
        """Number of capturing wildcards in the pattern."""
        return sum(1 for token in self.tokens if token.kind == TokenKind.WILDCARD)

    def compile(self, keyword: str) -> "re.Pattern":
        """
        Compile the pattern for a keyword.

        Args:
            keyword: Literal keyword substituted for ``$``

        Returns:
            Regex anchored to the whole sentence, case-insensitive
        """
        compiled = self._compiled.get(keyword)
        if compiled is None:
            body = "".join(token.to_regex(keyword) for token in self.tokens)
            compiled = re.compile(f"^{body}$", re.IGNORECASE)
            self._compiled[keyword] = compiled
        return compiled

    def match(self, sentence: str, keyword: str) -> Optional["re.Match"]:
        """Match the whole sentence, returning the match or None."""
        return self.compile(keyword).match(sentence)

    def matches(self, sentence: str, keyword: str) -> bool:
        """Check whether the pattern matches the whole sentence."""
        return self.match(sentence, keyword) is not None

    def reassemble(
        self,
        sentence: str,
        keyword: str,
        post_substitute: Callable[[str], str] = lambda fragment: fragment
    ) -> Optional[str]:
        """
        Build a reply from the next reassembly template.

        Only the first two captures are addressable, as ``1`` and ``2``.

        Args:
            sentence: Sentence the pattern matched
            keyword: Keyword that selected this rule
            post_substitute: Applied to each fragment before insertion

        Returns:
            Filled-in template, or None if the pattern does not match
        """
        match = self.match(sentence, keyword)
        if match is None:
            return None

        reply = self._chooser.next().replace(KEYWORD_SYNONYM, keyword)
        groups = match.re.groups

        if groups >= 1 and FIRST_GROUP in reply:
            reply = reply.replace(FIRST_GROUP, post_substitute(match.group(1)))

        if groups >= 2 and SECOND_GROUP in reply:
            reply = reply.replace(SECOND_GROUP, post_substitute(match.group(2)))

        return reply

    def to_dict(self) -> Dict[str, object]:
        return {"patterns": [self.pattern], "reassembly": list(self.templates)}

    def __repr__(self) -> str:
        return f"PatternRule({self.pattern!r}, templates={len(self.templates)})"
