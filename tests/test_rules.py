"""
Test Decomposition and Keyword Rules
====================================

Unit tests for pattern compilation, reassembly and keyword selection.
"""

import random
from collections import Counter

import pytest
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from rules.decomposition import PatternRule, TokenKind, tokenize
from rules.keywords import KeywordEntry, KeywordIndex, PRIORITY_SENTINEL
from rules.substitution import SubstitutionTable


def catch_all(*templates):
    return PatternRule("*", list(templates) or ["ok"])


class CountingEntry(KeywordEntry):
    """Keyword entry that records how often it was tested."""

    def __post_init__(self):
        super().__post_init__()
        self.calls = 0

    def matches(self, sentence):
        self.calls += 1
        return super().matches(sentence)


class TestPatternRule:
    """Tests for PatternRule."""

    def test_tokenize(self):
        """Test the pattern is split into typed tokens."""
        kinds = [token.kind for token in tokenize("* i am $")]
        assert kinds == [
            TokenKind.WILDCARD, TokenKind.SPACE,
            TokenKind.LITERAL, TokenKind.SPACE,
            TokenKind.LITERAL, TokenKind.SPACE,
            TokenKind.KEYWORD,
        ]

    def test_compile(self):
        """Test the generated regex is anchored with captures."""
        rule = PatternRule("* i am *", ["x"])
        assert rule.compile("sad").pattern == r"^(.*)\si\sam\s(.*)$"
        assert rule.group_count == 2

    def test_compile_cached(self):
        """Test compilation happens once per keyword."""
        rule = PatternRule("* my $ *", ["x"])
        assert rule.compile("mother") is rule.compile("mother")
        assert rule.compile("mother") is not rule.compile("father")

    def test_keyword_expansion(self):
        """Test $ stands for the keyword."""
        rule = PatternRule("* my $ *", ["x"])
        assert rule.matches("i love my mother dearly", "mother")
        assert not rule.matches("i love my mother dearly", "father")

    def test_whole_sentence_anchoring(self):
        """Test the pattern must cover the entire sentence."""
        rule = PatternRule("i am *", ["x"])
        assert rule.matches("i am sad", "sad")
        assert not rule.matches("well i am sad", "sad")

    def test_leading_wildcard_needs_separator(self):
        """Test a wildcard followed by a space requires that space."""
        rule = PatternRule("* i am *", ["x"])
        assert not rule.matches("i am sad", "sad")
        assert rule.matches("well i am sad", "sad")

    def test_case_insensitive(self):
        """Test matching ignores case."""
        rule = PatternRule("I am *", ["x"])
        assert rule.matches("i AM sad", "sad")

    def test_literals_escaped(self):
        """Test regex metacharacters in patterns are matched literally."""
        rule = PatternRule("why (not)", ["x"])
        assert rule.matches("why (not)", "why")
        assert not rule.matches("why not", "why")

    def test_empty_templates_rejected(self):
        """Test construction fails without reassembly templates."""
        with pytest.raises(ValueError):
            PatternRule("*", [])

    def test_reassemble_first_group(self):
        """Test the first capture is post-substituted into the template."""
        post = SubstitutionTable.from_pairs([("sad", "unhappy")])
        rule = PatternRule("i am *", ["Why are you 1 ?"])
        assert rule.reassemble("i am sad", "sad", post.apply) == "Why are you unhappy ?"

    def test_reassemble_two_groups(self):
        """Test both captures are wired."""
        rule = PatternRule("* i am *", ["You say 1 but you are 2?"])
        assert rule.reassemble("well i am sad", "sad") == "You say well but you are sad?"

    def test_missing_group_left_alone(self):
        """Test a placeholder without a matching capture stays literal."""
        rule = PatternRule("i am *", ["1 and 2"])
        assert rule.reassemble("i am sad", "sad") == "sad and 2"

    def test_keyword_in_template(self):
        """Test $ in the template becomes the keyword."""
        rule = PatternRule("*", ["Tell me about your $."])
        assert rule.reassemble("my mother", "mother") == "Tell me about your mother."

    def test_reassemble_non_matching(self):
        """Test None is returned when the sentence does not fit."""
        rule = PatternRule("i am *", ["x"])
        assert rule.reassemble("you are sad", "sad") is None

    def test_templates_rotate_without_repeats(self):
        """Test templates are exhausted before any repeats."""
        rule = PatternRule("*", ["a", "b", "c"], random.Random(5))
        replies = [rule.reassemble("anything", "x") for _ in range(3)]
        assert sorted(replies) == ["a", "b", "c"]


class TestKeywordEntry:
    """Tests for KeywordEntry."""

    def test_trigger_word_boundary(self):
        """Test triggers are not matched inside larger words."""
        entry = KeywordEntry("cat", 3, [catch_all()])
        assert not entry.matches("the category")
        assert entry.matches("my cat")

    def test_requires_matching_pattern(self):
        """Test the trigger alone is not enough."""
        entry = KeywordEntry("sad", 3, [PatternRule("i am *", ["x"])])
        assert not entry.matches("he is sad")
        assert entry.matches("i am sad")

    def test_apply_uses_first_matching_rule(self):
        """Test rules are tried in declaration order."""
        entry = KeywordEntry("sad", 3, [
            PatternRule("i am *", ["first"]),
            catch_all("second"),
        ])
        assert entry.apply("i am sad") == "first"
        assert entry.apply("so sad") == "second"

    def test_identity_equality(self):
        """Test same-spelled entries stay distinct."""
        rules = [catch_all()]
        assert KeywordEntry("sad", 3, rules) != KeywordEntry("sad", 3, rules)


class TestKeywordIndex:
    """Tests for KeywordIndex."""

    def test_sorted_by_priority(self):
        """Test entries are ordered by ascending priority, stable on ties."""
        low = KeywordEntry("low", 7, [catch_all()])
        first = KeywordEntry("first", 3, [catch_all()])
        second = KeywordEntry("second", 3, [catch_all()])

        index = KeywordIndex([low, first, second])
        assert list(index) == [first, second, low]

    def test_no_match(self):
        """Test None is returned when nothing applies."""
        index = KeywordIndex([KeywordEntry("sad", 3, [catch_all()])])
        assert index.select(["i am happy"]) is None

    def test_most_urgent_tier_wins_uniformly(self):
        """Test only priority-3 entries win and both are picked."""
        a = KeywordEntry("sad", 3, [catch_all()])
        b = KeywordEntry("am", 3, [catch_all()])
        c = KeywordEntry("i", 7, [catch_all()])
        index = KeywordIndex([c, a, b])

        rng = random.Random(2024)
        counts = Counter(index.select(["i am sad"], rng).entry for _ in range(400))

        assert c not in counts
        assert set(counts) == {a, b}
        assert 140 < counts[a] < 260

    def test_scan_stops_at_less_urgent(self):
        """Test less urgent keywords are not even tested after a match."""
        urgent = KeywordEntry("sad", 1, [catch_all()])
        lazy = CountingEntry("sad", 5, [catch_all()])
        index = KeywordIndex([lazy, urgent])

        found = index.select(["i am sad", "so sad"])
        assert found.entry is urgent
        assert lazy.calls == 0

    def test_later_sentence_can_improve(self):
        """Test a more urgent keyword in a later sentence wins."""
        weak = KeywordEntry("hello", 5, [catch_all()])
        strong = KeywordEntry("sad", 2, [catch_all()])
        index = KeywordIndex([weak, strong])

        found = index.select(["hello", "i am sad"])
        assert found.entry is strong
        assert found.sentence == "i am sad"

    def test_last_matching_sentence_kept(self):
        """Test an entry matching several sentences pairs with the last one."""
        entry = KeywordEntry("sad", 3, [catch_all()])
        index = KeywordIndex([entry])

        found = index.select(["i am sad", "so very sad"])
        assert found.sentence == "so very sad"

    def test_sentinel_worse_than_any_priority(self):
        """Test the scan sentinel sits below the least urgent tier."""
        assert PRIORITY_SENTINEL == 11
        entry = KeywordEntry("sad", 10, [catch_all()])
        assert KeywordIndex([entry]).select(["sad"]).entry is entry

    def test_match_apply(self):
        """Test the match reassembles against its own sentence."""
        entry = KeywordEntry("sad", 3, [PatternRule("i am *", ["You are 1."])])
        found = KeywordIndex([entry]).select(["hello", "i am sad"])
        assert found.apply() == "You are sad."


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
