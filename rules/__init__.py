"""
Rules Module - Script-driven matching and transformation
========================================================

This module provides the building blocks of the response engine:
- Non-repeating random choice over response pools
- Ordered word-boundary substitution tables
- Wildcard decomposition patterns with reassembly templates
- Priority-ordered keyword index
- Script loading from the classic text format or YAML
"""

from .chooser import NonRepeatingChooser
from .substitution import SubstitutionRule, SubstitutionTable
from .decomposition import PatternRule
from .keywords import KeywordEntry, KeywordIndex, KeywordMatch
from .script import ElizaScript, load_script, parse_script, save_script

__all__ = [
    "NonRepeatingChooser",
    "SubstitutionRule",
    "SubstitutionTable",
    "PatternRule",
    "KeywordEntry",
    "KeywordIndex",
    "KeywordMatch",
    "ElizaScript",
    "load_script",
    "parse_script",
    "save_script",
]
