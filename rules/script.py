"""
Script Loader - Conversation scripts from text or YAML
======================================================

A script holds everything the engine needs: welcome and final messages,
pre- and post-substitution tables, keywords with their decomposition and
reassembly rules, fallback responses and quit phrases.

Text scripts use the classic line format::

    <header line, ignored>
    welcome message ...
    ;Final
    final message ...
    ;Pre
    find<TAB>replace
    ;Post
    find<TAB>replace
    ;Keywords
    k:word [word ...] priority
    d:pattern[/pattern ...]
    r:reassembly
    ;Other
    fallback response ...
    ;Quit
    quit phrase ...

YAML scripts carry the same content as a mapping (see ``ElizaScript.from_dict``).
"""

import random
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.exceptions import ScriptFormatError
from core.logging import get_logger
from .chooser import NonRepeatingChooser
from .decomposition import PatternRule
from .keywords import KeywordEntry, KeywordIndex, MOST_URGENT, LEAST_URGENT, PRIORITY_SENTINEL
from .substitution import SubstitutionTable

logger = get_logger("rules.script")


SECTION_FINAL = ";Final"
SECTION_PRE = ";Pre"
SECTION_POST = ";Post"
SECTION_KEYWORDS = ";Keywords"
SECTION_OTHER = ";Other"
SECTION_QUIT = ";Quit"

KEYWORD_PREFIX = "k:"
DECOMPOSITION_PREFIX = "d:"
REASSEMBLY_PREFIX = "r:"

YAML_SUFFIXES = (".yaml", ".yml")


@dataclass
class ElizaScript:
    """
    Fully validated, in-memory conversation script.

    Attributes:
        welcome_messages (list): Openers, one picked at random
        final_messages (list): Replies to a quit phrase
        pre_substitutions (SubstitutionTable): Applied to raw input
        post_substitutions (SubstitutionTable): Applied to captured fragments
        keywords (KeywordIndex): Keywords sorted by priority
        fallback (NonRepeatingChooser): Replies when no keyword matches
        quit_phrases (list): Phrases that end the conversation
    """
    welcome_messages: List[str]
    final_messages: List[str]
    pre_substitutions: SubstitutionTable
    post_substitutions: SubstitutionTable
    keywords: KeywordIndex
    fallback: NonRepeatingChooser
    quit_phrases: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert script to dictionary."""
        return {
            "welcome": list(self.welcome_messages),
            "final": list(self.final_messages),
            "pre": [rule.to_list() for rule in self.pre_substitutions],
            "post": [rule.to_list() for rule in self.post_substitutions],
            "keywords": [
                {
                    "triggers": [entry.trigger],
                    "priority": entry.priority,
                    "decompositions": [rule.to_dict() for rule in entry.rules],
                }
                for entry in self.keywords
            ],
            "fallback": list(self.fallback.items),
            "quit": list(self.quit_phrases),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rng: Optional[random.Random] = None) -> "ElizaScript":
        """
        Create script from dictionary.

        Expected layout::

            welcome: [str, ...]
            final: [str, ...]
            pre: [[find, replace], ...]
            post: [[find, replace], ...]
            keywords:
              - triggers: [str, ...]
                priority: int
                decompositions:
                  - patterns: [str, ...]
                    reassembly: [str, ...]
            fallback: [str, ...]
            quit: [str, ...]

        Raises:
            ScriptFormatError: If the data is malformed
        """
        if not isinstance(data, dict):
            raise ScriptFormatError("Script must be a mapping")

        builder = _ScriptBuilder(rng)
        builder.welcome = _string_list(data, "welcome")
        builder.final = _string_list(data, "final")
        builder.pre = _pairs(data, "pre")
        builder.post = _pairs(data, "post")

        for i, item in enumerate(data.get("keywords") or []):
            if not isinstance(item, dict):
                raise ScriptFormatError(f"Keyword block {i} must be a mapping")

            triggers = item.get("triggers")
            if triggers is None and "trigger" in item:
                triggers = [item["trigger"]]
            if isinstance(triggers, str):
                triggers = triggers.split()
            if not triggers:
                raise ScriptFormatError(f"Keyword block {i} has no triggers")

            builder.start_keyword([str(t) for t in triggers], item.get("priority"))
            for decomposition in item.get("decompositions") or []:
                if not isinstance(decomposition, dict):
                    raise ScriptFormatError(f"Decomposition in keyword block {i} must be a mapping")
                patterns = decomposition.get("patterns") or []
                if "pattern" in decomposition:
                    patterns = [decomposition["pattern"]]
                builder.start_decomposition([str(p) for p in patterns])
                for template in decomposition.get("reassembly") or []:
                    builder.add_reassembly(str(template))

        builder.other = _string_list(data, "fallback")
        builder.quit = _string_list(data, "quit")

        return builder.build()


class _ScriptBuilder:
    """Accumulates script sections and validates them into an ElizaScript."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng
        self.welcome: List[str] = []
        self.final: List[str] = []
        self.pre: List[Tuple[str, str]] = []
        self.post: List[Tuple[str, str]] = []
        self.other: List[str] = []
        self.quit: List[str] = []
        self.entries: List[KeywordEntry] = []

        self._triggers: Optional[List[str]] = None
        self._priority = 0
        self._decompositions: Optional[List[PatternRule]] = None
        self._patterns: Optional[List[str]] = None
        self._reassembly: List[str] = []
        self.line_number = 0

    def _error(self, message: str, **details) -> ScriptFormatError:
        return ScriptFormatError(message, self.line_number, details or None)

    def start_keyword(self, triggers: List[str], priority: Any) -> None:
        self.finish_keyword()

        if isinstance(priority, bool):
            raise self._error("Keyword priority must be a number", triggers=triggers)
        try:
            priority = int(priority)
        except (TypeError, ValueError):
            raise self._error(
                "Keyword priority must be a number",
                triggers=triggers,
                priority=priority,
            )
        # The sentinel means "nothing matched yet" and is never a real priority
        if priority >= PRIORITY_SENTINEL:
            raise self._error(
                f"Keyword priority must be below {PRIORITY_SENTINEL}",
                triggers=triggers,
                priority=priority,
            )
        if priority < MOST_URGENT:
            logger.warning(
                f"Keyword {triggers} priority {priority} is outside "
                f"{MOST_URGENT}-{LEAST_URGENT} (line {self.line_number})"
            )
        if not triggers:
            raise self._error("Keyword line has no trigger words")

        self._triggers = triggers
        self._priority = priority
        self._decompositions = []

    def start_decomposition(self, patterns: List[str]) -> None:
        if self._triggers is None:
            raise self._error("Decomposition outside a keyword block")
        self.finish_decomposition()
        if not patterns:
            raise self._error("Decomposition has no patterns")
        self._patterns = patterns
        self._reassembly = []

    def add_reassembly(self, template: str) -> None:
        if self._patterns is None:
            raise self._error("Reassembly outside a decomposition block")
        self._reassembly.append(template)

    def finish_decomposition(self) -> None:
        if self._patterns is None:
            return
        if not self._reassembly:
            raise self._error(
                "Decomposition has no reassembly rules",
                patterns=self._patterns,
            )
        for pattern in self._patterns:
            self._decompositions.append(PatternRule(pattern, list(self._reassembly), self.rng))
        self._patterns = None

    def finish_keyword(self) -> None:
        if self._triggers is None:
            return
        self.finish_decomposition()
        for trigger in self._triggers:
            self.entries.append(KeywordEntry(trigger, self._priority, self._decompositions))
        self._triggers = None

    def build(self) -> ElizaScript:
        self.finish_keyword()

        for name, pool in (
            ("welcome", self.welcome),
            ("final", self.final),
            ("fallback", self.other),
        ):
            if not pool:
                raise ScriptFormatError(f"Script has no {name} messages")

        script = ElizaScript(
            welcome_messages=self.welcome,
            final_messages=self.final,
            pre_substitutions=SubstitutionTable.from_pairs(self.pre),
            post_substitutions=SubstitutionTable.from_pairs(self.post),
            keywords=KeywordIndex(self.entries),
            fallback=NonRepeatingChooser(self.other, self.rng),
            quit_phrases=[phrase.lower() for phrase in self.quit if phrase.strip()],
        )
        logger.info(
            f"Script loaded: {len(script.keywords)} keywords, "
            f"{len(script.pre_substitutions)} pre / "
            f"{len(script.post_substitutions)} post substitutions"
        )
        return script


def _string_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ScriptFormatError(f"'{key}' must be a list")
    return [str(item) for item in value]


def _pairs(data: Dict[str, Any], key: str) -> List[Tuple[str, str]]:
    pairs = []
    for item in data.get(key) or []:
        if isinstance(item, dict) and set(item) == {"find", "replace"}:
            item = [item["find"], item["replace"]]
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ScriptFormatError(f"Malformed '{key}' substitution: {item!r}")
        pairs.append((str(item[0]), str(item[1])))
    return pairs


def _parse_pair(builder: _ScriptBuilder, line: str) -> Tuple[str, str]:
    fields = line.split("\t")
    if len(fields) != 2 or not fields[0] or not fields[1]:
        raise builder._error("Substitution line needs exactly two tab-separated fields", line=line)
    return fields[0], fields[1]


def parse_script(lines: Iterable[str], rng: Optional[random.Random] = None) -> ElizaScript:
    """
    Parse a text script.

    Args:
        lines: Script lines, trailing newlines allowed
        rng: Random source shared by every chooser in the script

    Returns:
        Validated ElizaScript

    Raises:
        ScriptFormatError: If the script is malformed
    """
    builder = _ScriptBuilder(rng)
    section = None

    # Sections are positional: each marker ends the one before it
    transitions = {
        "welcome": (SECTION_FINAL, "final"),
        "final": (SECTION_PRE, "pre"),
        "pre": (SECTION_POST, "post"),
        "post": (SECTION_KEYWORDS, "keywords"),
        "keywords": (SECTION_OTHER, "other"),
        "other": (SECTION_QUIT, "quit"),
    }

    for line_number, raw in enumerate(lines, start=1):
        builder.line_number = line_number
        line = raw.rstrip("\r\n")

        if section is None:
            section = "welcome"
            continue

        marker = transitions.get(section)
        if marker and line == marker[0]:
            section = marker[1]
            continue

        if section == "keywords":
            _parse_keyword_line(builder, line)
        elif not line.strip():
            # blank lines carry no message or rule
            continue
        elif section == "welcome":
            builder.welcome.append(line)
        elif section == "final":
            builder.final.append(line)
        elif section == "pre":
            builder.pre.append(_parse_pair(builder, line))
        elif section == "post":
            builder.post.append(_parse_pair(builder, line))
        elif section == "other":
            builder.other.append(line)
        else:
            builder.quit.append(line)

    builder.line_number = 0
    return builder.build()


def _parse_keyword_line(builder: _ScriptBuilder, line: str) -> None:
    if line.startswith(KEYWORD_PREFIX):
        words = line[len(KEYWORD_PREFIX):].split()
        if not words:
            raise builder._error("Keyword line has no trigger words or priority")
        builder.start_keyword(words[:-1], words[-1])
    elif line.startswith(DECOMPOSITION_PREFIX):
        builder.start_decomposition(line[len(DECOMPOSITION_PREFIX):].strip().split("/"))
    elif line.startswith(REASSEMBLY_PREFIX):
        builder.add_reassembly(line[len(REASSEMBLY_PREFIX):])
    elif line.strip():
        logger.debug(f"Ignoring line {builder.line_number} in keywords section: {line!r}")


def load_script(path: str, rng: Optional[random.Random] = None) -> ElizaScript:
    """
    Load a script file.

    Files ending in .yaml or .yml are read as YAML, anything else as a
    text script.

    Args:
        path: Script location
        rng: Random source shared by every chooser in the script

    Returns:
        Validated ElizaScript

    Raises:
        ScriptFormatError: If the file is missing, unreadable or malformed
    """
    script_path = Path(path)
    logger.debug(f"Loading script from {script_path}")

    try:
        with open(script_path, "r", encoding="utf-8") as f:
            if script_path.suffix.lower() in YAML_SUFFIXES:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ScriptFormatError(f"Failed to parse script: {e}", details={"path": str(script_path)})
                return ElizaScript.from_dict(data, rng)
            return parse_script(f, rng)
    except FileNotFoundError:
        raise ScriptFormatError("Script file not found", details={"path": str(script_path)})
    except UnicodeDecodeError:
        raise ScriptFormatError("Script is not valid UTF-8", details={"path": str(script_path)})
    except IOError as e:
        raise ScriptFormatError(f"Failed to read script: {e}", details={"path": str(script_path)})


def save_script(script: ElizaScript, path: str) -> None:
    """
    Save a script as YAML.

    Args:
        script: Script to save
        path: Destination file
    """
    script_path = Path(path)
    script_path.parent.mkdir(parents=True, exist_ok=True)

    with open(script_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(script.to_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    logger.info(f"Script saved to {script_path}")
