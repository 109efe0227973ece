"""
Canonical team name resolution across data feeds.

The ratings roster is the source of truth for team identity. Every other
feed spells teams its own way and there is no shared key:

  Ratings roster:   "Ohio St."
  Odds feed:        "Ohio State Buckeyes"
  Schedule feed:    "Ohio State"
  Scraped lines:    "Ohio St"

``TeamNameResolver`` maps any of those spellings onto a roster name by
trying a fixed chain of deterministic strategies, first success wins:

1. Exact match (case-sensitive)
2. Case-insensitive exact match
3. Manual override table (operator-curated, consulted live)
4. Normalized match (mascot stripped, State/Saint folded to "St.")
5. Word-set match (every significant token pairs off, prefix abbreviations allowed)

Anything else is unresolved. Unresolved names are a data-quality signal for
whoever curates the override table; the resolver never guesses or learns.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .mascots import DEFAULT_MASCOTS, normalize_vocabulary
from .overrides import OverrideTable

logger = logging.getLogger(__name__)

OverrideSource = Union[OverrideTable, Mapping[str, str], None]

STATE_TOKEN = "st"
MIN_PREFIX_LENGTH = 3


def build_mascot_pattern(mascots: Optional[Iterable[str]] = None) -> "re.Pattern[str]":
    """Compile a regex that strips one trailing mascot phrase (case-insensitive)."""
    vocab = normalize_vocabulary(DEFAULT_MASCOTS if mascots is None else mascots)
    if not vocab:
        return re.compile(r"(?!x)x")
    alternation = "|".join(r"\s+".join(re.escape(w) for w in m.split()) for m in vocab)
    return re.compile(rf"\s+(?:{alternation})$", re.IGNORECASE)


_DEFAULT_MASCOT_PATTERN = build_mascot_pattern()


def normalize_team_name(name: str, mascot_pattern: Optional["re.Pattern[str]"] = None) -> str:
    """Canonicalize a name for whole-string comparison.

    Lowercases, strips a trailing mascot, collapses whitespace, folds
    "State"/"Saint"/"St" to "st." and strips trailing punctuation.

    Examples::

        >>> normalize_team_name("Ohio State Buckeyes")
        'ohio st.'
        >>> normalize_team_name("Saint Mary's Gaels")
        "st. mary's"
    """
    if not name:
        return ""
    pattern = mascot_pattern or _DEFAULT_MASCOT_PATTERN
    s = html.unescape(str(name)).lower().strip()
    s = re.sub(r"\s+", " ", s)
    s = pattern.sub("", s)
    s = re.sub(r"\bstate\b", "st.", s)
    s = re.sub(r"\bsaint\b", "st.", s)
    s = re.sub(r"[\s.,;:!]+$", "", s)
    s = re.sub(r"\bst\b(?!\.)", "st.", s)
    return s.strip()


def significant_words(name: str, mascot_pattern: Optional["re.Pattern[str]"] = None) -> List[str]:
    """Reduce a name to its comparable tokens (mascot gone, state family folded to ``st``)."""
    if not name:
        return []
    pattern = mascot_pattern or _DEFAULT_MASCOT_PATTERN
    s = html.unescape(str(name)).lower().strip()
    s = re.sub(r"\s+", " ", s)
    s = pattern.sub("", s)
    s = re.sub(r"\bstate\b", STATE_TOKEN, s)
    s = re.sub(r"\bsaint\b", STATE_TOKEN, s)
    s = re.sub(r"[.'’]", "", s)
    s = re.sub(r"[^a-z0-9&\s]", " ", s)
    return s.split()


def _tokens_correspond(a: str, b: str) -> bool:
    if a == b:
        return True
    if len(a) >= MIN_PREFIX_LENGTH and len(b) >= MIN_PREFIX_LENGTH:
        return a.startswith(b) or b.startswith(a)
    return False


def words_match(words1: Sequence[str], words2: Sequence[str]) -> bool:
    """True when the two token lists pair off one-to-one.

    Requires equal token counts and agreement on the state token, so
    "North Dakota" never matches "North Dakota St.". Pairing is a perfect
    bipartite matching, not "some token overlaps".
    """
    if not words1 or not words2:
        return False
    if len(words1) != len(words2):
        return False
    if (STATE_TOKEN in words1) != (STATE_TOKEN in words2):
        return False

    candidates = [[j for j, w in enumerate(words2) if _tokens_correspond(word, w)] for word in words1]
    partner_of: Dict[int, int] = {}

    def augment(i: int, visited: set) -> bool:
        for j in candidates[i]:
            if j in visited:
                continue
            visited.add(j)
            if j not in partner_of or augment(partner_of[j], visited):
                partner_of[j] = i
                return True
        return False

    return all(augment(i, set()) for i in range(len(words1)))


def _override_lookup(overrides: OverrideSource, raw: str) -> Optional[str]:
    if overrides is None:
        return None
    if isinstance(overrides, OverrideTable):
        return overrides.lookup(raw)
    key = raw.strip().lower()
    for source_name, canonical in overrides.items():
        if source_name.strip().lower() == key:
            return canonical
    return None


@dataclass
class MatchResult:
    """Result of a team name resolution attempt."""

    raw_name: str
    canonical_name: Optional[str]
    method: str  # "exact", "case_insensitive", "override", "normalized", "word_set", "unresolved", "empty"

    @property
    def resolved(self) -> bool:
        return self.canonical_name is not None


class RosterIndex:
    """Precomputed lookup forms for one roster. Built once, read-only afterwards."""

    def __init__(self, roster_names: Iterable[str], mascot_pattern: "re.Pattern[str]"):
        self.names: Tuple[str, ...] = tuple(roster_names)
        self.mascot_pattern = mascot_pattern
        self.exact = set(self.names)
        self.lower: Dict[str, str] = {}
        self.normalized: Dict[str, str] = {}
        self.words: List[Tuple[str, List[str]]] = []

        for name in self.names:
            self.lower.setdefault(name.lower(), name)
            self.normalized.setdefault(normalize_team_name(name, mascot_pattern), name)
            self.words.append((name, significant_words(name, mascot_pattern)))


# ---------------------------------------------------------------------------
# Strategies: each takes (raw name, roster index, overrides) and returns a
# roster name or None. Order is the resolution priority.
# ---------------------------------------------------------------------------


def match_exact(raw: str, index: RosterIndex, overrides: OverrideSource = None) -> Optional[str]:
    return raw if raw in index.exact else None


def match_case_insensitive(raw: str, index: RosterIndex, overrides: OverrideSource = None) -> Optional[str]:
    return index.lower.get(raw.lower())


def match_override(raw: str, index: RosterIndex, overrides: OverrideSource = None) -> Optional[str]:
    target = _override_lookup(overrides, raw)
    if target and target not in index.exact:
        logger.warning(f"Override for '{raw}' points at '{target}', which is not on the roster")
    return target


def match_normalized(raw: str, index: RosterIndex, overrides: OverrideSource = None) -> Optional[str]:
    norm = normalize_team_name(raw, index.mascot_pattern)
    if not norm:
        return None
    return index.normalized.get(norm)


def match_word_set(raw: str, index: RosterIndex, overrides: OverrideSource = None) -> Optional[str]:
    words = significant_words(raw, index.mascot_pattern)
    if not words:
        return None
    for name, roster_words in index.words:
        if words_match(words, roster_words):
            return name
    return None


Strategy = Callable[[str, RosterIndex, OverrideSource], Optional[str]]

STRATEGIES: List[Tuple[str, Strategy]] = [
    ("exact", match_exact),
    ("case_insensitive", match_case_insensitive),
    ("override", match_override),
    ("normalized", match_normalized),
    ("word_set", match_word_set),
]


class TeamNameResolver:
    """
    Resolves feed team names to canonical roster names.

    The roster index is built at construction; the override table is read
    on every call so operator edits apply to the next resolution.
    Thread-safe for reads after construction.
    """

    def __init__(
        self,
        roster_names: Iterable[str],
        overrides: OverrideSource = None,
        mascots: Optional[Iterable[str]] = None,
    ):
        pattern = _DEFAULT_MASCOT_PATTERN if mascots is None else build_mascot_pattern(mascots)
        self.index = RosterIndex(roster_names, pattern)
        self.overrides = overrides

    @property
    def roster(self) -> Tuple[str, ...]:
        return self.index.names

    def resolve(self, name: str) -> MatchResult:
        """
        Resolve a team name to its canonical roster name.

        Args:
            name: Team name string from any feed

        Returns:
            MatchResult; ``canonical_name`` is None when nothing matched
        """
        if not name or not str(name).strip():
            return MatchResult(name or "", None, "empty")

        raw = str(name).strip()
        for method, strategy in STRATEGIES:
            match = strategy(raw, self.index, self.overrides)
            if match:
                return MatchResult(raw, match, method)

        logger.warning(f"Unresolved team name: '{raw}'")
        return MatchResult(raw, None, "unresolved")

    def resolve_batch(self, names: Iterable[str]) -> List[MatchResult]:
        """Resolve a list of names in order."""
        return [self.resolve(name) for name in names]

    def unresolved(self, names: Iterable[str]) -> List[str]:
        """Distinct names from ``names`` that no strategy could place, in first-seen order."""
        out: List[str] = []
        for result in self.resolve_batch(names):
            if not result.resolved and result.raw_name and result.raw_name not in out:
                out.append(result.raw_name)
        return out


def resolve_team_name(
    raw_name: str,
    roster_names: Iterable[str],
    overrides: OverrideSource = None,
) -> Optional[str]:
    """One-shot resolution: the roster name for ``raw_name`` or None."""
    return TeamNameResolver(roster_names, overrides).resolve(raw_name).canonical_name
