"""Tests for cross-feed team name resolution."""

import pytest

from power_ratings.data.overrides import OverrideTable
from power_ratings.data.team_name_resolver import (
    STRATEGIES,
    TeamNameResolver,
    normalize_team_name,
    resolve_team_name,
    significant_words,
    words_match,
)


ROSTER = [
    "Ohio St.",
    "North Dakota",
    "North Dakota St.",
    "Duke",
    "St. Mary's",
    "Connecticut",
    "Miami FL",
    "Miami OH",
    "Michigan",
    "Michigan St.",
]


@pytest.fixture
def resolver():
    return TeamNameResolver(ROSTER)


# ---------------------------------------------------------------------------
# Normalization helpers
# ---------------------------------------------------------------------------


class TestNormalizeTeamName:
    def test_strips_mascot_and_folds_state(self):
        assert normalize_team_name("Ohio State Buckeyes") == "ohio st."

    def test_roster_abbreviation_is_stable(self):
        assert normalize_team_name("Ohio St.") == "ohio st."
        assert normalize_team_name("Ohio St") == "ohio st."

    def test_saint_folds_to_st(self):
        assert normalize_team_name("Saint Mary's Gaels") == "st. mary's"

    def test_multi_word_mascot(self):
        assert normalize_team_name("Duke Blue Devils") == "duke"

    def test_collapses_whitespace(self):
        assert normalize_team_name("  North   Dakota  ") == "north dakota"

    def test_empty(self):
        assert normalize_team_name("") == ""


class TestSignificantWords:
    def test_state_family_becomes_one_token(self):
        assert significant_words("Michigan State Spartans") == ["michigan", "st"]
        assert significant_words("Michigan St.") == ["michigan", "st"]

    def test_punctuation_removed(self):
        assert significant_words("Miami (FL)") == ["miami", "fl"]


class TestWordsMatch:
    def test_identical(self):
        assert words_match(["san", "jose", "st"], ["san", "jose", "st"])

    def test_order_does_not_matter(self):
        assert words_match(["fl", "miami"], ["miami", "fl"])

    def test_prefix_abbreviation(self):
        assert words_match(["conn"], ["connecticut"])

    def test_short_prefix_rejected(self):
        assert not words_match(["co"], ["connecticut"])

    def test_count_mismatch(self):
        assert not words_match(["north", "dakota"], ["north", "dakota", "st"])

    def test_state_token_tiebreak(self):
        assert not words_match(["kansas", "st"], ["kansas", "city"])

    def test_every_token_must_pair_off(self):
        # "mich" corresponds to both roster tokens but can only be used once
        assert not words_match(["mich", "mich"], ["michigan", "tech"])

    def test_empty(self):
        assert not words_match([], ["duke"])


# ---------------------------------------------------------------------------
# Strategy chain
# ---------------------------------------------------------------------------


class TestStrategyOrder:
    def test_fixed_priority(self):
        assert [name for name, _ in STRATEGIES] == [
            "exact",
            "case_insensitive",
            "override",
            "normalized",
            "word_set",
        ]


class TestResolve:
    def test_exact(self, resolver):
        result = resolver.resolve("Duke")
        assert result.canonical_name == "Duke"
        assert result.method == "exact"

    def test_case_insensitive(self, resolver):
        result = resolver.resolve("DUKE")
        assert result.canonical_name == "Duke"
        assert result.method == "case_insensitive"

    def test_ohio_state_buckeyes(self, resolver):
        result = resolver.resolve("Ohio State Buckeyes")
        assert result.canonical_name == "Ohio St."
        assert result.method == "normalized"

    def test_north_dakota_does_not_match_state_school(self):
        resolver = TeamNameResolver(["North Dakota St.", "Duke"])
        result = resolver.resolve("North Dakota")
        assert not result.resolved
        assert result.method == "unresolved"

    def test_north_dakota_mascots(self, resolver):
        assert resolver.resolve("North Dakota Fighting Hawks").canonical_name == "North Dakota"
        assert resolver.resolve("North Dakota State Bison").canonical_name == "North Dakota St."

    def test_saint_marys(self, resolver):
        assert resolver.resolve("Saint Mary's Gaels").canonical_name == "St. Mary's"

    def test_word_set_parenthetical(self, resolver):
        result = resolver.resolve("Miami (OH)")
        assert result.canonical_name == "Miami OH"
        assert result.method == "word_set"

    def test_word_set_abbreviation(self, resolver):
        result = resolver.resolve("Conn Huskies")
        assert result.canonical_name == "Connecticut"
        assert result.method == "word_set"

    def test_ambiguous_short_name_unresolved(self, resolver):
        assert not resolver.resolve("Miami Hurricanes").resolved

    def test_empty_name(self, resolver):
        result = resolver.resolve("   ")
        assert result.canonical_name is None
        assert result.method == "empty"

    def test_custom_mascot_vocabulary(self):
        resolver = TeamNameResolver(["Gonzaga"], mascots=["zags"])
        assert resolver.resolve("Gonzaga Zags").canonical_name == "Gonzaga"

    def test_resolve_batch_and_unresolved(self, resolver):
        names = ["Duke", "Nowhere U", "Nowhere U", "Michigan Wolverines"]
        results = resolver.resolve_batch(names)
        assert [r.canonical_name for r in results] == ["Duke", None, None, "Michigan"]
        assert resolver.unresolved(names) == ["Nowhere U"]

    def test_one_shot_helper(self):
        assert resolve_team_name("Michigan State Spartans", ROSTER) == "Michigan St."
        assert resolve_team_name("Michigan Wolverines", ROSTER) == "Michigan"


class TestOverrides:
    def test_override_resolves_unmatchable_name(self):
        overrides = OverrideTable.from_mapping({"Miami Hurricanes": "Miami FL"})
        resolver = TeamNameResolver(ROSTER, overrides=overrides)
        result = resolver.resolve("miami hurricanes")
        assert result.canonical_name == "Miami FL"
        assert result.method == "override"

    def test_override_beats_heuristics(self):
        overrides = {"Michigan State Spartans": "Michigan"}
        resolver = TeamNameResolver(ROSTER, overrides=overrides)
        assert resolver.resolve("Michigan State Spartans").canonical_name == "Michigan"

    def test_exact_match_beats_override(self):
        overrides = OverrideTable.from_mapping({"Duke": "Connecticut"})
        resolver = TeamNameResolver(ROSTER, overrides=overrides)
        assert resolver.resolve("Duke").canonical_name == "Duke"

    def test_live_edits_apply_to_next_call(self):
        overrides = OverrideTable()
        resolver = TeamNameResolver(ROSTER, overrides=overrides)
        assert not resolver.resolve("UConn").resolved

        overrides.upsert("UConn", "Connecticut")
        assert resolver.resolve("UConn").canonical_name == "Connecticut"

        overrides.delete("UConn")
        assert not resolver.resolve("UConn").resolved
