"""Tests for the operator-curated override table."""

import json

import pytest

from power_ratings.data.overrides import OverrideTable, TeamOverride


class TestOverrideTable:
    def test_lookup_is_case_and_whitespace_insensitive(self):
        table = OverrideTable.from_mapping({"St. Mary's (CA)": "St. Mary's"})
        assert table.lookup("st. mary's  (ca)") == "St. Mary's"
        assert "ST. MARY'S (CA)" in table
        assert table.lookup("Gonzaga") is None

    def test_upsert_update_delete(self):
        table = OverrideTable()
        created = table.upsert("UConn", "Connecticut", notes="odds feed")
        assert created.source == "manual"
        assert len(table) == 1

        table.upsert("uconn", "Connecticut Huskies")
        assert len(table) == 1
        assert table.get("UConn").notes == "odds feed"
        assert table.lookup("UConn") == "Connecticut Huskies"

        assert table.update("UConn", canonical_name="Connecticut")
        assert table.lookup("UConn") == "Connecticut"
        assert not table.update("Nobody", canonical_name="X")

        assert table.delete("UCONN")
        assert not table.delete("UConn")
        assert len(table) == 0

    def test_missing_file_is_empty(self, tmp_path):
        table = OverrideTable.load(str(tmp_path / "overrides.json"))
        assert len(table) == 0
        assert table.path == tmp_path / "overrides.json"

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "cfg" / "overrides.json"
        table = OverrideTable.load(str(path))
        table.upsert("Miami (FL)", "Miami FL")
        table.upsert("App State", "Appalachian St.")
        table.save()

        payload = json.loads(path.read_text())
        assert [row["source_name"] for row in payload["overrides"]] == ["App State", "Miami (FL)"]

        reloaded = OverrideTable.load(str(path))
        assert reloaded.lookup("app state") == "Appalachian St."

    def test_load_accepts_plain_list_and_legacy_keys(self, tmp_path):
        path = tmp_path / "overrides.json"
        path.write_text(json.dumps([{"source_name": "Pitt", "kenpom_name": "Pittsburgh"}]))
        assert OverrideTable.load(str(path)).lookup("pitt") == "Pittsburgh"

    def test_save_without_path(self):
        with pytest.raises(ValueError):
            OverrideTable().save()


class TestTeamOverride:
    def test_from_dict_requires_both_names(self):
        with pytest.raises(ValueError):
            TeamOverride.from_dict({"source_name": "Pitt"})

    def test_round_trip(self):
        entry = TeamOverride("Pitt", "Pittsburgh", notes="scraper")
        assert TeamOverride.from_dict(entry.to_dict()) == entry
