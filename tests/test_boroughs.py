import pandas as pd
import pytest

from pedestrian_counts.boroughs import (
    known_boroughs,
    normalize_borough,
    normalize_boroughs,
    resolve_case_insensitive,
    resolve_exact,
    resolve_substring,
    resolve_synonym,
)

KNOWN = ("Manhattan", "Brooklyn", "Bronx", "East River Bridges", "Queens")


class TestResolvers:
    def test_exact(self):
        assert resolve_exact("Queens", KNOWN) == ("Queens",)
        assert resolve_exact("queens", KNOWN) == ()

    def test_case_insensitive(self):
        assert resolve_case_insensitive("queens", KNOWN) == ("Queens",)
        assert resolve_case_insensitive("Queen", KNOWN) == ()

    def test_substring_either_direction(self):
        assert resolve_substring("The Bronx", KNOWN) == ("Bronx",)
        assert resolve_substring("Bridges", KNOWN) == ("East River Bridges",)
        assert resolve_substring("Hoboken", KNOWN) == ()

    def test_synonyms_only_return_present_labels(self):
        assert resolve_synonym("Bridges", ("Harlem River Bridges",)) == ("Harlem River Bridges",)
        assert resolve_synonym("The Bronx", ("Bronx",)) == ("Bronx",)
        assert resolve_synonym("Queens", KNOWN) == ()


class TestNormalizeBorough:
    def test_the_bronx(self):
        assert set(normalize_borough("The Bronx", ("Bronx",))) == {"Bronx"}

    def test_bridges_expand(self):
        assert set(normalize_borough("Bridges", ("Bridges", "East River Bridges"))) == {
            "Bridges",
            "East River Bridges",
        }

    def test_unresolved_label_passes_through(self):
        assert normalize_borough("Atlantis", KNOWN) == ("Atlantis",)

    @pytest.mark.parametrize("label", ["The Bronx", "queens", "Bridges", "Manhattan", "brooklyn"])
    def test_idempotent(self, label):
        first = normalize_borough(label, KNOWN)
        assert normalize_borough(first[0], KNOWN) == first

    def test_many_labels_deduplicated(self):
        assert normalize_boroughs(["Bronx", "The Bronx", "queens"], KNOWN) == ("Bronx", "Queens")


def test_known_boroughs_first_appearance():
    records = pd.DataFrame({"Borough": ["Queens", None, "Bronx", "", "Queens", "Manhattan"]})
    assert known_boroughs(records) == ("Queens", "Bronx", "Manhattan")
