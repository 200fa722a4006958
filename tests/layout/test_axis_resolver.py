"""
Axis Domain Tests

Categorical axes bucket by first appearance; the time axis keeps one
slot per card.
"""

import pytest

from instaplot.contracts import Card
from instaplot.layout import AxisResolver, domain_for, parse_card_time


def card(card_id, actor="A", place="P", time="2024-01-15T09:00"):
    return Card(id=card_id, time=time, actor=actor, place=place,
                claims="c", is_lie=False, x=0.0, y=0.0)


class TestCategoricalDomain:

    def test_first_occurrence_order_not_alphabetical(self):
        cards = [card("1", actor="Zed"), card("2", actor="Amy"), card("3", actor="Zed")]
        assert domain_for("actor", cards) == ("Zed", "Amy")

    def test_place_domain_deduplicates(self):
        cards = [card("1", place="Office"), card("2", place="Cafe"), card("3", place="Office")]
        assert domain_for("place", cards) == ("Office", "Cafe")

    def test_empty_collection_has_empty_domain(self):
        assert domain_for("place", []) == ()

    def test_bucket_index_for_absent_value_is_next_slot(self):
        cards = [card("1", place="Office"), card("2", place="Cafe")]
        resolver = AxisResolver()
        assert resolver.bucket_index("place", "Cafe", cards) == 1
        assert resolver.bucket_index("place", "Harbour", cards) == 2


class TestTimeDomain:

    def test_sorted_with_duplicates_kept(self):
        cards = [
            card("1", time="2024-01-15T14:30"),
            card("2", time="2024-01-15T09:00"),
            card("3", time="2024-01-15T14:30"),
        ]
        assert domain_for("time", cards) == (
            "2024-01-15T09:00", "2024-01-15T14:30", "2024-01-15T14:30",
        )

    def test_unknown_attribute_rejected(self):
        with pytest.raises(ValueError):
            domain_for("claims", [card("1")])


class TestParseCardTime:

    def test_naive_and_utc_forms_agree(self):
        assert parse_card_time("2024-01-15T09:00") == parse_card_time("2024-01-15T09:00Z")

    def test_minutes_apart(self):
        early = parse_card_time("2024-01-15T09:00")
        late = parse_card_time("2024-01-15T09:30")
        assert late - early == 1800

    @pytest.mark.parametrize("value", ["", "yesterday", "15/01/2024", None])
    def test_unparseable_returns_none(self, value):
        assert parse_card_time(value) is None
