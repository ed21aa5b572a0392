"""
Tests for the rule-based stand-ins used when the oracle is unreachable.

Run with: python -m pytest tests/test_deterministic_rules.py -v
"""

import pytest

from pagepilot.core.actions import FieldEntry, ListMutation, ListOp
from pagepilot.core.deterministic_rules import (
    extract_field_mentions,
    field_positions,
    looks_like_submit,
    normalize_spoken_email,
    parse_list_mutation,
)


class TestLooksLikeSubmit:

    @pytest.mark.parametrize("text", [
        "submit",
        "Submit the form.",
        "go ahead and submit",
        "please send my details",
        "send it now",
        "okay submit my contact information",
    ])
    def test_submit_phrases(self, text):
        assert looks_like_submit(text)

    @pytest.mark.parametrize("text", [
        "",
        "how do I submit a bug report",
        "send me to the products page",
        "submission guidelines",
    ])
    def test_not_submit(self, text):
        assert not looks_like_submit(text)


class TestExtractFieldMentions:

    def test_two_fields_with_connectors(self):
        assert extract_field_mentions("fill name as John Smith email as john@example.com") == [
            FieldEntry("name", "John Smith"),
            FieldEntry("email", "john@example.com"),
        ]

    def test_joiners_are_trimmed(self):
        assert extract_field_mentions("set email to a@b.co and message with hello there") == [
            FieldEntry("email", "a@b.co"),
            FieldEntry("message", "hello there"),
        ]

    def test_possessive_form(self):
        assert extract_field_mentions("my name is Jane") == [FieldEntry("name", "Jane")]

    def test_spoken_email(self):
        assert extract_field_mentions("email is jo at example dot org") == [
            FieldEntry("email", "jo@example.org"),
        ]

    def test_repeated_field_keeps_last_value(self):
        assert extract_field_mentions("name is Al name is Bo") == [FieldEntry("name", "Bo")]

    def test_no_mentions(self):
        assert extract_field_mentions("go to the products page") == []

    @pytest.mark.parametrize("text", [
        "I want to send a message to support",
        "send an email to sales",
        "take me to the page where I can send a message to the team",
        "write a message to the sales team",
        "fill in and send a message to bob",
    ])
    def test_sending_something_is_not_a_mention(self, text):
        assert extract_field_mentions(text) == []

    def test_connector_needs_a_fill_verb(self):
        """'name as X' alone is too loose; 'name is X' and 'name: X' are accepted."""
        assert extract_field_mentions("known by the name as Bob") == []
        assert extract_field_mentions("name: Bob") == [FieldEntry("name", "Bob")]
        assert extract_field_mentions("put name as Bob") == [FieldEntry("name", "Bob")]


class TestFieldPositions:

    def test_first_mention_of_each_field(self):
        text = "fill email as sam@x.com name as Sam"
        positions = field_positions(text)
        assert positions["email"] == text.index("email")
        assert positions["name"] == text.index("name")
        assert positions["email"] < positions["name"]

    def test_unnamed_fields_are_absent(self):
        assert field_positions("John Smith") == {}


class TestNormalizeSpokenEmail:

    def test_at_and_dot(self):
        assert normalize_spoken_email("john at example dot com") == "john@example.com"

    def test_already_written(self):
        assert normalize_spoken_email("john@example.com") == "john@example.com"


class TestParseListMutation:

    @pytest.mark.parametrize("text", ["clear all filters", "reset the filters", "show me all products"])
    def test_clear(self, text):
        assert parse_list_mutation(text) == ListMutation(ListOp.CLEAR)

    def test_sort_directions(self):
        assert parse_list_mutation("sort by price low to high") == ListMutation(ListOp.SORT, "price", "low-to-high")
        assert parse_list_mutation("sort by price high to low") == ListMutation(ListOp.SORT, "price", "high-to-low")
        assert parse_list_mutation("sort products by price, cheapest first") == \
            ListMutation(ListOp.SORT, "price", "low-to-high")

    def test_sort_without_direction_is_none(self):
        assert parse_list_mutation("sort by price") is None

    def test_filter(self):
        assert parse_list_mutation("filter by Enterprise category") == \
            ListMutation(ListOp.FILTER, "category", "Enterprise")

    def test_search(self):
        assert parse_list_mutation("search for voice products") == ListMutation(ListOp.SEARCH, "text", "voice")

    def test_unrelated(self):
        assert parse_list_mutation("go to the about page") is None
        assert parse_list_mutation("") is None
