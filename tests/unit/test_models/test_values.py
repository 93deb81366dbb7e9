"""
Unit tests for configuration value conversion and template rendering.
"""

import datetime

import pytest

from tailwatch.models.values import format_value, render_template, render_value, value_to_string


@pytest.mark.unit
class TestValueToString:
    """Test cases for value_to_string."""

    def test_string_passes_through(self):
        assert value_to_string('say "hi"') == 'say "hi"'

    @pytest.mark.parametrize(
        "value,expected",
        [
            (True, "true"),
            (False, "false"),
            (42, "42"),
            (1.5, "1.5"),
            (float("inf"), "inf"),
            (datetime.date(2024, 1, 2), "2024-01-02"),
            ([1, "a", False], '[1, "a", false]'),
            ({"k": 1, "s": "v"}, '{ k = 1, s = "v" }'),
            ({}, "{}"),
        ],
    )
    def test_non_strings_use_toml_formatting(self, value, expected):
        assert value_to_string(value) == expected

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            format_value(object())


@pytest.mark.unit
class TestTemplates:
    """Test cases for $name substitution."""

    def test_render_template(self):
        mapping = {"user": "alice", "count": 3, "match": "user alice logged in"}
        assert render_template("$user (${count}): $match", mapping) == "alice (3): user alice logged in"

    def test_unknown_names_are_kept(self):
        assert render_template("$missing and $$", {}) == "$missing and $"

    def test_only_referenced_names_are_converted(self):
        mapping = {"user": "alice", "opaque": object()}
        assert render_template("hello $user", mapping) == "hello alice"
        with pytest.raises(TypeError):
            render_template("$opaque", mapping)

    def test_render_value_recurses(self):
        rendered = render_value({"who": ["$user", 1], "flag": True}, {"user": "bob"})
        assert rendered == {"who": ["bob", 1], "flag": True}
