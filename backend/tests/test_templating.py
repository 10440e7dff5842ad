"""
Tests for templating.py - placeholder detection and rendering.
"""

from promptforge.services.templating import (
    extract_variables,
    find_unresolved,
    missing_required,
    render_template,
)


# =============================================================================
# extract_variables Tests
# =============================================================================

class TestExtractVariables:
    """Tests for extract_variables function."""

    def test_order_of_first_occurrence(self):
        assert extract_variables("{{b}} then {{a}} then {{b}}") == ["b", "a"]

    def test_no_placeholders(self):
        assert extract_variables("plain text") == []
        assert extract_variables("") == []

    def test_ignores_malformed_placeholders(self):
        """Spaces, dashes and single braces are not placeholders."""
        text = "{{ name }} {{first-name}} {single} {{ok_1}}"
        assert extract_variables(text) == ["ok_1"]

    def test_nested_braces(self):
        assert extract_variables("{{{inner}}}") == ["inner"]

    def test_non_ascii_names_are_not_placeholders(self):
        assert extract_variables("Hi {{caf\u00e9}} {{\u540d\u524d}} {{x\u0663}}") == []
        assert render_template("{{caf\u00e9}}", [{"name": "caf\u00e9"}], {"caf\u00e9": "x"}) == "{{caf\u00e9}}"


# =============================================================================
# render_template Tests
# =============================================================================

class TestRenderTemplate:
    """Tests for render_template function."""

    def test_value_then_default_then_literal(self):
        variables = [
            {"name": "name", "default_value": "friend"},
            {"name": "age", "default_value": None},
        ]
        content = "Hi {{name}}, you are {{age}}"

        assert render_template(content, variables, {"name": "Alice"}) == "Hi Alice, you are {{age}}"
        assert render_template(content, variables, {}) == "Hi friend, you are {{age}}"

    def test_default_then_supplied_value(self):
        variables = [
            {"name": "name", "default_value": "Alice"},
            {"name": "age", "default_value": None},
        ]
        content = "Hi {{name}}, you are {{age}}"

        assert render_template(content, variables, {}) == "Hi Alice, you are {{age}}"
        assert render_template(content, variables, {"age": "30"}) == "Hi Alice, you are 30"

    def test_empty_value_falls_back_to_default(self):
        variables = [{"name": "tone", "default_value": "formal"}]
        assert render_template("Be {{tone}}", variables, {"tone": ""}) == "Be formal"

    def test_undeclared_placeholder_untouched(self):
        variables = [{"name": "a", "default_value": None}]
        assert render_template("{{a}} {{b}}", variables, {"a": "1", "b": "2"}) == "1 {{b}}"

    def test_values_are_not_expanded_recursively(self):
        variables = [{"name": "a", "default_value": None}, {"name": "b", "default_value": None}]
        rendered = render_template("{{a}}", variables, {"a": "{{b}}", "b": "x"})
        assert rendered == "{{b}}"

    def test_regex_special_characters_in_values(self):
        variables = [{"name": "v", "default_value": None}]
        assert render_template("[{{v}}]", variables, {"v": r"\1 $& \g<0>"}) == r"[\1 $& \g<0>]"

    def test_empty_content(self):
        assert render_template("", [{"name": "a"}], {"a": "x"}) == ""

    def test_accepts_objects_with_attributes(self):
        class Row:
            name = "city"
            default_value = "Paris"

        assert render_template("Go to {{city}}", [Row()], {}) == "Go to Paris"


# =============================================================================
# find_unresolved / missing_required Tests
# =============================================================================

class TestResolutionReport:

    def test_find_unresolved(self):
        assert find_unresolved("Hi Alice, you are {{age}}") == ["age"]

    def test_missing_required_ignores_defaults(self):
        variables = [
            {"name": "a", "required": True, "default_value": None},
            {"name": "b", "required": True, "default_value": "x"},
            {"name": "c", "required": False, "default_value": None},
        ]
        assert missing_required(variables, {}) == ["a"]
        assert missing_required(variables, {"a": "1"}) == []
