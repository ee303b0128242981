"""Tests for the node definition normalizer."""
import json

import pytest

from dynamic_node.errors import InvalidInputError, MissingFieldError
from dynamic_node.normalizer import (
    ParseFailure,
    ParseSuccess,
    dynamic_node_name,
    load_raw_input,
    normalize,
    parse_node_json,
)


class TestLoadRawInput:
    """Coercion of RawInput into a mapping."""

    def test_parses_json_string(self):
        assert load_raw_input('{"name": "Foo"}') == {"name": "Foo"}

    def test_passes_mapping_through(self):
        value = {"name": "Foo"}
        assert load_raw_input(value) is value

    def test_rejects_invalid_json(self):
        with pytest.raises(InvalidInputError, match="must be valid JSON"):
            load_raw_input("not json")

    @pytest.mark.parametrize("raw", ["[1, 2]", "42", "null", [1], 3.5, None])
    def test_rejects_non_objects(self, raw):
        with pytest.raises(InvalidInputError, match="must be an object"):
            load_raw_input(raw)


class TestNormalizeSingleNode:
    """Single-definition mode."""

    def test_renames_and_assigns_identity(self, http_node):
        normalized = normalize(http_node)

        assert not normalized.is_export
        assert len(normalized.definitions) == 1
        definition = normalized.first
        assert definition.name == "Foo - Dynamic Node"
        assert definition.original_name == "Foo"
        assert definition.id
        assert definition.parameters == {"url": "{{$json.x}}", "method": "GET"}

    def test_keeps_unknown_fields(self, http_node):
        node = normalize(http_node).first.to_node()

        assert node["type"] == "n8n-nodes-base.httpRequest"
        assert node["typeVersion"] == 4

    def test_does_not_mutate_input(self, http_node):
        original = json.loads(json.dumps(http_node))
        normalize(http_node)
        assert http_node == original

    def test_strips_export_only_fields(self):
        node = normalize({
            "name": "Foo",
            "parameters": {},
            "connections": {"x": {}},
            "pinData": {"Foo": []},
            "meta": {"instanceId": "1"},
        }).first.to_node()

        for key in ("connections", "pinData", "meta"):
            assert key not in node

    @pytest.mark.parametrize("node", [
        {"parameters": {}},
        {"name": "", "parameters": {}},
        {"name": "   "},
        {"name": 12},
        {"name": None},
    ])
    def test_missing_name_is_rejected(self, node):
        with pytest.raises(MissingFieldError) as exc_info:
            normalize(node)
        assert exc_info.value.field == "name"

    def test_missing_parameters_default_to_empty(self):
        assert normalize({"name": "Foo"}).first.parameters == {}

    def test_non_object_parameters_rejected(self):
        with pytest.raises(InvalidInputError):
            normalize({"name": "Foo", "parameters": ["a"]})

    def test_valid_position_is_kept(self, http_node):
        assert normalize(http_node).first.position == [100, 200]

    @pytest.mark.parametrize("position", [None, [1], [1, 2, 3], ["a", 1], [True, 1], "1,2"])
    def test_invalid_position_gets_default(self, position, settings):
        definition = normalize({"name": "Foo", "position": position}, settings=settings).first
        assert definition.position == [settings.default_position_x, settings.default_position_y]

    def test_identity_is_fresh_each_time(self, http_node):
        first = normalize(http_node).first
        second = normalize(http_node).first

        assert first.id != second.id
        assert first.name == second.name
        assert first.parameters == second.parameters

    def test_json_string_input(self, http_node):
        assert normalize(json.dumps(http_node)).first.name == "Foo - Dynamic Node"

    def test_custom_suffix(self, monkeypatch):
        from dynamic_node.config import Settings

        monkeypatch.setenv("DYNAMIC_NODE_NODE_NAME_SUFFIX", "Injected")
        assert normalize({"name": "Foo"}, settings=Settings()).first.name == "Foo - Injected"


class TestNormalizeExport:
    """Full workflow exports."""

    def test_single_mode_takes_first_node_only(self, export_two_nodes):
        normalized = normalize(export_two_nodes)

        assert normalized.is_export
        assert [d.name for d in normalized.definitions] == ["A - Dynamic Node"]
        assert normalized.connections == {}

    def test_include_all_takes_every_node_with_ordinals(self, export_two_nodes):
        normalized = normalize(export_two_nodes, include_all=True)

        assert [d.name for d in normalized.definitions] == [
            "A - Dynamic Node [1]",
            "B - Dynamic Node [2]",
        ]
        assert [d.original_name for d in normalized.definitions] == ["A", "B"]
        assert normalized.connections == export_two_nodes["connections"]

    def test_default_positions_do_not_overlap(self, export_two_nodes):
        positions = [d.position for d in normalize(export_two_nodes, include_all=True).definitions]
        assert positions[0] != positions[1]

    def test_identities_are_unique(self, export_two_nodes):
        ids = [d.id for d in normalize(export_two_nodes, include_all=True).definitions]
        assert len(set(ids)) == len(ids)

    def test_empty_nodes_list_is_a_single_definition(self):
        with pytest.raises(MissingFieldError):
            normalize({"nodes": [], "connections": {}})

    def test_non_object_entry_rejected(self):
        with pytest.raises(InvalidInputError):
            normalize({"nodes": ["A"]})

    def test_nameless_second_node_rejected(self):
        with pytest.raises(MissingFieldError):
            normalize({"nodes": [{"name": "A"}, {"type": "x"}]}, include_all=True)


class TestParseNodeJson:
    """Tagged parse result."""

    def test_success(self, http_node):
        result = parse_node_json(http_node)
        assert isinstance(result, ParseSuccess)
        assert result.ok
        assert result.value.first.name == "Foo - Dynamic Node"

    def test_failure_does_not_raise(self):
        result = parse_node_json("not json")
        assert isinstance(result, ParseFailure)
        assert not result.ok
        assert isinstance(result.error, InvalidInputError)

    def test_failure_for_missing_name(self):
        result = parse_node_json({"parameters": {}})
        assert isinstance(result.error, MissingFieldError)


def test_dynamic_node_name():
    assert dynamic_node_name("Foo") == "Foo - Dynamic Node"
    assert dynamic_node_name("Foo", 3) == "Foo - Dynamic Node [3]"
