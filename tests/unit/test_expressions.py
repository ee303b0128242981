"""Tests for per-item expression substitution."""
import logging

from dynamic_node.expressions import substitute, substitute_all
from dynamic_node.normalizer import normalize


def _definition(parameters):
    return normalize({"name": "Foo", "parameters": parameters}).first


class TestSubstitute:
    """Expression parameters resolved against one item."""

    def test_resolves_top_level_expression(self, evaluator):
        definition = _definition({"url": "{{$json.x}}", "method": "GET"})

        result = substitute(definition, {"json": {"x": 5}}, 0, evaluator)

        assert result.parameters == {"url": 5, "method": "GET"}

    def test_equals_prefix_is_an_expression(self, evaluator):
        definition = _definition({"url": "={{ $json.host.name }}"})

        result = substitute(definition, {"json": {"host": {"name": "example.org"}}}, 0, evaluator)

        assert result.parameters["url"] == "example.org"

    def test_leaves_definition_untouched(self, evaluator):
        definition = _definition({"url": "{{$json.x}}"})

        substitute(definition, {"json": {"x": 5}}, 0, evaluator)

        assert definition.parameters == {"url": "{{$json.x}}"}

    def test_keeps_identity(self, evaluator):
        definition = _definition({"url": "{{$json.x}}"})

        result = substitute(definition, {"json": {"x": 5}}, 0, evaluator)

        assert result.name == definition.name
        assert result.id == definition.id
        assert result.original_name == "Foo"

    def test_non_expressions_are_not_evaluated(self, evaluator):
        definition = _definition({"count": 3, "flag": True, "text": "plain", "nested": {"a": "{{$json.x}}"}})

        result = substitute(definition, {"json": {"x": 5}}, 0, evaluator)

        assert result.parameters == definition.parameters
        assert evaluator.calls == []

    def test_resolves_pair_list(self, evaluator):
        definition = _definition({
            "headers": [
                {"name": "X-Id", "value": "{{$json.id}}"},
                {"name": "Accept", "value": "application/json"},
            ]
        })

        result = substitute(definition, {"json": {"id": "abc"}}, 0, evaluator)

        assert result.parameters["headers"] == [
            {"name": "X-Id", "value": "abc"},
            {"name": "Accept", "value": "application/json"},
        ]

    def test_resolves_wrapped_pair_list(self, evaluator):
        definition = _definition({
            "queryParameters": {"parameters": [{"name": "q", "value": "={{ $json.term }}"}]}
        })

        result = substitute(definition, {"json": {"term": "cats"}}, 2, evaluator)

        assert result.parameters["queryParameters"]["parameters"][0]["value"] == "cats"
        assert evaluator.calls == [("={{ $json.term }}", 2)]

    def test_failed_expression_is_kept_and_logged(self, evaluator, caplog):
        definition = _definition({"url": "{{$json.missing}}", "method": "{{$json.m}}"})

        with caplog.at_level(logging.WARNING, logger="dynamic_node.expressions"):
            result = substitute(definition, {"json": {"m": "POST"}}, 1, evaluator)

        assert result.parameters == {"url": "{{$json.missing}}", "method": "POST"}
        assert len(caplog.records) == 1
        assert "url" in caplog.records[0].getMessage()
        assert caplog.records[0].item_index == 1

    def test_failed_pair_is_labelled(self, evaluator, caplog):
        definition = _definition({"headers": [{"name": "X-Id", "value": "{{ unsupported }}"}]})

        with caplog.at_level(logging.WARNING, logger="dynamic_node.expressions"):
            result = substitute(definition, {"json": {}}, 0, evaluator)

        assert result.parameters["headers"][0]["value"] == "{{ unsupported }}"
        assert "headers.X-Id" in caplog.records[0].getMessage()

    def test_without_evaluator_returns_copy(self):
        definition = _definition({"url": "{{$json.x}}"})

        result = substitute(definition, {"json": {"x": 5}}, 0, None)

        assert result is not definition
        assert result.parameters == {"url": "{{$json.x}}"}

    def test_evaluated_against_the_given_item(self, evaluator):
        definition = _definition({"url": "{{$json.x}}"})
        items = [{"json": {"x": n}} for n in range(3)]

        values = [substitute(definition, item, i, evaluator).parameters["url"] for i, item in enumerate(items)]

        assert values == [0, 1, 2]


def test_substitute_all_keeps_order(evaluator, export_two_nodes):
    definitions = normalize(export_two_nodes, include_all=True).definitions

    result = substitute_all(definitions, {"json": {}}, 0, evaluator)

    assert [d.name for d in result] == [d.name for d in definitions]
    assert all(a is not b for a, b in zip(result, definitions))
