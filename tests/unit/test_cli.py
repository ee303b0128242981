"""Tests for CLI commands."""
import json

import click
import pytest
from click.testing import CliRunner

from dynamic_node.cli import cli, load_evaluator


GREETER = {
    "name": "Greeter",
    "type": "n8n-nodes-base.set",
    "parameters": {"mode": "manual", "values": {"greeting": "hi"}},
}


def upper_evaluator(expression, item, item_index):
    return expression.upper()


class PrefixEvaluator:
    def evaluate(self, expression, item, item_index):
        return f"{item_index}:{expression}"


@pytest.fixture
def node_file(tmp_path):
    path = tmp_path / "node.json"
    path.write_text(json.dumps(GREETER))
    return path


@pytest.fixture
def items_file(tmp_path):
    path = tmp_path / "items.json"
    path.write_text(json.dumps([{"name": "ada"}, {"name": "bob"}]))
    return path


class TestRunCommand:
    """Test the run command."""

    def test_run_per_item(self, node_file, items_file):
        """Test each input item runs through the injected node."""
        result = CliRunner().invoke(cli, ["-q", "run", str(node_file), "-i", str(items_file)], obj={})

        assert result.exit_code == 0, result.output
        output = json.loads(result.output)
        assert [item["json"] for item in output] == [
            {"name": "ada", "greeting": "hi"},
            {"name": "bob", "greeting": "hi"},
        ]

    def test_run_batch_to_file(self, node_file, items_file, tmp_path):
        """Test --batch with --output writes the results to disk."""
        output_path = tmp_path / "out.json"

        result = CliRunner().invoke(
            cli,
            ["-q", "run", str(node_file), "-i", str(items_file), "--batch", "-o", str(output_path)],
            obj={},
        )

        assert result.exit_code == 0, result.output
        assert len(json.loads(output_path.read_text())) == 2

    def test_run_without_input_uses_one_empty_item(self, node_file):
        """Test a single empty item is used when no input is given."""
        result = CliRunner().invoke(cli, ["-q", "run", str(node_file)], obj={})

        assert result.exit_code == 0, result.output
        assert [item["json"] for item in json.loads(result.output)] == [{"greeting": "hi"}]

    def test_run_invalid_node_json(self, tmp_path):
        """Test malformed node JSON exits with an error."""
        path = tmp_path / "node.json"
        path.write_text("not json")

        result = CliRunner().invoke(cli, ["-q", "run", str(path)], obj={})

        assert result.exit_code == 1
        assert "valid JSON" in result.output

    def test_run_single_item_violation(self, node_file, items_file):
        """Test --single-item with two items exits with an error."""
        result = CliRunner().invoke(
            cli, ["-q", "run", str(node_file), "-i", str(items_file), "--single-item"], obj={}
        )

        assert result.exit_code == 1
        assert "exactly 1" in result.output


class TestAssembleCommand:
    """Test the assemble command."""

    def test_assemble_prints_document(self, node_file):
        """Test the synthesized document is printed."""
        result = CliRunner().invoke(cli, ["-q", "assemble", str(node_file)], obj={})

        assert result.exit_code == 0, result.output
        document = json.loads(result.output)
        assert [node["name"] for node in document["nodes"]] == ["Start", "Greeter - Dynamic Node"]
        assert document["connections"]["Start"]["main"][0][0]["node"] == "Greeter - Dynamic Node"

    def test_assemble_all_nodes(self, tmp_path, export_two_nodes):
        """Test --all-nodes injects every node of an export."""
        path = tmp_path / "export.json"
        path.write_text(json.dumps(export_two_nodes))

        result = CliRunner().invoke(cli, ["-q", "assemble", str(path), "--all-nodes"], obj={})

        assert result.exit_code == 0, result.output
        names = [node["name"] for node in json.loads(result.output)["nodes"]]
        assert names == ["Start", "A - Dynamic Node [1]", "B - Dynamic Node [2]"]


class TestLoadEvaluator:
    """Test evaluator loading."""

    def test_none(self):
        assert load_evaluator(None) is None

    def test_function_is_wrapped(self):
        evaluator = load_evaluator(f"{__name__}:upper_evaluator")
        assert evaluator.evaluate("x", {}, 0) == "X"

    def test_class_is_instantiated(self):
        evaluator = load_evaluator(f"{__name__}:PrefixEvaluator")
        assert isinstance(evaluator, PrefixEvaluator)
        assert evaluator.evaluate("x", {}, 3) == "3:x"

    @pytest.mark.parametrize("reference", ["json", "json:nope", "no_such_module_xyz:thing"])
    def test_bad_reference(self, reference):
        with pytest.raises(click.BadParameter):
            load_evaluator(reference)
