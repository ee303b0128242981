"""
Dynamic Node CLI - Main entry point.

Provides commands for:
- Running node JSON as a sub-workflow on the in-process engine
- Printing the sub-workflow document that would be dispatched
"""

from __future__ import annotations

import asyncio
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click

from dynamic_node.assembler import assemble, load_skeleton
from dynamic_node.config import get_settings
from dynamic_node.errors import DynamicNodeError
from dynamic_node.normalizer import normalize
from dynamic_node.observability import setup_logging
from dynamic_node.runner import DynamicNodeConfig, DynamicWorkflowRunner


class _CallableEvaluator:
    """Adapts a plain function(expression, item, item_index) to the evaluator contract."""

    def __init__(self, func: Any) -> None:
        self._func = func

    def evaluate(self, expression: str, item: Any, item_index: int) -> Any:
        return self._func(expression, item, item_index)


def load_evaluator(reference: Optional[str]) -> Any:
    """
    Import an expression evaluator from "module:attribute".

    Classes are instantiated; functions are wrapped.
    """
    if not reference:
        return None
    module_name, _, attribute = reference.partition(":")
    if not module_name or not attribute:
        raise click.BadParameter("expected MODULE:ATTRIBUTE", param_hint="--evaluator")
    try:
        target = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise click.BadParameter(f"cannot load {reference}: {e}", param_hint="--evaluator") from e

    if isinstance(target, type):
        target = target()
    if hasattr(target, "evaluate"):
        return target
    if callable(target):
        return _CallableEvaluator(target)
    raise click.BadParameter(f"{reference} is not an evaluator", param_hint="--evaluator")


def _read_json_file(path: str) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-q", "--quiet", is_flag=True, help="Suppress output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool):
    """Dynamic Node - run pasted node JSON as a sub-workflow."""
    ctx.ensure_object(dict)
    setup_logging()

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif quiet:
        logging.getLogger().setLevel(logging.ERROR)

    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


@cli.command("run")
@click.argument("node_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--input", "-i", "input_path", type=click.Path(exists=True, dir_okay=False),
              help="Path to input items JSON (list or single object)")
@click.option("--output", "-o", "output_path", type=click.Path(dir_okay=False),
              help="Path to output JSON file")
@click.option("--batch", is_flag=True, help="Run all items in a single sub-workflow")
@click.option("--no-wait", is_flag=True, help="Do not wait for the sub-workflow to finish")
@click.option("--all-nodes", is_flag=True, help="Inject every node of a workflow export")
@click.option("--single-item", is_flag=True, help="Require exactly one input item")
@click.option("--evaluator", "evaluator_spec", metavar="MODULE:ATTR",
              help="Expression evaluator to use for {{ }} expressions")
@click.pass_context
def run_command(
    ctx: click.Context,
    node_json: str,
    input_path: Optional[str],
    output_path: Optional[str],
    batch: bool,
    no_wait: bool,
    all_nodes: bool,
    single_item: bool,
    evaluator_spec: Optional[str],
):
    """
    Run NODE_JSON against input items on the in-process engine.

    Examples:

        # One sub-workflow per item
        dynamic-node run ./http-node.json -i items.json

        # All items at once, every node of an export
        dynamic-node run ./export.json -i items.json --batch --all-nodes
    """
    from node_sdk import to_execution_items
    from nodepacks.core import register_nodes
    from workflow_runtime import InProcessWorkflowEngine

    evaluator = load_evaluator(evaluator_spec)
    items = to_execution_items(_read_json_file(input_path)) if input_path else [{"json": {}}]

    config = DynamicNodeConfig(
        node_json=Path(node_json).read_text(encoding="utf-8"),
        execute_individually=not batch,
        do_not_wait_to_finish=no_wait,
        include_all_nodes=all_nodes,
        require_single_item=single_item,
    )
    engine = InProcessWorkflowEngine(register_nodes(), evaluator=evaluator)
    runner = DynamicWorkflowRunner(engine, evaluator=evaluator)

    try:
        results = asyncio.run(runner.run(items, config))
    except DynamicNodeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    rendered = json.dumps(results, indent=2, default=str)
    if output_path:
        Path(output_path).write_text(rendered, encoding="utf-8")
        if not ctx.obj.get("quiet"):
            click.echo(f"Output saved to: {output_path} ({len(results)} item(s))")
    else:
        click.echo(rendered)


@cli.command("assemble")
@click.argument("node_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--all-nodes", is_flag=True, help="Inject every node of a workflow export")
def assemble_command(node_json: str, all_nodes: bool):
    """Print the sub-workflow document synthesized for NODE_JSON."""
    settings = get_settings()
    try:
        normalized = normalize(
            Path(node_json).read_text(encoding="utf-8"),
            include_all=all_nodes,
            settings=settings,
        )
        document = assemble(load_skeleton(settings.skeleton_path), normalized.definitions, normalized.connections)
    except DynamicNodeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(document, indent=2))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
