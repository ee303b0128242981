"""Pytest configuration and fixtures."""
import logging
import os
import re

import pytest

# Set test environment variables
os.environ["DYNAMIC_NODE_ENV"] = "test"
os.environ["DYNAMIC_NODE_LOG_FORMAT"] = "text"


class FakeEngine:
    """
    Execution engine double.

    Records every call; answers with `responses` (one per call, the last
    one repeated) or raises for the call numbers listed in `fail_on`.
    """

    def __init__(self, responses=None, fail_on=(), echo=False):
        self.calls = []
        self.responses = list(responses or [])
        self.fail_on = set(fail_on)
        self.echo = echo

    def execute_workflow(self, document, items, run_data=None, options=None):
        call_number = len(self.calls)
        self.calls.append({"document": document, "items": items, "options": options})
        if call_number in self.fail_on:
            raise RuntimeError(f"engine failure on call {call_number}")
        if self.echo:
            return [[{"json": dict(item.get("json", {}), call=call_number)} for item in items]]
        if not self.responses:
            return [[]]
        return self.responses[min(call_number, len(self.responses) - 1)]


class AsyncFakeEngine(FakeEngine):
    """Same as FakeEngine with a coroutine execute_workflow."""

    async def execute_workflow(self, document, items, run_data=None, options=None):
        return FakeEngine.execute_workflow(self, document, items, run_data, options)


class JsonPathEvaluator:
    """
    Tiny evaluator for tests: resolves `{{ $json.a.b }}` (optionally with
    a leading "=") against the item's json. Anything else raises.
    """

    PATTERN = re.compile(r"^=?\{\{\s*\$json\.([\w.]+)\s*\}\}$")

    def __init__(self):
        self.calls = []

    def evaluate(self, expression, item, item_index):
        self.calls.append((expression, item_index))
        match = self.PATTERN.match(expression.strip())
        if not match:
            raise ValueError(f"unsupported expression: {expression}")
        value = item.get("json", {})
        for key in match.group(1).split("."):
            value = value[key]
        return value


@pytest.fixture(autouse=True)
def isolated_settings():
    """Fresh settings for every test."""
    from dynamic_node.config import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo logging changes made by setup_logging() (e.g. from the CLI)."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings():
    from dynamic_node.config import Settings

    return Settings()


@pytest.fixture
def fake_engine():
    return FakeEngine(echo=True)


@pytest.fixture
def make_engine():
    """Factory for engine doubles: make_engine(responses=..., fail_on=..., echo=..., use_async=...)."""
    def _make(use_async=False, **kwargs):
        cls = AsyncFakeEngine if use_async else FakeEngine
        return cls(**kwargs)
    return _make


@pytest.fixture
def evaluator():
    return JsonPathEvaluator()


@pytest.fixture
def proxy_for():
    def _proxy(item_index):
        return {
            "$execution": {"id": "exec-parent-1"},
            "$workflow": {"id": "wf-parent-1"},
            "$itemIndex": item_index,
        }
    return _proxy


@pytest.fixture
def skeleton():
    from dynamic_node.assembler import load_skeleton

    return load_skeleton()


@pytest.fixture
def http_node():
    """Exported single node with an expression parameter."""
    return {
        "name": "Foo",
        "type": "n8n-nodes-base.httpRequest",
        "typeVersion": 4,
        "position": [100, 200],
        "parameters": {"url": "{{$json.x}}", "method": "GET"},
    }


@pytest.fixture
def export_two_nodes():
    """Full workflow export with A -> B."""
    return {
        "nodes": [
            {"name": "A", "type": "n8n-nodes-base.set", "parameters": {"mode": "manual", "values": {"a": 1}}},
            {"name": "B", "type": "n8n-nodes-base.noOp", "parameters": {}},
        ],
        "connections": {
            "A": {"main": [[{"node": "B", "type": "main", "index": 0}]]},
        },
        "pinData": {},
        "meta": {"instanceId": "abc"},
    }
