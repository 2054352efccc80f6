from __future__ import annotations

import asyncio
from typing import Any, List, Protocol

import pytest
from fastapi.testclient import TestClient

import config
from builder import query_builder
from evaluator import evaluate_plan, evaluate_steps
from remote.client import HttpTransport, LocalTransport
from remote.server import create_app


class EchoRoot(Protocol):
    def echo(self, value: Any) -> Any: ...
    def pack(self, *values: Any) -> List[Any]: ...


class EchoEvaluator:
    def echo(self, value):
        return value

    def pack(self, *values):
        return list(values)


VALUES = [
    1.5,
    10.0,
    0,
    -3,
    True,
    False,
    None,
    "x",
    "",
    [],
    {},
    [1, [2, [3]]],
    {"a": [1, {"b": False}], "c": None, "d": 2.25},
]

q = query_builder(EchoRoot)


@pytest.fixture(autouse=True)
def no_client_timeout(monkeypatch):
    monkeypatch.setattr(config, "EVAL_TIMEOUT_S", None)


@pytest.fixture
def http_transport(no_client_timeout):
    return HttpTransport("http://testserver", session=TestClient(create_app(EchoEvaluator)))


def _same(got, expected):
    # 1 == 1.0 == True, so compare types as well
    assert got == expected
    assert type(got) is type(expected)
    if isinstance(expected, list):
        for g, e in zip(got, expected):
            _same(g, e)
    if isinstance(expected, dict):
        for key in expected:
            _same(got[key], expected[key])


@pytest.mark.parametrize("value", VALUES, ids=repr)
def test_value_survives_direct_evaluation(value):
    plan = q.echo(value)
    _same(evaluate_steps(EchoEvaluator(), plan.steps), value)


@pytest.mark.parametrize("value", VALUES, ids=repr)
def test_value_survives_local_transport(value):
    plan = q.echo(value)
    _same(asyncio.run(evaluate_plan(LocalTransport(EchoEvaluator), plan)), value)


@pytest.mark.parametrize("value", VALUES, ids=repr)
def test_value_survives_http_transport(value, http_transport):
    plan = q.echo(value)
    _same(asyncio.run(evaluate_plan(http_transport, plan)), value)


def test_mixed_arguments_keep_order_and_types(http_transport):
    args = (1.5, True, None, 0, "s", {"k": [False]})
    plan = q.pack(*args)

    expected = list(args)
    _same(evaluate_steps(EchoEvaluator(), plan.steps), expected)
    _same(asyncio.run(evaluate_plan(LocalTransport(EchoEvaluator), plan)), expected)
    _same(asyncio.run(evaluate_plan(http_transport, plan)), expected)
