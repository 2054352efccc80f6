from __future__ import annotations

import asyncio

import pytest
import requests
from fastapi.testclient import TestClient

import config
from builder import query_builder
from errors import MethodNotFound, OperationFailed, PlanTooLarge, TransportError
from evaluator import evaluate_plan
from people_server.people import RootQuery, RootQueryEvaluator
from people_server.server import app as people_app
from remote.client import HttpTransport
from remote.server import create_app

q = query_builder(RootQuery)


@pytest.fixture(autouse=True)
def no_client_timeout(monkeypatch):
    # TestClient does not honour per-request timeouts
    monkeypatch.setattr(config, "EVAL_TIMEOUT_S", None)


@pytest.fixture
def client():
    return TestClient(people_app)


@pytest.fixture
def transport(client):
    return HttpTransport("http://testserver", session=client)


def test_root_status(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "service": "People Query Server"}


def test_evaluate_endpoint_ok(client):
    resp = client.post(
        "/evaluate",
        json={"steps": [{"method": "getPeopleNamed", "args": ["joe"]}, {"method": "mapGetAge", "args": []}]},
    )
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "result": [10, 11]}


def test_evaluate_endpoint_reports_method_not_found(client):
    resp = client.post("/evaluate", json={"steps": [{"method": "dropTables", "args": []}]})
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["type"] == "METHOD_NOT_FOUND"
    assert body["error"]["details"] == {"method": "dropTables", "index": 0, "target": "RootQueryEvaluator"}


def test_evaluate_endpoint_reports_non_plain_result(client):
    resp = client.post("/evaluate", json={"steps": [{"method": "getPerson", "args": ["1"]}]})
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["type"] == "RESULT_NOT_SERIALIZABLE"


def test_scenario_over_http(transport):
    plan = q.getPeopleNamed("joe").filterIsOlderThan(10).atIndex(0).getAge()
    assert asyncio.run(evaluate_plan(transport, plan)) == 11
    assert asyncio.run(evaluate_plan(transport, q.getPerson("1").getAge())) == 10


def test_operation_failed_crosses_the_wire(transport):
    with pytest.raises(OperationFailed, match="Could not find person: 99"):
        asyncio.run(evaluate_plan(transport, q.getPerson("99").getAge()))


def test_method_not_found_crosses_the_wire(transport):
    with pytest.raises(MethodNotFound) as info:
        asyncio.run(transport([{"method": "getPerson", "args": ["1"]}, {"method": "getSalary", "args": []}]))
    assert info.value.index == 1
    assert info.value.target == "PersonQueryEvaluator"


def test_plan_size_limit_is_enforced_by_the_server():
    app = create_app(RootQueryEvaluator, max_steps=2)
    transport = HttpTransport("http://testserver", session=TestClient(app))

    plan = q.getPeopleNamed("joe").filterIsOlderThan(1).filterIsOlderThan(2).mapGetAge()
    with pytest.raises(PlanTooLarge):
        asyncio.run(evaluate_plan(transport, plan))


def test_malformed_request_is_a_transport_error(transport):
    with pytest.raises(TransportError) as info:
        transport.post_steps([{"args": []}])
    assert info.value.details["status"] == 422
    assert info.value.details["url"] == "http://testserver/evaluate"
    assert "detail" in info.value.details["body"]


class _DownSession:
    def post(self, url, json=None, timeout=None):
        raise requests.ConnectionError("connection refused")


def test_network_failure_is_a_transport_error():
    transport = HttpTransport("http://nowhere.invalid", session=_DownSession())
    with pytest.raises(TransportError) as info:
        asyncio.run(transport([]))
    assert info.value.details == {"url": "http://nowhere.invalid/evaluate"}
    assert isinstance(info.value.__cause__, requests.ConnectionError)


def test_trace_lines(transport, capsys):
    transport.trace = True
    asyncio.run(evaluate_plan(transport, q.getPerson("2").getName()))
    out = capsys.readouterr().out
    assert "[HTTP] POST http://testserver/evaluate steps=2" in out
    assert "[HTTP] ok result='joe'" in out


class _CannedResponse:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no JSON")
        return self._body


class _RecordingSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.response


def test_error_status_is_reported_even_with_an_ok_body():
    session = _RecordingSession(_CannedResponse(500, body={"ok": True, "result": 1}))
    transport = HttpTransport("http://evalhost", session=session)

    with pytest.raises(TransportError) as info:
        transport.post_steps([{"method": "getAge", "args": []}])
    assert info.value.details == {
        "url": "http://evalhost/evaluate",
        "status": 500,
        "body": {"ok": True, "result": 1},
    }


def test_error_status_keeps_a_non_json_body_as_text():
    session = _RecordingSession(_CannedResponse(502, text="Bad Gateway"))
    transport = HttpTransport("http://evalhost", session=session)

    with pytest.raises(TransportError) as info:
        asyncio.run(transport([]))
    assert info.value.details["status"] == 502
    assert info.value.details["body"] == "Bad Gateway"


def test_timeout_is_sent_only_when_configured():
    session = _RecordingSession(_CannedResponse(200, body={"ok": True, "result": 3}))

    assert HttpTransport("http://evalhost", session=session).post_steps([]) == 3
    assert HttpTransport("http://evalhost", session=session, timeout_s=2.5).post_steps([]) == 3

    (_, untimed), (_, timed) = session.calls
    assert "timeout" not in untimed
    assert timed["timeout"] == 2.5
    assert untimed["json"] == {"steps": []}


def test_configured_timeout_is_the_default(monkeypatch):
    monkeypatch.setattr(config, "EVAL_TIMEOUT_S", 7.0)
    session = _RecordingSession(_CannedResponse(200, body={"ok": True, "result": None}))

    assert HttpTransport("http://evalhost", session=session).post_steps([]) is None
    assert session.calls[0][1]["timeout"] == 7.0
