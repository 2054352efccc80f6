# remote/client.py
from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import requests

import config
from errors import TransportError, error_from_payload
from evaluator import PlanEvaluator
from plan_types import WireStep, steps_from_wire

JsonObj = Dict[str, Any]


class LocalTransport:
    """
    In-process transport. Steps and result go through JSON exactly as they
    would across a process boundary, so only plain values survive.
    Failures raised by the evaluation propagate as-is.
    """

    def __init__(self, root_factory: Callable[[], Any], *, trace: Optional[bool] = None) -> None:
        self.root_factory = root_factory
        self.trace = config.TRACE if trace is None else trace

    async def __call__(self, steps: List[WireStep]) -> Any:
        # Caller side
        serialized_steps = json.dumps(steps)

        # Evaluating side
        received = steps_from_wire(json.loads(serialized_steps))
        result = PlanEvaluator(trace=self.trace).evaluate(self.root_factory(), received)
        serialized_result = json.dumps(result)

        # Caller side
        return json.loads(serialized_result)


class HttpTransport:
    """
    Ships steps to an evaluation server:
      POST {base_url}/evaluate   {"steps": [{"method": ..., "args": [...]}, ...]}
    and returns the result, or raises the error the server reported.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout_s: Optional[float] = None,
        session: Any = None,
        trace: Optional[bool] = None,
    ) -> None:
        self.base_url = base_url or config.EVAL_SERVER_URL
        self.timeout_s = timeout_s if timeout_s is not None else config.EVAL_TIMEOUT_S
        self.session = session or requests.Session()
        self.trace = config.TRACE if trace is None else trace

    def evaluate_url(self) -> str:
        return _join(self.base_url, "evaluate")

    async def __call__(self, steps: List[WireStep]) -> Any:
        # requests is blocking; keep the event loop free while we wait
        return await asyncio.to_thread(self.post_steps, steps)

    def post_steps(self, steps: List[WireStep]) -> Any:
        url = self.evaluate_url()
        if self.trace:
            print(f"[HTTP] POST {url} steps={len(steps)}")

        kwargs: JsonObj = {"json": {"steps": steps}}
        if self.timeout_s is not None:
            kwargs["timeout"] = self.timeout_s

        try:
            resp = self.session.post(url, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"Evaluation transport error: {e}", details={"url": url}) from e

        if resp.status_code != 200:
            raise TransportError(
                f"Evaluation server returned HTTP {resp.status_code}",
                details={"url": url, "status": resp.status_code, "body": _body_of(resp)},
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(
                f"Evaluation protocol error: invalid JSON response (HTTP {resp.status_code})",
                details={"url": url, "status": resp.status_code},
            ) from e

        if not isinstance(data, dict):
            raise TransportError("Invalid evaluate response: expected a JSON object", details={"url": url, "body": data})

        ok = data.get("ok")
        if ok is True:
            if "result" not in data:
                raise TransportError(
                    "Invalid evaluate response: ok=true but missing 'result'",
                    details={"url": url, "body": data},
                )
            if self.trace:
                print(f"[HTTP] ok result={data['result']!r}")
            return data["result"]

        if ok is False:
            err = error_from_payload(data.get("error"))
            if self.trace:
                print(f"[HTTP] failed: {err!r}")
            raise err

        raise TransportError(
            f"Invalid evaluate response: missing boolean 'ok' (HTTP {resp.status_code})",
            details={"url": url, "status": resp.status_code, "body": data},
        )


def _join(base: str, suffix: str) -> str:
    base = base.rstrip("/")
    suffix = suffix.lstrip("/")
    return f"{base}/{suffix}"


def _body_of(resp: Any) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text
