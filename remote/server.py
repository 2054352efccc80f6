# remote/server.py
from __future__ import annotations

from typing import Any, Callable, Optional, Union

from fastapi import FastAPI
from pydantic import ValidationError

import config
from errors import RESULT_NOT_SERIALIZABLE, error_to_payload
from evaluator import PlanEvaluator
from plan_types import Step
from schemas import EvaluateErr, EvaluateOk, EvaluateRequest


def create_app(
    root_factory: Callable[[], Any],
    *,
    title: str = "Query Plan Server",
    max_steps: Optional[int] = None,
    trace: Optional[bool] = None,
) -> FastAPI:
    """
    Evaluation endpoint for one root interface. Each request replays the
    posted steps against a fresh `root_factory()`.
    """
    limit = max_steps if max_steps is not None else config.MAX_PLAN_STEPS
    evaluator = PlanEvaluator(trace=config.TRACE if trace is None else trace, max_steps=limit)

    app = FastAPI(title=title, version="0.1")

    @app.get("/")
    def root_status():
        return {"ok": True, "service": title}

    @app.post("/evaluate", response_model=Union[EvaluateOk, EvaluateErr])
    def evaluate(req: EvaluateRequest):
        steps = [Step(method=s.method, args=tuple(s.args)) for s in req.steps]

        if evaluator.trace:
            print(f"[SERVE] evaluate: {[s.method for s in steps]}")

        try:
            result = evaluator.evaluate(root_factory(), steps)
        except Exception as e:
            # Reported to the caller; the evaluator itself never swallows failures
            return EvaluateErr(ok=False, error=error_to_payload(e))

        try:
            return EvaluateOk(ok=True, result=result)
        except ValidationError:
            return EvaluateErr(
                ok=False,
                error={
                    "type": RESULT_NOT_SERIALIZABLE,
                    "message": f"Plan result of type {type(result).__name__} is not a plain value",
                    "details": {"result_type": type(result).__name__},
                },
            )

    return app
