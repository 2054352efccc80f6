# schemas.py

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, JsonValue


class StepModel(BaseModel):
    method: str = Field(..., min_length=1, description="Operation name on the current target")
    args: List[JsonValue] = Field(default_factory=list)


class EvaluateRequest(BaseModel):
    steps: List[StepModel] = Field(default_factory=list)


class EvaluateOk(BaseModel):
    ok: Literal[True] = True
    result: JsonValue = None


class EvaluateErr(BaseModel):
    ok: Literal[False] = False
    error: Dict[str, Any]
