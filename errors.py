# errors.py
from __future__ import annotations

from typing import Any, Dict, Optional

JsonObj = Dict[str, Any]


class QueryPlanError(Exception):
    """Base class for everything raised by plan building, evaluation and transport."""


class MethodNotFound(QueryPlanError, LookupError):
    """
    A step names an operation the current evaluation target does not expose.
    """

    def __init__(self, method: str, *, index: int, target: str) -> None:
        super().__init__(f"Step {index}: {target} has no operation {method!r}")
        self.method = method
        self.index = index
        self.target = target


class OperationFailed(QueryPlanError):
    """Domain failure raised by a concrete operation (not found, out of range, ...)."""


class ContractViolation(QueryPlanError, AttributeError):
    """A chain does not match the interface description it was built against."""


class PlanTooLarge(QueryPlanError, ValueError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Plan has too many steps ({size} > {limit}).")
        self.size = size
        self.limit = limit


class TransportError(QueryPlanError, RuntimeError):
    def __init__(self, message: str, *, details: Optional[JsonObj] = None) -> None:
        super().__init__(message)
        self.details = details or {}


# ---------------------------------------------------------------------
# Wire error objects: {"type": ..., "message": ..., "details": {...}}
# ---------------------------------------------------------------------

METHOD_NOT_FOUND = "METHOD_NOT_FOUND"
OPERATION_FAILED = "OPERATION_FAILED"
PLAN_TOO_LARGE = "PLAN_TOO_LARGE"
RESULT_NOT_SERIALIZABLE = "RESULT_NOT_SERIALIZABLE"
INVALID_REQUEST = "INVALID_REQUEST"


def error_to_payload(exc: BaseException) -> JsonObj:
    """
    Describe an evaluation failure as a wire error object.
    Anything that is not one of our own structural errors is reported as a
    domain failure of the invoked operation.
    """
    if isinstance(exc, MethodNotFound):
        return {
            "type": METHOD_NOT_FOUND,
            "message": str(exc),
            "details": {"method": exc.method, "index": exc.index, "target": exc.target},
        }
    if isinstance(exc, PlanTooLarge):
        return {
            "type": PLAN_TOO_LARGE,
            "message": str(exc),
            "details": {"size": exc.size, "limit": exc.limit},
        }
    return {
        "type": OPERATION_FAILED,
        "message": str(exc),
        "details": {"exception": type(exc).__name__},
    }


def error_from_payload(error: Any) -> QueryPlanError:
    """Rebuild the exception a remote evaluator reported."""
    if not isinstance(error, dict):
        return TransportError("Invalid error object in response", details={"error": error})

    err_type = error.get("type")
    message = str(error.get("message") or "remote evaluation failed")
    details = error.get("details") if isinstance(error.get("details"), dict) else {}

    if err_type == METHOD_NOT_FOUND:
        try:
            return MethodNotFound(
                str(details["method"]),
                index=int(details["index"]),
                target=str(details.get("target", "?")),
            )
        except (KeyError, TypeError, ValueError):
            return TransportError(message, details={"type": err_type, **details})

    if err_type == OPERATION_FAILED:
        return OperationFailed(message)

    if err_type == PLAN_TOO_LARGE:
        try:
            return PlanTooLarge(int(details["size"]), int(details["limit"]))
        except (KeyError, TypeError, ValueError):
            return TransportError(message, details={"type": err_type, **details})

    return TransportError(message, details={"type": err_type, **details})
