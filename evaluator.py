# evaluator.py

from __future__ import annotations

from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, TypeVar, Union

from errors import ContractViolation, MethodNotFound, PlanTooLarge
from plan_types import Plan, Step, WireStep

T = TypeVar("T")

Transport = Callable[[List[WireStep]], Awaitable[Any]]
StepLike = Union[Step, Mapping[str, Any]]


class PlanEvaluator:
    """
    Replays a step sequence against a concrete object graph.

    Starting from the root, each step's method is looked up on the current
    value and called with the step's args; the return value becomes the
    current value. Whatever a called operation raises propagates unchanged;
    there is no retry and no partial result.
    """

    def __init__(self, *, trace: bool = False, max_steps: Optional[int] = None) -> None:
        self.trace = trace
        self.max_steps = max_steps

    def evaluate(self, root: Any, steps: Iterable[StepLike]) -> Any:
        steps = [Step.coerce(s) for s in steps]

        if self.max_steps is not None and len(steps) > self.max_steps:
            raise PlanTooLarge(len(steps), self.max_steps)

        current = root
        for index, step in enumerate(steps):
            fn = self._resolve(current, step.method, index)

            if self.trace:
                print(f"[EVAL] {index}: {type(current).__name__}.{step.method} args={step.plain_args()}")

            current = fn(*step.plain_args())

        return current

    def _resolve(self, target: Any, method: str, index: int) -> Callable[..., Any]:
        # Private and dunder members are never reachable from a plan
        if method.startswith("_"):
            raise MethodNotFound(method, index=index, target=type(target).__name__)

        fn = getattr(target, method, None)
        if not callable(fn):
            raise MethodNotFound(method, index=index, target=type(target).__name__)
        return fn


def evaluate_steps(root: Any, steps: Iterable[StepLike], *, trace: bool = False) -> Any:
    """Remote replay entry point: run `steps` against `root` and return the final value."""
    return PlanEvaluator(trace=trace).evaluate(root, steps)


async def evaluate_plan(transport: Transport, plan: Plan[T]) -> T:
    """
    Local orchestration entry point: ship the plan's steps through
    `transport` and hand back what it eventually returns.
    """
    if not isinstance(plan, Plan):
        raise ContractViolation(
            f"evaluate_plan() needs a Plan ending in a terminal operation, got {plan!r}."
        )
    return await transport(plan.to_wire())
