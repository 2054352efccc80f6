# builder.py

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Tuple, Union

from errors import ContractViolation
from interface import Chainable, InterfaceDescription, Operation, describe, is_interface
from plan_types import Plan, Step

# op name -> (steps -> bound callable)
DispatchTable = Dict[str, Callable[[Tuple[Step, ...]], Callable[..., Any]]]


class QueryBuilder:
    """
    Records a fluent call chain as data, never executing it.

    Each declared operation is exposed as an attribute. Calling it returns a
    new QueryBuilder (chainable result) or a Plan (terminal result); the
    receiver is never modified, so one builder can start several chains.

    The recorded steps are available under the reserved name `__steps__`.
    """

    __slots__ = ("_description", "_steps")

    def __init__(self, description: InterfaceDescription, steps: Iterable[Step] = ()) -> None:
        object.__setattr__(self, "_description", description)
        object.__setattr__(self, "_steps", tuple(steps))

    @property
    def __steps__(self) -> Tuple[Step, ...]:
        return self._steps

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)

        table = _dispatch_table(self._description)
        bind = table.get(name)
        if bind is None:
            raise ContractViolation(
                f"{self._description.name} declares no operation {name!r} "
                f"(available: {sorted(table)})"
            )
        return bind(self._steps)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    # Immutable: copies can share the instance
    def __copy__(self) -> "QueryBuilder":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "QueryBuilder":
        return self

    def __dir__(self) -> Iterable[str]:
        return sorted(self._description.operations)

    def __repr__(self) -> str:
        chain = ".".join(_format_step(s) for s in self._steps)
        return f"<QueryBuilder {self._description.name}{': ' + chain if chain else ''}>"


def query_builder(root: Union[InterfaceDescription, type], steps: Iterable[Step] = ()) -> QueryBuilder:
    """
    Entry point: a builder rooted at `root`, which is either an
    InterfaceDescription or a typing.Protocol class.
    """
    if is_interface(root):
        root = describe(root)
    if not isinstance(root, InterfaceDescription):
        raise ContractViolation(f"Cannot build queries against {root!r}.")
    return QueryBuilder(root, steps)


def steps_of(chain: Union[QueryBuilder, Plan]) -> Tuple[Step, ...]:
    """Steps recorded so far, without appending one."""
    if isinstance(chain, (QueryBuilder, Plan)):
        return chain.__steps__
    raise TypeError(f"Expected a QueryBuilder or Plan, got {type(chain).__name__}.")


# ---------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------

def _dispatch_table(description: InterfaceDescription) -> DispatchTable:
    table = description.dispatch_cache
    if not table and description.operations:
        for name, op in description.operations.items():
            table[name] = _make_binder(op)
    return table


def _make_binder(op: Operation) -> Callable[[Tuple[Step, ...]], Callable[..., Any]]:
    def bind(steps: Tuple[Step, ...]) -> Callable[..., Any]:
        def call(*args: Any, **kwargs: Any) -> Union[QueryBuilder, Plan]:
            if kwargs:
                raise TypeError(f"{op.name}() takes positional arguments only; got {sorted(kwargs)}")

            extended = steps + (Step(method=op.name, args=args),)
            if isinstance(op.result, Chainable):
                return QueryBuilder(op.result.interface, extended)
            return Plan(steps=extended, result_type=op.result.value_type)

        call.__name__ = op.name
        call.__qualname__ = op.name
        return call

    return bind


def _format_step(step: Step) -> str:
    return f"{step.method}({', '.join(repr(a) for a in step.plain_args())})"
