from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterable, Iterator, List, Mapping, Tuple, TypeVar, Union

T = TypeVar("T")

WireStep = Dict[str, Any]


class FrozenMapping(Mapping):
    """Read-only, hashable stand-in for a dict recorded as a step argument."""

    __slots__ = ("_data",)

    def __init__(self, items: Iterable[Tuple[Any, Any]] = ()) -> None:
        self._data = dict(items)

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __hash__(self) -> int:
        return hash(frozenset(self._data.items()))

    def __repr__(self) -> str:
        return f"FrozenMapping({self._data!r})"


def freeze(value: Any) -> Any:
    """Snapshot lists and dicts (recursively) as tuples and FrozenMappings."""
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, Mapping):
        return FrozenMapping((k, freeze(v)) for k, v in value.items())
    return value


def thaw(value: Any) -> Any:
    """Inverse of freeze(): fresh lists and dicts, as they come off the wire."""
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    if isinstance(value, FrozenMapping):
        return {k: thaw(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class Step:
    """
    One recorded call. Args are frozen on construction, so a recorded step
    does not change when the caller later mutates what it passed in.
    """
    method: str
    args: Tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(freeze(a) for a in self.args))

    def plain_args(self) -> List[Any]:
        return [thaw(a) for a in self.args]

    def to_dict(self) -> WireStep:
        return {"method": self.method, "args": self.plain_args()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Step":
        method = data.get("method")
        if not isinstance(method, str) or not method:
            raise ValueError(f"Step method must be a non-empty string, got {method!r}.")
        args = data.get("args", [])
        if not isinstance(args, (list, tuple)):
            raise ValueError(f"Step args for {method!r} must be a list, got {type(args).__name__}.")
        return cls(method=method, args=tuple(args))

    @classmethod
    def coerce(cls, value: Union["Step", Mapping[str, Any]]) -> "Step":
        if isinstance(value, Step):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise ValueError(f"Expected a Step or a step mapping, got {type(value).__name__}.")


@dataclass(frozen=True)
class Plan(Generic[T]):
    """
    A finished chain: the recorded steps plus the value type the last
    operation declares. `result_type` only documents what evaluation yields;
    it is never sent over the wire nor consulted when replaying.
    """
    steps: Tuple[Step, ...]
    result_type: Any = field(default=None, compare=False, repr=False)

    @property
    def __steps__(self) -> Tuple[Step, ...]:
        return self.steps

    def __len__(self) -> int:
        return len(self.steps)

    def to_wire(self) -> List[WireStep]:
        return steps_to_wire(self.steps)


def steps_to_wire(steps: Iterable[Union[Step, Mapping[str, Any]]]) -> List[WireStep]:
    return [Step.coerce(s).to_dict() for s in steps]


def steps_from_wire(data: Any) -> Tuple[Step, ...]:
    if not isinstance(data, (list, tuple)):
        raise ValueError(f"Steps must be a list, got {type(data).__name__}.")
    return tuple(Step.coerce(s) for s in data)
