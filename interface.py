# interface.py

from __future__ import annotations

import inspect
import threading
import typing
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Union

from errors import ContractViolation


@dataclass(frozen=True)
class Chainable:
    """The operation returns another interface; the chain may continue."""
    interface: "InterfaceDescription"


@dataclass(frozen=True)
class Terminal:
    """The operation returns a plain value; the chain ends here."""
    value_type: Any = Any


Result = Union[Chainable, Terminal]


@dataclass(frozen=True)
class Operation:
    name: str
    params: Tuple[Tuple[str, Any], ...] = ()
    result: Result = field(default_factory=Terminal)

    @property
    def chainable(self) -> bool:
        return isinstance(self.result, Chainable)


@dataclass(eq=False)
class InterfaceDescription:
    """
    Contract for one interface: operation name -> (params, result).

    Declared fluently so an interface can refer to itself:

        people = InterfaceDescription("PeopleQuery")
        people.operation("filterIsOlderThan", [("age", int)], returns=Chainable(people))
        people.operation("mapGetAge", returns=Terminal(list))

    Names starting with "_" are reserved and can never be operations.
    """
    name: str
    operations: Dict[str, Operation] = field(default_factory=dict)

    # Builder dispatch table, filled lazily by builder.py
    dispatch_cache: Dict[str, Any] = field(default_factory=dict, repr=False)

    def operation(
        self,
        name: str,
        params: Sequence[Tuple[str, Any]] = (),
        *,
        returns: Optional[Result] = None,
    ) -> "InterfaceDescription":
        if not isinstance(name, str) or not name.isidentifier():
            raise ContractViolation(f"{self.name}: operation name must be an identifier, got {name!r}.")
        if name.startswith("_"):
            raise ContractViolation(f"{self.name}: operation names starting with '_' are reserved ({name!r}).")
        if name in self.operations:
            raise ContractViolation(f"{self.name}: operation {name!r} is declared twice.")

        result = returns if returns is not None else Terminal()
        if not isinstance(result, (Chainable, Terminal)):
            raise ContractViolation(
                f"{self.name}.{name}: returns must be Chainable(...) or Terminal(...), got {type(result).__name__}."
            )

        self.operations[name] = Operation(name=name, params=tuple(params), result=result)
        self.dispatch_cache.clear()
        return self

    def get(self, name: str) -> Optional[Operation]:
        return self.operations.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.operations

    def __iter__(self) -> Iterator[str]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def __repr__(self) -> str:
        return f"InterfaceDescription({self.name!r}, operations={sorted(self.operations)})"


# ---------------------------------------------------------------------
# Deriving descriptions from typing.Protocol classes
# ---------------------------------------------------------------------

_DESCRIBED: Dict[type, InterfaceDescription] = {}
_DESCRIBE_LOCK = threading.Lock()


def is_interface(tp: Any) -> bool:
    return isinstance(tp, type) and bool(getattr(tp, "_is_protocol", False))


def describe(protocol: type, localns: Optional[Mapping[str, Any]] = None) -> InterfaceDescription:
    """
    Build (once) the description of a Protocol class.

    Every public method becomes an operation. A method whose return
    annotation is itself a Protocol is Chainable, anything else is Terminal.
    Recursive protocols resolve to the same description object.

    Annotations resolve against the protocol's module; protocols declared
    inside a function need `localns` (e.g. `locals()`) to see each other.
    Descriptions are published to the cache only once the whole group of
    protocols reachable from `protocol` has been described.
    """
    if not is_interface(protocol):
        raise ContractViolation(f"{protocol!r} is not a typing.Protocol class.")

    with _DESCRIBE_LOCK:
        cached = _DESCRIBED.get(protocol)
        if cached is not None:
            return cached

        pending: Dict[type, InterfaceDescription] = {}
        desc = _describe_into(protocol, localns, pending)
        _DESCRIBED.update(pending)
        return desc


def _describe_into(
    protocol: type,
    localns: Optional[Mapping[str, Any]],
    pending: Dict[type, InterfaceDescription],
) -> InterfaceDescription:
    known = _DESCRIBED.get(protocol)
    if known is None:
        known = pending.get(protocol)
    if known is not None:
        return known

    desc = InterfaceDescription(protocol.__name__)
    # Register before filling so self references terminate
    pending[protocol] = desc

    for name, fn in _public_methods(protocol):
        params, returns = _signature_of(protocol, fn, localns)
        if is_interface(returns):
            result: Result = Chainable(_describe_into(returns, localns, pending))
        else:
            result = Terminal(returns)
        desc.operation(name, params, returns=result)

    return desc


def _public_methods(protocol: type) -> Iterator[Tuple[str, Any]]:
    seen: Dict[str, Any] = {}
    for klass in protocol.__mro__:
        if klass in (object, typing.Protocol, typing.Generic):
            continue
        for name, value in vars(klass).items():
            if name.startswith("_") or name in seen:
                continue
            if inspect.isfunction(value):
                seen[name] = value
    return iter(seen.items())


def _signature_of(
    protocol: type,
    fn: Any,
    localns: Optional[Mapping[str, Any]] = None,
) -> Tuple[Tuple[Tuple[str, Any], ...], Any]:
    module = inspect.getmodule(protocol)
    globalns = vars(module) if module is not None else {}
    names = dict(vars(protocol))
    names.update(localns or {})
    try:
        hints = typing.get_type_hints(fn, globalns=globalns, localns=names)
    except NameError as e:
        raise ContractViolation(f"{protocol.__name__}.{fn.__name__}: unresolvable annotation ({e}).") from e

    params = []
    for p in list(inspect.signature(fn).parameters.values())[1:]:  # drop self
        params.append((p.name, hints.get(p.name, Any)))

    return tuple(params), hints.get("return", Any)
