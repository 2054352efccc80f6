# main.py
from __future__ import annotations

import ast
import asyncio
import json
import sys
from typing import Any, List, Tuple

import config
from builder import QueryBuilder, query_builder, steps_of
from errors import QueryPlanError
from evaluator import evaluate_plan
from io_utils import get_query_input, print_result
from people_server.people import RootQuery, RootQueryEvaluator
from plan_types import Plan, steps_to_wire
from remote.client import HttpTransport, LocalTransport

HELP = """Usage:
  python main.py                 Interactive query shell against the example people data
  python main.py serve [port]    Serve the example people interface over HTTP (uvicorn)

Shell commands:
  :help                          Show this help
  :steps <chain>                 Print the wire steps of a chain (no evaluation)
  :trace on|off                  Print each evaluated step
  :http [url]                    Evaluate through an HTTP server (default: config.EVAL_SERVER_URL)
  :local                         Evaluate in-process (default)
  exit | quit                    Exit

A chain is written the way you would call it, starting from the root:
  getPeopleNamed("joe").filterIsOlderThan(10).atIndex(0).getAge()
"""


def parse_chain(text: str) -> List[Tuple[str, Tuple[Any, ...]]]:
    """
    Turn `a(1).b("x")` into [("a", (1,)), ("b", ("x",))].
    Arguments must be Python literals; nothing is evaluated.
    """
    try:
        node = ast.parse(text.strip(), mode="eval").body
    except SyntaxError as e:
        raise ValueError(f"Not a chain expression: {e.msg}") from e

    calls: List[Tuple[str, Tuple[Any, ...]]] = []
    while isinstance(node, ast.Call):
        if node.keywords:
            raise ValueError("Keyword arguments are not supported; pass arguments positionally.")

        func = node.func
        if isinstance(func, ast.Attribute):
            name, receiver = func.attr, func.value
        elif isinstance(func, ast.Name):
            name, receiver = func.id, None
        else:
            raise ValueError("Each link of the chain must be a method call.")

        try:
            args = tuple(ast.literal_eval(a) for a in node.args)
        except ValueError as e:
            raise ValueError(f"Arguments of {name}() must be literals.") from e
        calls.append((name, args))

        node = receiver
        if node is None:
            break

    if node is not None or not calls:
        raise ValueError("Expected a chain of calls such as getPerson(\"1\").getAge()")

    calls.reverse()
    return calls


def build_chain(root: QueryBuilder, calls: List[Tuple[str, Tuple[Any, ...]]]) -> Any:
    current: Any = root
    for name, args in calls:
        if isinstance(current, Plan):
            raise ValueError(f"{name}() cannot follow a terminal operation.")
        current = getattr(current, name)(*args)
    return current


def serve(port: int) -> None:
    import uvicorn

    uvicorn.run("people_server.server:app", host=config.SERVER_HOST, port=port)


def main(argv: List[str]) -> None:
    if argv and argv[0] in {"-h", "--help", "help"}:
        print(HELP)
        return

    if argv and argv[0] == "serve":
        port = int(argv[1]) if len(argv) > 1 else config.SERVER_PORT
        serve(port)
        return

    q = query_builder(RootQuery)
    trace = config.TRACE
    transport: Any = LocalTransport(RootQueryEvaluator, trace=trace)

    print("Query plans against the example people data.")
    print("Type ':help' for commands, 'exit' to stop.\n")

    while True:
        try:
            line = get_query_input()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not line:
            continue

        if line.lower() in {"exit", "quit", ":exit", ":quit"}:
            print("Exiting.")
            break

        if line in {":help", "help"}:
            print(HELP)
            continue

        if line.startswith(":trace"):
            parts = line.split(maxsplit=1)
            val = parts[1].strip().lower() if len(parts) == 2 else ""
            if val not in {"on", "off"}:
                print("Usage: :trace on|off\n")
                continue
            trace = val == "on"
            transport.trace = trace
            print(f"(trace {val})\n")
            continue

        if line.startswith(":http"):
            parts = line.split(maxsplit=1)
            url = parts[1].strip() if len(parts) == 2 else config.EVAL_SERVER_URL
            transport = HttpTransport(url, trace=trace)
            print(f"(evaluating via {url})\n")
            continue

        if line == ":local":
            transport = LocalTransport(RootQueryEvaluator, trace=trace)
            print("(evaluating in-process)\n")
            continue

        try:
            if line.startswith(":steps "):
                chain = build_chain(q, parse_chain(line.split(" ", 1)[1]))
                print(json.dumps(steps_to_wire(steps_of(chain)), indent=2) + "\n")
                continue

            chain = build_chain(q, parse_chain(line))
            if not isinstance(chain, Plan):
                print(f"(chain ends on {chain!r}; add a terminal operation)\n")
                continue
            print_result(asyncio.run(evaluate_plan(transport, chain)))
        except (QueryPlanError, ValueError, TypeError) as e:
            print(f"[ERROR] {type(e).__name__}: {e}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
