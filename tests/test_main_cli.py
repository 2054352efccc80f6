from __future__ import annotations

import pytest

import main
from builder import QueryBuilder, query_builder
from errors import ContractViolation
from people_server.people import RootQuery
from plan_types import Plan, Step


def test_parse_chain_reads_calls_and_literal_args():
    calls = main.parse_chain('getPeopleNamed("joe").filterIsOlderThan(10).atIndex(0).getAge()')
    assert calls == [
        ("getPeopleNamed", ("joe",)),
        ("filterIsOlderThan", (10,)),
        ("atIndex", (0,)),
        ("getAge", ()),
    ]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "getPerson",
        "x.getPerson(1)",
        'getPerson(id="1")',
        "getPerson(open('f'))",
        "getPerson(1) +",
    ],
)
def test_parse_chain_rejects_non_chains(text):
    with pytest.raises(ValueError):
        main.parse_chain(text)


def test_build_chain_goes_through_the_builder():
    q = query_builder(RootQuery)

    plan = main.build_chain(q, main.parse_chain('getPerson("1").getAge()'))
    assert isinstance(plan, Plan)
    assert plan.steps == (Step("getPerson", ("1",)), Step("getAge", ()))

    partial = main.build_chain(q, main.parse_chain('getPeopleNamed("joe")'))
    assert isinstance(partial, QueryBuilder)

    with pytest.raises(ContractViolation):
        main.build_chain(q, main.parse_chain('getPerson("1").mapGetAge()'))

    with pytest.raises(ValueError):
        main.build_chain(q, main.parse_chain('getPerson("1").getAge().getName()'))


def test_shell_evaluates_and_prints(monkeypatch, capsys):
    lines = iter(['getPeopleNamed("joe").mapGetAge()', ':steps getPerson("1").getAge()', "nope()", "exit"])
    monkeypatch.setattr(main, "get_query_input", lambda: next(lines))

    main.main([])
    out = capsys.readouterr().out

    assert "=> [10, 11]" in out
    assert '"method": "getPerson"' in out
    assert "[ERROR] ContractViolation" in out
    assert "Exiting." in out
