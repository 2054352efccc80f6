# people_server/people.py

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from errors import OperationFailed


# ---- Query interfaces (what callers may chain) ----

class RootQuery(Protocol):
    def getPerson(self, id: str) -> PersonQuery: ...
    def getPeopleNamed(self, name: str) -> PeopleQuery: ...


class PersonQuery(Protocol):
    def getName(self) -> str: ...
    def getAge(self) -> int: ...
    def isOlderThan(self, age: int) -> bool: ...


class PeopleQuery(Protocol):
    def mapGetName(self) -> List[str]: ...
    def mapGetAge(self) -> List[int]: ...
    def mapIsOlderThan(self, age: int) -> List[bool]: ...
    def filterIsOlderThan(self, age: int) -> PeopleQuery: ...
    def atIndex(self, index: int) -> PersonQuery: ...


# ---- Backing data ----

@dataclass(frozen=True)
class Person:
    id: str
    name: str
    age: int


PEOPLE: List[Person] = [
    Person(id="1", name="joe", age=10),
    Person(id="2", name="joe", age=11),
    Person(id="3", name="bob", age=12),
    Person(id="4", name="jeff", age=15),
]


# ---- Concrete evaluators (what the evaluating side replays against) ----

class RootQueryEvaluator:
    def __init__(self, people: Optional[Sequence[Person]] = None) -> None:
        self.people = list(PEOPLE if people is None else people)

    def getPerson(self, id: str) -> PersonQueryEvaluator:
        for person in self.people:
            if person.id == id:
                return PersonQueryEvaluator(person)
        raise OperationFailed(f"Could not find person: {id}")

    def getPeopleNamed(self, name: str) -> PeopleQueryEvaluator:
        return PeopleQueryEvaluator([p for p in self.people if p.name == name])


class PersonQueryEvaluator:
    def __init__(self, person: Person) -> None:
        self.person = person

    def getName(self) -> str:
        return self.person.name

    def getAge(self) -> int:
        return self.person.age

    def isOlderThan(self, age: int) -> bool:
        return self.person.age > age


class PeopleQueryEvaluator:
    def __init__(self, persons: List[Person]) -> None:
        self.persons = persons

    def mapGetName(self) -> List[str]:
        return [p.name for p in self.persons]

    def mapGetAge(self) -> List[int]:
        return [p.age for p in self.persons]

    def mapIsOlderThan(self, age: int) -> List[bool]:
        return [p.age > age for p in self.persons]

    def filterIsOlderThan(self, age: int) -> PeopleQueryEvaluator:
        return PeopleQueryEvaluator([p for p in self.persons if p.age > age])

    def atIndex(self, index: int) -> PersonQueryEvaluator:
        # Negative indexes are out of range, not "from the end"
        if not 0 <= index < len(self.persons):
            raise OperationFailed(f"No person at index: {index}")
        return PersonQueryEvaluator(self.persons[index])
