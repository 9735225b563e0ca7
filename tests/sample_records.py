from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from mysql_crud.records import Record


@dataclass
class User(Record):
    id: int | None = None
    name: str = ""
    age: int = 0
    created_at: Any = None
    updated_at: Any = None
    password: str = field(default="", metadata={"ignore": True})


@dataclass
class Question(Record):
    id: int | None = None
    title: str = ""
    user_id: int | None = None
    options: list[QuestionOption] = field(default_factory=list)
    author: User | None = None


@dataclass
class QuestionOption(Record):
    id: int | None = None
    question_id: int | None = None
    label: str = ""
    question: Question | None = None


@dataclass
class Note(Record):
    id: int | None = None
    body: str = ""


@dataclass
class Section(Record):
    id: int | None = None
    name: str = ""


@dataclass
class Group(Record):
    id: int | None = None
    name: str = ""
    sections: list[Section] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)


@dataclass
class HookedNote(Record):
    __tablename__ = "note"

    id: int | None = None
    body: str = ""
    events: list = field(default_factory=list, metadata={"ignore": True})

    def before_create(self) -> None:
        self.events.append("before_create")

    def after_create(self) -> None:
        self.events.append("after_create")

    def after_find(self) -> None:
        self.events.append("after_find")


@dataclass
class Ghost(Record):
    id: int | None = None
