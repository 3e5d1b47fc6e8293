"""Display blocks produced by the content renderer."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class Span(BaseModel):
    """A run of inline text, optionally emphasized."""

    text: str
    bold: bool = False


class Heading(BaseModel):
    type: Literal["heading"] = "heading"
    level: int = Field(ge=1, le=3)
    text: str


class Paragraph(BaseModel):
    type: Literal["paragraph"] = "paragraph"
    spans: list[Span]


class BulletList(BaseModel):
    type: Literal["bullet_list"] = "bullet_list"
    items: list[list[Span]]


class Table(BaseModel):
    type: Literal["table"] = "table"
    headers: list[str]
    rows: list[list[str]]


class Rule(BaseModel):
    type: Literal["rule"] = "rule"


DisplayBlock = Annotated[
    Union[Heading, Paragraph, BulletList, Table, Rule],
    Field(discriminator="type"),
]
