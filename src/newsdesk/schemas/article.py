"""Pydantic schemas for articles.

Separate "Create" schemas (input) from "Read" schemas (output):
- ArticleCreate: what you POST to submit an article
- ArticleUpdate: what you PUT to modify one or many (all optional)
- ArticleRead: what the API returns and what feed events embed
"""

import uuid
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, Field


def _split_categories(value):
    # Clients may send "science, tech" as one string instead of a list.
    if isinstance(value, str):
        return [c.strip() for c in value.split(",") if c.strip()]
    return value


Categories = Annotated[
    list[str], Field(min_length=1), BeforeValidator(_split_categories)
]


class ArticleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=100)
    journal_name: str = Field(..., min_length=1, max_length=200)
    category: Categories
    description: str = Field(..., min_length=1)
    image_url: str = Field(default="", max_length=1000)


class ArticleUpdate(BaseModel):
    """Partial update — only fields that are set are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=100)
    journal_name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[Categories] = None
    description: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = Field(None, max_length=1000)

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class ArticleRead(BaseModel):
    id: uuid.UUID
    title: str
    author: str
    journal_name: str
    category: list[str]
    description: str
    image_url: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ArticleMessage(BaseModel):
    """A single article plus a human-readable outcome."""
    message: str
    article: ArticleRead


class ArticlePage(BaseModel):
    items: list[ArticleRead]
    total: int
    page: int
    limit: int
    page_count: int


class SearchPage(ArticlePage):
    query: str
    message: str


class MutationResult(BaseModel):
    """Response for update/delete routes."""
    message: str
    count: int


class ImageUploaded(BaseModel):
    image_url: str
